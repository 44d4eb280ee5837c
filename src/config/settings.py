# src/config/settings.py

"""Central configuration for the padel_tracker dashboard."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the padel_tracker dashboard."""

    # --- Tracked product ---
    PRODUCT: dict[str, str] = {
        "name": "Siux Electra ST4 Pro",
        "image_url": (
            "https://www.padelnuestro.com/images/products/112639/"
            "112639_1_siux_electra_st4_pro_1703668875.jpg"
        ),
        "description": (
            "The weapon of choice for Franco Stupaczuk. Designed for "
            "advanced players seeking a balance of power and control "
            "with a hybrid shape."
        ),
    }
    CURRENCY_SYMBOL: str = "€"

    # --- Retailers (registry order is display and tie-break order) ---
    RETAILERS: list[dict[str, str]] = [
        {
            "id": "justpadel",
            "name": "JustPadel",
            "url": "https://justpadel.com/products/siux-electra-st4-pro",
            "color": "#ef4444",
        },
        {
            "id": "passasports",
            "name": "PassaSports",
            "url": (
                "https://www.passasports.nl/"
                "siux-electra-stupa-pro-st4-112639"
            ),
            "color": "#3b82f6",
        },
        {
            "id": "hollandpadel",
            "name": "Holland Padel",
            "url": (
                "https://hollandpadel.com/collections/siux/products/"
                "siux-electra-stupa-pro-st4-2025"
            ),
            "color": "#f97316",
        },
        {
            "id": "tennisvoordeel",
            "name": "Tennis Voordeel",
            "url": "https://www.tennis-voordeel.nl/siux-electra-pro-st4/",
            "color": "#22c55e",
        },
        {
            "id": "decathlon",
            "name": "Decathlon",
            "url": (
                "https://www.decathlon.nl/sporten/padel/"
                "padel-racket-volwassenen"
                "?pdt-highlight=dff12a42-2531-4069-b253-281e869ee61b"
            ),
            "color": "#06b6d4",
        },
        {
            "id": "padelnuestro",
            "name": "Padel Nuestro",
            "url": (
                "https://www.padelnuestro.com/int/"
                "siux-electra-stupa-pro-st4-2025"
            ),
            "color": "#a855f7",
        },
    ]

    # --- Price oracle (Gemini + Google Search grounding) ---
    ORACLE_MODEL: str = os.getenv(
        "GEMINI_MODEL", "gemini-3-flash-preview"
    )
    ORACLE_API_KEY: str | None = (
        os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    )
    ORACLE_ERROR_MESSAGE: str = (
        "Failed to fetch live prices. Gemini API key might be "
        "missing or quota exceeded."
    )

    # --- History ---
    HISTORY_SLOT: str = "padelPriceHistory"
    SEED_DAYS: int = 14                 # Length of the synthetic history
    SEED_BASE_PRICE: int = 280          # EUR, before per-retailer offset
    SEED_FLUCTUATION: tuple[int, int] = (-10, 9)  # Inclusive bounds

    # --- Health check (retailer page probes) ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    SLOW_THRESHOLD_MS: float = 5000.0   # Above this a retailer is "slow"
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "nl-NL,nl;q=0.9,en-US;q=0.8,en;q=0.7",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    STATE_DB_PATH: Path = DATA_DIR / "tracker_state.db"
    EXPORTS_DIR: Path = DATA_DIR / "exports"
    CHARTS_DIR: Path = DATA_DIR / "charts"
    LOGS_DIR: Path = BASE_DIR / "logs"
