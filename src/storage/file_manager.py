# src/storage/file_manager.py

"""Exports and imports of the price history as files."""

import csv
import json
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings
from src.models.price_point import PricePoint
from src.models.retailer import Retailer

logger = logging.getLogger("padel_tracker.storage")


class FileManager:
    """Writes history exports to disk and reads history dumps back."""

    def __init__(self, exports_dir: Path | None = None) -> None:
        self.exports_dir: Path = exports_dir or Settings.EXPORTS_DIR
        self.exports_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(
            "FileManager initialised, exports_dir=%s", self.exports_dir,
        )

    def _stamped_path(self, suffix: str) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.exports_dir / f"price_history_{timestamp}.{suffix}"

    def save_json(self, history: Sequence[PricePoint]) -> Path:
        """Save the history in its persisted JSON format."""
        filepath = self._stamped_path("json")
        data = [p.to_dict() for p in history]

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(
            "Saved %d history entries to %s", len(history), filepath,
        )
        return filepath

    def export_csv(
        self,
        history: Sequence[PricePoint],
        retailers: Sequence[Retailer],
    ) -> Path:
        """Export one row per day, one column per retailer.

        Unknown prices are left blank.
        """
        filepath = self._stamped_path("csv")

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Date", *(r.name for r in retailers)])
            for point in history:
                row: list[str] = [point.date.isoformat()]
                for r in retailers:
                    price = point.price_for(r.id)
                    row.append("" if price is None else f"{price:.2f}")
                writer.writerow(row)

        logger.info(
            "Exported %d history entries to %s", len(history), filepath,
        )
        return filepath

    @staticmethod
    def read_json(filepath: Path) -> object:
        """Load a JSON document, e.g. a browser localStorage dump.

        Raises ``OSError`` or ``json.JSONDecodeError`` on failure.
        """
        with open(filepath, encoding="utf-8") as f:
            data: object = json.load(f)
        logger.debug("Read history dump %s", filepath)
        return data
