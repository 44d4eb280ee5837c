# tests/conftest.py

"""Shared pytest fixtures for all tracker tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[Path, None, None]:
    """Point every on-disk location at a per-test temp directory.

    Also clears the Gemini key so no test can reach the real API.
    """
    data_dir = tmp_path / "data"
    monkeypatch.setattr(Settings, "DATA_DIR", data_dir)
    monkeypatch.setattr(
        Settings, "STATE_DB_PATH", data_dir / "tracker_state.db",
    )
    monkeypatch.setattr(Settings, "EXPORTS_DIR", data_dir / "exports")
    monkeypatch.setattr(Settings, "CHARTS_DIR", data_dir / "charts")
    monkeypatch.setattr(Settings, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(
        "src.storage.chart_exporter._CHARTS_DIR", data_dir / "charts",
    )
    monkeypatch.setattr(Settings, "ORACLE_API_KEY", None)
    yield tmp_path
