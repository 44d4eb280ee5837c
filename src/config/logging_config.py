# src/config/logging_config.py

"""Per-run timestamped logging configuration for padel_tracker.

Each launch of the dashboard or the headless CLI writes a dedicated log
file inside ``logs/`` named after the launch time
(e.g. ``logs/run_20261019_081502.log``).  Every ``padel_tracker.*``
logger propagates into that file, so an oracle call, the merge it
triggered and the resulting save can be read back in order.

Only the most recent :data:`_KEEP_LOG_FILES` run logs are kept.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_KEEP_LOG_FILES = 30


def _prune_old_logs(logs_dir: Path, keep: int) -> int:
    """Delete all but the newest *keep* run logs. Returns the count removed."""
    run_logs = sorted(logs_dir.glob("run_*.log"))
    stale = run_logs[:-keep] if keep > 0 else run_logs
    for path in stale:
        path.unlink(missing_ok=True)
    return len(stale)


def setup_logging(
    logs_dir: Path | None = None,
    console_level: int = logging.WARNING,
) -> Path:
    """Initialise the root ``padel_tracker`` logger for the current run.

    Args:
        logs_dir: Directory for run logs (default: ``Settings.LOGS_DIR``).
        console_level: Threshold for the stderr handler.  The TUI keeps
            the default so log lines never paint over the screen.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    directory = logs_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = directory / f"run_{timestamp}.log"

    root_logger = logging.getLogger("padel_tracker")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, TUI relaunch) keep the first run's handlers
    if root_logger.handlers:
        return log_file

    removed = _prune_old_logs(directory, _KEEP_LOG_FILES - 1)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)
    if removed:
        root_logger.debug("Pruned %d old run logs", removed)

    return log_file
