from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .utils import ensure_dir, now_timestamp_str

LOGGER_NAME = "playlistify"
THIRD_PARTY_LOGGERS = ("spotipy.client", "urllib3")


class TqdmHandler(logging.StreamHandler):
    """Console handler that prints through tqdm so the clean progress bar stays intact."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
            self.flush()
        except Exception:
            self.handleError(record)


def quiet_third_party_loggers(level: int = logging.ERROR) -> None:
    """Only show errors from spotipy and urllib3 unless asked otherwise."""
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_logging(
    function: Optional[str] = None,
    logs_dir: Optional[Path] = None,
    verbose: bool = False,
) -> tuple[logging.Logger, Path]:
    """Initialize logging to console (INFO) and one file per run.

    The file is named after the operation, e.g. logs/playlistify-sort-<ts>.log.
    With verbose, the console shows DEBUG and spotipy warnings come through.

    Returns (logger, log_file_path)
    """
    ts = now_timestamp_str()
    logs_dir = logs_dir or Path("logs")
    ensure_dir(logs_dir)
    stem = f"playlistify-{function}" if function else "playlistify"
    log_path = logs_dir / f"{stem}-{ts}.log"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    ch = TqdmHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(logging.Formatter("%(levelname)s | %(message)s"))
    logger.addHandler(ch)

    # File handler
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(fh)

    quiet_third_party_loggers(logging.WARNING if verbose else logging.ERROR)
    logger.debug("Logging initialized for %s", function or "playlistify")
    return logger, log_path
