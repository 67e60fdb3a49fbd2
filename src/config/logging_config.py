# src/config/logging_config.py

"""Per-run timestamped logging configuration for protein_match.

Each launch writes a dedicated log file inside ``logs/`` named after the
launch timestamp (e.g. ``logs/run_20261019_080000.log``).  Every
``protein_match.*`` logger routes through it, so dropped listings, source
failures and cache fallbacks end up in a single file.

A single run may serve several searches (a featured refresh runs four),
so every record carries the id of the search it belongs to.  The id lives
in a context variable, which ``asyncio.to_thread`` copies into the source
worker threads.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_REQUEST = "-"
current_request_id: ContextVar[str] = ContextVar(
    "protein_match_request_id", default=NO_REQUEST
)


def bind_request_id() -> str:
    """Start a new search id in the current context and return it."""
    request_id = uuid.uuid4().hex[:8]
    current_request_id.set(request_id)
    return request_id


class RequestIdFilter(logging.Filter):
    """Stamp each record with the active search id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id.get()
        return True


def setup_logging() -> Path:
    """Initialise the root ``protein_match`` logger for the current run.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    root_logger = logging.getLogger("protein_match")
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    request_filter = RequestIdFilter()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(request_filter)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.addFilter(request_filter)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
