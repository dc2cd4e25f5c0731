import sys
import logging
from pathlib import Path
from typing import Optional

from focusguard import settings
from focusguard.log.handler import SQLiteHandler, LokiHandler


class MainFormatter(logging.Formatter):
    """Console formatter shared by every FocusGuard process."""

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s')


def setup_logging(console_level: int = logging.INFO, process_label: str = "console", log_db_path: Optional[Path] = None) -> None:
    """
    Configures the root logger for the current process.
    This sets up handlers for console, SQLite, and optionally Loki,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param process_label: Tag stored with every record to tell the three processes apart.
    :param log_db_path: Location of the SQLite log store; defaults to the configured one.
    """
    db_path = log_db_path or settings.LOG_DB_PATH

    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    if root_logger.hasHandlers():
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- SQLite Handler (all levels) ---
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        sqlite_handler = SQLiteHandler(db_path=db_path, process_label=process_label)
        sqlite_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(sqlite_handler)
    except Exception as e:
        root_logger.error(f"Failed to initialize SQLite logging handler: {e}. Logging to DB will be disabled.")

    # --- Loki Handler (conditional) ---
    if settings.LOKI_ENABLED:
        try:
            loki_handler = LokiHandler(url=settings.LOKI_URL, process_label=process_label, org_id=settings.LOKI_ORG_ID)
            loki_handler.setLevel(logging.INFO)
            loki_handler.setFormatter(MainFormatter())
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {settings.LOKI_URL}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")
