import sys
import sqlite3
import logging
import threading
from pathlib import Path
from typing import List, Optional
from focusguard import settings
from focusguard.local.database import LogDBManager
from focusguard.local.database.log import LogRow


class SQLiteHandler(logging.Handler):
    """
    Buffers records in memory and writes them to the shared log store in
    batches. A background thread flushes every `flush_interval` seconds;
    a second one keeps the store under the configured size by pruning the
    oldest rows.
    """
    def __init__(self, db_path: Path, process_label: str, flush_interval: Optional[float] = None):
        """
        :param db_path: The path to the SQLite database file.
        :param process_label: Which FocusGuard process is logging ('console', 'monitor', 'watchdog').
        :param flush_interval: Seconds between background flushes.
        """
        super().__init__()
        self.db_path = Path(db_path)
        self.process_label = process_label
        self.flush_interval = flush_interval or settings.LOG_BUFFER_FLUSH_INTERVAL
        self.max_db_bytes = settings.MAX_LOG_DB_SIZE_MB * 1024 * 1024
        self._pending: List[LogRow] = []
        self._pending_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self.stop_event = threading.Event()
        self.logDB = LogDBManager(self.db_path)
        self.logDB.initialize_database()
        self._threads = [
            threading.Thread(target=self._run_every, args=(self.flush_interval, self.flush), daemon=True, name="SQLiteFlushThread"),
            threading.Thread(target=self._run_every, args=(settings.LOG_DB_SIZE_CHECK_INTERVAL_SECONDS, self._enforce_size_limit), daemon=True, name="LogDbSizeThread"),
        ]
        for thread in self._threads:
            thread.start()

    def _run_every(self, interval: float, job) -> None:
        while not self.stop_event.wait(interval):
            job()

    def emit(self, record: logging.LogRecord) -> None:
        row = (
            record.created, record.levelname, self.process_label,
            record.module, record.funcName, record.lineno, record.getMessage(),
        )
        with self._pending_lock:
            self._pending.append(row)
            full = len(self._pending) >= settings.LOG_BUFFER_SIZE
        if full:
            self.flush()

    def flush(self) -> None:
        """Writes everything buffered so far."""
        with self._write_lock:
            with self._pending_lock:
                rows, self._pending = self._pending, []
            if not rows:
                return
            try:
                self.logDB.insert_log_batch(rows)
            except sqlite3.Error as e:
                # Logging from inside a handler would recurse
                print(f"Error writing {len(rows)} log entries to DB: {e}", file=sys.stderr)

    def _enforce_size_limit(self) -> None:
        try:
            size = self.db_path.stat().st_size
        except FileNotFoundError:
            return
        if size <= self.max_db_bytes:
            return
        try:
            with self._write_lock:
                deleted = self.logDB.prune(settings.LOG_DB_KEEP_ROWS)
        except sqlite3.Error as e:
            print(f"Error pruning log database '{self.db_path}': {e}", file=sys.stderr)
            return
        logging.getLogger(__name__).warning(
            f"Log database exceeded {settings.MAX_LOG_DB_SIZE_MB} MB. Pruned {deleted} old entries."
        )

    def close(self) -> None:
        """Stops both threads and writes out the buffer."""
        self.stop_event.set()
        for thread in self._threads:
            if thread.is_alive():
                thread.join()
        self.flush()
        super().close()
