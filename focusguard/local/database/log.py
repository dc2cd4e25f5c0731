import time
import sqlite3
import logging
from pathlib import Path
from collections import namedtuple
from contextlib import contextmanager
from typing import Any, Generator, List, Optional, Sequence, Tuple

LogEntry = namedtuple('LogEntry', ['timestamp', 'level', 'process', 'module', 'message'])
# (timestamp, level, process, module, funcName, lineno, message)
LogRow = Tuple[float, str, str, str, str, int, str]
log = logging.getLogger(__name__)


class LogDBManager:
    """
    The shared log store written by the console and both background loops.

    Every call opens its own short-lived connection, and the database runs in
    WAL mode, so the three processes can write concurrently.
    """

    def __init__(self, db_path: Path, busy_timeout: float = 10):
        """
        :param db_path: The path to the logging SQLite database file.
        :param busy_timeout: Seconds to wait for another writer's lock.
        """
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            yield conn
            conn.commit()
        finally:
            conn.close()

    def initialize_database(self) -> None:
        """Creates the log table and its process index if missing."""
        try:
            with self._connect() as conn:
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp REAL,
                        level TEXT,
                        process TEXT,
                        module TEXT,
                        funcName TEXT,
                        lineno INTEGER,
                        message TEXT
                    )
                ''')
                conn.execute("CREATE INDEX IF NOT EXISTS idx_logs_process ON logs (process)")
            log.debug("Log database table created/verified.")
        except sqlite3.Error as e:
            log.critical(f"Could not create log database table: {e}", exc_info=True)
            raise

    def insert_log_batch(self, rows: Sequence[LogRow]) -> None:
        """
        Inserts a batch of rows in one transaction.

        :param rows: Tuples of (timestamp, level, process, module, funcName, lineno, message).
        """
        if not rows:
            return
        with self._connect() as conn:
            conn.executemany(
                '''INSERT INTO logs (timestamp, level, process, module, funcName, lineno, message)
                   VALUES (?, ?, ?, ?, ?, ?, ?)''',
                rows,
            )

    def fetch_last_entries(self, limit: int, process: Optional[str] = None) -> List[LogEntry]:
        """
        Fetches the most recent entries, oldest first.

        :param limit: The maximum number of entries to return.
        :param process: Only entries of this process ('console', 'monitor', 'watchdog').
        :return list: LogEntry namedtuples with a preformatted message line.
        """
        sql = "SELECT timestamp, level, process, module, message FROM logs"
        params: Tuple[Any, ...] = ()
        if process:
            sql += " WHERE process = ?"
            params = (process,)
        sql += " ORDER BY id DESC LIMIT ?"
        try:
            with self._connect() as conn:
                rows = conn.execute(sql, params + (limit,)).fetchall()
        except sqlite3.Error as e:
            log.error(f"Failed to fetch log entries from database: {e}")
            return []

        entries = []
        for row in reversed(rows):
            dt = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(row['timestamp']))
            entries.append(LogEntry(
                timestamp=row['timestamp'], level=row['level'], process=row['process'], module=row['module'],
                message=f"{dt} - {row['level']:<8} - [{row['process']}:{row['module']}] - {row['message']}"
            ))
        return entries

    def prune(self, keep_rows: int) -> int:
        """
        Deletes all but the newest `keep_rows` entries.

        :return int: The number of deleted rows.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM logs WHERE id <= (SELECT id FROM logs ORDER BY id DESC LIMIT 1 OFFSET ?)",
                (keep_rows,),
            )
            deleted = cursor.rowcount
        if deleted:
            # VACUUM cannot run inside the transaction _connect commits
            conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout)
            try:
                conn.execute("VACUUM")
            finally:
                conn.close()
        return deleted
