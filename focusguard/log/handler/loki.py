import sys
import socket
import logging
import requests
import threading
from collections import defaultdict
from typing import Dict, List, Optional, Tuple
from focusguard import settings

# (level, logger name) -> [[timestamp_ns, line], ...]
StreamBuffer = Dict[Tuple[str, str], List[List[str]]]


class LokiHandler(logging.Handler):
    """
    Ships records to Grafana Loki. Records are grouped into one stream per
    level and logger and pushed in batches from a background thread.
    """
    def __init__(self, url: str, process_label: str, org_id: Optional[str] = None, batch_size: int = 200):
        """
        :param url: The base URL of the Loki instance.
        :param process_label: Which FocusGuard process is logging ('console', 'monitor', 'watchdog').
        :param org_id: The tenant ID for Loki (sent as 'X-Scope-OrgID').
        :param batch_size: Buffered records that trigger an immediate push.
        """
        super().__init__()
        self.push_url = f"{url.rstrip('/')}/loki/api/v1/push"
        self.process_label = process_label
        self.batch_size = batch_size
        self.flush_interval = settings.LOG_BUFFER_FLUSH_INTERVAL
        self.session = requests.Session()
        self.session.headers['Content-Type'] = 'application/json'
        if org_id:
            self.session.headers['X-Scope-OrgID'] = org_id
        self.base_labels = {"job": "focusguard", "process": process_label, "hostname": socket.gethostname()}
        self._streams: StreamBuffer = defaultdict(list)
        self._count = 0
        self._lock = threading.Lock()
        self.stop_event = threading.Event()
        self.flush_thread = threading.Thread(target=self._periodic_flush, daemon=True, name="LokiFlushThread")
        self.flush_thread.start()

    def _periodic_flush(self) -> None:
        while not self.stop_event.wait(self.flush_interval):
            self.flush()
        self.flush()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._streams[(record.levelname.lower(), record.name)].append([str(int(record.created * 1e9)), line])
            self._count += 1
            full = self._count >= self.batch_size
        if full:
            self.flush()

    def _payload(self, streams: StreamBuffer) -> dict:
        return {"streams": [
            {"stream": {**self.base_labels, "level": level, "logger": logger}, "values": values}
            for (level, logger), values in streams.items()
        ]}

    def flush(self) -> None:
        """Pushes everything buffered so far. Failed pushes are dropped."""
        with self._lock:
            if not self._count:
                return
            streams, self._streams = self._streams, defaultdict(list)
            count, self._count = self._count, 0
        try:
            response = self.session.post(self.push_url, json=self._payload(streams), timeout=5)
            # Loki answers 204 No Content on success
            if response.status_code != 204:
                print(f"ERROR: Loki returned {response.status_code}: {response.text}", file=sys.stderr)
        except requests.RequestException as e:
            print(f"CRITICAL: Failed to send {count} logs to Loki: {e}", file=sys.stderr)

    def close(self) -> None:
        """Stops the flush thread, which pushes whatever is still buffered."""
        self.stop_event.set()
        if self.flush_thread.is_alive():
            self.flush_thread.join(timeout=self.flush_interval + 2)
        self.session.close()
        super().close()
