"""
Logging handlers for FocusGuard.
Records go to the local SQLite log store and, optionally, to Grafana Loki.
"""

from .loki import LokiHandler
from .sql import SQLiteHandler

__all__ = ["SQLiteHandler", "LokiHandler"]
