"""
This module initializes the local database management system.
FocusGuard only keeps one database: the shared log store written by the
console and both background loops.
"""

from .log import LogDBManager

__all__ = ["LogDBManager"]
