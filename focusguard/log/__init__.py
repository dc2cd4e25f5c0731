"""
Logging module for FocusGuard.
This module provides the logging setup shared by the console and both
background loops.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
