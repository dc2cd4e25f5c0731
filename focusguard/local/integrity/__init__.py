"""
The integrity package.
Holds the Watchdog loop that restores tampered or deleted artifacts from
their backups, and the filesystem observer that wakes it early.
"""
from .watchdog import Watchdog, RepairOutcome

__all__ = ['Watchdog', 'RepairOutcome']
