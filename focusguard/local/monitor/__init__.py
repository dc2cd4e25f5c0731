"""
The ProcessMonitor package.
Keeps the two focus applications running and enforces the pause policy.
"""
from .state import MonitoredApp, MonitorPhase, MonitorState
from .monitor import ProcessMonitor

__all__ = ['MonitoredApp', 'MonitorPhase', 'MonitorState', 'ProcessMonitor']
