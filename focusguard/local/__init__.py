"""
Local package for FocusGuard.

Holds the managed-file model, the OS collaborators (launchctl, immutable
flags, osascript), and the three runtime components built on them: the
process monitor, the watchdog and the lifecycle controller.
"""
