"""
This module contains all the configuration settings for FocusGuard.
It defines paths, file modes, loop timings, monitored applications and the
templates used to materialize launcher scripts.
It is used throughout the application to ensure consistent settings and paths.
"""

import os
import sys
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't', 'yes', 'y')


def _env_mode(name: str, default: str) -> int:
    return int(os.getenv(name, default), 8)


#* --- Core Paths ---
HOME_DIR = pathlib.Path(os.getenv("FOCUSGUARD_HOME", pathlib.Path.home() / ".focusguard")).expanduser()
BACKUP_DIR_NAME = ".backup"
LOGS_DIR_NAME = "logs"
LOGS_DIR = HOME_DIR / LOGS_DIR_NAME
LOG_DB_PATH = LOGS_DIR / "focusguard_logs.db"

#* --- Managed File Names ---
CONTROLLER_SCRIPT_NAME = "focusguard"
MONITOR_SCRIPT_NAME = "focus_monitor.sh"
WATCHDOG_SCRIPT_NAME = "focus_watchdog.sh"
CREDENTIAL_FILE_NAME = ".credential"
MONITOR_LABEL = "com.focusguard.monitor"
WATCHDOG_LABEL = "com.focusguard.watchdog"

#* --- Permission Modes ---
# Scripts are execute-only for the owner while armed. A non-root launchd agent
# cannot read such a script; set FOCUSGUARD_LOCKED_SCRIPT_MODE=500 in that case.
LOCKED_SCRIPT_MODE = _env_mode("FOCUSGUARD_LOCKED_SCRIPT_MODE", "100")
CREDENTIAL_MODE = 0o400
DESCRIPTOR_MODE = 0o400
BACKUP_MODE = 0o400
RELAXED_SCRIPT_MODE = 0o755
RELAXED_FILE_MODE = 0o644

#* --- Python Executable Configuration ---
PYTHON_EXECUTABLE = os.getenv("PYTHON_EXECUTABLE", sys.executable)

#* --- Process Monitor Settings ---
MONITOR_TICK_SECONDS = float(os.getenv("MONITOR_TICK_SECONDS", "1"))
MONITOR_FAIL_THRESHOLD = 30
MONITOR_PAUSE_AFTER_ITERATIONS = 1200  # ~20 minutes at one tick per second
MONITOR_PAUSE_SECONDS = float(os.getenv("MONITOR_PAUSE_SECONDS", "60"))

# (name, launch method, launch command). Checked in declaration order.
MONITORED_APPLICATIONS = (
    ("Focus", "activate", None),
    ("FocusMe", "terminal", "open -a FocusMe"),
)

#* --- Watchdog Settings ---
WATCHDOG_INTERVAL_SECONDS = float(os.getenv("WATCHDOG_INTERVAL_SECONDS", "10"))
WATCHDOG_VERIFY_CONTENT = _env_flag("WATCHDOG_VERIFY_CONTENT", "True")
WATCHDOG_REAPPLY_IMMUTABILITY = _env_flag("WATCHDOG_REAPPLY_IMMUTABILITY", "True")

#* --- Lifecycle Settings ---
ARM_ROLLBACK_ON_FAILURE = _env_flag("ARM_ROLLBACK_ON_FAILURE", "False")
EXTERNAL_COMMAND_TIMEOUT = 15  # seconds for launchctl/chflags/osascript calls
SESSION_RESTRICTION = "Aqua"  # interactive graphical sessions only

#* --- Logging Settings ---
VERBOSE_LOGGING = _env_flag("FOCUSGUARD_VERBOSE", "False")
LOG_BUFFER_SIZE = 50
LOG_BUFFER_FLUSH_INTERVAL = 5
MAX_LOG_DB_SIZE_MB = 20
LOG_DB_KEEP_ROWS = 20000  # rows kept when the log store is pruned
LOG_DB_SIZE_CHECK_INTERVAL_SECONDS = 3600

# Grafana Loki (optional log shipping)
LOKI_ENABLED = _env_flag("LOKI_ENABLED", "False")
LOKI_URL = os.getenv("LOKI_URL", "http://localhost:3100")
LOKI_ORG_ID = os.getenv("LOKI_ORG_ID", "")

#* --- Process Titles ---
MONITOR_PROCESS_TITLE = "FocusGuard - Monitor"
WATCHDOG_PROCESS_TITLE = "FocusGuard - Watchdog"

#* --- Launcher Templates ---
LAUNCHER_SCRIPT_TEMPLATE = """#!/bin/sh
# This file is auto-generated by FocusGuard. Do not edit directly.
# Run 'focusguard stop' first to make it editable.
export FOCUSGUARD_HOME="{home}"
exec "{python}" -m {module} "$@"
"""

CONTROLLER_MODULE = "focusguard.main"
MONITOR_MODULE = "focusguard.local.script_entry.monitor"
WATCHDOG_MODULE = "focusguard.local.script_entry.watchdog"
