"""
Minimal entry point for the process monitor.

It names the process, sets up logging and runs the monitor loop until the
loop halts. launchd restarts it if it ever exits.
"""
import logging
import setproctitle
from focusguard import settings
from focusguard.log.setup import setup_logging
from focusguard.local.automation import AutomationBridge
from focusguard.local.monitor import ProcessMonitor

log = logging.getLogger("focusguard.monitor")


def main() -> None:
    setproctitle.setproctitle(settings.MONITOR_PROCESS_TITLE)
    setup_logging(logging.DEBUG if settings.VERBOSE_LOGGING else logging.INFO, process_label="monitor")
    monitor = ProcessMonitor(bridge=AutomationBridge())
    try:
        monitor.run()
    except KeyboardInterrupt:
        log.info("Process monitor interrupted by user.")
    except Exception as e:
        log.critical(f"Critical error in process monitor: {e}", exc_info=True)
        raise
    finally:
        logging.shutdown()


if __name__ == "__main__":
    main()
