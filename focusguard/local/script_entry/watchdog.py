"""
Minimal entry point for the watchdog.

It names the process, sets up logging and runs repair passes forever.
launchd restarts it if it ever exits, which is also how a restored
watchdog script gets picked up.
"""
import logging
import setproctitle
from focusguard import settings
from focusguard.log.setup import setup_logging
from focusguard.local.artifacts import ArtifactStore
from focusguard.local.immutability import ImmutabilityGuard
from focusguard.local.integrity import Watchdog
from focusguard.local.registration import LaunchAgentRegistrar

log = logging.getLogger("focusguard.watchdog")


def main() -> None:
    setproctitle.setproctitle(settings.WATCHDOG_PROCESS_TITLE)
    setup_logging(logging.DEBUG if settings.VERBOSE_LOGGING else logging.INFO, process_label="watchdog")
    watchdog = Watchdog(
        store=ArtifactStore(),
        registrar=LaunchAgentRegistrar(),
        guard=ImmutabilityGuard(),
    )
    try:
        watchdog.run()
    except KeyboardInterrupt:
        log.info("Watchdog interrupted by user.")
    except Exception as e:
        log.critical(f"Critical error in watchdog: {e}", exc_info=True)
        raise
    finally:
        watchdog.stop()
        logging.shutdown()


if __name__ == "__main__":
    main()
