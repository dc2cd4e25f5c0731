import sys
import logging

from focusguard import settings
from focusguard.log.setup import setup_logging
from focusguard.local.artifacts import ArtifactStore
import focusguard.local.console as console

log = logging.getLogger("console")


def main() -> None:
    """The entry point for the focusguard command."""
    store = ArtifactStore()
    # First run has no home directory yet; log to the console only until it exists.
    if store.home.is_dir():
        setup_logging(logging.DEBUG if settings.VERBOSE_LOGGING else logging.INFO, process_label="console", log_db_path=store.logs_dir / settings.LOG_DB_PATH.name)
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)-8s - [console] - %(message)s', stream=sys.stdout)

    command = sys.argv[1].lower() if len(sys.argv) > 1 else None
    log.debug(f"focusguard invoked with arguments: {sys.argv[1:]}")
    exit_code = console.execute_command(command, sys.argv[2:], store=store)
    logging.shutdown()
    sys.exit(int(exit_code))


if __name__ == "__main__":
    main()
