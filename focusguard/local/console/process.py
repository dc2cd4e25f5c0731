import enum
import getpass
import logging
from typing import List, Optional

from focusguard.local.artifacts import ArtifactStore
from focusguard.local.errors import AuthFailure, FocusGuardError, ResourceFailure, SetupConflict
from focusguard.local.lifecycle import LifecycleController
from focusguard.local.console.handler import PasswordPrompt, handle_setup, handle_start, handle_stop, print_usage

log = logging.getLogger(__name__)


class ExitCode(enum.IntEnum):
    OK = 0
    FAILURE = 1
    USAGE = 2


def execute_command(
    command: Optional[str],
    args: List[str],
    store: Optional[ArtifactStore] = None,
    prompt: PasswordPrompt = getpass.getpass,
    controller: Optional[LifecycleController] = None,
) -> ExitCode:
    """
    Executes a single CLI invocation.

    :param command: 'start', 'stop', or None for first-run setup.
    :param args: Any further arguments; none are accepted.
    :param store: The artifact layout to operate on.
    :param prompt: Password prompt, getpass by default.
    :param controller: Pre-built controller, mainly for tests.
    :return ExitCode: The process exit status.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    store = store or ArtifactStore()
    command_map = {
        None: lambda: handle_setup(store, prompt),
        "start": lambda: handle_start(store, prompt, controller),
        "stop": lambda: handle_stop(store, prompt, controller),
    }

    if args or command not in command_map:
        print_usage()
        return ExitCode.USAGE

    try:
        command_map[command]()
    except AuthFailure as e:
        log.error(f"Authentication failed: {e}")
        return ExitCode.FAILURE
    except SetupConflict as e:
        log.error(f"Setup refused: {e}")
        return ExitCode.FAILURE
    except ResourceFailure as e:
        log.error(f"Operation failed: {e}")
        return ExitCode.FAILURE
    except FocusGuardError as e:
        log.error(f"{e}")
        return ExitCode.FAILURE
    except KeyboardInterrupt:
        log.warning("\nAborted by user.")
        return ExitCode.FAILURE
    return ExitCode.OK
