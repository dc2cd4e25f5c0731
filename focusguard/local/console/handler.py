import getpass
import logging
from typing import Callable, Optional

from focusguard.local.artifacts import ArtifactStore
from focusguard.local.credential import CredentialGate
from focusguard.local.errors import AlreadyInitialized
from focusguard.local.immutability import ImmutabilityGuard
from focusguard.local.lifecycle import LifecycleController
from focusguard.local.registration import LaunchAgentRegistrar

log = logging.getLogger(__name__)

PasswordPrompt = Callable[[str], str]

USAGE = """Usage: focusguard [start|stop]

  focusguard          Set the admin password (first run only).
  focusguard start    Arm: install and register the monitor and watchdog, lock all files.
  focusguard stop     Disarm: unlock all files and unregister the monitor and watchdog.
"""


def print_usage() -> None:
    print(USAGE)


def build_controller(store: ArtifactStore) -> LifecycleController:
    """Wires the LifecycleController to the real OS collaborators."""
    return LifecycleController(
        store=store,
        gate=CredentialGate(store.credential.path),
        guard=ImmutabilityGuard(),
        registrar=LaunchAgentRegistrar(),
    )


def handle_setup(store: ArtifactStore, prompt: PasswordPrompt = getpass.getpass) -> None:
    """
    First-run setup: asks for the new password twice and stores its digest.
    """
    gate = CredentialGate(store.credential.path)
    if gate.exists():
        raise AlreadyInitialized()
    store.ensure_home()
    secret = prompt("Choose an admin password: ")
    confirmation = prompt("Repeat the password: ")
    gate.initialize(secret, confirmation)
    print("Password set. Run 'focusguard start' to arm FocusGuard.")


def handle_start(store: ArtifactStore, prompt: PasswordPrompt = getpass.getpass, controller: Optional[LifecycleController] = None) -> None:
    controller = controller or build_controller(store)
    controller.arm(prompt("Password: "))
    print("FocusGuard armed.")


def handle_stop(store: ArtifactStore, prompt: PasswordPrompt = getpass.getpass, controller: Optional[LifecycleController] = None) -> None:
    controller = controller or build_controller(store)
    controller.disarm(prompt("Password: "))
    print("FocusGuard disarmed. Files can be edited until the next 'focusguard start'.")
