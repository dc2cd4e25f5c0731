"""
Exception hierarchy shared by every FocusGuard component.

Operator-facing failures (authentication, setup, resource) abort the running
command; repair failures are only ever logged by the Watchdog loop.
"""
from typing import Optional


class FocusGuardError(Exception):
    """Base class for all FocusGuard errors."""


#* --- Authentication ---
class AuthFailure(FocusGuardError):
    """The caller could not be authenticated."""


class NoCredential(AuthFailure):
    def __init__(self) -> None:
        super().__init__("No password has been set. Run 'focusguard' without arguments first.")


class CredentialMismatch(AuthFailure):
    def __init__(self) -> None:
        super().__init__("Incorrect password.")


#* --- First-run setup ---
class SetupConflict(FocusGuardError):
    """First-run setup cannot proceed."""


class AlreadyInitialized(SetupConflict):
    def __init__(self) -> None:
        super().__init__("A password is already set. Delete the credential file to reset it.")


class ConfirmationMismatch(SetupConflict):
    def __init__(self) -> None:
        super().__init__("The two passwords do not match.")


#* --- Collaborator failures ---
class RegistrationError(FocusGuardError):
    """launchctl refused to load or unload a service descriptor."""


class ImmutabilityError(FocusGuardError):
    """The immutable flag could not be set or cleared."""


class AutomationError(FocusGuardError):
    """An osascript call failed."""


#* --- Operation failures ---
class ResourceFailure(FocusGuardError):
    """A filesystem, permission or registration step of Arm/Disarm failed."""

    def __init__(self, step: str, cause: Optional[BaseException] = None) -> None:
        self.step = step
        self.cause = cause
        message = f"Step '{step}' failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class RepairFailure(FocusGuardError):
    """The Watchdog could not restore an artifact."""

    def __init__(self, artifact_name: str, reason: str) -> None:
        self.artifact_name = artifact_name
        super().__init__(f"Could not restore '{artifact_name}': {reason}")
