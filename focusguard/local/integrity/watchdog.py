import enum
import logging
import threading
from typing import Callable, Dict, Optional

from focusguard import settings
from focusguard.local.artifacts import Artifact, ArtifactStore
from focusguard.local.errors import ImmutabilityError, RegistrationError, RepairFailure
from focusguard.local.immutability import ImmutabilityGuard
from focusguard.local.integrity.observer import start_observer
from focusguard.local.registration import LaunchAgentRegistrar

log = logging.getLogger(__name__)


class RepairOutcome(enum.Enum):
    INTACT = "intact"
    RESTORED = "restored"
    FAILED = "failed"


class Watchdog:
    """
    Restores missing or corrupted artifacts from backup storage.

    The watchdog script is one of the artifacts it watches. Restoring it only
    benefits the next invocation; the running instance keeps executing the
    code it started with, and launchd's KeepAlive covers the rest.
    """

    def __init__(
        self,
        store: ArtifactStore,
        registrar: LaunchAgentRegistrar,
        guard: ImmutabilityGuard,
        interval: float = settings.WATCHDOG_INTERVAL_SECONDS,
        verify_content: bool = settings.WATCHDOG_VERIFY_CONTENT,
        reapply_immutability: bool = settings.WATCHDOG_REAPPLY_IMMUTABILITY,
        use_observer: bool = True,
        wait: Optional[Callable[[float], bool]] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.store = store
        self.registrar = registrar
        self.guard = guard
        self.interval = interval
        self.verify_content = verify_content
        self.reapply_immutability = reapply_immutability
        self.use_observer = use_observer
        self.stop_event = stop_event or threading.Event()
        self.wake_event = threading.Event()
        self._wait = wait or self.wake_event.wait
        self.passes_completed = 0

    def _restore(self, artifact: Artifact) -> None:
        """Copy, set mode, re-register, re-protect. Raises RepairFailure."""
        self.store.restore(artifact)
        if artifact.is_descriptor:
            try:
                self.registrar.register(artifact.path, artifact.label)
            except RegistrationError as e:
                raise RepairFailure(artifact.name, f"re-registration failed: {e}") from e
        if self.reapply_immutability:
            try:
                self.guard.protect(artifact.path)
            except ImmutabilityError as e:
                raise RepairFailure(artifact.name, f"could not re-protect: {e}") from e

    def check_artifact(self, artifact: Artifact) -> RepairOutcome:
        if artifact.path.exists():
            if not (self.verify_content and self.store.is_corrupted(artifact)):
                return RepairOutcome.INTACT
            log.warning(f"{artifact.name} at '{artifact.path}' differs from its backup. Restoring...")
            try:
                self.guard.release(artifact.path)
            except ImmutabilityError as e:
                log.debug(f"Could not clear immutable flag on '{artifact.path}': {e}")
        else:
            log.warning(f"{artifact.name} is missing from '{artifact.path}'. Restoring...")

        self._restore(artifact)
        log.info(f"{artifact.name} restored with mode {artifact.required_mode:o}.")
        return RepairOutcome.RESTORED

    def repair_pass(self) -> Dict[str, RepairOutcome]:
        """
        Visits every artifact in watch order. A failure on one artifact is
        logged and never stops the pass.
        """
        outcomes: Dict[str, RepairOutcome] = {}
        for artifact in self.store:
            try:
                outcomes[artifact.name] = self.check_artifact(artifact)
            except RepairFailure as e:
                log.error(f"Repair failed: {e}")
                outcomes[artifact.name] = RepairOutcome.FAILED
            except OSError as e:
                log.error(f"Repair of {artifact.name} failed: {e}", exc_info=True)
                outcomes[artifact.name] = RepairOutcome.FAILED
        self.passes_completed += 1
        return outcomes

    def stop(self) -> None:
        self.stop_event.set()
        self.wake_event.set()

    def run(self) -> None:
        """
        Runs repair passes every `interval` seconds until stopped. Filesystem
        events on managed paths cut the wait short.
        """
        observer = None
        if self.use_observer:
            observer = self._start_observer()
        log.info(f"Watchdog started. Checking {len(self.store.artifacts)} artifacts every {self.interval:g}s.")
        try:
            while not self.stop_event.is_set():
                self.repair_pass()
                self._wait(self.interval)
                self.wake_event.clear()
                if observer is not None and not observer.is_alive() and not self.stop_event.is_set():
                    log.error("Filesystem observer stopped unexpectedly. Restarting observer.")
                    observer = self._start_observer()
        finally:
            if observer is not None:
                observer.stop()
                observer.join()
        log.info("Watchdog stopped.")

    def _start_observer(self):
        return start_observer(
            [self.store.home, self.store.backup_dir],
            self.store.primary_paths(),
            self.wake_event,
        )
