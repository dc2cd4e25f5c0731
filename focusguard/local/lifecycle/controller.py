import logging
from typing import Callable, List, Optional, Tuple

from focusguard import settings
from focusguard.local.artifacts import Artifact, ArtifactStore
from focusguard.local.credential import CredentialGate
from focusguard.local.errors import FocusGuardError, ResourceFailure
from focusguard.local.immutability import ImmutabilityGuard
from focusguard.local.lifecycle import materialize
from focusguard.local.registration import LaunchAgentRegistrar

log = logging.getLogger(__name__)

Compensation = Callable[[], object]


class LifecycleController:
    """
    Password-gated transitions between the armed and disarmed states.

    Neither transition is transactional: a failing step raises ResourceFailure
    and leaves the completed steps in place. With `rollback_on_failure` the
    controller undoes registrations and immutable flags of a failed Arm on a
    best-effort basis before re-raising.
    """

    def __init__(
        self,
        store: ArtifactStore,
        gate: CredentialGate,
        guard: ImmutabilityGuard,
        registrar: LaunchAgentRegistrar,
        rollback_on_failure: bool = settings.ARM_ROLLBACK_ON_FAILURE,
        python_executable: str = settings.PYTHON_EXECUTABLE,
    ) -> None:
        self.store = store
        self.gate = gate
        self.guard = guard
        self.registrar = registrar
        self.rollback_on_failure = rollback_on_failure
        self.python_executable = python_executable
        self._journal: List[Tuple[str, Compensation]] = []

    def _step(self, name: str, action: Callable[[], object], compensation: Optional[Compensation] = None) -> None:
        log.debug(f"Step: {name}")
        try:
            action()
        except (OSError, FocusGuardError) as e:
            raise ResourceFailure(name, e) from e
        if compensation is not None:
            self._journal.append((name, compensation))

    def _rollback(self) -> None:
        log.warning(f"Rolling back {len(self._journal)} completed step(s)...")
        for name, compensation in reversed(self._journal):
            try:
                compensation()
                log.info(f"Rolled back: {name}")
            except (OSError, FocusGuardError) as e:
                log.error(f"Could not roll back '{name}': {e}")
        self._journal.clear()

    #* --- Arm ---
    def _install_script(self, script: Artifact, module: str) -> None:
        materialize.write_launcher(script, module, self.store.home, self.python_executable)
        self.store.set_mode(script)

    def _install_descriptor(self, descriptor: Artifact, script: Artifact) -> None:
        record = materialize.build_descriptor(self.store, descriptor, script)
        materialize.write_descriptor(descriptor, record)
        self.store.set_mode(descriptor)

    def _register(self, descriptor: Artifact) -> None:
        name = f"register {descriptor.label}"
        self._step(
            name,
            lambda: self.registrar.register(descriptor.path, descriptor.label),
            lambda: self.registrar.unregister(descriptor.path, descriptor.label),
        )

    def _protect(self, path) -> None:
        self._step(f"protect {path}", lambda: self.guard.protect(path), lambda: self.guard.release(path))

    def arm(self, secret: str) -> None:
        """
        Installs and registers both background loops, snapshots every artifact
        into backup storage and makes everything immutable.

        :raises AuthFailure: the password is wrong; nothing was changed.
        :raises ResourceFailure: a step failed; earlier steps stay applied.
        """
        self.gate.verify(secret)
        store = self.store
        self._journal.clear()
        log.info("Arming FocusGuard...")
        try:
            self._step("tighten credential permissions", lambda: store.set_mode(store.credential))
            self._step("create backup storage", store.ensure_backup_dir)
            self._step("discard previous backups", store.clear_backups)
            self._step("create log directory", lambda: store.logs_dir.mkdir(parents=True, exist_ok=True))

            self._step("install monitor script", lambda: self._install_script(store.monitor_script, settings.MONITOR_MODULE))
            self._step("install monitor descriptor", lambda: self._install_descriptor(store.monitor_descriptor, store.monitor_script))
            self._register(store.monitor_descriptor)

            self._step("lock controller script", lambda: self._install_script(store.controller_script, settings.CONTROLLER_MODULE))

            self._step("install watchdog script", lambda: self._install_script(store.watchdog_script, settings.WATCHDOG_MODULE))
            self._step("install watchdog descriptor", lambda: self._install_descriptor(store.watchdog_descriptor, store.watchdog_script))
            self._register(store.watchdog_descriptor)

            # Backups must reflect the configuration installed above.
            for artifact in store:
                if artifact.is_backed_up:
                    self._step(f"back up {artifact.name}", lambda a=artifact: store.snapshot(a))

            for path in store.primary_paths() + store.backup_paths():
                self._protect(path)
        except ResourceFailure as e:
            log.error(f"Arm aborted: {e}")
            if self.rollback_on_failure:
                self._rollback()
            else:
                log.warning("Completed steps were not rolled back. Run 'focusguard stop' to return to a consistent state.")
            raise
        self._journal.clear()
        log.info("FocusGuard is armed. Monitor and watchdog are registered and all artifacts are immutable.")

    #* --- Disarm ---
    def _relax_permissions(self) -> None:
        for artifact in self.store:
            if not artifact.path.exists():
                log.warning(f"{artifact.name} is missing from '{artifact.path}'. Skipping permission change.")
                continue
            self.store.set_mode(artifact, artifact.relaxed_mode)

    def disarm(self, secret: str) -> None:
        """
        Clears every immutable flag, unregisters both loops and relaxes
        permissions so the files can be edited. Backups and the credential
        are kept. Running it twice is harmless.

        :raises AuthFailure: the password is wrong; nothing was changed.
        :raises ResourceFailure: a step failed; earlier steps stay applied.
        """
        self.gate.verify(secret)
        store = self.store
        log.info("Disarming FocusGuard...")
        try:
            self._step("clear immutable flags", lambda: self.guard.release_all(store.all_files()))
            for descriptor in (store.monitor_descriptor, store.watchdog_descriptor):
                self._step(
                    f"unregister {descriptor.label}",
                    lambda d=descriptor: self.registrar.unregister(d.path, d.label),
                )
            self._step("relax permissions", self._relax_permissions)
        except ResourceFailure as e:
            log.error(f"Disarm aborted: {e}")
            raise
        finally:
            self._journal.clear()
        log.info("FocusGuard is disarmed. Files are editable until the next 'focusguard start'.")
