"""
The set of files FocusGuard manages and their backups.

Each Artifact knows its primary path, the mode it must carry while armed, and
the mode Disarm relaxes it to. The ArtifactStore owns the home directory
layout and the copy/restore primitives shared by the LifecycleController and
the Watchdog.
"""
import os
import enum
import stat
import shutil
import hashlib
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from focusguard import settings
from focusguard.local.errors import RepairFailure

log = logging.getLogger(__name__)


class ArtifactKind(enum.Enum):
    SCRIPT = "script"
    CREDENTIAL = "credential"
    REGISTRATION_DESCRIPTOR = "registration-descriptor"


@dataclass(frozen=True)
class Artifact:
    name: str
    path: Path
    required_mode: int
    relaxed_mode: int
    kind: ArtifactKind
    is_backed_up: bool = True
    label: Optional[str] = None  # launchd label, descriptors only

    @property
    def is_descriptor(self) -> bool:
        return self.kind is ArtifactKind.REGISTRATION_DESCRIPTOR


def file_digest(path: Path) -> str:
    """Returns the SHA-256 hex digest of a file's content."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ArtifactStore:
    """
    Layout of the FocusGuard home directory.

    Artifacts are listed in the fixed order the Watchdog visits them:
    controller script, monitor script, credential, monitor descriptor,
    watchdog descriptor, watchdog script.
    """

    def __init__(self, home: Optional[Path] = None, locked_script_mode: Optional[int] = None, backup_mode: int = settings.BACKUP_MODE):
        self.home = Path(home or settings.HOME_DIR)
        self.backup_dir = self.home / settings.BACKUP_DIR_NAME
        self.logs_dir = self.home / settings.LOGS_DIR_NAME
        self.backup_mode = backup_mode
        script_mode = settings.LOCKED_SCRIPT_MODE if locked_script_mode is None else locked_script_mode

        def script(name: str, file_name: str) -> Artifact:
            return Artifact(name, self.home / file_name, script_mode, settings.RELAXED_SCRIPT_MODE, ArtifactKind.SCRIPT)

        def descriptor(name: str, label: str) -> Artifact:
            return Artifact(
                name, self.home / f"{label}.plist", settings.DESCRIPTOR_MODE, settings.RELAXED_FILE_MODE,
                ArtifactKind.REGISTRATION_DESCRIPTOR, label=label,
            )

        self.controller_script = script("controller script", settings.CONTROLLER_SCRIPT_NAME)
        self.monitor_script = script("monitor script", settings.MONITOR_SCRIPT_NAME)
        self.credential = Artifact(
            "credential", self.home / settings.CREDENTIAL_FILE_NAME,
            settings.CREDENTIAL_MODE, settings.RELAXED_FILE_MODE, ArtifactKind.CREDENTIAL,
        )
        self.monitor_descriptor = descriptor("monitor descriptor", settings.MONITOR_LABEL)
        self.watchdog_descriptor = descriptor("watchdog descriptor", settings.WATCHDOG_LABEL)
        self.watchdog_script = script("watchdog script", settings.WATCHDOG_SCRIPT_NAME)

        self.artifacts: Tuple[Artifact, ...] = (
            self.controller_script,
            self.monitor_script,
            self.credential,
            self.monitor_descriptor,
            self.watchdog_descriptor,
            self.watchdog_script,
        )

    def __iter__(self) -> Iterator[Artifact]:
        return iter(self.artifacts)

    def backup_path(self, artifact: Artifact) -> Path:
        return self.backup_dir / artifact.path.name

    def ensure_home(self) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(exist_ok=True)

    def ensure_backup_dir(self) -> None:
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def clear_backups(self) -> None:
        """
        Removes the backups of a previous Arm. Until the next snapshot the
        Watchdog finds no backup to compare against, so it cannot roll newly
        installed primaries back to the old content.
        """
        for backup in self.backup_paths():
            backup.unlink(missing_ok=True)

    def primary_paths(self) -> List[Path]:
        return [a.path for a in self.artifacts]

    def backup_paths(self) -> List[Path]:
        return [self.backup_path(a) for a in self.artifacts if a.is_backed_up]

    def protected_paths(self) -> List[Path]:
        """Every primary and backup path that currently exists."""
        return [p for p in self.primary_paths() + self.backup_paths() if p.exists()]

    def all_files(self) -> List[Path]:
        """
        Every artifact path plus every regular file (dotfiles included) directly
        inside the home and backup directories.
        """
        found = {p for p in self.protected_paths()}
        for directory in (self.home, self.backup_dir):
            if not directory.is_dir():
                continue
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.is_file(follow_symlinks=False):
                        found.add(Path(entry.path))
        return sorted(found)

    def set_mode(self, artifact: Artifact, mode: Optional[int] = None) -> None:
        os.chmod(artifact.path, artifact.required_mode if mode is None else mode)

    def snapshot(self, artifact: Artifact) -> Path:
        """
        Copies a primary into backup storage, replacing any previous backup,
        and forces the backup to the read-only backup mode.
        """
        backup = self.backup_path(artifact)
        backup.unlink(missing_ok=True)
        mode = stat.S_IMODE(os.stat(artifact.path).st_mode)
        # Execute-only scripts get owner read for the duration of the copy
        if not mode & stat.S_IRUSR:
            os.chmod(artifact.path, mode | stat.S_IRUSR)
        try:
            # copyfile, not copy2: copying stat would also copy BSD file flags
            shutil.copyfile(artifact.path, backup)
        finally:
            if not mode & stat.S_IRUSR:
                os.chmod(artifact.path, mode)
        os.chmod(backup, self.backup_mode)
        log.debug(f"Snapshot of {artifact.name} written to '{backup}'.")
        return backup

    def is_corrupted(self, artifact: Artifact) -> bool:
        """
        True when the primary is readable but differs from its backup.
        Unreadable primaries and missing backups are never reported as corrupted.
        """
        backup = self.backup_path(artifact)
        try:
            return file_digest(artifact.path) != file_digest(backup)
        except (PermissionError, FileNotFoundError):
            return False

    def restore(self, artifact: Artifact) -> None:
        """
        Copies the backup over the primary path and applies the primary's
        required mode. Raises RepairFailure when any step fails.
        """
        backup = self.backup_path(artifact)
        if not artifact.is_backed_up or not backup.exists():
            raise RepairFailure(artifact.name, f"no backup at '{backup}'")
        try:
            artifact.path.unlink(missing_ok=True)
            shutil.copyfile(backup, artifact.path)
        except OSError as e:
            raise RepairFailure(artifact.name, f"copy failed: {e}") from e
        try:
            self.set_mode(artifact)
        except OSError as e:
            raise RepairFailure(artifact.name, f"could not set mode {artifact.required_mode:o}: {e}") from e
