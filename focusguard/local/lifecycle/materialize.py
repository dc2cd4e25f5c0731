"""
Writes the launcher scripts and launchd descriptors that Arm installs.
"""
import os
import logging
from pathlib import Path

from focusguard import settings
from focusguard.local.artifacts import Artifact, ArtifactStore
from focusguard.local.registration import ServiceDescriptor

log = logging.getLogger(__name__)


def write_file_atomic(path: Path, data: bytes) -> None:
    """
    Writes `data` to a temporary sibling and moves it over `path`.
    Fails if `path` carries the immutable flag.
    """
    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        with temp_path.open("wb") as f:
            f.write(data)
        os.replace(temp_path, path)
    finally:
        temp_path.unlink(missing_ok=True)


def render_launcher(module: str, home: Path, python: str = settings.PYTHON_EXECUTABLE) -> str:
    return settings.LAUNCHER_SCRIPT_TEMPLATE.format(home=home, python=python, module=module)


def write_launcher(artifact: Artifact, module: str, home: Path, python: str = settings.PYTHON_EXECUTABLE) -> None:
    write_file_atomic(artifact.path, render_launcher(module, home, python).encode("utf-8"))
    log.info(f"Wrote {artifact.name} to '{artifact.path}'.")


def build_descriptor(store: ArtifactStore, descriptor: Artifact, script: Artifact) -> ServiceDescriptor:
    """Builds the launchd record that keeps `script` running in the GUI session."""
    return ServiceDescriptor(
        label=descriptor.label,
        command=[str(script.path)],
        stdout_path=store.logs_dir / f"{descriptor.label}.out.log",
        stderr_path=store.logs_dir / f"{descriptor.label}.err.log",
        environment={"FOCUSGUARD_HOME": str(store.home)},
    )


def write_descriptor(artifact: Artifact, descriptor: ServiceDescriptor) -> None:
    write_file_atomic(artifact.path, descriptor.dumps())
    log.info(f"Wrote {artifact.name} for '{descriptor.label}' to '{artifact.path}'.")
