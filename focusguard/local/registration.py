"""
launchd registration for the two background loops.

A ServiceDescriptor is the declarative record launchd reads; the
LaunchAgentRegistrar loads and unloads descriptors through launchctl.
"""
import plistlib
import logging
import subprocess
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from focusguard import settings
from focusguard.local.errors import RegistrationError

log = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass
class ServiceDescriptor:
    label: str
    command: List[str]
    run_at_load: bool = True
    keep_alive: bool = True
    session_restriction: str = settings.SESSION_RESTRICTION
    stdout_path: Optional[Path] = None
    stderr_path: Optional[Path] = None
    environment: Dict[str, str] = field(default_factory=dict)

    def to_plist(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "Label": self.label,
            "ProgramArguments": list(self.command),
            "RunAtLoad": self.run_at_load,
            "KeepAlive": self.keep_alive,
            "LimitLoadToSessionType": self.session_restriction,
        }
        if self.stdout_path:
            record["StandardOutPath"] = str(self.stdout_path)
        if self.stderr_path:
            record["StandardErrorPath"] = str(self.stderr_path)
        if self.environment:
            record["EnvironmentVariables"] = dict(self.environment)
        return record

    def dumps(self) -> bytes:
        return plistlib.dumps(self.to_plist(), fmt=plistlib.FMT_XML)

    @classmethod
    def load(cls, path: Path) -> "ServiceDescriptor":
        with Path(path).open("rb") as f:
            record = plistlib.load(f)
        return cls(
            label=record["Label"],
            command=list(record["ProgramArguments"]),
            run_at_load=record.get("RunAtLoad", False),
            keep_alive=record.get("KeepAlive", False),
            session_restriction=record.get("LimitLoadToSessionType", ""),
            stdout_path=Path(record["StandardOutPath"]) if "StandardOutPath" in record else None,
            stderr_path=Path(record["StandardErrorPath"]) if "StandardErrorPath" in record else None,
            environment=dict(record.get("EnvironmentVariables", {})),
        )


class LaunchAgentRegistrar:
    """
    Thin wrapper over launchctl.

    :param runner: subprocess.run compatible callable, replaced in tests.
    """

    def __init__(self, runner: Optional[Runner] = None, launchctl: str = "launchctl"):
        self._run = runner or subprocess.run
        self.launchctl = launchctl

    def _launchctl(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.launchctl, *args]
        try:
            return self._run(cmd, capture_output=True, text=True, timeout=settings.EXTERNAL_COMMAND_TIMEOUT, check=False)
        except (OSError, subprocess.SubprocessError) as e:
            raise RegistrationError(f"'{' '.join(cmd)}' could not run: {e}") from e

    def is_loaded(self, label: str) -> bool:
        return self._launchctl("list", label).returncode == 0

    def register(self, descriptor_path: Path, label: str) -> bool:
        """
        Loads a descriptor so launchd starts it now and at every login.
        A label that is already loaded is left alone.

        :return: True if the descriptor was loaded by this call.
        """
        if self.is_loaded(label):
            log.info(f"Service '{label}' is already loaded.")
            return False
        result = self._launchctl("load", "-w", str(descriptor_path))
        stderr = (result.stderr or "").strip()
        # launchctl load reports some failures on stderr with exit status 0
        if result.returncode != 0 or not self.is_loaded(label):
            raise RegistrationError(f"Could not load '{descriptor_path}': {stderr or f'exit {result.returncode}'}")
        log.info(f"Service '{label}' registered from '{descriptor_path}'.")
        return True

    def unregister(self, descriptor_path: Path, label: str) -> bool:
        """
        Unloads a descriptor, which also terminates its process.
        A label that is not loaded is logged and skipped.

        :return: True if the service was unloaded by this call.
        """
        if not self.is_loaded(label):
            log.warning(f"Service '{label}' is not loaded. Nothing to unregister.")
            return False
        if Path(descriptor_path).exists():
            result = self._launchctl("unload", "-w", str(descriptor_path))
        else:
            log.warning(f"Descriptor '{descriptor_path}' is missing. Removing '{label}' by label.")
            result = self._launchctl("remove", label)
        if result.returncode != 0:
            raise RegistrationError(f"Could not unload '{descriptor_path}': {(result.stderr or '').strip() or f'exit {result.returncode}'}")
        log.info(f"Service '{label}' unregistered.")
        return True
