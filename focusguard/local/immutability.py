import sys
import logging
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from focusguard import settings
from focusguard.local.errors import ImmutabilityError

log = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


def _flag_commands(platform: str):
    """Returns the (set, clear) argument prefixes of the platform's immutable flag tool."""
    if platform == "darwin":
        return ["chflags", "uchg"], ["chflags", "nouchg"]
    return ["chattr", "+i"], ["chattr", "-i"]


class ImmutabilityGuard:
    """
    Sets and clears the filesystem immutable flag on managed files.

    :param runner: subprocess.run compatible callable, replaced in tests.
    :param platform: Selects chflags (darwin) or chattr (everything else).
    """

    def __init__(self, runner: Optional[Runner] = None, platform: Optional[str] = None):
        self._run = runner or subprocess.run
        self._set_cmd, self._clear_cmd = _flag_commands(platform or sys.platform)

    def _apply(self, base_cmd: List[str], path: Path) -> None:
        cmd = base_cmd + [str(path)]
        try:
            result = self._run(cmd, capture_output=True, text=True, timeout=settings.EXTERNAL_COMMAND_TIMEOUT, check=False)
        except (OSError, subprocess.SubprocessError) as e:
            raise ImmutabilityError(f"'{' '.join(cmd)}' could not run: {e}") from e
        if result.returncode != 0:
            raise ImmutabilityError(f"'{' '.join(cmd)}' exited {result.returncode}: {(result.stderr or '').strip()}")

    def protect(self, path: Path) -> None:
        self._apply(self._set_cmd, path)
        log.debug(f"Immutable flag set on '{path}'.")

    def release(self, path: Path) -> None:
        self._apply(self._clear_cmd, path)
        log.debug(f"Immutable flag cleared on '{path}'.")

    def protect_all(self, paths: Iterable[Path]) -> None:
        """Protects every path, stopping at the first failure."""
        for path in paths:
            self.protect(path)

    def release_all(self, paths: Iterable[Path]) -> None:
        """Releases every path, stopping at the first failure."""
        for path in paths:
            self.release(path)
