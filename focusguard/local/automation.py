import logging
import subprocess
from typing import Callable, Optional

from focusguard import settings
from focusguard.local.errors import AutomationError

log = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]

ACTIVATE_APPLICATION_SCRIPT = """
tell application "System Events"
    keystroke space using command down
    delay 0.5
    keystroke "{name}"
    delay 0.5
    key code 36
end tell
"""

RUN_IN_TERMINAL_SCRIPT = 'tell application "Terminal" to do script "{command}"'

NOTIFICATION_SCRIPT = 'display notification "{message}" with title "{title}"'


def _quote(value: str) -> str:
    """Escapes a value for use inside an AppleScript string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class AutomationBridge:
    """
    The OS automation capabilities the ProcessMonitor relies on, all driven
    through osascript.

    :param runner: subprocess.run compatible callable, replaced in tests.
    """

    def __init__(self, runner: Optional[Runner] = None, osascript: str = "osascript"):
        self._run = runner or subprocess.run
        self.osascript = osascript

    def _osascript(self, script: str) -> None:
        cmd = [self.osascript, "-e", script]
        try:
            result = self._run(cmd, capture_output=True, text=True, timeout=settings.EXTERNAL_COMMAND_TIMEOUT, check=False)
        except (OSError, subprocess.SubprocessError) as e:
            raise AutomationError(f"osascript could not run: {e}") from e
        if result.returncode != 0:
            raise AutomationError(f"osascript exited {result.returncode}: {(result.stderr or '').strip()}")

    def activate_application(self, name: str) -> None:
        """Brings an application to the foreground by simulated Spotlight input."""
        self._osascript(ACTIVATE_APPLICATION_SCRIPT.format(name=_quote(name)))

    def run_in_terminal(self, command: str) -> None:
        """Runs a shell command inside a new interactive Terminal session."""
        self._osascript(RUN_IN_TERMINAL_SCRIPT.format(command=_quote(command)))

    def notify(self, title: str, message: str) -> None:
        """Shows a user-visible notification. Failures are logged, not raised."""
        try:
            self._osascript(NOTIFICATION_SCRIPT.format(title=_quote(title), message=_quote(message)))
        except AutomationError as e:
            log.error(f"Could not show notification '{message}': {e}")
