import logging
import subprocess

import pytest

from focusguard.local.errors import AutomationError, ImmutabilityError
from focusguard.local.immutability import ImmutabilityGuard


def test_activate_application_types_name_into_spotlight(bridge, osascript):
    bridge.activate_application("Focus")

    script = osascript.scripts[-1]
    assert 'keystroke "Focus"' in script
    assert "keystroke space using command down" in script


def test_terminal_command_is_quoted(bridge, osascript):
    bridge.run_in_terminal('open -a "Focus Me"')
    assert osascript.scripts[-1] == 'tell application "Terminal" to do script "open -a \\"Focus Me\\""'


def test_failed_osascript_raises(bridge, osascript):
    osascript.fail = True
    with pytest.raises(AutomationError, match="isn't running"):
        bridge.run_in_terminal("open -a FocusMe")


def test_notify_swallows_failures(bridge, osascript, caplog):
    osascript.fail = True
    with caplog.at_level(logging.ERROR):
        bridge.notify("FocusGuard", "Monitoring paused for 60 seconds.")
    assert "Could not show notification" in caplog.text


@pytest.mark.parametrize("platform,set_cmd,clear_cmd", [
    ("darwin", ["chflags", "uchg"], ["chflags", "nouchg"]),
    ("linux", ["chattr", "+i"], ["chattr", "-i"]),
])
def test_immutability_tool_per_platform(tmp_path, platform, set_cmd, clear_cmd):
    calls = []

    def runner(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    guard = ImmutabilityGuard(runner=runner, platform=platform)
    guard.protect(tmp_path / "f")
    guard.release(tmp_path / "f")

    assert calls == [set_cmd + [str(tmp_path / "f")], clear_cmd + [str(tmp_path / "f")]]


def test_immutability_failure_raises(tmp_path, guard, chflags):
    chflags.fail_paths.add(tmp_path / "f")
    with pytest.raises(ImmutabilityError, match="Operation not permitted"):
        guard.protect(tmp_path / "f")
