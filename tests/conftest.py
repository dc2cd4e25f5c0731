import plistlib
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Set

import pytest

from focusguard.local.artifacts import ArtifactStore
from focusguard.local.automation import AutomationBridge
from focusguard.local.credential import CredentialGate
from focusguard.local.immutability import ImmutabilityGuard
from focusguard.local.lifecycle import LifecycleController
from focusguard.local.registration import LaunchAgentRegistrar

PASSWORD = "abc"


def _done(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


class FakeChflags:
    """Stands in for chflags: tracks which paths carry the immutable flag."""

    def __init__(self):
        self.flagged: Set[Path] = set()
        self.calls: List[list] = []
        self.fail_paths: Set[Path] = set()

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        tool, flag, path = cmd
        path = Path(path)
        if path in self.fail_paths:
            return _done(cmd, 1, stderr="Operation not permitted")
        if flag == "uchg":
            self.flagged.add(path)
        elif flag == "nouchg":
            self.flagged.discard(path)
        return _done(cmd)


class FakeLaunchctl:
    """Stands in for launchctl: tracks loaded labels."""

    def __init__(self):
        self.loaded: Set[str] = set()
        self.calls: List[list] = []
        self.fail_load: Set[str] = set()
        self.fail_unload: Set[str] = set()
        self.on_load: Dict[str, Callable[[], object]] = {}

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        action = cmd[1]
        if action == "list":
            return _done(cmd, 0 if cmd[2] in self.loaded else 113)
        if action == "remove":
            self.loaded.discard(cmd[2])
            return _done(cmd)
        with open(cmd[-1], "rb") as f:
            label = plistlib.load(f)["Label"]
        if action == "load":
            if label in self.fail_load:
                return _done(cmd, 0, stderr="Load failed: 5: Input/output error")
            self.loaded.add(label)
            if label in self.on_load:
                self.on_load[label]()
        elif action == "unload":
            if label in self.fail_unload:
                return _done(cmd, 1, stderr="Unload failed")
            self.loaded.discard(label)
        return _done(cmd)


class FakeOsascript:
    def __init__(self):
        self.scripts: List[str] = []
        self.fail = False

    def __call__(self, cmd, **kwargs):
        self.scripts.append(cmd[-1])
        if self.fail:
            return _done(cmd, 1, stderr="Application isn't running")
        return _done(cmd)


@pytest.fixture
def chflags():
    return FakeChflags()


@pytest.fixture
def launchctl():
    return FakeLaunchctl()


@pytest.fixture
def osascript():
    return FakeOsascript()


@pytest.fixture
def store(tmp_path):
    return ArtifactStore(home=tmp_path / "home", locked_script_mode=0o100)


@pytest.fixture
def gate(store):
    gate = CredentialGate(store.credential.path)
    store.ensure_home()
    gate.initialize(PASSWORD, PASSWORD)
    return gate


@pytest.fixture
def guard(chflags):
    return ImmutabilityGuard(runner=chflags, platform="darwin")


@pytest.fixture
def registrar(launchctl):
    return LaunchAgentRegistrar(runner=launchctl)


@pytest.fixture
def bridge(osascript):
    return AutomationBridge(runner=osascript)


@pytest.fixture
def controller(store, gate, guard, registrar):
    return LifecycleController(store, gate, guard, registrar, rollback_on_failure=False, python_executable="/usr/bin/python3")


@pytest.fixture
def armed(controller):
    controller.arm(PASSWORD)
    return controller
