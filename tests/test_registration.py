from pathlib import Path

import pytest

from focusguard.local.errors import RegistrationError
from focusguard.local.registration import LaunchAgentRegistrar, ServiceDescriptor


def write_descriptor(tmp_path, label="com.focusguard.monitor"):
    path = tmp_path / f"{label}.plist"
    path.write_bytes(ServiceDescriptor(label=label, command=[str(tmp_path / "focus_monitor.sh")]).dumps())
    return path


def test_descriptor_plist_fields(tmp_path):
    descriptor = ServiceDescriptor(
        label="com.focusguard.watchdog",
        command=["/home/u/.focusguard/focus_watchdog.sh"],
        stdout_path=Path("/tmp/out.log"),
        environment={"FOCUSGUARD_HOME": "/home/u/.focusguard"},
    )
    record = descriptor.to_plist()

    assert record["RunAtLoad"] is True
    assert record["KeepAlive"] is True
    assert record["LimitLoadToSessionType"] == "Aqua"
    assert record["StandardOutPath"] == "/tmp/out.log"
    assert "StandardErrorPath" not in record

    path = tmp_path / "d.plist"
    path.write_bytes(descriptor.dumps())
    assert ServiceDescriptor.load(path) == descriptor


def test_register_loads_once(tmp_path, registrar, launchctl):
    path = write_descriptor(tmp_path)

    assert registrar.register(path, "com.focusguard.monitor") is True
    assert registrar.register(path, "com.focusguard.monitor") is False
    assert [cmd[1] for cmd in launchctl.calls].count("load") == 1


def test_register_detects_silent_load_failure(tmp_path, registrar, launchctl):
    path = write_descriptor(tmp_path)
    launchctl.fail_load.add("com.focusguard.monitor")

    with pytest.raises(RegistrationError, match="Input/output error"):
        registrar.register(path, "com.focusguard.monitor")


def test_unregister_not_loaded_is_skipped(tmp_path, registrar, launchctl):
    assert registrar.unregister(write_descriptor(tmp_path), "com.focusguard.monitor") is False
    assert [cmd[1] for cmd in launchctl.calls] == ["list"]


def test_unregister_without_descriptor_removes_by_label(tmp_path, registrar, launchctl):
    launchctl.loaded.add("com.focusguard.watchdog")

    assert registrar.unregister(tmp_path / "gone.plist", "com.focusguard.watchdog") is True
    assert ["launchctl", "remove", "com.focusguard.watchdog"] in launchctl.calls
    assert launchctl.loaded == set()


def test_unregister_failure_raises(tmp_path, registrar, launchctl):
    path = write_descriptor(tmp_path)
    launchctl.loaded.add("com.focusguard.monitor")
    launchctl.fail_unload.add("com.focusguard.monitor")

    with pytest.raises(RegistrationError):
        registrar.unregister(path, "com.focusguard.monitor")


def test_missing_launchctl_binary(tmp_path):
    def runner(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    with pytest.raises(RegistrationError, match="could not run"):
        LaunchAgentRegistrar(runner=runner).is_loaded("com.focusguard.monitor")
