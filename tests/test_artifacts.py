import os
import stat

import pytest

from focusguard.local.errors import RepairFailure


def mode_of(path):
    return stat.S_IMODE(os.stat(path).st_mode)


def test_watch_order(store):
    assert [a.path.name for a in store] == [
        "focusguard",
        "focus_monitor.sh",
        ".credential",
        "com.focusguard.monitor.plist",
        "com.focusguard.watchdog.plist",
        "focus_watchdog.sh",
    ]
    assert store.backup_path(store.credential) == store.home / ".backup" / ".credential"


def test_snapshot_of_execute_only_script(store):
    store.ensure_home()
    store.ensure_backup_dir()
    script = store.monitor_script
    script.path.write_text("#!/bin/sh\n")
    os.chmod(script.path, 0o100)

    backup = store.snapshot(script)

    assert mode_of(script.path) == 0o100
    assert mode_of(backup) == 0o400
    assert backup.read_text() == "#!/bin/sh\n"


def test_snapshot_replaces_previous_backup(store):
    store.ensure_home()
    store.ensure_backup_dir()
    store.credential.path.write_text("old\n")
    store.snapshot(store.credential)
    store.credential.path.write_text("new\n")

    assert store.snapshot(store.credential).read_text() == "new\n"


def test_restore_without_backup(store):
    store.ensure_home()
    with pytest.raises(RepairFailure, match="no backup"):
        store.restore(store.watchdog_script)


def test_corruption_needs_a_readable_primary_and_a_backup(store):
    store.ensure_home()
    store.ensure_backup_dir()
    descriptor = store.monitor_descriptor
    descriptor.path.write_text("a")
    assert store.is_corrupted(descriptor) is False

    store.snapshot(descriptor)
    assert store.is_corrupted(descriptor) is False
    descriptor.path.write_text("b")
    assert store.is_corrupted(descriptor) is True


def test_all_files_includes_dotfiles(store):
    store.ensure_home()
    store.ensure_backup_dir()
    (store.home / ".hidden").write_text("")
    (store.backup_dir / "stray").write_text("")

    files = store.all_files()

    assert store.home / ".hidden" in files
    assert store.backup_dir / "stray" in files
    assert store.logs_dir not in files
