import os
from datetime import datetime

from pve_temp_mod.core.backup_manager import BackupManager, make_timestamp


def write(path, text):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def read(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def test_timestamp_format():
    assert make_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02_03-04-05"


def test_create_backup_makes_directory(tmp_path):
    target = tmp_path / "Nodes.pm"
    write(target, "original")
    manager = BackupManager(str(tmp_path / "backup" / "nested"))

    path = manager.create_backup(str(target), "2024-01-02_03-04-05")

    assert path == str(tmp_path / "backup" / "nested" / "Nodes.pm.2024-01-02_03-04-05")
    assert read(path) == "original"


def test_existing_backup_is_never_overwritten(tmp_path, capsys):
    target = tmp_path / "Nodes.pm"
    write(target, "first")
    manager = BackupManager(str(tmp_path / "backup"))
    path = manager.create_backup(str(target), "2024-01-02_03-04-05")

    write(target, "second")

    assert manager.create_backup(str(target), "2024-01-02_03-04-05") is None
    assert read(path) == "first"
    assert "already exists" in capsys.readouterr().out


def test_latest_backup_by_modification_time(tmp_path):
    backup_dir = tmp_path / "backup"
    backup_dir.mkdir()
    older = backup_dir / "pvemanagerlib.js.2024-12-31_00-00-00"
    newer = backup_dir / "pvemanagerlib.js.2024-01-01_00-00-00"
    write(older, "old")
    write(newer, "new")
    os.utime(older, (1000, 1000))
    os.utime(newer, (2000, 2000))
    write(backup_dir / "Nodes.pm.2025-01-01_00-00-00", "other file")

    manager = BackupManager(str(backup_dir))

    assert manager.find_latest_backup("/usr/share/pve-manager/js/pvemanagerlib.js") == str(newer)


def test_restore_latest(tmp_path):
    target = tmp_path / "Nodes.pm"
    write(target, "patched")
    backup_dir = tmp_path / "backup"
    backup_dir.mkdir()
    write(backup_dir / "Nodes.pm.2024-01-02_03-04-05", "original")

    assert BackupManager(str(backup_dir)).restore_latest(str(target))
    assert read(target) == "original"


def test_restore_without_backup(tmp_path, capsys):
    target = tmp_path / "Nodes.pm"
    write(target, "patched")

    assert not BackupManager(str(tmp_path / "missing")).restore_latest(str(target))
    assert read(target) == "patched"
    assert "[warning] No Nodes.pm backups found." in capsys.readouterr().out
