"""
PVE Temperature Mod - Backup Manager
Timestamped copies of the target files and restoring the latest one

Backups are named <filename>.<YYYY-MM-DD_HH-MM-SS> and are never overwritten.
"""

import glob
import os
import shutil
from datetime import datetime
from typing import Optional

from pve_temp_mod.core import console


TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def make_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


class BackupManager:
    """Creates and restores backups of the patched files in one directory"""

    def __init__(self, backup_dir: str):
        self.backup_dir = backup_dir

    def backup_path(self, target_path: str, timestamp: str) -> str:
        return os.path.join(self.backup_dir, f"{os.path.basename(target_path)}.{timestamp}")

    def create_backup(self, target_path: str, timestamp: Optional[str] = None) -> Optional[str]:
        """
        Copy target_path into the backup directory

        Only the content is copied, so the backup gets a fresh modification
        time; that is what find_latest_backup() sorts by.

        Returns:
            Path of the backup, or None if one with the same timestamp exists
        """
        os.makedirs(self.backup_dir, exist_ok=True)

        path = self.backup_path(target_path, timestamp or make_timestamp())
        if os.path.exists(path):
            console.warn(f"Backup \"{path}\" already exists and was kept.")
            return None

        shutil.copyfile(target_path, path)
        console.msg(f"Backup of \"{target_path}\" saved to \"{path}\".")
        return path

    def list_backups(self, target_path: str):
        pattern = os.path.join(glob.escape(self.backup_dir), glob.escape(os.path.basename(target_path)) + ".*")
        return [path for path in glob.glob(pattern) if os.path.isfile(path)]

    def find_latest_backup(self, target_path: str) -> Optional[str]:
        """Most recently modified backup of target_path, or None"""
        backups = self.list_backups(target_path)
        if not backups:
            return None
        return max(backups, key=lambda path: (os.path.getmtime(path), path))

    def restore_latest(self, target_path: str) -> bool:
        """
        Overwrite target_path with its latest backup

        Returns:
            True if a backup was restored, False if none was found
        """
        latest = self.find_latest_backup(target_path)
        if latest is None:
            console.warn(f"No {os.path.basename(target_path)} backups found.")
            return False

        shutil.copyfile(latest, target_path)
        console.ok(f"Copied latest backup to \"{target_path}\".")
        return True
