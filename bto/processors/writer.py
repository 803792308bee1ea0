"""
================================================================================
WRITER - Persisting the Store to the Data Files
================================================================================

Writes every collection of a DatabaseManager back to its data file using
the record layouts in bto.processors.records.

Write Safety:
    1. Safety backup - each existing data file is copied to <file>.bak
                       (only when general.create_data_backups is enabled)
    2. Per-file lock - filelock.FileLock(<file>.lock) so two processes
                       never interleave writes to the same file
    3. Atomic swap   - lines go to a temp file that replaces the target

If any file fails, the safety backup is restored and the error re-raised.
================================================================================
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Dict, List

import filelock

from bto.core.database import DatabaseManager
from bto.core.models import Role
from bto.processors.records import (
    format_applicant,
    format_application,
    format_enquiry,
    format_manager,
    format_officer,
    format_project,
)
from bto.utils.config import mark_data_changed
from bto.utils.constants import (
    APPLICANT_FILE,
    APPLICATION_FILE,
    DATA_FILES,
    ENQUIRY_FILE,
    LOCK_TIMEOUT_SECONDS,
    MANAGER_FILE,
    OFFICER_FILE,
    PROJECT_FILE,
)

logger = logging.getLogger("bto_tracker")


def write_records(path: Path, lines: List[str], timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
    """Replace a data file with the given lines under its file lock."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = filelock.FileLock(str(path) + '.lock', timeout=timeout)
    tmp_path = path.with_name(path.name + '.tmp')
    try:
        with lock:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                for line in lines:
                    f.write(line + '\n')
            os.replace(tmp_path, path)
    except filelock.Timeout:
        logger.error(f"Failed to acquire lock for {path}")
        raise
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        raise


class DataWriter:
    """
    Saves a DatabaseManager into a data directory.

    Usage:
        writer = DataWriter(data_dir)
        writer.save(database)
    """

    def __init__(self, data_dir: Path, lock_timeout: float = LOCK_TIMEOUT_SECONDS,
                 create_backups: bool = True):
        self.data_dir = Path(data_dir)
        self.lock_timeout = lock_timeout
        self.create_backups = create_backups

    def _backup_path(self, file_name: str) -> Path:
        return self.data_dir / (file_name + '.bak')

    def create_safety_backup(self):
        """Copy every existing data file aside before overwriting it."""
        if not self.create_backups:
            return
        for file_name in DATA_FILES:
            source = self.data_dir / file_name
            if not source.exists():
                continue
            try:
                shutil.copy2(source, self._backup_path(file_name))
            except OSError as e:
                logger.warning(f"Failed to create safety backup of {source}: {e}")

    def restore_safety_backup(self) -> int:
        """Copy .bak files back over the data files; returns how many were restored."""
        restored = 0
        for file_name in DATA_FILES:
            backup = self._backup_path(file_name)
            if not backup.exists():
                continue
            shutil.copy2(backup, self.data_dir / file_name)
            restored += 1
        if restored:
            logger.info(f"[SAFE] Restored {restored} data files from backup.")
        return restored

    def _render(self, database: DatabaseManager) -> Dict[str, List[str]]:
        by_role: Dict[Role, Callable] = {
            Role.APPLICANT: format_applicant,
            Role.OFFICER: format_officer,
            Role.MANAGER: format_manager,
        }
        files = {
            Role.APPLICANT: APPLICANT_FILE,
            Role.OFFICER: OFFICER_FILE,
            Role.MANAGER: MANAGER_FILE,
        }
        rendered: Dict[str, List[str]] = {name: [] for name in DATA_FILES}
        for user in database.users:
            rendered[files[user.role]].append(by_role[user.role](user))
        rendered[PROJECT_FILE] = [format_project(p) for p in database.projects]
        rendered[APPLICATION_FILE] = [format_application(a) for a in database.applications]
        rendered[ENQUIRY_FILE] = [format_enquiry(e) for e in database.enquiries]
        return rendered

    def save(self, database: DatabaseManager) -> None:
        """Write all six data files; restores the backup and re-raises on failure."""
        rendered = self._render(database)
        self.create_safety_backup()
        try:
            for file_name, lines in rendered.items():
                write_records(self.data_dir / file_name, lines, self.lock_timeout)
        except (filelock.Timeout, OSError):
            if self.create_backups:
                self.restore_safety_backup()
            raise
        logger.info(f"Saved {database!r} to {self.data_dir}")
        mark_data_changed()
