from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

from ..errors import BackupNotFound
from ..models.config_models import BackupStrategy

"""Backup artifacts for the workbook image merger.

A backup is a byte copy of the target workbook taken right before it is
mutated. It is kept after a successful merge and copied back over the target
when a merge fails.
"""

__all__ = [
    "BackupStrategy",
    "BACKUP_TIMESTAMP_FMT",
    "backup_path_for",
    "create_backup",
    "restore_backup",
]

BACKUP_TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def backup_path_for(
    original: Path,
    strategy: BackupStrategy = BackupStrategy.FIXED,
    suffix: str = "_backup",
    now: datetime | None = None,
) -> Path:
    """Sibling backup path; the suffix (and timestamp) go before the extension.

    >>> backup_path_for(Path("record.xlsx"))
    PosixPath('record_backup.xlsx')
    >>> backup_path_for(Path("record.xlsx"), BackupStrategy.TIMESTAMP, now=datetime(2024, 5, 1, 9, 30))
    PosixPath('record_backup-20240501-093000.xlsx')
    """
    original = Path(original)
    if strategy is BackupStrategy.TIMESTAMP:
        stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FMT)
        name = f"{original.stem}{suffix}-{stamp}{original.suffix}"
    else:
        name = f"{original.stem}{suffix}{original.suffix}"
    return original.with_name(name)


def create_backup(
    original: Path,
    strategy: BackupStrategy = BackupStrategy.FIXED,
    suffix: str = "_backup",
    now: datetime | None = None,
) -> Path:
    """Byte-copy ``original`` to its backup path and return that path."""
    target = backup_path_for(original, strategy, suffix, now)
    shutil.copyfile(original, target)
    return target


def restore_backup(backup: Path, target: Path) -> None:
    """Copy ``backup`` over ``target``. The backup itself is kept.

    Raises:
        BackupNotFound: the backup file is missing
    """
    backup = Path(backup)
    if not backup.is_file():
        raise BackupNotFound(f"backup not found: {backup}")
    shutil.copyfile(backup, target)
