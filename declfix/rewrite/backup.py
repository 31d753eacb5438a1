# FILE: declfix/rewrite/backup.py
"""
Backup Manager - persists the pristine bytes before the source is touched.

Backup naming:
    single slot (default):  <path><suffix>                 e.g. app.js.bak
    timestamped (opt-in):   <path>.<YYYYmmddTHHMMSSZ><suffix>

The single slot is overwritten on every run that changes the file. After
a second run it holds the output of the first run, not the original: it is
NOT multi-generation history. Use timestamped mode to keep every version.

All writes go through `atomic_write_bytes` (temp file in the same directory,
then os.replace), so a target is never left half-written.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from datetime import datetime, timezone
from typing import Optional

from declfix.errors import BackupWriteError

from .models import BackupRecord

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_SUFFIX = ".bak"
_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


def backup_path_for(
    path: str,
    suffix: str = DEFAULT_BACKUP_SUFFIX,
    timestamped: bool = False,
    now: Optional[datetime] = None,
) -> str:
    """Derive the backup path deterministically from the source path."""
    if not timestamped:
        return f"{path}{suffix}"
    stamp = (now or datetime.now(timezone.utc)).strftime(_TIMESTAMP_FORMAT)
    return f"{path}.{stamp}{suffix}"


def atomic_write_bytes(path: str, data: bytes) -> None:
    """
    Write `data` to `path` via temp file + rename.

    Raises OSError on failure; the temp file is removed and `path` keeps its
    previous content. An existing file's permission bits are preserved.
    """
    directory = os.path.dirname(os.path.abspath(path))
    mode: Optional[int] = None
    if os.path.exists(path):
        mode = stat.S_IMODE(os.stat(path).st_mode)

    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=f".{os.path.basename(path)}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_backup(
    source_path: str,
    original: bytes,
    suffix: str = DEFAULT_BACKUP_SUFFIX,
    timestamped: bool = False,
) -> BackupRecord:
    """
    Persist `original` next to `source_path`.

    Must complete before the source is rewritten; raises BackupWriteError
    otherwise so the caller can abort with the source untouched.
    """
    now = datetime.now(timezone.utc)
    backup_path = backup_path_for(source_path, suffix=suffix, timestamped=timestamped, now=now)

    if os.path.exists(backup_path):
        logger.warning(
            "[backup] Overwriting existing backup %s (single slot, no history kept)",
            backup_path,
        )

    try:
        atomic_write_bytes(backup_path, original)
    except OSError as e:
        logger.error("[backup] Failed to write backup %s: %s", backup_path, e)
        raise BackupWriteError(backup_path, e) from e

    logger.info("[backup] Wrote %d bytes to %s", len(original), backup_path)
    return BackupRecord(
        source_path=source_path,
        backup_path=backup_path,
        size_bytes=len(original),
        created_at=now.isoformat(),
    )
