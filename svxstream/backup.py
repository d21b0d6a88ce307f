"""Timestamped snapshots of directories before they are edited in place."""

from __future__ import annotations

import logging
import shutil
import time
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def backup_path(directory: Path, when: datetime | None = None) -> Path:
    """``<directory>_backup_<YYYYmmdd_HHMMSS>`` next to *directory*."""
    ts = (when or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return directory.with_name(f"{directory.name}_backup_{ts}")


def create_backup(directory: Path, when: datetime | None = None) -> Path:
    """Copy *directory* verbatim to a timestamped sibling.

    Symlinks inside the tree are copied as links. Raises ``FileExistsError``
    if a snapshot with the same timestamp already exists, so an earlier
    snapshot is never overwritten.

    Returns the path of the snapshot.
    """
    dest = backup_path(directory, when)
    start = time.monotonic()
    shutil.copytree(directory, dest, symlinks=True)
    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info("Backup of %s saved to %s (%d ms)", directory, dest, duration_ms)
    return dest
