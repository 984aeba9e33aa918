"""
Timestamped backups of the roster document.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

ORIGINAL_SUFFIX = "-original"
UPDATED_SUFFIX = "-updated"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BackupStore:
    """
    Writes ``roster-<yyyymmddTHHMMSSZ><suffix>.html`` files into one directory.

    A failed backup is logged and never stops a sync.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.directory = Path(directory)
        self.clock = clock

    def backup_path(self, suffix: str = "") -> Path:
        stamp = self.clock().strftime("%Y%m%dT%H%M%SZ")
        return self.directory / f"roster-{stamp}{suffix}.html"

    def save(self, content: str, suffix: str = "") -> Optional[Path]:
        """
        Write one backup.

        Returns:
            Path written, or None if the backup could not be written
        """
        path = self.backup_path(suffix)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write backup {path}: {e}")
            return None
        logger.info(f"Saved backup to {path}")
        return path
