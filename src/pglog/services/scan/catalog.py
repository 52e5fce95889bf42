"""
File Catalog - bounded discovery of segment files

Lists regular files with the segment suffix in the order the directory
yields them. The order is not sorted and not stable across platforms.
"""

import logging
import os
from pathlib import Path

from pglog.services.spool.writer import SEGMENT_SUFFIX

logger = logging.getLogger(__name__)

MAX_LOG_FILES = 16


class FileCatalog:
    """
    Discovers the segment files a scan will read.

    Usage:
        catalog = FileCatalog()
        for path in catalog.list("/var/spool/pglog"):
            ...
    """

    def __init__(self, max_files: int = MAX_LOG_FILES, suffix: str = SEGMENT_SUFFIX):
        """
        Args:
            max_files: Stop after this many matches
            suffix: File name suffix that marks a segment
        """
        if max_files < 1:
            raise ValueError(f"max_files must be at least 1, got {max_files}")
        self.max_files = max_files
        self.suffix = suffix

    def list(self, directory: str | Path) -> list[Path]:
        """
        List segment files in directory, fresh on every call.

        A missing directory lists as empty.

        Raises:
            OSError: If the directory exists but cannot be read
        """
        found: list[Path] = []
        try:
            entries = os.scandir(directory)
        except FileNotFoundError:
            logger.debug(f"Segment directory {directory} does not exist")
            return found

        with entries:
            for entry in entries:
                if not entry.name.endswith(self.suffix):
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                found.append(Path(entry.path))
                if len(found) >= self.max_files:
                    logger.debug(f"Segment catalog capped at {self.max_files} files in {directory}")
                    break

        logger.debug(f"Found {len(found)} segment files in {directory}")
        return found
