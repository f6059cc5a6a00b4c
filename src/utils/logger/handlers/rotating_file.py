"""File handler that appends bridge log lines to time-rotated files."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal

from utils.logger.config import LogEvent, LogLevel
from utils.logger.handlers.base import BaseLogHandler

Rotation = Literal["daily", "hourly"]

_PATTERNS = {
    "daily": "%Y-%m-%d",
    "hourly": "%Y-%m-%d_%H",
}


class RotatingLogFileHandler(BaseLogHandler):
    """Write buffered log events to ``<base_dir>/<prefix>/<window>.log`` files."""

    suffix = ".log"

    def __init__(
        self,
        base_dir: str,
        filename_prefix: str = "",
        create: bool = True,
        rotation: Rotation = "daily",
        min_level: LogLevel = LogLevel.TRACE,
    ) -> None:
        """Initialise the handler with target directory and rotation scheme.

        :param base_dir: Base directory where log files are written.
        :param filename_prefix: Optional subdirectory grouping the files.
        :param create: Whether to create the directory if missing.
        :param rotation: Window granularity used in file names.
        :param min_level: Events below this level are not written.
        :raises ValueError: If ``rotation`` is unknown.
        """
        super().__init__()
        if rotation not in _PATTERNS:
            raise ValueError(f"Unsupported rotation: {rotation!r}")
        self.base_dir = Path(base_dir)
        self.filename_prefix = filename_prefix
        self.min_level = min_level
        self._pattern = _PATTERNS[rotation]
        if create:
            self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_current_filepath(self) -> str:
        """Compute the destination file for the current rotation window."""
        window = datetime.now(timezone.utc).strftime(self._pattern)
        filename = f"{window}{self.suffix}"
        if self.filename_prefix:
            return str(self.base_dir / self.filename_prefix / filename)
        return str(self.base_dir / filename)

    async def push(self, records: List[LogEvent]) -> None:
        """Append the eligible records to the current rotation file.

        :param records: Buffered log events awaiting persistence.
        """
        lines = [ev.text for ev in records if ev.level >= self.min_level]
        if not lines:
            return
        filepath = self._get_current_filepath()
        os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "a", encoding="utf-8") as file:
            file.write("\n".join(lines) + "\n")
            file.flush()
