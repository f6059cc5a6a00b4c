"""Handler that isolates error-level logs into dedicated files."""

from utils.logger.config import LogLevel
from utils.logger.handlers.rotating_file import Rotation, RotatingLogFileHandler


class ErrorFileHandler(RotatingLogFileHandler):
    """Persist only ERROR and CRITICAL records to ``<window>.error.log``."""

    suffix = ".error.log"

    def __init__(
        self,
        base_dir: str,
        filename_prefix: str = "",
        create: bool = True,
        rotation: Rotation = "daily",
    ) -> None:
        super().__init__(
            base_dir,
            filename_prefix=filename_prefix,
            create=create,
            rotation=rotation,
            min_level=LogLevel.ERROR,
        )
