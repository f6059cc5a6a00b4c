"""Factories for bridge loggers and helper utilities."""

import traceback
from typing import Optional

from utils.logger.config import LogLevel, LoggerConfig
from utils.logger.handlers.error_file import ErrorFileHandler
from utils.logger.handlers.rotating_file import RotatingLogFileHandler
from utils.logger.logger import Logger


class EnhancedLoggerFactory:
    """Convenience constructors for configured bridge loggers."""

    @staticmethod
    def create_application_logger(name: str = "metrics_bridge",
                                  enable_stdout: bool = False,
                                  log_level: LogLevel = LogLevel.INFO,
                                  log_dir: Optional[str] = "logs",
                                  config_prefix: Optional[str] = None) -> Logger:
        """Create the service logger with rotating file handlers.

        :param name: Logger name used in records.
        :param enable_stdout: Whether to emit log lines to stdout.
        :param log_level: Minimum log level captured by the logger.
        :param log_dir: Directory for log files; ``None`` disables file output.
        :param config_prefix: Subdirectory for log files, defaults to ``name``.
        :return: Configured :class:`Logger` instance.
        """
        config = LoggerConfig(
            base_level=log_level,
            do_stdout=enable_stdout,
            str_format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        )

        handlers = []
        if log_dir:
            prefix = config_prefix if config_prefix is not None else name
            handlers = [
                RotatingLogFileHandler(base_dir=log_dir, filename_prefix=prefix, rotation="daily"),
                ErrorFileHandler(base_dir=log_dir, filename_prefix=prefix, rotation="daily"),
            ]

        return Logger(config=config, name=name, handlers=handlers)

    @staticmethod
    def create_silent_logger(name: str = "metrics_bridge",
                             log_level: LogLevel = LogLevel.DEBUG) -> Logger:
        """Create a handler-less logger that prints nothing (used by tools and tests)."""
        config = LoggerConfig(base_level=log_level, do_stdout=False)
        return Logger(config=config, name=name, handlers=[])


def log_exception(logger: Logger, exc: BaseException, context: str = "") -> None:
    """Log an exception with traceback using the provided logger.

    :param logger: Logger instance used for reporting the failure.
    :param exc: Exception that should be logged.
    :param context: Optional textual context describing the failure.
    """
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(f"EXCEPTION in {context}: {type(exc).__name__}: {exc}\n{tb_str}")
