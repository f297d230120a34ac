"""
Logging configuration for the team memory server.

The MCP stdio transport owns stdout, so every console handler configured
here writes to stderr. Logs can optionally be mirrored to a rotating file
and rendered as structured JSON.
"""

import json
import logging
import logging.handlers
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional, TextIO, Union

if TYPE_CHECKING:
    from ..config.config_manager import LoggingConfig

ROOT_LOGGER_NAME = "team_memory"


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter with color coding for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors for console output."""
        if self.use_colors:
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            reset = self.COLORS['RESET']
        else:
            color = reset = ""

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        formatted_message = (
            f"{color}[{timestamp}] {record.levelname:8s}{reset} "
            f"{record.name:30s} | {record.getMessage()}"
        )

        if record.exc_info:
            formatted_message += f"\n{self.formatException(record.exc_info)}"

        return formatted_message


def _parse_size(size: Union[str, int]) -> int:
    """Convert sizes such as '10MB' or '512KB' into bytes."""
    if isinstance(size, int):
        return size
    text = size.strip().upper()
    for suffix, factor in (("GB", 1024 ** 3), ("MB", 1024 ** 2), ("KB", 1024), ("B", 1)):
        if text.endswith(suffix):
            return int(float(text[:-len(suffix)]) * factor)
    return int(text)


class LoggingSetup:
    """Applies a LoggingConfig to the ``team_memory`` logger hierarchy."""

    def __init__(self, config: "LoggingConfig", stream: Optional[TextIO] = None):
        """
        Initialize logging setup.

        Args:
            config: Validated logging section of the application config
            stream: Console stream, defaults to stderr
        """
        self.config = config
        self.stream = stream or sys.stderr

    def _console_formatter(self) -> logging.Formatter:
        if self.config.structured:
            return StructuredFormatter()
        use_colors = not os.environ.get("NO_COLOR") and getattr(self.stream, "isatty", lambda: False)()
        return ColoredConsoleFormatter(use_colors=use_colors)

    def setup_logging(self) -> logging.Logger:
        """Set up handlers on the package logger and return it."""
        level = getattr(logging, self.config.level)
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.handlers.clear()
        package_logger.setLevel(level)
        package_logger.propagate = False

        console_handler = logging.StreamHandler(self.stream)
        console_handler.setLevel(level)
        console_handler.setFormatter(self._console_formatter())
        package_logger.addHandler(console_handler)

        if self.config.file.enabled:
            log_path = Path(self.config.file.path).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=_parse_size(self.config.file.max_size),
                backupCount=self.config.file.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            if self.config.structured:
                file_handler.setFormatter(StructuredFormatter())
            else:
                file_handler.setFormatter(logging.Formatter(self.config.format))
            package_logger.addHandler(file_handler)

        # httpx logs every request at INFO, which would leak into the console
        logging.getLogger("httpx").setLevel(logging.WARNING)

        package_logger.debug(
            f"Logging configured - Level: {self.config.level}, "
            f"File: {self.config.file.path if self.config.file.enabled else 'disabled'}"
        )
        return package_logger


class ComponentLogger:
    """Logger wrapper for specific components with context."""

    def __init__(self, component_name: str):
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")
        self.component_name = component_name

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def _log(self, level: int, message: str, **kwargs) -> None:
        """Internal method to log with extra context."""
        if not self.logger.isEnabledFor(level):
            return
        extra_fields = {
            "component": self.component_name,
            **kwargs
        }
        self.logger.log(level, message, extra={"extra_fields": extra_fields})


def setup_logging(config: "LoggingConfig", stream: Optional[TextIO] = None) -> logging.Logger:
    """Set up logging from the application's logging section."""
    return LoggingSetup(config, stream=stream).setup_logging()


def get_component_logger(component_name: str) -> ComponentLogger:
    """Get a logger for a specific component."""
    return ComponentLogger(component_name)


class TimedOperation:
    """Context manager for timing operations and logging their duration."""

    def __init__(
        self,
        operation_name: str,
        logger: Union[logging.Logger, ComponentLogger],
        metadata: Optional[Dict] = None
    ):
        self.operation_name = operation_name
        self.logger = logger
        self.metadata = metadata or {}
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
        status = "failed" if exc_type else "completed"
        message = f"Operation '{self.operation_name}' {status} in {self.duration:.3f}s"

        if isinstance(self.logger, ComponentLogger):
            self.logger.debug(message, duration_ms=round(self.duration * 1000, 2), **self.metadata)
        else:
            self.logger.debug(message)
        return False
