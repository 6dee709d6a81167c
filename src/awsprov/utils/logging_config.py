"""Logging configuration for awsprov."""

import json
import logging
import logging.handlers
import os
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = "awsprov"


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    SIMPLE = "simple"
    JSON = "json"


@dataclass
class LoggingConfig:
    """Configuration for logging system."""

    level: LogLevel = LogLevel.INFO
    format_type: LogFormat = LogFormat.SIMPLE
    enable_console_logging: bool = True
    enable_file_logging: bool = False
    log_directory: str = "~/.awsprov/logs"
    log_filename: str = "awsprov.log"
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_colors: bool = True
    log_aws_requests: bool = False
    sensitive_fields: List[str] = field(
        default_factory=lambda: [
            "activation_code",
            "ActivationCode",
            "aws_secret_access_key",
            "SecretAccessKey",
            "SessionToken",
        ]
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Build a logging configuration from the ``logging`` config section."""
        return cls(
            level=LogLevel(str(data.get("level", "INFO")).upper()),
            format_type=LogFormat(data.get("format", "simple")),
            enable_file_logging=bool(data.get("file_logging", False)),
            log_directory=data.get("log_directory", "~/.awsprov/logs"),
            log_aws_requests=bool(data.get("log_aws_requests", False)),
        )


class SensitiveDataFilter(logging.Filter):
    """Filter to redact the values of sensitive fields from log messages."""

    def __init__(self, fields: List[str]) -> None:
        """
        Initialize the filter with sensitive field names.

        Args:
            fields: Names whose values must never reach a log sink
        """
        super().__init__()
        names = "|".join(re.escape(f) for f in fields)
        # name=value, name: value, "name": "value", 'name': 'value'
        self.pattern = re.compile(
            rf"""(["']?(?:{names})["']?\s*[:=]\s*["']?)([^"',\s}}]+)""", re.IGNORECASE
        )

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Redact sensitive values from the formatted message.

        Args:
            record: Log record to filter

        Returns:
            bool: Always True (we modify but don't filter out records)
        """
        message = record.getMessage()
        redacted = self.pattern.sub(r"\1[REDACTED]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured logging with JSON output."""

    STANDARD_ATTRS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {
            k: v
            for k, v in record.__dict__.items()
            if k not in self.STANDARD_ATTRS and not k.startswith("_")
        }
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter with color support."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        return (
            hasattr(sys.stderr, "isatty")
            and sys.stderr.isatty()
            and os.environ.get("TERM") != "dumb"
        )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            reset = self.COLORS["RESET"]
            formatted = (
                f"{color}[{timestamp}] {record.levelname:<8}{reset} - "
                f"{record.name} - {record.getMessage()}"
            )
        else:
            formatted = f"[{timestamp}] {record.levelname:<8} - {record.name} - {record.getMessage()}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


class LoggingManager:
    """
    Centralized logging setup for the provider.

    Configures the ``awsprov`` logger hierarchy with console and optional
    rotating file output, redaction of sensitive values, and reduced noise
    from the AWS SDK.
    """

    def __init__(self, config: Optional[LoggingConfig] = None):
        self.config = config or LoggingConfig()
        self._handlers_configured = False

    def setup_logging(self) -> None:
        """Set up logging configuration for all components."""
        if self._handlers_configured:
            return

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(getattr(logging, self.config.level.value))
        root_logger.handlers.clear()

        if self.config.enable_console_logging:
            root_logger.addHandler(self._create_console_handler())

        if self.config.enable_file_logging:
            root_logger.addHandler(self._create_file_handler())

        self._configure_aws_logging()
        self._handlers_configured = True

    def _create_console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(getattr(logging, self.config.level.value))

        formatter: logging.Formatter
        if self.config.format_type == LogFormat.JSON:
            formatter = StructuredFormatter()
        else:
            formatter = ColoredConsoleFormatter(use_colors=self.config.console_colors)
        handler.setFormatter(formatter)
        handler.addFilter(SensitiveDataFilter(self.config.sensitive_fields))
        return handler

    def _create_file_handler(self) -> logging.Handler:
        """Create rotating file handler."""
        log_dir = Path(self.config.log_directory).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            filename=str(log_dir / self.config.log_filename),
            maxBytes=self.config.max_file_size_mb * 1024 * 1024,
            backupCount=self.config.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(getattr(logging, self.config.level.value))
        handler.setFormatter(StructuredFormatter())
        handler.addFilter(SensitiveDataFilter(self.config.sensitive_fields))
        return handler

    def _configure_aws_logging(self) -> None:
        """Configure AWS SDK logging."""
        for logger_name in ["boto3", "botocore", "urllib3.connectionpool"]:
            level = logging.DEBUG if self.config.log_aws_requests else logging.WARNING
            logging.getLogger(logger_name).setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger under the ``awsprov`` hierarchy.

        Args:
            name: Logger name (usually module name)

        Returns:
            logging.Logger: Configured logger instance
        """
        if not self._handlers_configured:
            self.setup_logging()
        if not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)


# Global logging manager instance
_global_logging_manager: Optional[LoggingManager] = None


def get_logging_manager() -> LoggingManager:
    """Get the global logging manager instance."""
    global _global_logging_manager
    if _global_logging_manager is None:
        _global_logging_manager = LoggingManager()
    return _global_logging_manager


def setup_logging(config: Optional[LoggingConfig] = None) -> LoggingManager:
    """
    Set up logging for the provider, replacing any previous configuration.

    Args:
        config: Logging configuration

    Returns:
        The configured logging manager
    """
    global _global_logging_manager
    _global_logging_manager = LoggingManager(config)
    _global_logging_manager.setup_logging()
    return _global_logging_manager


def get_logger(name: str) -> logging.Logger:
    return get_logging_manager().get_logger(name)
