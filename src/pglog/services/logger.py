"""
Logger Service Module
Operational logging for pglog itself: colored console, rotating files, JSON option

This is about pglog's own diagnostics. Spooled events go through
pglog.services.spool, not through these handlers.
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import colorlog

# LogRecord attributes that are not user extras
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class LoggerService:
    """
    Centralized logging service with support for:
    - Colored console output
    - Size-based file rotation
    - A separate error log
    - JSON structured logging
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = {**self._default_config(), **(config or {})}
        self.loggers: dict[str, logging.Logger] = {}
        self.root_handlers: list[logging.Handler] = []

        self.log_dir = Path(self.config["log_dir"])
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            if not os.access(self.log_dir, os.W_OK):
                raise PermissionError(f"Log directory not writable: {self.log_dir}")
        except OSError:
            # Fall back to a local writable directory rather than failing the caller
            self.log_dir = Path("./logs")
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_root_logger()

    def _default_config(self) -> dict[str, Any]:
        """Default logging configuration"""
        return {
            "log_dir": "./logs",
            "log_level": "INFO",
            "console_level": "INFO",
            "file_level": "DEBUG",
            "max_bytes": 5 * 1024 * 1024,  # 5MB
            "backup_count": 3,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "date_format": "%Y-%m-%d %H:%M:%S",
            "colored_output": True,
            "json_logs": False,
        }

    def _setup_root_logger(self):
        """Configure the root logger"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level

        # Remove existing handlers
        root_logger.handlers = []

        self.root_handlers = [
            self._create_console_handler(),
            self._create_file_handler("pglog.log"),
            self._create_file_handler("errors.log", level=logging.ERROR),
        ]
        for handler in self.root_handlers:
            root_logger.addHandler(handler)

    def _level(self, key: str, default: str) -> int:
        return getattr(logging, str(self.config.get(key) or default).upper(), logging.INFO)

    def _create_console_handler(self) -> logging.Handler:
        """Create console handler with optional colored output"""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self._level("console_level", self.config["log_level"]))

        if self.config.get("colored_output"):
            formatter: logging.Formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + self.config["format"],
                datefmt=self.config.get("date_format"),
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )
        else:
            formatter = logging.Formatter(
                self.config.get("format"), datefmt=self.config.get("date_format")
            )

        console_handler.setFormatter(formatter)
        return console_handler

    def _create_file_handler(self, filename: str, level: int | None = None) -> logging.Handler:
        """Create rotating file handler"""
        file_path = self.log_dir / filename

        try:
            handler: logging.Handler = RotatingFileHandler(
                file_path,
                maxBytes=self.config.get("max_bytes"),
                backupCount=self.config.get("backup_count"),
            )
        except OSError:
            # Don't fail hard if filesystem isn't writable (common in CI/sandboxes).
            handler = logging.StreamHandler(sys.stderr)

        handler.setLevel(level or self._level("file_level", "DEBUG"))

        if self.config.get("json_logs"):
            handler.setFormatter(JsonFormatter())
        else:
            formatter = logging.Formatter(
                self.config.get("format"), datefmt=self.config.get("date_format")
            )
            handler.setFormatter(formatter)

        return handler

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a named logger"""
        if name not in self.loggers:
            self.loggers[name] = logging.getLogger(name)

        return self.loggers[name]

    def cleanup(self):
        """Clean up handlers and close files"""
        root_logger = logging.getLogger()
        for handler in self.root_handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self.root_handlers = []

        self.loggers.clear()


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


# Global logger service instance
_logger_service: LoggerService | None = None


def setup_logging(section: dict | None = None, **overrides) -> logging.Logger:
    """
    Setup logging configuration and return root logger

    Args:
        section: The logging section of a Config (Config().logging_config);
            read from an unvalidated Config when None
        **overrides: LoggerService options that win over the section

    Returns:
        Configured root logger
    """
    global _logger_service

    if _logger_service is not None:
        return logging.getLogger()

    if section is None:
        from pglog.config import Config

        section = Config(validate=False).logging_config

    log_config = {
        "log_dir": str(section.get("log_dir", "./logs")),
        "log_level": section.get("level", "INFO"),
        "console_level": section.get("level", "INFO"),
        "max_bytes": section.get("max_bytes", 5 * 1024 * 1024),
        "backup_count": section.get("backup_count", 3),
        "format": section.get("format"),
        "date_format": section.get("date_format"),
        "json_logs": section.get("json_logs", False),
    }
    log_config = {key: value for key, value in log_config.items() if value is not None}
    log_config.update(overrides)

    _logger_service = LoggerService(log_config)
    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    """Get a named logger"""
    if _logger_service is None:
        setup_logging()

    return _logger_service.get_logger(name)


def cleanup_logging():
    """Clean up logging resources"""
    global _logger_service

    if _logger_service:
        _logger_service.cleanup()
        _logger_service = None
