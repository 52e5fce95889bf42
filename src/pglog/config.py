"""
Configuration module for pglog
Centralizes defaults, environment overrides and validation
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional, Union

from pglog.errors import ConfigError
from pglog.models.settings import SpoolSettings, build_settings


def _safe_int_env(name: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Safely parse integer environment variable with bounds.
    Falls back to default on invalid values.
    """
    logger_local = logging.getLogger(__name__)
    try:
        value = int(os.getenv(name, str(default)))
        if min_val is not None:
            value = max(min_val, value)
        if max_val is not None:
            value = min(max_val, value)
        return value
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


class Config:
    """
    pglog configuration with:
    - Environment variable support
    - Safe defaults
    - Validation (ConfigError before anything takes effect)
    - Optional JSON file overrides
    """

    # ========== Spool Settings ==========
    SPOOL = {
        'directory': 'pglog_spool',
        'min_messages': 'warning',
        'min_error_statement': 'error',
        'error_verbosity': 'default',
        'file_mode': 0o600,
    }

    # ========== Scan Settings ==========
    SCAN = {
        'max_log_files': 16,
        'segment_suffix': '.dat',
    }

    # ========== Logging Settings ==========
    LOGGING = {
        'level': os.getenv('PGLOG_LOG_LEVEL', 'INFO'),
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'max_bytes': 5 * 1024 * 1024,
        'backup_count': 3,
        'log_dir': os.getenv('PGLOG_LOG_DIR', './logs'),
        'json_logs': False,
    }

    @classmethod
    def get_spool_config(cls) -> dict:
        """Spool options with environment overrides applied (not yet validated)"""
        spool = dict(cls.SPOOL)
        for key, env_name in (
            ('directory', 'PGLOG_DIRECTORY'),
            ('min_messages', 'PGLOG_MIN_MESSAGES'),
            ('min_error_statement', 'PGLOG_MIN_ERROR_STATEMENT'),
            ('error_verbosity', 'PGLOG_ERROR_VERBOSITY'),
            ('file_mode', 'PGLOG_FILE_MODE'),
        ):
            value = os.getenv(env_name)
            if value is not None:
                spool[key] = value
        return spool

    @classmethod
    def get_scan_config(cls) -> dict:
        """Scan options with environment overrides applied"""
        return {
            'max_log_files': _safe_int_env(
                'PGLOG_MAX_LOG_FILES', cls.SCAN['max_log_files'], 1, 4096
            ),
            'segment_suffix': cls.SCAN['segment_suffix'],
        }

    def __init__(self, config_file: Optional[Union[str, Path]] = None, validate: bool = True):
        """
        Initialize configuration.

        Args:
            config_file: Optional path to JSON config file
            validate: Whether to validate configuration on init

        Raises:
            ConfigError: If the file or any value is invalid
        """
        self._lock = threading.RLock()
        self.config_file = config_file
        self._custom_settings: dict[str, dict[str, Any]] = {}

        if config_file:
            self.load_from_file(config_file)

        if validate:
            self.validate()

    def _section(self, name: str, base: dict) -> dict:
        with self._lock:
            overrides = dict(self._custom_settings.get(name, {}))
        return {**base, **overrides}

    @property
    def spool(self) -> dict:
        return self._section('spool', self.get_spool_config())

    @property
    def scan(self) -> dict:
        return self._section('scan', self.get_scan_config())

    @property
    def logging_config(self) -> dict:
        return self._section('logging', self.LOGGING)

    def spool_settings(self) -> SpoolSettings:
        """
        Validated spool settings.

        Raises:
            ConfigError: If any spool option is rejected
        """
        return build_settings(**self.spool)

    def validate(self):
        """
        Validate all configuration values

        Raises:
            ConfigError: If configuration is invalid
        """
        errors = []

        try:
            self.spool_settings()
        except ConfigError as e:
            errors.append(str(e))

        scan = self.scan
        if not isinstance(scan['max_log_files'], int) or scan['max_log_files'] < 1:
            errors.append("max_log_files must be a positive integer")
        if not str(scan['segment_suffix']).startswith('.'):
            errors.append(f"segment_suffix must start with '.': {scan['segment_suffix']!r}")

        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if str(self.logging_config['level']).upper() not in valid_levels:
            errors.append(f"Invalid log level: {self.logging_config['level']}")

        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(errors))

    def load_from_file(self, filepath: Union[str, Path]):
        """
        Load configuration overrides from a JSON file.

        The file holds one object per section: {"spool": {...}, "scan": {...}, "logging": {...}}.

        Args:
            filepath: Path to JSON configuration file

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        filepath = Path(filepath)
        logger_local = logging.getLogger(__name__)

        if not filepath.exists():
            logger_local.warning(f"Config file not found: {filepath}")
            return

        try:
            with open(filepath, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error loading config file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must hold a JSON object: {filepath}")

        sections = {}
        for section in ('spool', 'scan', 'logging'):
            values = data.get(section, {})
            if not isinstance(values, dict):
                raise ConfigError(f"Config section '{section}' must be an object")
            sections[section] = values

        with self._lock:
            self._custom_settings = sections

        logger_local.info(f"Loaded configuration from {filepath}")
