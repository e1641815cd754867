#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - Configuration
Environment-driven configuration with validation

Version: 1.0.0
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pytz

from dailyhabit.utils.datetime_utils import get_timezone


class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SyncBackend(Enum):
    """Where per-user documents live"""
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


@dataclass
class SyncConfig:
    """Remote document store settings"""
    backend: SyncBackend = SyncBackend.MEMORY
    app_id: str = "dailyhabit"
    redis_url: str = "redis://localhost:6379/0"
    data_dir: Path = Path("data")
    serialize_writes: bool = False


@dataclass
class AnalyticsConfig:
    """Dashboard thresholds"""
    timezone: str = "UTC"
    target_rate: int = 80
    high_band: int = 80
    medium_band: int = 50


@dataclass
class ServerConfig:
    """Dashboard server settings"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug_mode: bool = False
    default_user_id: Optional[str] = None


def _flag(value: Optional[str], default: str = "false") -> bool:
    return (value or default).lower() == "true"


class TrackerConfig:
    """Main configuration object"""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self._env = os.environ if env is None else env
        self._load_config()
        self._validate_config()

    def _get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._env.get(key)
        return default if value in (None, "") else value

    def _get_int(self, key: str, default: int, errors: list) -> int:
        raw = self._get(key, str(default))
        try:
            return int(raw)
        except ValueError:
            errors.append(f"{key} must be an integer, got {raw!r}")
            return default

    def _load_config(self):
        """Read configuration from environment variables"""
        self._errors = []

        try:
            self.environment = Environment(self._get('ENVIRONMENT', 'development'))
        except ValueError:
            self._errors.append(f"ENVIRONMENT has unknown value {self._get('ENVIRONMENT')!r}")
            self.environment = Environment.DEVELOPMENT

        # Directories
        self.data_dir = Path(self._get('DATA_DIR', 'data'))
        self.export_dir = Path(self._get('EXPORT_DIR', 'exports'))
        self.log_dir = Path(self._get('LOG_DIR', 'logs'))

        # Sync
        try:
            backend = SyncBackend(self._get('SYNC_BACKEND', 'memory').lower())
        except ValueError:
            self._errors.append(f"SYNC_BACKEND must be one of memory/file/redis, got {self._get('SYNC_BACKEND')!r}")
            backend = SyncBackend.MEMORY

        self.sync = SyncConfig(
            backend=backend,
            app_id=self._get('APP_ID', 'dailyhabit'),
            redis_url=self._get('REDIS_URL', 'redis://localhost:6379/0'),
            data_dir=self.data_dir,
            serialize_writes=_flag(self._get('SYNC_SERIALIZE_WRITES')),
        )

        # Analytics
        self.analytics = AnalyticsConfig(
            timezone=self._get('DATE_TIMEZONE', 'UTC'),
            target_rate=self._get_int('TARGET_RATE', 80, self._errors),
            high_band=self._get_int('HIGH_BAND', 80, self._errors),
            medium_band=self._get_int('MEDIUM_BAND', 50, self._errors),
        )

        # Server
        self.server = ServerConfig(
            host=self._get('HOST', '0.0.0.0'),
            port=self._get_int('PORT', 8080, self._errors),
            debug_mode=_flag(self._get('DEBUG_MODE')),
            default_user_id=self._get('DEFAULT_USER_ID'),
        )

        # Logging
        try:
            self.log_level = LogLevel(self._get('LOG_LEVEL', 'INFO').upper())
        except ValueError:
            self._errors.append(f"LOG_LEVEL has unknown value {self._get('LOG_LEVEL')!r}")
            self.log_level = LogLevel.INFO
        self.log_to_file = _flag(self._get('LOG_TO_FILE'))
        self.log_format = self._get(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Validate loaded values"""
        errors = list(self._errors)

        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Port {self.server.port} is outside the allowed range (1024-65535)")

        for name in ('target_rate', 'high_band', 'medium_band'):
            value = getattr(self.analytics, name)
            if not 0 <= value <= 100:
                errors.append(f"{name.upper()} must be within 0-100, got {value}")

        if self.analytics.medium_band > self.analytics.high_band:
            errors.append("MEDIUM_BAND must not exceed HIGH_BAND")

        try:
            pytz.timezone(self.analytics.timezone)
        except pytz.UnknownTimeZoneError:
            errors.append(f"DATE_TIMEZONE {self.analytics.timezone!r} is not a known timezone")

        if "/" in self.sync.app_id:
            errors.append("APP_ID must not contain '/'")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Create the directories the configured features write to"""
        directories = [self.export_dir]
        if self.sync.backend is SyncBackend.FILE:
            directories.append(self.data_dir)
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def timezone(self) -> pytz.BaseTzInfo:
        return get_timezone(self.analytics.timezone)

    def get_logging_config(self) -> Dict[str, Any]:
        """dictConfig for the logging module"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'redis': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"dailyhabit_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return config

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration, hiding credentials"""
        redis_url = self.sync.redis_url
        if "@" in redis_url:
            scheme, _, host = redis_url.rpartition("@")
            redis_url = scheme.split("://")[0] + "://***@" + host

        return {
            'environment': self.environment.value,
            'sync': {
                'backend': self.sync.backend.value,
                'app_id': self.sync.app_id,
                'redis_url': redis_url,
                'data_dir': str(self.sync.data_dir),
                'serialize_writes': self.sync.serialize_writes
            },
            'analytics': {
                'timezone': self.analytics.timezone,
                'target_rate': self.analytics.target_rate,
                'high_band': self.analytics.high_band,
                'medium_band': self.analytics.medium_band
            },
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode,
                'default_user_id': self.server.default_user_id
            },
            'log_level': self.log_level.value
        }


def load_config(env: Optional[Mapping[str, str]] = None) -> TrackerConfig:
    """Build configuration from the process environment or a given mapping"""
    return TrackerConfig(env)


__all__ = [
    'TrackerConfig',
    'load_config',
    'Environment',
    'LogLevel',
    'SyncBackend',
    'SyncConfig',
    'AnalyticsConfig',
    'ServerConfig'
]
