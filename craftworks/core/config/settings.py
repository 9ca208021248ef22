"""
Settings - Application configuration using dataclasses.

Environment variables:
- DB_PATH: SQLite database path
- CACHE_BACKENDS: ordered cache backend candidates, ';' separated (redis, session, memory)
- REDIS_URL: Redis connection URL
- REDIS_CONNECT_TIMEOUT: Redis connect timeout in seconds
- CACHE_NAMESPACE: Project-wide cache key prefix
- CACHE_TIMEOUT_SHORT / CACHE_TIMEOUT_LONG / CACHE_TIMEOUT_PERSISTENT: TTLs in seconds
- CACHE_REQUIRED: Fail schema loading when no cache backend is usable
- DEBUG_CACHE: Log cache failures as warnings
- LONG_DATA_CHUNK_SIZE: Blob upload chunk size in bytes
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
- LOG_JSON_FORMAT: Emit JSON logs
"""

import os
from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field


class CacheBackend(str, Enum):
    """Cache backend options."""
    REDIS = "redis"
    SESSION = "session"
    MEMORY = "memory"


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_backends() -> List[CacheBackend]:
    raw = os.getenv("CACHE_BACKENDS", "redis;session")
    return [CacheBackend(name.strip().lower()) for name in raw.split(";") if name.strip()]


@dataclass
class Settings:
    """Application settings from environment."""

    # Store
    db_path: str = field(
        default_factory=lambda: os.getenv("DB_PATH", "data/craftworks.db")
    )

    # Cache
    cache_backends: List[CacheBackend] = field(default_factory=_env_backends)
    redis_url: str = field(
        default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0")
    )
    redis_connect_timeout: float = field(
        default_factory=lambda: float(os.getenv("REDIS_CONNECT_TIMEOUT", "1.0"))
    )
    cache_namespace: Optional[str] = field(
        default_factory=lambda: os.getenv("CACHE_NAMESPACE") or None
    )
    cache_timeout_short: int = field(
        default_factory=lambda: int(os.getenv("CACHE_TIMEOUT_SHORT", "60"))
    )
    cache_timeout_long: int = field(
        default_factory=lambda: int(os.getenv("CACHE_TIMEOUT_LONG", "3600"))
    )
    cache_timeout_persistent: int = field(
        default_factory=lambda: int(os.getenv("CACHE_TIMEOUT_PERSISTENT", "0"))
    )
    cache_required: bool = field(default_factory=lambda: _env_flag("CACHE_REQUIRED"))
    debug_cache: bool = field(default_factory=lambda: _env_flag("DEBUG_CACHE"))

    # Writes
    long_data_chunk_size: int = field(
        default_factory=lambda: int(os.getenv("LONG_DATA_CHUNK_SIZE", str(1024 * 1024)))
    )

    # Logging
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    )
    log_json: bool = field(default_factory=lambda: _env_flag("LOG_JSON_FORMAT"))


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the settings singleton so the next call re-reads the environment."""
    global _settings
    _settings = None
