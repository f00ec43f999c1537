"""
PersistBot - Core Package
=========================

Configuration, logging, error types and storage.

DESIGN:
    Core modules are singletons or global instances so every cog and
    service shares the same state:
    - get_config() returns the same Config instance
    - get_db() returns the same DatabaseManager instance
    - logger is a global TreeLogger instance
"""

from .config import (
    Config,
    ConfigValidationError,
    RestoreConfig,
    NY_TZ,
    get_config,
)

from .errors import (
    PersistError,
    TransientStoreError,
    ProfileEditRejected,
    LockAcquisitionStarvation,
)

from .logger import logger, TreeLogger

from .database import DatabaseManager, get_db


__all__ = [
    # Config
    "Config",
    "ConfigValidationError",
    "RestoreConfig",
    "NY_TZ",
    "get_config",
    # Errors
    "PersistError",
    "TransientStoreError",
    "ProfileEditRejected",
    "LockAcquisitionStarvation",
    # Logger
    "logger",
    "TreeLogger",
    # Database
    "DatabaseManager",
    "get_db",
]
