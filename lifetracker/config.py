"""
Environment-driven configuration.
Resolves the data, backup and log directories, falling back to local
directories when the configured location is not writable.
"""
import os
import logging
from pathlib import Path

from lifetracker.constants import (
    BACKUP_DIR_NAME, DEFAULT_AUTO_BACKUP_KEEP,
    DEFAULT_LOG_DIRECTORY_DEV, DEFAULT_LOG_FILE
)

logger = logging.getLogger("lifetracker.config")

DEFAULT_DATA_DIRECTORY = os.path.join(os.path.expanduser("~"), ".lifetracker")
FALLBACK_DATA_DIRECTORY = "./lifetracker_data"
FALLBACK_BACKUP_DIRECTORY = "./lifetracker_backups"


def _ensure_dir(path: str, fallback: str) -> str:
    """Create directory, or the fallback one if permission is denied"""
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
        return path
    except PermissionError:
        logger.warning(f"No permission for {path}, falling back to {fallback}")
        Path(fallback).mkdir(parents=True, exist_ok=True)
        return fallback


def get_data_dir() -> str:
    """Directory holding the per-domain data files"""
    data_dir = os.getenv("LIFETRACKER_DATA_DIR", DEFAULT_DATA_DIRECTORY)
    return _ensure_dir(data_dir, FALLBACK_DATA_DIRECTORY)


def get_backup_dir(data_dir: str) -> str:
    """Backup directory (defaults to a subdirectory of the data directory)"""
    backup_dir = os.getenv("LIFETRACKER_BACKUP_DIR", os.path.join(data_dir, BACKUP_DIR_NAME))
    return _ensure_dir(backup_dir, FALLBACK_BACKUP_DIRECTORY)


def get_log_path() -> Path:
    """Log file path"""
    log_dir = os.getenv("LIFETRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_DEV)
    log_file = os.getenv("LIFETRACKER_LOG_FILE", DEFAULT_LOG_FILE)
    log_dir = _ensure_dir(log_dir, DEFAULT_LOG_DIRECTORY_DEV)
    return Path(log_dir) / log_file


def get_auto_backup_keep() -> int:
    """How many automatic backups to keep"""
    try:
        return max(1, int(os.getenv("LIFETRACKER_AUTO_BACKUP_KEEP", DEFAULT_AUTO_BACKUP_KEEP)))
    except ValueError:
        return DEFAULT_AUTO_BACKUP_KEEP
