"""
Backup service.
Versioned JSON snapshots of every domain: export with an atomic rename,
validation, restore, and a daily auto-backup with rolling retention.

Public operations return (ok, message) tuples; failures are logged and
reported, never raised.
"""
import os
import re
import copy
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from lifetracker.models import Quest, DailyLogEntry, Reminder, UserSettings
from lifetracker.repositories.settings_repository import SettingsRepository
from lifetracker.services.date_service import DateService
from lifetracker.constants import (
    BACKUP_VERSION, BACKUP_FILE_PREFIX, MANUAL_BACKUP_PREFIX, AUTO_BACKUP_PREFIX,
    BACKUP_EXTENSION, TEMP_EXTENSION, DEFAULT_AUTO_BACKUP_KEEP, DATETIME_FORMAT,
    DOMAIN_QUESTS, DOMAIN_LOGS, DOMAIN_REMINDERS, QUEST_TYPES, LOGS_KEY, REMINDERS_KEY
)
from lifetracker.exceptions import BackupException, SchemaException, StorageException
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.backup")

AUTO_BACKUP_PATTERN = re.compile(r"^lifetracker_auto_\d+\.json$")

Result = Tuple[bool, Optional[str]]


class BackupService:
    """Service for backup export, import and retention"""

    def __init__(self, store: DocumentStore, backup_dir: str):
        self.store = store
        self.backup_dir = backup_dir
        self.settings_repo = SettingsRepository()
        self.date_service = DateService()

    # Directory and path helpers

    def get_backup_dir(self) -> str:
        return self.backup_dir

    def ensure_backup_dir(self) -> bool:
        try:
            Path(self.backup_dir).mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"Failed to create backup directory {self.backup_dir}: {e}")
            return False

    @staticmethod
    def sanitize_filename(filename: Optional[str]) -> Optional[str]:
        """
        Make a user-supplied filename safe to place in the backup directory.

        Path separators and ".." become "_" and a .json extension is forced.

        Returns:
            Sanitized filename, or None if nothing usable is left
        """
        if not filename:
            return None
        sanitized = re.sub(r"[/\\]", "_", filename)
        sanitized = sanitized.replace("..", "_")
        if not sanitized.endswith(BACKUP_EXTENSION):
            sanitized = sanitized + BACKUP_EXTENSION
        if sanitized == BACKUP_EXTENSION:
            return None
        return sanitized

    def is_valid_backup_path(self, filepath: Optional[str]) -> bool:
        """Path must lie directly under the backup directory, with no ".." after it"""
        if not filepath:
            return False
        prefix = self.backup_dir.rstrip("/") + "/"
        if not filepath.startswith(prefix):
            return False
        remaining = filepath[len(prefix):]
        return bool(remaining) and ".." not in remaining

    # Snapshot

    def create_backup(self) -> Dict[str, Any]:
        """
        Snapshot every domain.

        All cached domains are flushed first so the snapshot matches the disk.
        """
        self.store.flush_all()
        now = self.date_service.now()

        settings = self.settings_repo.get(self.store)
        return {
            "version": BACKUP_VERSION,
            "created_at": now.strftime(DATETIME_FORMAT),
            "timestamp": int(now.timestamp()),
            "data": copy.deepcopy({
                "settings": settings.to_document(),
                "persistent_notes": self.settings_repo.get_persistent_notes(self.store),
                "quests": {
                    quest_type: list(self.store.load(DOMAIN_QUESTS).get(quest_type) or [])
                    for quest_type in QUEST_TYPES
                },
                "logs": dict(self.store.load(DOMAIN_LOGS).get(LOGS_KEY) or {}),
                "reminders": list(self.store.load(DOMAIN_REMINDERS).get(REMINDERS_KEY) or []),
            }),
        }

    def _check_structure(self, backup: Any) -> None:
        """
        Raises:
            SchemaException: Describing the first structural problem found
        """
        if not isinstance(backup, dict):
            raise SchemaException("Invalid backup data")

        version = backup.get("version")
        if isinstance(version, bool) or not isinstance(version, (int, float)):
            raise SchemaException("Backup version not found or invalid")
        if version > BACKUP_VERSION:
            raise SchemaException(f"Backup is from a newer version ({version} > {BACKUP_VERSION})")

        data = backup.get("data")
        if not isinstance(data, dict):
            raise SchemaException("No data found in backup")

        settings = data.get("settings")
        if settings is not None:
            if not isinstance(settings, dict):
                raise SchemaException("Invalid settings format")
            for key in ("energy_categories", "time_slots", "quest_categories", "quotes"):
                if settings.get(key) is not None and not isinstance(settings[key], list):
                    raise SchemaException(f"Invalid {key} format")
            self._check_record(UserSettings, settings, "settings")

        notes = data.get("persistent_notes")
        if notes is not None and not isinstance(notes, str):
            raise SchemaException("Invalid persistent_notes format")

        quests = data.get("quests")
        if quests is not None:
            if not isinstance(quests, dict):
                raise SchemaException("Invalid quests format")
            for quest_type in QUEST_TYPES:
                records = quests.get(quest_type)
                if records is None:
                    continue
                if not isinstance(records, list):
                    raise SchemaException(f"Invalid {quest_type} quests format")
                for index, record in enumerate(records):
                    self._check_record(Quest, record, f"{quest_type} quest #{index}")

        logs = data.get("logs")
        if logs is not None:
            if not isinstance(logs, dict):
                raise SchemaException("Invalid logs format")
            for day, record in logs.items():
                self._check_record(DailyLogEntry, record or {}, f"log entry for {day}")

        reminders = data.get("reminders")
        if reminders is not None:
            if not isinstance(reminders, list):
                raise SchemaException("Invalid reminders format")
            for index, record in enumerate(reminders):
                self._check_record(Reminder, record, f"reminder #{index}")

    @staticmethod
    def _check_record(model, record: Any, label: str) -> None:
        """Records must load the same way the repositories load them"""
        try:
            model.model_validate(record)
        except ValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error.get("loc", ()))
            detail = f"{location}: {error.get('msg')}" if location else error.get("msg")
            raise SchemaException(f"Invalid {label} format ({detail})") from e

    def validate_backup_structure(self, backup: Any) -> Result:
        """
        Check the version, section types and every record. Every section
        is optional.

        Returns:
            (True, None) or (False, reason)
        """
        try:
            self._check_structure(backup)
        except SchemaException as e:
            logger.warning(f"Rejected backup: {e.message}")
            return False, e.message
        return True, None

    def restore_from_backup(self, backup: Any) -> Result:
        """
        Replace the domains present in a snapshot.

        Nothing is written unless the snapshot validates. Caches are dropped
        before the first write.
        """
        valid, error = self.validate_backup_structure(backup)
        if not valid:
            return False, error

        data = backup["data"]
        settings = None
        if data.get("settings") is not None:
            settings = UserSettings.model_validate(data["settings"])
        # The snapshot's id counter only fits the snapshot's own ids
        replaces_ids = data.get("quests") is not None and data.get("reminders") is not None

        self.store.invalidate()

        try:
            if settings is not None:
                self.settings_repo.replace(self.store, settings, keep_counter=not replaces_ids)

            if data.get("persistent_notes") is not None:
                self.settings_repo.save_persistent_notes(self.store, data["persistent_notes"])

            if data.get("quests") is not None:
                quests = data["quests"]
                self.store.save(DOMAIN_QUESTS, {
                    quest_type: list(quests.get(quest_type) or []) for quest_type in QUEST_TYPES
                })

            if data.get("logs") is not None:
                self.store.save(DOMAIN_LOGS, {LOGS_KEY: dict(data["logs"])})

            if data.get("reminders") is not None:
                self.store.save(DOMAIN_REMINDERS, {REMINDERS_KEY: list(data["reminders"])})
        except StorageException as e:
            logger.error(f"Restore failed: {e}")
            return False, str(e)

        logger.info(f"Restored backup created at {backup.get('created_at')}")
        return True, "Data restored successfully"

    # Files

    def _write_atomic(self, filepath: str, backup: Dict[str, Any]) -> None:
        """
        Write through a temp file renamed over the target.

        Raises:
            BackupException: If any step fails; the temp file is removed
        """
        temp_filepath = filepath + TEMP_EXTENSION
        try:
            with open(temp_filepath, "w", encoding="utf-8") as f:
                json.dump(backup, f, indent=2, sort_keys=True, ensure_ascii=False)

            if not os.path.isfile(temp_filepath):
                raise BackupException("Failed to create backup file")

            os.replace(temp_filepath, filepath)
        except (OSError, TypeError, ValueError, BackupException) as e:
            try:
                if os.path.exists(temp_filepath):
                    os.remove(temp_filepath)
            except OSError as cleanup_error:
                logger.error(f"Failed to remove temp file {temp_filepath}: {cleanup_error}")
            if isinstance(e, BackupException):
                raise
            raise BackupException(f"Failed to write backup: {e}") from e

    def export_backup_to_file(self, filename: Optional[str] = None) -> Result:
        """
        Export a snapshot to the backup directory.

        Returns:
            (True, filepath) or (False, error message)
        """
        if not self.ensure_backup_dir():
            return False, "Failed to create backup directory"

        if not filename:
            filename = f"{MANUAL_BACKUP_PREFIX}{self.date_service.now().strftime('%Y%m%d_%H%M%S')}{BACKUP_EXTENSION}"

        filename = self.sanitize_filename(filename)
        if not filename:
            return False, "Invalid filename"

        filepath = os.path.join(self.backup_dir, filename)
        try:
            backup = self.create_backup()
            self._write_atomic(filepath, backup)
        except (BackupException, StorageException) as e:
            logger.error(f"Backup export failed: {e}")
            return False, str(e)

        logger.info(f"Backup created: {filename} ({os.path.getsize(filepath)} bytes)")
        return True, filepath

    def import_backup_from_file(self, filepath: str) -> Result:
        """Restore from a file inside the backup directory"""
        if not self.is_valid_backup_path(filepath):
            logger.warning(f"Rejected backup path: {filepath}")
            return False, "Invalid backup file path"

        if not os.path.isfile(filepath):
            return False, "Backup file not found"

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                backup = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to parse backup file {filepath}: {e}")
            return False, f"Failed to parse backup file: {e}"

        if not backup:
            return False, "Backup file is empty or invalid"

        return self.restore_from_backup(backup)

    def list_backups(self) -> List[Dict[str, Any]]:
        """Backup files in the backup directory, newest first"""
        self.ensure_backup_dir()
        backups = []

        for entry in os.scandir(self.backup_dir):
            if not (entry.is_file()
                    and entry.name.startswith(BACKUP_FILE_PREFIX)
                    and entry.name.endswith(BACKUP_EXTENSION)):
                continue

            stat = entry.stat()
            created_at = None
            try:
                with open(entry.path, "r", encoding="utf-8") as f:
                    document = json.load(f)
                if isinstance(document, dict):
                    created_at = document.get("created_at")
            except (OSError, ValueError) as e:
                logger.warning(f"Unreadable backup {entry.name}: {e}")

            backups.append({
                "filename": entry.name,
                "filepath": entry.path,
                "created_at": created_at or datetime.fromtimestamp(stat.st_mtime).strftime(DATETIME_FORMAT),
                "size": stat.st_size,
            })

        backups.sort(key=lambda b: b["created_at"], reverse=True)
        return backups

    def delete_backup(self, filepath: str) -> Result:
        if not self.is_valid_backup_path(filepath):
            return False, "Invalid backup file path"
        try:
            os.remove(filepath)
        except OSError as e:
            logger.error(f"Failed to delete backup file {filepath}: {e}")
            return False, str(e)

        logger.info(f"Deleted backup file: {os.path.basename(filepath)}")
        return True, None

    # Automatic backups

    def auto_backup(self, max_keep: int = DEFAULT_AUTO_BACKUP_KEEP) -> Result:
        """
        Create today's auto-backup unless it already exists, then prune.

        Returns:
            (True, message) when a backup was created
        """
        today = self.date_service.today().strftime("%Y%m%d")
        auto_filename = f"{AUTO_BACKUP_PREFIX}{today}{BACKUP_EXTENSION}"

        self.ensure_backup_dir()
        if os.path.isfile(os.path.join(self.backup_dir, auto_filename)):
            return False, "Auto-backup already exists for today"

        ok, result = self.export_backup_to_file(auto_filename)
        if not ok:
            return False, result

        self.cleanup_auto_backups(max_keep)
        return True, f"Auto-backup created: {auto_filename}"

    def cleanup_auto_backups(self, max_keep: int = DEFAULT_AUTO_BACKUP_KEEP) -> int:
        """
        Delete the oldest auto-backups (by modification time) beyond max_keep.

        Returns:
            Number of files deleted
        """
        try:
            auto_backups = [
                entry for entry in os.scandir(self.backup_dir)
                if entry.is_file() and AUTO_BACKUP_PATTERN.match(entry.name)
            ]
        except OSError as e:
            logger.error(f"Failed to list auto-backups: {e}")
            return 0

        auto_backups.sort(key=lambda entry: entry.stat().st_mtime)

        deleted = 0
        while len(auto_backups) > max_keep:
            oldest = auto_backups.pop(0)
            try:
                os.remove(oldest.path)
                deleted += 1
                logger.info(f"Deleted old auto-backup: {oldest.name}")
            except OSError as e:
                logger.error(f"Failed to delete auto-backup {oldest.name}: {e}")
        return deleted
