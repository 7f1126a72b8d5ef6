"""
Document store.
One JSON file per logical domain (settings, quests, logs, reminders), loaded
lazily, cached until invalidated and written through on every save.
"""
import os
import json
import logging
from typing import Any, Dict, Optional

from lifetracker.constants import (
    DOMAINS, DOMAIN_FILES, DOMAIN_SETTINGS, DOMAIN_QUESTS, DOMAIN_LOGS, DOMAIN_REMINDERS,
    QUEST_TYPES, LOGS_KEY, REMINDERS_KEY, PERSISTENT_NOTES_KEY, LAST_ID_KEY, TEMP_EXTENSION
)
from lifetracker.exceptions import StorageException
from lifetracker.models import UserSettings

logger = logging.getLogger("lifetracker.store")

Document = Dict[str, Any]


def default_document(domain: str) -> Document:
    """Fresh document holding the defaults of a domain"""
    if domain == DOMAIN_SETTINGS:
        document = UserSettings().to_document()
        document[PERSISTENT_NOTES_KEY] = None
        return document
    if domain == DOMAIN_QUESTS:
        return {quest_type: [] for quest_type in QUEST_TYPES}
    if domain == DOMAIN_LOGS:
        return {LOGS_KEY: {}}
    if domain == DOMAIN_REMINDERS:
        return {REMINDERS_KEY: []}
    raise ValueError(f"Unknown domain: {domain}")


class DocumentStore:
    """Per-domain document persistence with an explicit cache"""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._cache: Dict[str, Document] = {}

    def path_for(self, domain: str) -> str:
        if domain not in DOMAIN_FILES:
            raise ValueError(f"Unknown domain: {domain}")
        return os.path.join(self.data_dir, DOMAIN_FILES[domain])

    def load(self, domain: str) -> Document:
        """
        Get a domain document, reading it from disk on first access.

        A missing file means defaults. An unreadable file is logged and
        treated as missing; it stays on disk until the next successful save.
        """
        if domain in self._cache:
            return self._cache[domain]

        path = self.path_for(domain)
        document: Document = {}

        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    document = loaded
                else:
                    logger.error(f"Ignoring {path}: expected an object, got {type(loaded).__name__}")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to read {path}, using defaults: {e}")

        for key, value in default_document(domain).items():
            if document.get(key) is None:
                document[key] = value

        self._cache[domain] = document
        return document

    def save(self, domain: str, document: Document) -> None:
        """
        Cache the document and write it through to disk.

        The cache keeps the new value even when the write fails.

        Raises:
            StorageException: If the file could not be written
        """
        self.path_for(domain)
        self._cache[domain] = document
        self._write(domain, document)

    def flush(self, domain: str) -> None:
        if domain in self._cache:
            self._write(domain, self._cache[domain])

    def flush_all(self) -> None:
        """Write every cached domain to disk"""
        for domain in DOMAINS:
            self.flush(domain)

    def invalidate(self, domain: Optional[str] = None) -> None:
        """Drop one cached domain, or all of them"""
        if domain is None:
            self._cache.clear()
        else:
            self._cache.pop(domain, None)

    def is_cached(self, domain: str) -> bool:
        return domain in self._cache

    def generate_id(self) -> int:
        """
        Next id from the persistent counter.

        The counter is saved before the id is returned, so ids are never
        handed out twice, even across restarts.
        """
        settings = self.load(DOMAIN_SETTINGS)
        new_id = int(settings.get(LAST_ID_KEY) or 0) + 1
        settings[LAST_ID_KEY] = new_id
        self.save(DOMAIN_SETTINGS, settings)
        return new_id

    def _write(self, domain: str, document: Document) -> None:
        """Write via a temp file and rename so a crash never leaves half a file"""
        path = self.path_for(domain)
        temp_path = path + TEMP_EXTENSION
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True, ensure_ascii=False)
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save {domain} to {path}: {e}")
            try:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
            except OSError as cleanup_error:
                logger.error(f"Failed to remove temp file {temp_path}: {cleanup_error}")
            raise StorageException("save", f"{domain}: {e}") from e
