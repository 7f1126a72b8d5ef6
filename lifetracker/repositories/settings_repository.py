"""
Settings repository - Data access layer for the settings domain.
The settings file also carries the persistent notes and the id counter.
"""
from typing import Optional

from lifetracker.constants import DOMAIN_SETTINGS, PERSISTENT_NOTES_KEY, LAST_ID_KEY
from lifetracker.models import UserSettings
from lifetracker.store import DocumentStore


class SettingsRepository:
    """Repository for UserSettings data access"""

    @staticmethod
    def get(store: DocumentStore) -> UserSettings:
        """
        Get settings (defaults fill any missing key).

        Returns:
            UserSettings object
        """
        return UserSettings.model_validate(store.load(DOMAIN_SETTINGS))

    @staticmethod
    def update(store: DocumentStore, settings: UserSettings) -> UserSettings:
        """
        Save settings, keeping the other keys of the settings file.

        The id counter is never moved backwards by a stale settings object.
        """
        document = store.load(DOMAIN_SETTINGS)
        current_last_id = int(document.get(LAST_ID_KEY) or 0)
        document.update(settings.to_document())
        document[LAST_ID_KEY] = max(current_last_id, settings.last_generated_id)
        store.save(DOMAIN_SETTINGS, document)
        return settings

    @staticmethod
    def replace(store: DocumentStore, settings: UserSettings, keep_counter: bool = True) -> None:
        """
        Overwrite settings (restore path).

        With keep_counter the id counter only moves forward, since quests and
        reminders already on disk keep their ids.
        """
        document = store.load(DOMAIN_SETTINGS)
        current_last_id = int(document.get(LAST_ID_KEY) or 0)
        document.update(settings.to_document())
        if keep_counter:
            document[LAST_ID_KEY] = max(current_last_id, settings.last_generated_id)
        store.save(DOMAIN_SETTINGS, document)

    @staticmethod
    def get_persistent_notes(store: DocumentStore) -> Optional[str]:
        return store.load(DOMAIN_SETTINGS).get(PERSISTENT_NOTES_KEY)

    @staticmethod
    def save_persistent_notes(store: DocumentStore, text: Optional[str]) -> None:
        document = store.load(DOMAIN_SETTINGS)
        document[PERSISTENT_NOTES_KEY] = text
        store.save(DOMAIN_SETTINGS, document)
