"""
Reminder repository - Data access layer for the reminders domain.
"""
from typing import List, Optional

from pydantic import ValidationError

from lifetracker.constants import DOMAIN_REMINDERS, REMINDERS_KEY
from lifetracker.exceptions import StorageException
from lifetracker.models import Reminder
from lifetracker.store import DocumentStore


class ReminderRepository:
    """Repository for Reminder data access"""

    @staticmethod
    def get_all(store: DocumentStore) -> List[Reminder]:
        document = store.load(DOMAIN_REMINDERS)
        try:
            return [Reminder.model_validate(r) for r in document.get(REMINDERS_KEY) or []]
        except ValidationError as e:
            raise StorageException("load", f"invalid reminder: {e}") from e

    @staticmethod
    def get_by_id(store: DocumentStore, reminder_id: int) -> Optional[Reminder]:
        for reminder in ReminderRepository.get_all(store):
            if reminder.id == reminder_id:
                return reminder
        return None

    @staticmethod
    def save_all(store: DocumentStore, reminders: List[Reminder]) -> None:
        document = store.load(DOMAIN_REMINDERS)
        document[REMINDERS_KEY] = [r.to_document() for r in reminders]
        store.save(DOMAIN_REMINDERS, document)
