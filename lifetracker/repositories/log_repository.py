"""
Daily log repository - Data access layer for the logs domain.
Entries are keyed by YYYY-MM-DD date strings.
"""
from typing import Dict, Optional

from pydantic import ValidationError

from lifetracker.constants import DOMAIN_LOGS, LOGS_KEY
from lifetracker.exceptions import StorageException
from lifetracker.models import DailyLogEntry
from lifetracker.store import DocumentStore


class LogRepository:
    """Repository for DailyLogEntry data access"""

    @staticmethod
    def get_all(store: DocumentStore) -> Dict[str, DailyLogEntry]:
        document = store.load(DOMAIN_LOGS)
        logs = {}
        for day, record in (document.get(LOGS_KEY) or {}).items():
            try:
                logs[day] = DailyLogEntry.model_validate(record or {})
            except ValidationError as e:
                raise StorageException("load", f"invalid log entry for {day}: {e}") from e
        return logs

    @staticmethod
    def save_all(store: DocumentStore, logs: Dict[str, DailyLogEntry]) -> None:
        document = store.load(DOMAIN_LOGS)
        document[LOGS_KEY] = {day: entry.to_document() for day, entry in logs.items()}
        store.save(DOMAIN_LOGS, document)

    @staticmethod
    def get_day(store: DocumentStore, day: str) -> Optional[DailyLogEntry]:
        return LogRepository.get_all(store).get(day)

    @staticmethod
    def save_day(store: DocumentStore, day: str, entry: DailyLogEntry) -> None:
        """Replace one day's entry"""
        logs = LogRepository.get_all(store)
        logs[day] = entry
        LogRepository.save_all(store, logs)

    @staticmethod
    def get_range(store: DocumentStore, start_date: str, end_date: str) -> Dict[str, DailyLogEntry]:
        """Entries with start_date <= date <= end_date (zero-padded dates compare as strings)"""
        return {
            day: entry
            for day, entry in LogRepository.get_all(store).items()
            if start_date <= day <= end_date
        }

    @staticmethod
    def completed_count(logs: Dict[str, DailyLogEntry], day: str) -> int:
        entry = logs.get(day)
        return entry.quests_completed if entry else 0
