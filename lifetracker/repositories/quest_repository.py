"""
Quest repository - Data access layer for the quests domain.
The domain document is partitioned by quest type; every write saves the
whole document.
"""
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from lifetracker.constants import DOMAIN_QUESTS, QUEST_TYPES
from lifetracker.exceptions import StorageException, ValidationException
from lifetracker.models import Quest
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.quests")

QuestPartitions = Dict[str, List[Quest]]


class QuestRepository:
    """Repository for Quest data access"""

    @staticmethod
    def check_type(quest_type: str) -> str:
        if quest_type not in QUEST_TYPES:
            raise ValidationException("quest_type", f"must be one of {list(QUEST_TYPES)}, got {quest_type!r}")
        return quest_type

    @staticmethod
    def get_all(store: DocumentStore) -> QuestPartitions:
        """Get all quests grouped by type"""
        document = store.load(DOMAIN_QUESTS)
        partitions: QuestPartitions = {}
        for quest_type in QUEST_TYPES:
            quests = []
            for record in document.get(quest_type) or []:
                try:
                    quest = Quest.model_validate(record)
                except ValidationError as e:
                    quest_id = record.get("id") if isinstance(record, dict) else repr(record)
                    raise StorageException("load", f"invalid {quest_type} quest {quest_id}: {e}") from e
                quest.quest_type = quest_type
                quests.append(quest)
            partitions[quest_type] = quests
        return partitions

    @staticmethod
    def get_by_type(store: DocumentStore, quest_type: str) -> List[Quest]:
        QuestRepository.check_type(quest_type)
        return QuestRepository.get_all(store)[quest_type]

    @staticmethod
    def get_by_id(store: DocumentStore, quest_type: str, quest_id: int) -> Optional[Quest]:
        """Get quest by ID within its partition"""
        for quest in QuestRepository.get_by_type(store, quest_type):
            if quest.id == quest_id:
                return quest
        return None

    @staticmethod
    def find(partitions: QuestPartitions, quest_type: str, quest_id: int) -> Optional[Quest]:
        for quest in partitions.get(quest_type, []):
            if quest.id == quest_id:
                return quest
        return None

    @staticmethod
    def save_all(store: DocumentStore, partitions: QuestPartitions) -> None:
        """Save every partition"""
        document = {
            quest_type: [quest.to_document() for quest in partitions.get(quest_type, [])]
            for quest_type in QUEST_TYPES
        }
        store.save(DOMAIN_QUESTS, document)

    @staticmethod
    def count(partitions: QuestPartitions) -> int:
        return sum(len(quests) for quests in partitions.values())
