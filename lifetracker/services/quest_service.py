"""
Quest management service.
Handles quest CRUD, completion, skipping, progressive counters and streaks.
Every mutation reloads the quests domain, changes it in place and saves the
whole domain back.
"""
import math
import logging
from typing import Callable, Dict, List, Optional, Union

from lifetracker.models import Quest, DailyLogEntry
from lifetracker.schemas import QuestCreate, QuestUpdate, parse_input
from lifetracker.repositories.quest_repository import QuestRepository
from lifetracker.repositories.log_repository import LogRepository
from lifetracker.repositories.settings_repository import SettingsRepository
from lifetracker.services.date_service import DateService
from lifetracker.constants import QUEST_TYPES, DEFAULT_PROGRESS_UNIT
from lifetracker.exceptions import ValidationException
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.quests")

# Patch fields that may not be cleared
_REQUIRED_FIELDS = ("title", "is_progressive", "progress_target")


class QuestService:
    """Service for quest management"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.quest_repo = QuestRepository()
        self.log_repo = LogRepository()
        self.settings_repo = SettingsRepository()
        self.date_service = DateService()

    # Queries

    def get_quest(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        """Get quest by ID"""
        return self.quest_repo.get_by_id(self.store, quest_type, quest_id)

    def get_quests(self, quest_type: str) -> List[Quest]:
        return self.quest_repo.get_by_type(self.store, quest_type)

    def get_all_quests(self) -> Dict[str, List[Quest]]:
        return self.quest_repo.get_all(self.store)

    def is_quest_completed_on_date(self, quest: Quest, day: Optional[str] = None) -> bool:
        return quest.is_completed_on(day or self.date_service.today_str())

    def get_filtered_quests_for_today(self, energy_level: Optional[str] = None) -> List[Quest]:
        """
        Quests still open today, filtered by energy level.

        Completed-today and skipped-today quests are left out. With no energy
        level every open quest is returned.
        """
        today = self.date_service.today_str()
        energy_categories = self.settings_repo.get(self.store).energy_categories

        partitions = self.get_all_quests()
        filtered = []
        for quest_type in QUEST_TYPES:
            for quest in partitions[quest_type]:
                if quest.is_completed_on(today) or quest.is_skipped_on(today):
                    continue
                if energy_level is None or quest.matches_energy(energy_level, energy_categories):
                    filtered.append(quest)
        return filtered

    # CRUD

    def add_quest(self, quest_type: str, draft: Union[QuestCreate, dict]) -> Quest:
        """
        Create a new quest.

        Raises:
            ValidationException: If the type or draft is invalid
        """
        self.quest_repo.check_type(quest_type)
        data = parse_input(QuestCreate, draft)

        quest = Quest(
            id=self.store.generate_id(),
            quest_type=quest_type,
            title=data.title,
            time_slot=data.time_slot,
            category=data.category,
            energy_required=data.energy_required,
            is_progressive=data.is_progressive,
            progress_target=data.progress_target,
            progress_unit=data.progress_unit if data.is_progressive else None,
            completed=False,
            created=self.date_service.today_str(),
            streak=0,
        )

        partitions = self.quest_repo.get_all(self.store)
        partitions[quest_type].append(quest)
        self.quest_repo.save_all(self.store, partitions)

        logger.info(f"Added {quest_type} quest {quest.id}: {quest.title}")
        return quest

    def update_quest(
        self,
        quest_type: str,
        quest_id: int,
        patch: Union[QuestUpdate, dict]
    ) -> Optional[Quest]:
        """
        Update an existing quest, None if it does not exist.

        Lowering a progressive target to today's progress completes the quest
        the same way reaching the target does.
        """
        self.quest_repo.check_type(quest_type)
        patch = parse_input(QuestUpdate, patch)

        today = self.date_service.today_str()
        partitions = self.quest_repo.get_all(self.store)
        quest = self.quest_repo.find(partitions, quest_type, quest_id)
        if not quest:
            return None

        was_completed = quest.completed

        # Apply updates
        update_data = patch.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if value is None and key in _REQUIRED_FIELDS:
                continue
            setattr(quest, key, value)

        if quest.is_progressive and not quest.progress_unit:
            quest.progress_unit = DEFAULT_PROGRESS_UNIT

        reached_target = (
            quest.is_progressive
            and quest.progress_last_date == today
            and quest.completed
            and not was_completed
        )
        if reached_target:
            self._update_quest_streak(quest, today)
            quest.completed_date = today

        self.quest_repo.save_all(self.store, partitions)

        if quest.completed != was_completed:
            self.update_daily_log()
        if reached_target:
            self.update_global_streak()

        logger.info(f"Updated {quest_type} quest {quest_id}: {sorted(update_data)}")
        return quest

    def delete_quest(self, quest_type: str, quest_id: int) -> bool:
        """Delete a quest, False if it does not exist"""
        self.quest_repo.check_type(quest_type)
        partitions = self.quest_repo.get_all(self.store)
        quest = self.quest_repo.find(partitions, quest_type, quest_id)
        if not quest:
            return False

        partitions[quest_type].remove(quest)
        self.quest_repo.save_all(self.store, partitions)
        logger.info(f"Deleted {quest_type} quest {quest_id}")
        return True

    # Completion

    def complete_quest(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        """
        Complete a binary quest for today.

        Updates the quest's streak from its previous completion date, then the
        daily log and the global streak.

        Returns:
            Completed quest, or None if not found or progressive
        """
        self.quest_repo.check_type(quest_type)
        today = self.date_service.today_str()
        partitions = self.quest_repo.get_all(self.store)
        quest = self.quest_repo.find(partitions, quest_type, quest_id)
        if not quest:
            return None
        if quest.is_progressive:
            logger.warning(f"Quest {quest_id} is progressive, complete it through progress updates")
            return None

        # Prevent duplicate completions
        if quest.is_completed_on(today):
            return quest

        self._update_quest_streak(quest, today)
        quest.marked_completed = True
        quest.completed_date = today
        self.quest_repo.save_all(self.store, partitions)

        self.update_daily_log()
        self.update_global_streak()

        logger.info(f"Completed {quest_type} quest {quest_id} (streak {quest.streak})")
        return quest

    def uncomplete_quest(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        """
        Mark a binary quest incomplete.

        The streak is left as it is: a completion that is undone does not
        take back the increment it caused.
        """
        self.quest_repo.check_type(quest_type)
        partitions = self.quest_repo.get_all(self.store)
        quest = self.quest_repo.find(partitions, quest_type, quest_id)
        if not quest or quest.is_progressive:
            return None

        quest.marked_completed = False
        quest.completed_date = None
        self.quest_repo.save_all(self.store, partitions)

        self.update_daily_log()

        logger.info(f"Uncompleted {quest_type} quest {quest_id}")
        return quest

    def skip_quest(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        """Skip a quest for today without touching its streak"""
        return self._set_skipped(quest_type, quest_id, self.date_service.today_str())

    def unskip_quest(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        return self._set_skipped(quest_type, quest_id, None)

    def _set_skipped(self, quest_type: str, quest_id: int, skipped_date: Optional[str]) -> Optional[Quest]:
        self.quest_repo.check_type(quest_type)
        partitions = self.quest_repo.get_all(self.store)
        quest = self.quest_repo.find(partitions, quest_type, quest_id)
        if not quest:
            return None

        quest.skipped_date = skipped_date
        self.quest_repo.save_all(self.store, partitions)
        self.update_daily_log()
        return quest

    # Progressive quests

    def increment_quest_progress(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        """Add one unit; reaching the target completes the quest"""
        def increment(quest: Quest) -> None:
            quest.progress_current = quest.progress_current + 1

        return self._apply_progress(quest_type, quest_id, increment)

    def decrement_quest_progress(self, quest_type: str, quest_id: int) -> Optional[Quest]:
        """Remove one unit (never below zero)"""
        def decrement(quest: Quest) -> None:
            quest.progress_current = max(0, quest.progress_current - 1)

        return self._apply_progress(quest_type, quest_id, decrement)

    def set_quest_progress(self, quest_type: str, quest_id: int, value: Union[int, float]) -> Optional[Quest]:
        """
        Set progress to a value clamped to [0, progress_target].

        Infinite values clamp to the nearest bound.

        Raises:
            ValidationException: If value is not a number or is NaN
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationException("value", f"must be a number, got {value!r}")
        if isinstance(value, float) and math.isnan(value):
            raise ValidationException("value", "must be a number, got NaN")

        def set_value(quest: Quest) -> None:
            quest.progress_current = int(max(0, min(value, quest.progress_target)))

        return self._apply_progress(quest_type, quest_id, set_value)

    def _apply_progress(
        self,
        quest_type: str,
        quest_id: int,
        mutate: Callable[[Quest], None]
    ) -> Optional[Quest]:
        """
        Apply a progress change to a progressive quest.

        Progress left over from an earlier day is zeroed first. A transition
        to completed stamps completed_date and updates the streaks.
        """
        self.quest_repo.check_type(quest_type)
        today = self.date_service.today_str()
        partitions = self.quest_repo.get_all(self.store)
        quest = self.quest_repo.find(partitions, quest_type, quest_id)
        if not quest or not quest.is_progressive:
            return None

        if quest.progress_last_date != today:
            quest.progress_current = 0
            quest.progress_last_date = today

        was_completed = quest.completed
        mutate(quest)
        now_completed = quest.completed

        if now_completed and not was_completed:
            self._update_quest_streak(quest, today)
            quest.completed_date = today

        self.quest_repo.save_all(self.store, partitions)

        if now_completed != was_completed:
            self.update_daily_log()
            if now_completed:
                self.update_global_streak()
                logger.info(f"Completed progressive quest {quest_id} ({quest.progress_current}/{quest.progress_target})")

        return quest

    def reset_daily_progress(self) -> int:
        """
        Zero progress of every progressive quest not touched today.

        Returns:
            Number of quests reset
        """
        today = self.date_service.today_str()
        partitions = self.quest_repo.get_all(self.store)
        reset_count = 0

        for quest_type in QUEST_TYPES:
            for quest in partitions[quest_type]:
                if quest.is_progressive and quest.progress_last_date != today:
                    quest.progress_current = 0
                    quest.progress_last_date = today
                    reset_count += 1

        if reset_count:
            self.quest_repo.save_all(self.store, partitions)
            logger.info(f"Reset daily progress of {reset_count} quest(s)")
        return reset_count

    # Streaks and daily log

    def _update_quest_streak(self, quest: Quest, today: str) -> None:
        """Update quest streak from its previous completion date"""
        previous = quest.completed_date
        if not previous:
            quest.streak = 1
        elif previous == self.date_service.yesterday_str():
            quest.streak = (quest.streak or 0) + 1
        elif previous != today:
            # Missed at least one day - reset streak
            quest.streak = 1

    def update_global_streak(self) -> None:
        """Advance the cross-quest streak at most once per day"""
        settings = self.settings_repo.get(self.store)
        streak = settings.streak_data
        today = self.date_service.today_str()

        if streak.last_completed_date == today:
            return

        if streak.last_completed_date == self.date_service.yesterday_str():
            streak.current = streak.current + 1
        else:
            streak.current = 1

        streak.longest = max(streak.longest, streak.current)
        streak.last_completed_date = today
        self.settings_repo.update(self.store, settings)

    def update_daily_log(self) -> DailyLogEntry:
        """Recount today's eligible and completed quests into the daily log"""
        today = self.date_service.today_str()
        partitions = self.quest_repo.get_all(self.store)

        total = 0
        completed = 0
        for quest_type in QUEST_TYPES:
            for quest in partitions[quest_type]:
                if quest.is_skipped_on(today):
                    continue
                total += 1
                if quest.is_completed_on(today):
                    completed += 1

        entry = self.log_repo.get_day(self.store, today) or DailyLogEntry()
        entry.quests_total = total
        entry.quests_completed = completed
        self.log_repo.save_day(self.store, today, entry)
        return entry
