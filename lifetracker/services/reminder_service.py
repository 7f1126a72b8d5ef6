"""
Reminder service.
Reminder CRUD and the due-reminder check polled by the scheduler.
"""
import logging
from typing import List, Optional, Union

from lifetracker.models import Reminder
from lifetracker.schemas import ReminderCreate, ReminderUpdate, parse_input
from lifetracker.repositories.reminder_repository import ReminderRepository
from lifetracker.services.date_service import DateService
from lifetracker.constants import (
    DAY_ABBREVIATIONS, WEEKDAY_ABBREVIATIONS, WEEKEND_ABBREVIATIONS
)
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.reminders")


class ReminderService:
    """Service for reminder management"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.reminder_repo = ReminderRepository()
        self.date_service = DateService()

    def get_reminders(self) -> List[Reminder]:
        return self.reminder_repo.get_all(self.store)

    def get_reminder(self, reminder_id: int) -> Optional[Reminder]:
        return self.reminder_repo.get_by_id(self.store, reminder_id)

    def add_reminder(self, draft: Union[ReminderCreate, dict]) -> Reminder:
        """
        Create a new active reminder.

        Raises:
            ValidationException: If title, time, days or start date are invalid
        """
        data = parse_input(ReminderCreate, draft)

        reminder = Reminder(
            id=self.store.generate_id(),
            title=data.title,
            time=data.time,
            repeat_days=data.repeat_days,
            start_date=data.start_date,
            active=True,
            last_triggered=None,
        )

        reminders = self.reminder_repo.get_all(self.store)
        reminders.append(reminder)
        self.reminder_repo.save_all(self.store, reminders)

        logger.info(f"Added reminder {reminder.id} at {reminder.time}: {reminder.title}")
        return reminder

    def update_reminder(self, reminder_id: int, patch: Union[ReminderUpdate, dict]) -> Optional[Reminder]:
        """Update an existing reminder, None if it does not exist"""
        patch = parse_input(ReminderUpdate, patch)

        reminders = self.reminder_repo.get_all(self.store)
        reminder = next((r for r in reminders if r.id == reminder_id), None)
        if not reminder:
            return None

        update_data = patch.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if value is None and key in ("title", "time", "active"):
                continue
            if key == "repeat_days" and value is None:
                value = []
            setattr(reminder, key, value)

        self.reminder_repo.save_all(self.store, reminders)
        logger.info(f"Updated reminder {reminder_id}: {sorted(update_data)}")
        return reminder

    def delete_reminder(self, reminder_id: int) -> bool:
        reminders = self.reminder_repo.get_all(self.store)
        remaining = [r for r in reminders if r.id != reminder_id]
        if len(remaining) == len(reminders):
            return False

        self.reminder_repo.save_all(self.store, remaining)
        logger.info(f"Deleted reminder {reminder_id}")
        return True

    def toggle_reminder(self, reminder_id: int) -> Optional[Reminder]:
        """Flip the active flag"""
        reminder = self.get_reminder(reminder_id)
        if not reminder:
            return None
        return self.update_reminder(reminder_id, {"active": not reminder.active})

    # Scheduling

    def _is_scheduled_on(self, reminder: Reminder, today: str, today_abbr: str) -> bool:
        """
        Whether an active reminder belongs to the given day.

        A start date in the future suppresses it. One-time reminders belong
        to their start date, or to any day until they first fire.
        """
        if not reminder.active:
            return False
        if reminder.start_date and reminder.start_date > today:
            return False
        if reminder.is_one_time:
            if reminder.start_date:
                return reminder.start_date == today
            return reminder.last_triggered in (None, today)
        return today_abbr in reminder.repeat_days

    def check_due_reminders(self) -> List[Reminder]:
        """
        Reminders due this minute that have not fired today.

        Each returned reminder gets last_triggered = today, so repeated polls
        within the same minute fire it once.
        """
        now = self.date_service.now()
        today = self.date_service.today_str()
        today_abbr = self.date_service.day_abbr(now.date())
        current_time = self.date_service.current_time_str()

        reminders = self.reminder_repo.get_all(self.store)
        due = []
        for reminder in reminders:
            if reminder.time != current_time or reminder.last_triggered == today:
                continue
            if not self._is_scheduled_on(reminder, today, today_abbr):
                continue
            reminder.last_triggered = today
            due.append(reminder)

        if due:
            self.reminder_repo.save_all(self.store, reminders)
            for reminder in due:
                logger.info(f"Reminder {reminder.id} due at {reminder.time}: {reminder.title}")
        return due

    def get_today_reminders(self) -> List[Reminder]:
        """Active reminders scheduled for today, sorted by time"""
        today = self.date_service.today_str()
        today_abbr = self.date_service.day_abbr(self.date_service.today())
        today_reminders = [
            r for r in self.reminder_repo.get_all(self.store)
            if self._is_scheduled_on(r, today, today_abbr)
        ]
        return sorted(today_reminders, key=lambda r: r.time)

    def get_upcoming_today(self) -> List[Reminder]:
        """Today's reminders whose time is still ahead"""
        current_minutes = self.date_service.minutes_of_day(self.date_service.current_time_str())
        return [
            r for r in self.get_today_reminders()
            if self.date_service.minutes_of_day(r.time) > current_minutes
        ]

    # Formatting

    @staticmethod
    def format_repeat_days(repeat_days: Optional[List[str]]) -> str:
        if not repeat_days:
            return "Once"
        days = set(repeat_days)
        if days == set(DAY_ABBREVIATIONS):
            return "Daily"
        if days == WEEKDAY_ABBREVIATIONS:
            return "Weekdays"
        if days == WEEKEND_ABBREVIATIONS:
            return "Weekends"
        return "/".join(d for d in DAY_ABBREVIATIONS if d in days)

    def format_time_until(self, time_str: Optional[str]) -> str:
        """Human readable distance to a time later today ("in 5 min", "in 2h 10m")"""
        if not time_str:
            return ""
        try:
            target_minutes = self.date_service.minutes_of_day(time_str)
        except (ValueError, IndexError):
            return ""

        current_minutes = self.date_service.minutes_of_day(self.date_service.current_time_str())
        diff = target_minutes - current_minutes

        if diff <= 0:
            return "now"
        if diff < 60:
            return f"in {diff} min"

        hours, mins = divmod(diff, 60)
        if mins > 0:
            return f"in {hours}h {mins}m"
        return f"in {hours}h"
