"""
Activity aggregation service.
Derives heatmap grids, streak statistics and weekly summaries from the daily
log domain, and records mood entries and reflections into it.
"""
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from lifetracker.models import DailyLogEntry, EnergyEntry
from lifetracker.repositories.log_repository import LogRepository
from lifetracker.repositories.settings_repository import SettingsRepository
from lifetracker.services.date_service import DateService
from lifetracker.constants import (
    DEFAULT_HEATMAP_WEEKS, HEAT_LEVEL_LOW_MAX, HEAT_LEVEL_MEDIUM_MAX, MAX_TEXT_LENGTH
)
from lifetracker.exceptions import ValidationException
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.activity")


class ActivityService:
    """Service for daily log aggregation"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.log_repo = LogRepository()
        self.settings_repo = SettingsRepository()
        self.date_service = DateService()

    # Daily log access

    def log_day(self, day: str, entry: DailyLogEntry) -> None:
        self.log_repo.save_day(self.store, day, entry)

    def get_day_log(self, day: str) -> Optional[DailyLogEntry]:
        return self.log_repo.get_day(self.store, day)

    def get_logs_for_range(self, start_date: str, end_date: str) -> Dict[str, DailyLogEntry]:
        """Logs between two YYYY-MM-DD dates, both ends included"""
        return self.log_repo.get_range(self.store, start_date, end_date)

    def add_mood_entry(self, day: str, hour: int, energy: str) -> EnergyEntry:
        """
        Append an energy reading to a day's log.

        Several readings per day are allowed; readings are never removed.

        Raises:
            ValidationException: If hour is outside 0-23 or energy is empty
        """
        if not isinstance(hour, int) or isinstance(hour, bool) or not 0 <= hour <= 23:
            raise ValidationException("hour", f"must be 0-23, got {hour!r}")
        if not energy:
            raise ValidationException("energy", "must not be empty")

        time_slots = self.settings_repo.get(self.store).time_slots
        mood = EnergyEntry(
            hour=hour,
            time_slot=self.date_service.hour_to_time_slot(hour, time_slots),
            energy=energy,
        )

        entry = self.get_day_log(day) or DailyLogEntry()
        entry.energy_entries.append(mood)
        self.log_day(day, entry)
        return mood

    def get_mood_entries(self, day: str) -> List[EnergyEntry]:
        entry = self.get_day_log(day)
        return list(entry.energy_entries) if entry else []

    def save_reflection(self, text: str) -> DailyLogEntry:
        """Store today's reflection note"""
        text = (text or "").strip()
        if not text:
            raise ValidationException("reflection", "must not be empty")
        if len(text) > MAX_TEXT_LENGTH:
            raise ValidationException("reflection", f"must be at most {MAX_TEXT_LENGTH} characters")

        today = self.date_service.today_str()
        entry = self.get_day_log(today) or DailyLogEntry()
        entry.reflection = text
        entry.reflection_time = self.date_service.current_timestamp()
        self.log_day(today, entry)
        return entry

    # Heatmap

    @staticmethod
    def get_heat_level(count: Optional[int]) -> int:
        """Heat level 0-3: 0 | 1-2 | 3-4 | 5+"""
        if not count or count <= 0:
            return 0
        if count <= HEAT_LEVEL_LOW_MAX:
            return 1
        if count <= HEAT_LEVEL_MEDIUM_MAX:
            return 2
        return 3

    def _grid_start(self, weeks: int, today: date) -> date:
        """First day of the grid so that today lands in its weekday column of the last row"""
        days_into_week = (today.weekday() + 1) % 7  # Sunday = 0
        # Last cell is the coming Saturday, 6 - days_into_week days ahead
        end_offset = 6 - days_into_week
        return today + timedelta(days=end_offset) - timedelta(days=weeks * 7 - 1)

    def build_heatmap_data(self, weeks: int = DEFAULT_HEATMAP_WEEKS) -> List[List[int]]:
        """
        Completion counts for the last N weeks.

        Returns:
            Grid [week][day], oldest week first, columns Sunday..Saturday.
            Days after today in the last row are zero.
        """
        if weeks < 1:
            raise ValidationException("weeks", f"must be at least 1, got {weeks}")

        logs = self.log_repo.get_all(self.store)
        start = self._grid_start(weeks, self.date_service.today())

        heatmap = []
        for week in range(weeks):
            row = []
            for day in range(7):
                day_str = self.date_service.format_date(start + timedelta(days=week * 7 + day))
                row.append(self.log_repo.completed_count(logs, day_str))
            heatmap.append(row)
        return heatmap

    def build_compact_line(self, days: int = 30) -> List[int]:
        """Heat levels of the last N days, oldest first"""
        logs = self.log_repo.get_all(self.store)
        today = self.date_service.today()
        return [
            self.get_heat_level(
                self.log_repo.completed_count(logs, self.date_service.format_date(today - timedelta(days=i)))
            )
            for i in range(days - 1, -1, -1)
        ]

    def get_stats(self, weeks: int = DEFAULT_HEATMAP_WEEKS) -> dict:
        """
        Totals and streaks for the heatmap window.

        longest_streak comes from the grid; current_streak walks the raw logs
        back from today, so the two can disagree for short windows.
        """
        heatmap_data = self.build_heatmap_data(weeks)

        total_completions = 0
        days_with_activity = 0
        longest_streak = 0
        run = 0

        for row in heatmap_data:
            for count in row:
                total_completions += count
                if count > 0:
                    days_with_activity += 1
                    run += 1
                    longest_streak = max(longest_streak, run)
                else:
                    run = 0

        logs = self.log_repo.get_all(self.store)
        today = self.date_service.today()
        current_streak = 0
        for i in range(weeks * 7):
            day_str = self.date_service.format_date(today - timedelta(days=i))
            if self.log_repo.completed_count(logs, day_str) > 0:
                current_streak += 1
            else:
                break

        average = total_completions // days_with_activity if days_with_activity > 0 else 0

        return {
            "total_completions": total_completions,
            "days_with_activity": days_with_activity,
            "total_days": weeks * 7,
            "current_streak": current_streak,
            "longest_streak": longest_streak,
            "average_per_active_day": average,
        }

    def get_weekly_stats(self) -> dict:
        """Completion summary of the last 7 days"""
        logs = self.log_repo.get_all(self.store)
        today = self.date_service.today()

        total_completed = 0
        total_assigned = 0
        best_day = None
        best_completed = 0
        best_total = 0
        best_rate = 0.0

        for i in range(7):
            day = today - timedelta(days=i)
            entry = logs.get(self.date_service.format_date(day))
            if not entry:
                continue

            completed = entry.quests_completed
            assigned = entry.quests_total
            total_completed += completed
            total_assigned += assigned

            if assigned > 0:
                rate = completed / assigned
                if rate > best_rate or (rate == best_rate and completed > best_completed):
                    best_rate = rate
                    best_completed = completed
                    best_total = assigned
                    best_day = self.date_service.day_abbr(day)

        completion_rate = int(total_completed * 100 / total_assigned) if total_assigned > 0 else 0

        return {
            "completion_rate": completion_rate,
            "best_day": best_day,
            "best_completed": best_completed,
            "best_total": best_total,
            "missed": total_assigned - total_completed,
        }
