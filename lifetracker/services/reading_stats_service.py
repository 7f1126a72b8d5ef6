"""
Reading statistics service.
Copies the numbers of an external reading-stats provider into the daily log
and summarizes them. The provider's own storage is never written.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Protocol

from lifetracker.models import DailyLogEntry
from lifetracker.repositories.log_repository import LogRepository
from lifetracker.services.date_service import DateService
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.reading")


class ReadingStatsProvider(Protocol):
    def get_today_stats(self) -> Dict[str, Any]:
        """{pages_read, time_spent, sessions, current_book}"""
        ...


def empty_reading_stats() -> Dict[str, Any]:
    return {
        "pages_read": 0,
        "time_spent": 0,
        "current_book": None,
        "sessions": 0,
    }


class ReadingStatsService:
    """Service for reading statistics stored in the daily log"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.log_repo = LogRepository()
        self.date_service = DateService()

    def log_current_stats(self, provider: ReadingStatsProvider) -> Dict[str, Any]:
        """
        Record the provider's numbers for today.

        Missing or None values count as zero. Replaces any reading block
        already stored for today.
        """
        stats = provider.get_today_stats() or {}
        reading = {
            "pages_read": int(stats.get("pages_read") or 0),
            "time_spent": int(stats.get("time_spent") or 0),
            "current_book": stats.get("current_book"),
            "sessions": int(stats.get("sessions") or 0),
            "last_updated": self.date_service.current_timestamp(),
        }

        today = self.date_service.today_str()
        entry = self.log_repo.get_day(self.store, today) or DailyLogEntry()
        entry.reading = reading
        self.log_repo.save_day(self.store, today, entry)

        logger.info(f"Logged reading stats for {today}: {reading['pages_read']} pages")
        return reading

    def get_stats_for_date(self, day: str) -> Dict[str, Any]:
        entry = self.log_repo.get_day(self.store, day)
        if entry and entry.reading:
            return entry.reading
        return empty_reading_stats()

    @staticmethod
    def _pages_and_time(entry: Optional[DailyLogEntry]) -> tuple[int, int]:
        if not entry or not entry.reading:
            return 0, 0
        return entry.reading.get("pages_read") or 0, entry.reading.get("time_spent") or 0

    def get_weekly_stats(self) -> Dict[str, Any]:
        """Totals of the last 7 days with a daily breakdown, oldest first"""
        logs = self.log_repo.get_all(self.store)
        today = self.date_service.today()

        weekly = {
            "total_pages": 0,
            "total_time": 0,
            "days_read": 0,
            "daily": [],
        }

        for i in range(6, -1, -1):
            day = today - timedelta(days=i)
            day_str = self.date_service.format_date(day)
            pages, time_spent = self._pages_and_time(logs.get(day_str))

            weekly["total_pages"] += pages
            weekly["total_time"] += time_spent
            if pages > 0:
                weekly["days_read"] += 1

            weekly["daily"].append({
                "date": day_str,
                "day": self.date_service.day_abbr(day),
                "pages": pages,
                "time": time_spent,
            })

        return weekly

    def get_monthly_stats(self) -> Dict[str, Any]:
        """Totals of the current calendar month"""
        logs = self.log_repo.get_all(self.store)
        month_prefix = self.date_service.today().strftime("%Y-%m-")

        monthly = {
            "total_pages": 0,
            "total_time": 0,
            "days_read": 0,
            "book_count": 0,
        }
        books = set()

        for day_str, entry in logs.items():
            if not day_str.startswith(month_prefix) or not entry.reading:
                continue
            pages, time_spent = self._pages_and_time(entry)
            monthly["total_pages"] += pages
            monthly["total_time"] += time_spent
            if pages > 0:
                monthly["days_read"] += 1
            if entry.reading.get("current_book"):
                books.add(entry.reading["current_book"])

        monthly["book_count"] = len(books)
        return monthly

    def get_average_pages_per_day(self, days: int = 7) -> int:
        """Average pages over the days that had any reading (floored)"""
        logs = self.log_repo.get_all(self.store)
        today = self.date_service.today()

        total_pages = 0
        days_with_data = 0
        for i in range(days):
            pages, _ = self._pages_and_time(logs.get(self.date_service.format_date(today - timedelta(days=i))))
            total_pages += pages
            if pages > 0:
                days_with_data += 1

        return total_pages // days_with_data if days_with_data > 0 else 0

    @staticmethod
    def format_reading_time(seconds: Optional[int]) -> str:
        """Format seconds as "1h 23m" or "23m" """
        if not seconds:
            return "0m"
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"
