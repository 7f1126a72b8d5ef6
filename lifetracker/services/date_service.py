"""
Date calculation and formatting service.
All "today"/"now" lookups go through here so the rest of the engine shares
one notion of the current day.
"""
from datetime import datetime, timedelta, date
from typing import List, Optional
import re

from lifetracker.constants import (
    DATE_FORMAT, TIME_FORMAT, DATETIME_FORMAT, DAY_ABBREVIATIONS, DEFAULT_TIME_SLOTS
)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def now() -> datetime:
        return datetime.now()

    @staticmethod
    def today() -> date:
        return DateService.now().date()

    @staticmethod
    def today_str() -> str:
        return DateService.today().strftime(DATE_FORMAT)

    @staticmethod
    def yesterday_str() -> str:
        return (DateService.today() - timedelta(days=1)).strftime(DATE_FORMAT)

    @staticmethod
    def current_time_str() -> str:
        """Current time as HH:MM"""
        return DateService.now().strftime(TIME_FORMAT)

    @staticmethod
    def current_datetime_str() -> str:
        return DateService.now().strftime(DATETIME_FORMAT)

    @staticmethod
    def current_timestamp() -> int:
        return int(DateService.now().timestamp())

    @staticmethod
    def format_date(value: date) -> str:
        return value.strftime(DATE_FORMAT)

    @staticmethod
    def parse_date(date_str: str) -> date:
        """
        Parse a YYYY-MM-DD string.

        Raises:
            ValueError: If the string is not a valid date
        """
        return date.fromisoformat(date_str)

    @staticmethod
    def add_days(date_str: str, days: int) -> str:
        """Shift a YYYY-MM-DD date string by a number of days (may be negative)"""
        return DateService.format_date(DateService.parse_date(date_str) + timedelta(days=days))

    @staticmethod
    def day_abbr(value: date) -> str:
        """Weekday abbreviation (Mon, Tue, ...)"""
        return DAY_ABBREVIATIONS[value.weekday()]

    @staticmethod
    def parse_time(time_str: str) -> tuple[int, int]:
        """
        Parse time string into hour and minute.

        Args:
            time_str: Time string in "HH:MM" format

        Returns:
            Tuple of (hour, minute)

        Raises:
            ValueError: If time string is invalid
        """
        parts = time_str.split(":")
        hour = int(parts[0])
        minute = int(parts[1])
        return hour, minute

    @staticmethod
    def validate_time(time_str: Optional[str]) -> str:
        """
        Validate a time string and normalize it to HH:MM.

        Raises:
            ValueError: With a message naming the violated bound
        """
        if not time_str:
            raise ValueError("please enter a time")

        match = _TIME_PATTERN.match(time_str.strip())
        if not match:
            raise ValueError("please enter time in HH:MM format")

        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23:
            raise ValueError("hour must be 00-23")
        if minute > 59:
            raise ValueError("minutes must be 00-59")

        return f"{hour:02d}:{minute:02d}"

    @staticmethod
    def validate_date(date_str: Optional[str]) -> str:
        """
        Validate a YYYY-MM-DD date between 2020 and 2100.

        Raises:
            ValueError: With a message naming the violated bound
        """
        if not date_str:
            raise ValueError("please enter a date")

        match = _DATE_PATTERN.match(date_str.strip())
        if not match:
            raise ValueError("please enter date in YYYY-MM-DD format")

        year, month, day = (int(g) for g in match.groups())
        if year < 2020 or year > 2100:
            raise ValueError("year must be 2020-2100")
        if month < 1 or month > 12:
            raise ValueError("month must be 01-12")
        if day < 1 or day > 31:
            raise ValueError("day must be 01-31")

        try:
            date(year, month, day)
        except ValueError:
            raise ValueError(f"invalid date: {date_str} does not exist")

        return date_str.strip()

    @staticmethod
    def hour_to_time_slot(hour: int, time_slots: Optional[List[str]] = None) -> Optional[str]:
        """
        Map an hour of day (0-23) to a time slot name.

        Four slots: Morning 5-12, Afternoon 12-17, Evening 17-21, Night otherwise.
        Three slots: 5-12, 12-18, otherwise. Any other count splits the day evenly.
        """
        time_slots = time_slots or list(DEFAULT_TIME_SLOTS)
        num_slots = len(time_slots)

        if num_slots == 4:
            if 5 <= hour < 12:
                return time_slots[0]
            if 12 <= hour < 17:
                return time_slots[1]
            if 17 <= hour < 21:
                return time_slots[2]
            return time_slots[3]

        if num_slots == 3:
            if 5 <= hour < 12:
                return time_slots[0]
            if 12 <= hour < 18:
                return time_slots[1]
            return time_slots[2]

        hours_per_slot = 24 / num_slots
        slot_index = int(hour // hours_per_slot)
        return time_slots[min(slot_index, num_slots - 1)]

    @staticmethod
    def minutes_of_day(time_str: str) -> int:
        hour, minute = DateService.parse_time(time_str)
        return hour * 60 + minute
