"""
Persisted entities.
Each model maps one record of a domain document; documents on disk are plain
JSON so the models are lenient on load and strict only where an invariant
depends on it.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from lifetracker.constants import (
    ENERGY_ANY, DEFAULT_ENERGY_CATEGORIES, DEFAULT_TIME_SLOTS, DEFAULT_QUEST_CATEGORIES
)


def normalize_energy_required(value: Any) -> Union[str, List[str]]:
    """"Any" for empty selections, a list of names otherwise"""
    if value is None or value == ENERGY_ANY:
        return ENERGY_ANY
    if isinstance(value, str):
        return [value] if value else ENERGY_ANY
    names = [str(v) for v in value if v]
    return names if names else ENERGY_ANY


class Quest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=False)

    id: int
    quest_type: Optional[str] = None
    title: str
    time_slot: Optional[str] = None
    category: Optional[str] = None
    energy_required: Union[str, List[str]] = ENERGY_ANY

    # Progressive quests
    is_progressive: bool = False
    progress_current: int = 0
    progress_target: int = 1
    progress_unit: Optional[str] = None
    progress_last_date: Optional[str] = None

    # Stored flag for binary quests; progressive quests derive it from progress
    marked_completed: bool = Field(default=False, alias="completed")
    completed_date: Optional[str] = None
    skipped_date: Optional[str] = None
    streak: int = 0
    created: Optional[str] = None

    @field_validator("energy_required", mode="before")
    @classmethod
    def normalize_energy(cls, value):
        return normalize_energy_required(value)

    @field_validator("progress_target", mode="before")
    @classmethod
    def min_target(cls, value):
        if value is None:
            return 1
        try:
            return max(1, int(value))
        except (TypeError, ValueError, OverflowError):
            # Left for the int field to reject
            return value

    @field_validator("progress_current", mode="before")
    @classmethod
    def non_negative_progress(cls, value):
        if value is None:
            return 0
        try:
            return max(0, int(value))
        except (TypeError, ValueError, OverflowError):
            return value

    @field_serializer("marked_completed")
    def serialize_completed(self, value: bool) -> bool:
        return self.completed

    @property
    def completed(self) -> bool:
        if self.is_progressive:
            return self.progress_current >= self.progress_target
        return self.marked_completed

    def is_skipped_on(self, day: str) -> bool:
        """A skip applies only on the date it was made"""
        return self.skipped_date is not None and self.skipped_date == day

    def is_completed_on(self, day: str) -> bool:
        return self.completed and self.completed_date == day

    def matches_energy(self, energy_level: str, energy_categories: List[str]) -> bool:
        """
        Check whether the quest fits the given energy level.

        "Any" always matches, the top-ranked energy category matches every
        quest, otherwise the level must be one of the required ones.
        """
        if self.energy_required == ENERGY_ANY:
            return True
        if energy_categories and energy_level == energy_categories[0]:
            return True
        return energy_level in self.energy_required

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class EnergyEntry(BaseModel):
    hour: int
    time_slot: Optional[str] = None
    energy: str


class DailyLogEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    quests_total: int = 0
    quests_completed: int = 0
    energy_entries: List[EnergyEntry] = Field(default_factory=list)
    energy_level: Optional[str] = None
    reading: Optional[Dict[str, Any]] = None  # Owned by the reading-stats collaborator
    reflection: Optional[str] = None
    reflection_time: Optional[int] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class Reminder(BaseModel):
    id: int
    title: str
    time: str  # HH:MM
    repeat_days: List[str] = Field(default_factory=list)  # Empty = one-time
    start_date: Optional[str] = None
    active: bool = True
    last_triggered: Optional[str] = None

    @field_validator("repeat_days", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return value or []

    @property
    def is_one_time(self) -> bool:
        return not self.repeat_days

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class StreakData(BaseModel):
    current: int = 0
    longest: int = 0
    last_completed_date: Optional[str] = None


class UserSettings(BaseModel):
    energy_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_ENERGY_CATEGORIES))
    time_slots: List[str] = Field(default_factory=lambda: list(DEFAULT_TIME_SLOTS))
    quest_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_QUEST_CATEGORIES))
    streak_data: StreakData = Field(default_factory=StreakData)
    today_energy: Optional[str] = None
    today_date: Optional[str] = None
    quotes: List[str] = Field(default_factory=list)

    # Feature toggles
    lock_screen_dashboard: bool = False
    large_touch_targets: bool = False
    high_contrast: bool = False
    auto_backup_enabled: bool = True

    last_generated_id: int = 0

    @property
    def high_energy(self) -> Optional[str]:
        """First energy category is always the highest rank"""
        return self.energy_categories[0] if self.energy_categories else None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
