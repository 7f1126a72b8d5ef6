from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lifetracker.constants import (
    MAX_TITLE_LENGTH, DEFAULT_PROGRESS_UNIT, DAY_ABBREVIATIONS, BACKUP_VERSION
)
from lifetracker.exceptions import ValidationException
from lifetracker.models import normalize_energy_required
from lifetracker.services.date_service import DateService

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_input(schema: Type[SchemaT], data: Union[SchemaT, Dict[str, Any]]) -> SchemaT:
    """
    Validate caller input against a schema.

    Raises:
        ValidationException: naming the first offending field and its bound
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or schema.__name__
        raise ValidationException(field, error.get("msg", "invalid value")) from e


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _check_repeat_days(days: Optional[List[str]]) -> Optional[List[str]]:
    if days is None:
        return None
    unknown = [d for d in days if d not in DAY_ABBREVIATIONS]
    if unknown:
        raise ValueError(f"unknown weekday(s) {unknown}, expected {DAY_ABBREVIATIONS}")
    # Keep calendar order, drop duplicates
    return [d for d in DAY_ABBREVIATIONS if d in days]


# Quest schemas

class QuestCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    time_slot: Optional[str] = None
    category: Optional[str] = None
    energy_required: Union[str, List[str]] = "Any"
    is_progressive: bool = False
    progress_target: int = Field(default=1, ge=1)
    progress_unit: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("energy_required", mode="before")
    @classmethod
    def normalize_energy(cls, value):
        return normalize_energy_required(value)

    @field_validator("progress_unit", mode="before")
    @classmethod
    def default_unit(cls, value):
        value = _strip(value)
        return value or DEFAULT_PROGRESS_UNIT


class QuestUpdate(BaseModel):
    """Patch listing exactly the mutable quest fields"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    time_slot: Optional[str] = None
    category: Optional[str] = None
    energy_required: Optional[Union[str, List[str]]] = None
    is_progressive: Optional[bool] = None
    progress_target: Optional[int] = Field(None, ge=1)
    progress_unit: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("energy_required", mode="before")
    @classmethod
    def normalize_energy(cls, value):
        return normalize_energy_required(value)


# Reminder schemas

class ReminderCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    time: str
    repeat_days: List[str] = Field(default_factory=list)
    start_date: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("time")
    @classmethod
    def valid_time(cls, value: str) -> str:
        return DateService.validate_time(value)

    @field_validator("repeat_days")
    @classmethod
    def valid_days(cls, value: List[str]) -> List[str]:
        return _check_repeat_days(value)

    @field_validator("start_date")
    @classmethod
    def valid_start(cls, value: Optional[str]) -> Optional[str]:
        return DateService.validate_date(value) if value else None


class ReminderUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    time: Optional[str] = None
    repeat_days: Optional[List[str]] = None
    start_date: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("time")
    @classmethod
    def valid_time(cls, value: Optional[str]) -> Optional[str]:
        return DateService.validate_time(value) if value is not None else None

    @field_validator("repeat_days")
    @classmethod
    def valid_days(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_repeat_days(value)

    @field_validator("start_date")
    @classmethod
    def valid_start(cls, value: Optional[str]) -> Optional[str]:
        return DateService.validate_date(value) if value else None


# Settings schemas

class SettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lock_screen_dashboard: Optional[bool] = None
    large_touch_targets: Optional[bool] = None
    high_contrast: Optional[bool] = None
    auto_backup_enabled: Optional[bool] = None


# Backup schemas

class BackupData(BaseModel):
    settings: Optional[Dict[str, Any]] = None
    persistent_notes: Optional[str] = None
    quests: Optional[Dict[str, List[Dict[str, Any]]]] = None
    logs: Optional[Dict[str, Dict[str, Any]]] = None
    reminders: Optional[List[Dict[str, Any]]] = None


class BackupSnapshot(BaseModel):
    version: int = BACKUP_VERSION
    created_at: str
    timestamp: int
    data: BackupData
