"""
Settings service.
User settings, configurable name lists (energy categories, time slots, quest
categories), quotes, today's energy and persistent notes.
"""
import logging
from typing import List, Optional, Union

from lifetracker.models import UserSettings, DailyLogEntry
from lifetracker.schemas import SettingsUpdate, parse_input
from lifetracker.repositories.settings_repository import SettingsRepository
from lifetracker.repositories.log_repository import LogRepository
from lifetracker.services.date_service import DateService
from lifetracker.constants import MAX_NAME_LENGTH, MAX_QUOTE_LENGTH
from lifetracker.exceptions import ValidationException
from lifetracker.store import DocumentStore

logger = logging.getLogger("lifetracker.settings")

# Settings fields holding editable name lists
NAME_LISTS = ("energy_categories", "time_slots", "quest_categories")


def clean_text(value: Optional[str], field: str, max_length: int) -> str:
    """
    Trim text input and enforce a length bound.

    Raises:
        ValidationException: If the text is empty or too long
    """
    text = (value or "").strip()
    if not text:
        raise ValidationException(field, "must not be empty")
    if len(text) > max_length:
        raise ValidationException(field, f"must be at most {max_length} characters, got {len(text)}")
    return text


class SettingsService:
    """Service for user settings management"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.settings_repo = SettingsRepository()
        self.log_repo = LogRepository()
        self.date_service = DateService()

    def load_user_settings(self) -> UserSettings:
        return self.settings_repo.get(self.store)

    def save_user_settings(self, settings: UserSettings) -> UserSettings:
        return self.settings_repo.update(self.store, settings)

    def update_settings(self, patch: Union[SettingsUpdate, dict]) -> UserSettings:
        """Update feature toggles"""
        patch = parse_input(SettingsUpdate, patch)
        settings = self.load_user_settings()

        update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
        for key, value in update_data.items():
            setattr(settings, key, value)

        self.save_user_settings(settings)
        logger.info(f"Updated settings: {sorted(update_data)}")
        return settings

    # Name lists

    def _get_list(self, settings: UserSettings, list_name: str) -> List[str]:
        if list_name not in NAME_LISTS:
            raise ValidationException("list_name", f"must be one of {list(NAME_LISTS)}, got {list_name!r}")
        return getattr(settings, list_name)

    def add_name(self, list_name: str, name: str) -> List[str]:
        settings = self.load_user_settings()
        names = self._get_list(settings, list_name)
        name = clean_text(name, list_name, MAX_NAME_LENGTH)
        if name in names:
            raise ValidationException(list_name, f"{name!r} already exists")

        names.append(name)
        self.save_user_settings(settings)
        logger.info(f"Added {name!r} to {list_name}")
        return names

    def rename_name(self, list_name: str, index: int, new_name: str) -> List[str]:
        settings = self.load_user_settings()
        names = self._get_list(settings, list_name)
        if not 0 <= index < len(names):
            raise ValidationException("index", f"must be 0-{len(names) - 1}, got {index}")
        new_name = clean_text(new_name, list_name, MAX_NAME_LENGTH)
        if new_name in names and names.index(new_name) != index:
            raise ValidationException(list_name, f"{new_name!r} already exists")

        old_name = names[index]
        names[index] = new_name
        self.save_user_settings(settings)
        logger.info(f"Renamed {old_name!r} to {new_name!r} in {list_name}")
        return names

    def remove_name(self, list_name: str, index: int) -> List[str]:
        """Remove an entry; the last remaining one cannot be removed"""
        settings = self.load_user_settings()
        names = self._get_list(settings, list_name)
        if not 0 <= index < len(names):
            raise ValidationException("index", f"must be 0-{len(names) - 1}, got {index}")
        if len(names) <= 1:
            raise ValidationException(list_name, "at least one entry must remain")

        removed = names.pop(index)
        self.save_user_settings(settings)
        logger.info(f"Removed {removed!r} from {list_name}")
        return names

    # Quotes

    def add_quote(self, text: str) -> List[str]:
        settings = self.load_user_settings()
        settings.quotes.append(clean_text(text, "quote", MAX_QUOTE_LENGTH))
        self.save_user_settings(settings)
        return settings.quotes

    def edit_quote(self, index: int, text: str) -> List[str]:
        settings = self.load_user_settings()
        if not 0 <= index < len(settings.quotes):
            raise ValidationException("index", f"no quote at {index}")
        settings.quotes[index] = clean_text(text, "quote", MAX_QUOTE_LENGTH)
        self.save_user_settings(settings)
        return settings.quotes

    def remove_quote(self, index: int) -> List[str]:
        settings = self.load_user_settings()
        if not 0 <= index < len(settings.quotes):
            raise ValidationException("index", f"no quote at {index}")
        settings.quotes.pop(index)
        self.save_user_settings(settings)
        return settings.quotes

    # Today's energy

    def set_today_energy(self, energy: str) -> UserSettings:
        """
        Record today's energy level in settings and in today's log entry.

        Raises:
            ValidationException: If energy is not a configured category
        """
        settings = self.load_user_settings()
        if energy not in settings.energy_categories:
            raise ValidationException("energy", f"must be one of {settings.energy_categories}, got {energy!r}")

        today = self.date_service.today_str()
        settings.today_energy = energy
        settings.today_date = today
        self.save_user_settings(settings)

        entry = self.log_repo.get_day(self.store, today) or DailyLogEntry()
        entry.energy_level = energy
        self.log_repo.save_day(self.store, today, entry)

        logger.info(f"Energy for {today} set to {energy}")
        return settings

    def get_today_energy(self) -> Optional[str]:
        """Today's energy, None if it was set on an earlier day"""
        settings = self.load_user_settings()
        if settings.today_date != self.date_service.today_str():
            return None
        return settings.today_energy

    # Persistent notes

    def load_persistent_notes(self) -> Optional[str]:
        return self.settings_repo.get_persistent_notes(self.store)

    def save_persistent_notes(self, text: Optional[str]) -> None:
        self.settings_repo.save_persistent_notes(self.store, text)
