"""
Tests for persisted models and input schemas.
"""
import pytest

from lifetracker.models import Quest, Reminder, normalize_energy_required
from lifetracker.schemas import QuestCreate, QuestUpdate, parse_input
from lifetracker.exceptions import ValidationException

CATEGORIES = ["Energetic", "Average", "Down"]


class TestEnergyRequired:
    """Tests for energy normalization and matching"""

    @pytest.mark.parametrize("value,expected", [
        (None, "Any"),
        ("Any", "Any"),
        ("", "Any"),
        ([], "Any"),
        ("Down", ["Down"]),
        (["Down", "Average"], ["Down", "Average"]),
    ])
    def test_normalize(self, value, expected):
        assert normalize_energy_required(value) == expected

    def test_matching(self):
        quest = Quest(id=1, title="x", energy_required=["Average"])

        assert quest.matches_energy("Average", CATEGORIES)
        assert quest.matches_energy("Energetic", CATEGORIES)
        assert not quest.matches_energy("Down", CATEGORIES)


class TestQuestModel:
    """Tests for the derived completed flag"""

    def test_progressive_completed_is_derived(self):
        quest = Quest(id=1, title="Read", is_progressive=True, progress_target=3, progress_current=3, completed=False)

        assert quest.completed is True
        assert quest.to_document()["completed"] is True

    def test_binary_completed_is_stored(self):
        quest = Quest.model_validate({"id": 1, "title": "Walk", "completed": True, "completed_date": "2026-01-30"})

        assert quest.completed is True
        assert quest.is_completed_on("2026-01-30")
        assert not quest.is_completed_on("2026-01-31")

    def test_loads_legacy_records(self):
        """Missing and null fields take their defaults"""
        quest = Quest.model_validate({"id": 7, "title": "Old", "progress_target": None, "energy_required": None})

        assert quest.progress_target == 1
        assert quest.energy_required == "Any"
        assert quest.streak == 0

    def test_reminder_null_days(self):
        reminder = Reminder.model_validate({"id": 1, "title": "x", "time": "08:00", "repeat_days": None})

        assert reminder.is_one_time


class TestSchemas:
    """Tests for parse_input"""

    def test_parse_input_passes_instances_through(self):
        draft = QuestCreate(title="x")
        assert parse_input(QuestCreate, draft) is draft

    def test_error_names_field(self):
        with pytest.raises(ValidationException) as exc_info:
            parse_input(QuestCreate, {"title": "x", "progress_target": 0})

        assert exc_info.value.field == "progress_target"

    def test_patch_lists_only_set_fields(self):
        patch = parse_input(QuestUpdate, {"category": "Work"})

        assert patch.model_dump(exclude_unset=True) == {"category": "Work"}
