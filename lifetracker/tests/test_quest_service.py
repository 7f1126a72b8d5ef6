"""
Tests for QuestService.

Tests cover:
1. Quest CRUD and typed patches
2. Binary completion, per-quest and global streaks
3. Progressive quests (lazy reset, clamping, derived completion)
4. Skipping, energy filtering and the daily log recount
"""
import pytest

from lifetracker.exceptions import ValidationException
from lifetracker.repositories.log_repository import LogRepository
from lifetracker.repositories.settings_repository import SettingsRepository


def add_binary(quest_service, title="Stretch", quest_type="daily", **extra):
    return quest_service.add_quest(quest_type, {"title": title, **extra})


def add_progressive(quest_service, target=10, unit="pages", quest_type="daily"):
    return quest_service.add_quest(quest_type, {
        "title": "Read",
        "is_progressive": True,
        "progress_target": target,
        "progress_unit": unit,
    })


class TestQuestCrud:
    """Tests for add/update/delete"""

    def test_add_quest_sets_defaults(self, quest_service, clock):
        """Should assign an id, today's date and an empty streak"""
        quest = add_binary(quest_service)

        assert quest.id == 1
        assert quest.created == "2026-01-30"
        assert quest.completed is False
        assert quest.streak == 0
        assert quest.energy_required == "Any"
        assert quest_service.get_quest("daily", quest.id).title == "Stretch"

    def test_add_quest_rejects_unknown_type(self, quest_service, clock):
        with pytest.raises(ValidationException) as exc_info:
            quest_service.add_quest("yearly", {"title": "x"})
        assert exc_info.value.field == "quest_type"

    def test_add_quest_rejects_blank_title(self, quest_service, clock):
        """Should reject a title that is empty after trimming"""
        with pytest.raises(ValidationException) as exc_info:
            quest_service.add_quest("daily", {"title": "   "})
        assert exc_info.value.field == "title"

    def test_add_quest_rejects_long_title(self, quest_service, clock):
        with pytest.raises(ValidationException):
            quest_service.add_quest("daily", {"title": "x" * 201})

    def test_progressive_unit_defaults(self, quest_service, clock):
        quest = quest_service.add_quest("weekly", {"title": "Pushups", "is_progressive": True, "progress_target": 50})
        assert quest.progress_unit == "units"

    def test_update_quest_applies_patch(self, quest_service, clock):
        """Should change only the patched fields"""
        quest = add_binary(quest_service, category="Health")

        updated = quest_service.update_quest("daily", quest.id, {"title": "Stretch more", "energy_required": ["Down"]})

        assert updated.title == "Stretch more"
        assert updated.energy_required == ["Down"]
        assert updated.category == "Health"
        assert quest_service.get_quest("daily", quest.id).title == "Stretch more"

    def test_update_quest_rejects_unknown_field(self, quest_service, clock):
        """Unknown keys must not reach the stored record"""
        quest = add_binary(quest_service)

        with pytest.raises(ValidationException):
            quest_service.update_quest("daily", quest.id, {"streak": 99})

        assert quest_service.get_quest("daily", quest.id).streak == 0

    def test_update_missing_quest_returns_none(self, quest_service, clock):
        assert quest_service.update_quest("daily", 404, {"title": "x"}) is None

    def test_delete_is_idempotent(self, quest_service, clock):
        """Should return True then False and shrink the partition by one"""
        keep = add_binary(quest_service, title="Keep")
        drop = add_binary(quest_service, title="Drop")

        assert quest_service.delete_quest("daily", drop.id) is True
        assert quest_service.delete_quest("daily", drop.id) is False
        assert [q.id for q in quest_service.get_quests("daily")] == [keep.id]

    def test_quests_stay_in_their_partition(self, quest_service, clock):
        weekly = add_binary(quest_service, quest_type="weekly")

        assert quest_service.get_quest("daily", weekly.id) is None
        assert quest_service.get_quest("weekly", weekly.id).quest_type == "weekly"


class TestCompletionAndStreaks:
    """Tests for complete/uncomplete and streak rules"""

    def test_complete_stamps_today(self, quest_service, clock):
        quest = add_binary(quest_service)

        completed = quest_service.complete_quest("daily", quest.id)

        assert completed.completed is True
        assert completed.completed_date == "2026-01-30"
        assert completed.streak == 1

    def test_consecutive_days_build_streak(self, quest_service, clock):
        """Completing on D, D+1, D+2 should give streak 3"""
        quest = add_binary(quest_service)

        quest_service.complete_quest("daily", quest.id)
        clock.set(2026, 1, 31)
        quest_service.complete_quest("daily", quest.id)
        clock.set(2026, 2, 1)
        result = quest_service.complete_quest("daily", quest.id)

        assert result.streak == 3

    def test_gap_resets_streak(self, quest_service, clock):
        """Completing on D then D+2 should reset streak to 1"""
        quest = add_binary(quest_service)

        quest_service.complete_quest("daily", quest.id)
        clock.set(2026, 2, 1)
        result = quest_service.complete_quest("daily", quest.id)

        assert result.streak == 1

    def test_double_complete_is_noop(self, quest_service, clock):
        quest = add_binary(quest_service)

        quest_service.complete_quest("daily", quest.id)
        again = quest_service.complete_quest("daily", quest.id)

        assert again.streak == 1

    def test_uncomplete_keeps_streak(self, quest_service, clock):
        """Undoing a completion clears the date but not the streak"""
        quest = add_binary(quest_service)
        quest_service.complete_quest("daily", quest.id)

        undone = quest_service.uncomplete_quest("daily", quest.id)

        assert undone.completed is False
        assert undone.completed_date is None
        assert undone.streak == 1

    def test_binary_ops_on_progressive_return_none(self, quest_service, clock):
        quest = add_progressive(quest_service)

        assert quest_service.complete_quest("daily", quest.id) is None
        assert quest_service.uncomplete_quest("daily", quest.id) is None

    def test_complete_missing_quest_returns_none(self, quest_service, clock):
        assert quest_service.complete_quest("daily", 12345) is None

    def test_global_streak_updates_once_per_day(self, quest_service, store, clock):
        """Several completions on one day should count once"""
        first = add_binary(quest_service, title="A")
        second = add_binary(quest_service, title="B")

        quest_service.complete_quest("daily", first.id)
        quest_service.complete_quest("daily", second.id)
        streak = SettingsRepository.get(store).streak_data
        assert streak.current == 1
        assert streak.last_completed_date == "2026-01-30"

        clock.set(2026, 1, 31)
        quest_service.complete_quest("daily", first.id)
        streak = SettingsRepository.get(store).streak_data
        assert streak.current == 2
        assert streak.longest == 2

    def test_global_streak_resets_after_gap(self, quest_service, store, clock):
        quest = add_binary(quest_service)
        quest_service.complete_quest("daily", quest.id)

        clock.set(2026, 2, 3)
        quest_service.complete_quest("daily", quest.id)

        streak = SettingsRepository.get(store).streak_data
        assert streak.current == 1
        assert streak.longest == 1


class TestProgressiveQuests:
    """Tests for increment/decrement/set progress"""

    def test_reading_scenario(self, quest_service, clock):
        """10 increments complete a 10-page quest; one decrement undoes it"""
        quest = add_progressive(quest_service, target=10, unit="pages")

        for _ in range(10):
            result = quest_service.increment_quest_progress("daily", quest.id)

        assert result.completed is True
        assert result.completed_date == "2026-01-30"
        assert result.progress_current == 10

        result = quest_service.decrement_quest_progress("daily", quest.id)

        assert result.completed is False
        assert result.progress_current == 9

    @pytest.mark.parametrize("value", [-5, 0, 3, 10, 11, 999, 2.7, float("inf"), float("-inf")])
    def test_set_progress_clamped(self, quest_service, clock, value):
        """0 <= progress_current <= progress_target for any input"""
        quest = add_progressive(quest_service, target=10)

        result = quest_service.set_quest_progress("daily", quest.id, value)

        assert 0 <= result.progress_current <= result.progress_target

    def test_set_progress_infinity_hits_bounds(self, quest_service, clock):
        quest = add_progressive(quest_service, target=10)

        assert quest_service.set_quest_progress("daily", quest.id, float("inf")).progress_current == 10
        assert quest_service.set_quest_progress("daily", quest.id, float("-inf")).progress_current == 0

    @pytest.mark.parametrize("value", ["ten", None, float("nan")])
    def test_set_progress_rejects_non_numbers(self, quest_service, clock, value):
        quest = add_progressive(quest_service)
        quest_service.set_quest_progress("daily", quest.id, 4)

        with pytest.raises(ValidationException):
            quest_service.set_quest_progress("daily", quest.id, value)

        assert quest_service.get_quest("daily", quest.id).progress_current == 4

    def test_lowering_target_completes_quest(self, quest_service, store, clock):
        """A target lowered to today's progress completes the quest for today"""
        quest = add_progressive(quest_service, target=10)
        quest_service.set_quest_progress("daily", quest.id, 6)

        updated = quest_service.update_quest("daily", quest.id, {"progress_target": 5})

        assert updated.completed is True
        assert updated.completed_date == "2026-01-30"
        assert updated.streak == 1
        assert quest_service.is_quest_completed_on_date(updated)
        assert LogRepository.get_day(store, "2026-01-30").quests_completed == 1
        assert SettingsRepository.get(store).streak_data.current == 1

    def test_raising_target_recounts_daily_log(self, quest_service, store, clock):
        quest = add_progressive(quest_service, target=5)
        quest_service.set_quest_progress("daily", quest.id, 5)

        updated = quest_service.update_quest("daily", quest.id, {"progress_target": 8})

        assert updated.completed is False
        assert LogRepository.get_day(store, "2026-01-30").quests_completed == 0

    def test_decrement_never_below_zero(self, quest_service, clock):
        quest = add_progressive(quest_service)

        result = quest_service.decrement_quest_progress("daily", quest.id)

        assert result.progress_current == 0

    def test_progress_resets_on_new_day(self, quest_service, clock):
        """First touch on a new day should start from zero"""
        quest = add_progressive(quest_service, target=10)
        quest_service.set_quest_progress("daily", quest.id, 7)

        clock.set(2026, 1, 31)
        result = quest_service.increment_quest_progress("daily", quest.id)

        assert result.progress_current == 1
        assert result.progress_last_date == "2026-01-31"

    def test_progress_ops_on_binary_return_none(self, quest_service, clock):
        quest = add_binary(quest_service)

        assert quest_service.increment_quest_progress("daily", quest.id) is None
        assert quest_service.set_quest_progress("daily", quest.id, 3) is None

    def test_progressive_completion_updates_streaks(self, quest_service, store, clock):
        quest = add_progressive(quest_service, target=2)

        quest_service.set_quest_progress("daily", quest.id, 2)

        assert quest_service.get_quest("daily", quest.id).streak == 1
        assert SettingsRepository.get(store).streak_data.current == 1

    def test_completed_flag_persisted_as_derived_value(self, quest_service, store, clock):
        """The stored completed flag should follow the progress"""
        quest = add_progressive(quest_service, target=2)
        quest_service.set_quest_progress("daily", quest.id, 2)

        record = store.load("quests")["daily"][0]

        assert record["completed"] is True
        assert record["progress_current"] == 2

    def test_reset_daily_progress(self, quest_service, clock):
        """Should zero quests last touched on an earlier day"""
        stale = add_progressive(quest_service, target=5)
        quest_service.set_quest_progress("daily", stale.id, 5)

        clock.set(2026, 1, 31)
        fresh = add_progressive(quest_service, target=5, quest_type="weekly")
        quest_service.set_quest_progress("weekly", fresh.id, 3)

        assert quest_service.reset_daily_progress() == 1
        assert quest_service.get_quest("daily", stale.id).progress_current == 0
        assert quest_service.get_quest("daily", stale.id).completed is False
        assert quest_service.get_quest("weekly", fresh.id).progress_current == 3


class TestFilteringAndDailyLog:
    """Tests for energy filtering, skipping and the daily log"""

    def test_energy_filter(self, quest_service, clock):
        """Any matches everything; the top category shows every quest"""
        anything = add_binary(quest_service, title="Any")
        low = add_binary(quest_service, title="Low", energy_required=["Down"])
        mid = add_binary(quest_service, title="Mid", energy_required=["Average"], quest_type="weekly")

        down_ids = {q.id for q in quest_service.get_filtered_quests_for_today("Down")}
        top_ids = {q.id for q in quest_service.get_filtered_quests_for_today("Energetic")}

        assert down_ids == {anything.id, low.id}
        assert top_ids == {anything.id, low.id, mid.id}

    def test_filter_hides_completed_and_skipped(self, quest_service, clock):
        done = add_binary(quest_service, title="Done")
        skipped = add_binary(quest_service, title="Skipped")
        open_quest = add_binary(quest_service, title="Open")

        quest_service.complete_quest("daily", done.id)
        quest_service.skip_quest("daily", skipped.id)

        assert [q.id for q in quest_service.get_filtered_quests_for_today()] == [open_quest.id]

    def test_skip_applies_only_on_its_day(self, quest_service, clock):
        quest = add_binary(quest_service)
        quest_service.skip_quest("daily", quest.id)

        clock.set(2026, 1, 31)

        assert [q.id for q in quest_service.get_filtered_quests_for_today()] == [quest.id]

    def test_daily_log_counts(self, quest_service, store, clock):
        """Completion should recount today's totals, skipped quests excluded"""
        first = add_binary(quest_service, title="A")
        add_binary(quest_service, title="B")
        skipped = add_binary(quest_service, title="C")

        quest_service.skip_quest("daily", skipped.id)
        quest_service.complete_quest("daily", first.id)

        entry = LogRepository.get_day(store, "2026-01-30")
        assert entry.quests_total == 2
        assert entry.quests_completed == 1

        quest_service.uncomplete_quest("daily", first.id)
        assert LogRepository.get_day(store, "2026-01-30").quests_completed == 0

    def test_is_quest_completed_on_date(self, quest_service, clock):
        quest = add_binary(quest_service)
        completed = quest_service.complete_quest("daily", quest.id)

        assert quest_service.is_quest_completed_on_date(completed) is True
        assert quest_service.is_quest_completed_on_date(completed, "2026-01-29") is False
