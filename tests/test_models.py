"""Tests for habit, metrics and snapshot models."""

import pytest

from dailyhabit.core.models import (
    DailyMetrics,
    Habit,
    MoodLevel,
    Snapshot,
    ValidationError,
    default_habits,
    same_habit_id,
    validate_mood,
    validate_sleep_hours,
    validate_text,
)


class TestValidation:

    def test_validate_text_strips(self):
        assert validate_text("  Read  ", field_name="Habit name") == "Read"

    def test_validate_text_rejects_blank(self):
        with pytest.raises(ValidationError):
            validate_text("   ")

    def test_validate_text_rejects_non_string(self):
        with pytest.raises(ValidationError):
            validate_text(None)

    @pytest.mark.parametrize("value", [1, 3, 5])
    def test_mood_in_range(self, value):
        assert validate_mood(value) == value

    @pytest.mark.parametrize("value", [0, 6, -1, 2.5, True, "3", None])
    def test_mood_out_of_range(self, value):
        with pytest.raises(ValidationError):
            validate_mood(value)

    def test_sleep_hours(self):
        assert validate_sleep_hours(0) == 0
        assert validate_sleep_hours(7.5) == 7.5
        with pytest.raises(ValidationError):
            validate_sleep_hours(-1)
        with pytest.raises(ValidationError):
            validate_sleep_hours(float("nan"))

    def test_mood_labels(self):
        assert MoodLevel(1).label == "Angry"
        assert MoodLevel(5).label == "Great"


class TestHabit:

    def test_to_dict_shape(self):
        habit = Habit(id=1, name="Read", goal=90, completions={"2024-06-02", "2024-06-01"})
        assert habit.to_dict() == {
            "id": 1,
            "name": "Read",
            "goal": 90,
            "data": {"2024-06-01": True, "2024-06-02": True},
        }

    def test_from_dict_skips_false_and_bad_keys(self):
        habit = Habit.from_dict({
            "id": "x",
            "name": "Run",
            "goal": 80,
            "data": {"2024-06-01": True, "2024-06-02": False, "June 3": True},
        })
        assert habit.completions == {"2024-06-01"}

    def test_from_dict_invalid_goal_falls_back(self):
        assert Habit.from_dict({"id": 1, "name": "Run", "goal": 500}).goal == 100

    def test_from_dict_requires_id(self):
        with pytest.raises(ValidationError):
            Habit.from_dict({"name": "No id"})

    def test_create_gives_distinct_ids(self):
        first = Habit.create("A")
        second = Habit.create("A")
        assert first.id != second.id
        assert first.completions == set()

    def test_same_habit_id_across_types(self):
        assert same_habit_id(1, "1")
        assert not same_habit_id(1, 2)


class TestDailyMetrics:

    def test_to_dict_omits_unset(self):
        assert DailyMetrics(mood=3).to_dict() == {"mood": 3}
        assert DailyMetrics(sleep_hours=7).to_dict() == {"sleep": 7}
        assert DailyMetrics().to_dict() == {}

    def test_from_dict_drops_invalid_values(self):
        entry = DailyMetrics.from_dict({"mood": 9, "sleep": 6})
        assert entry.mood is None
        assert entry.sleep_hours == 6


class TestSnapshot:

    def test_default_has_seed_habits(self):
        snapshot = Snapshot.default()
        assert [h.id for h in snapshot.habits] == [1, 2, 3, 4, 5]
        assert snapshot.metrics == {}

    def test_seed_is_fresh_each_time(self):
        first = default_habits()
        first[0].completions.add("2024-06-01")
        assert default_habits()[0].completions == set()

    def test_document_round_trip(self, sample_habits, sample_metrics):
        snapshot = Snapshot(habits=sample_habits, metrics=sample_metrics, last_updated="2024-06-15T09:30:00+00:00")
        restored = Snapshot.from_document(snapshot.to_document())
        assert restored == snapshot

    def test_export_dict_has_no_timestamp(self):
        snapshot = Snapshot.default()
        snapshot.last_updated = "2024-06-15T09:30:00+00:00"
        assert set(snapshot.to_export_dict()) == {"habits", "metrics"}
        assert snapshot.to_document()["lastUpdated"] == "2024-06-15T09:30:00+00:00"

    def test_missing_habits_falls_back_to_seed(self):
        restored = Snapshot.from_document({"metrics": {}})
        assert [h.name for h in restored.habits] == [h.name for h in default_habits()]

    def test_empty_habit_list_is_kept(self):
        assert Snapshot.from_document({"habits": [], "metrics": {}}).habits == []

    def test_duplicate_ids_keep_first(self):
        restored = Snapshot.from_document({
            "habits": [{"id": 1, "name": "First"}, {"id": "1", "name": "Second"}],
        })
        assert [h.name for h in restored.habits] == ["First"]

    def test_bad_metric_keys_are_dropped(self):
        restored = Snapshot.from_document({"habits": [], "metrics": {"nope": {"mood": 3}, "2024-06-01": {"mood": 3}}})
        assert list(restored.metrics) == ["2024-06-01"]

    def test_non_dict_document_raises(self):
        with pytest.raises(ValidationError):
            Snapshot.from_document(["habits"])

    def test_copy_is_deep(self, sample_habits):
        snapshot = Snapshot(habits=sample_habits)
        clone = snapshot.copy()
        clone.habits[0].completions.add("2024-06-30")
        assert "2024-06-30" not in snapshot.habits[0].completions
