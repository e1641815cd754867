"""Tests for the tracker service: local-only mode, sign-in, sync and actions."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from dailyhabit.core.models import MetricType, Snapshot, ValidationError
from dailyhabit.services.document_store import DocumentStoreError, InMemoryDocumentStore
from dailyhabit.services.interaction import ConsoleInteraction, PresetInteraction
from dailyhabit.services.sync_service import SyncGateway, SyncReadFailure
from dailyhabit.services.tracker_service import MAX_NOTICES, HabitTracker, build_tracker
from dailyhabit.utils.datetime_utils import MonthWindow


class TestLocalOnly:

    def test_starts_with_seed(self, local_tracker):
        assert [h.id for h in local_tracker.habits] == [1, 2, 3, 4, 5]
        assert local_tracker.local_only

    def test_today_uses_clock(self, local_tracker):
        assert local_tracker.today() == date(2024, 6, 15)

    def test_today_without_clock_follows_configured_zone(self, env, monkeypatch):
        from dailyhabit.config import load_config
        from dailyhabit.services import tracker_service
        seen = []
        monkeypatch.setattr(tracker_service, "today_in_zone", lambda tz: seen.append(tz) or date(2024, 6, 16))

        tracker = HabitTracker(load_config({**env, "DATE_TIMEZONE": "Pacific/Kiritimati"}))
        assert tracker.today() == date(2024, 6, 16)
        assert [tz.zone for tz in seen] == ["Pacific/Kiritimati"]

    def test_mutations_never_touch_gateway(self, tracker):
        tracker.gateway.persist = AsyncMock()
        tracker.toggle_habit(1)
        tracker.add_habit("Stretch")
        tracker.set_mood(4)
        tracker.gateway.persist.assert_not_called()

    def test_toggle_defaults_to_today(self, local_tracker):
        assert local_tracker.toggle_habit(1) is True
        assert local_tracker.today_stats().completed == 1
        assert "2024-06-15" in local_tracker.habit_store.get(1).completions

    @pytest.mark.asyncio
    async def test_sign_in_without_gateway_fails(self, local_tracker):
        with pytest.raises(SyncReadFailure):
            await local_tracker.sign_in("alice")


class TestActions:

    def test_add_habit_validates_name(self, local_tracker):
        with pytest.raises(ValidationError):
            local_tracker.add_habit("   ")
        assert len(local_tracker.habits) == 5

    def test_add_habit_strips_name(self, local_tracker):
        assert local_tracker.add_habit("  Journal ").name == "Journal"

    @pytest.mark.parametrize("goal", [150, -20])
    def test_add_habit_validates_goal(self, local_tracker, goal):
        with pytest.raises(ValidationError, match="Goal"):
            local_tracker.add_habit("Stretch", goal=goal)
        assert len(local_tracker.habits) == 5

    def test_goal_survives_document_round_trip(self, local_tracker):
        habit = local_tracker.add_habit("Stretch", goal=60)
        restored = Snapshot.from_document(local_tracker.snapshot().to_document())
        assert restored.habits[-1].id == habit.id
        assert restored.habits[-1].goal == 60

    def test_add_habit_interactive(self, local_tracker):
        interaction = PresetInteraction(text="Cold shower")
        habit = local_tracker.add_habit_interactive(interaction)
        assert habit.name == "Cold shower"
        assert interaction.prompts == ["Enter new habit name:"]

    @pytest.mark.parametrize("answer", [None, "", "   "])
    def test_add_habit_interactive_cancelled(self, local_tracker, answer):
        assert local_tracker.add_habit_interactive(PresetInteraction(text=answer)) is None
        assert len(local_tracker.habits) == 5

    def test_delete_requires_confirmation(self, local_tracker):
        assert local_tracker.delete_habit_interactive(1, PresetInteraction(confirmed=False)) is False
        assert local_tracker.habit_store.get(1) is not None

        interaction = PresetInteraction(confirmed=True)
        assert local_tracker.delete_habit_interactive(1, interaction) is True
        assert local_tracker.habit_store.get(1) is None
        assert interaction.prompts == ["Delete this habit row?"]

    def test_delete_unknown_does_not_prompt(self, local_tracker):
        interaction = PresetInteraction(confirmed=True)
        assert local_tracker.delete_habit_interactive(42, interaction) is False
        assert interaction.prompts == []

    def test_console_interaction(self):
        answers = iter(["Stretch", "y"])
        console = ConsoleInteraction(input_fn=lambda _: next(answers))
        assert console.prompt_text("Name?") == "Stretch"
        assert console.confirm("Sure?") is True

    def test_console_interaction_eof(self):
        def eof(_):
            raise EOFError

        console = ConsoleInteraction(input_fn=eof)
        assert console.prompt_text("Name?") is None
        assert console.confirm("Sure?") is False

    def test_metrics_default_to_today(self, local_tracker):
        local_tracker.set_mood(4)
        local_tracker.set_sleep_hours(7.5)
        stats = local_tracker.today_stats()
        assert (stats.mood, stats.sleep_hours) == (4, 7.5)

    def test_adjust_sleep(self, local_tracker):
        day = date(2024, 6, 3)
        assert local_tracker.adjust_sleep_hours(1, day) == 1
        assert local_tracker.adjust_sleep_hours(-2, day) == 0

    def test_invalid_mood_raises(self, local_tracker):
        with pytest.raises(ValidationError):
            local_tracker.set_mood(0)


class TestViews:

    def test_month_report_uses_current_window(self, local_tracker):
        local_tracker.toggle_habit(1, date(2024, 6, 1))
        report = local_tracker.month_report()
        assert (report.year, report.month) == (2024, 6)
        assert report.habits[0].done == 1

    def test_month_report_for_other_window(self, local_tracker):
        local_tracker.toggle_habit(1, date(2024, 5, 31))
        report = local_tracker.month_report(MonthWindow(2024, 5))
        assert report.daily[-1].completed == 1

    def test_bands_follow_config(self, env):
        from dailyhabit.config import load_config

        tracker = HabitTracker(load_config({**env, "HIGH_BAND": "10", "MEDIUM_BAND": "5"}))
        tracker.toggle_habit(1, date(2024, 6, 1))
        tracker.toggle_habit(1, date(2024, 6, 2))
        tracker.toggle_habit(1, date(2024, 6, 3))
        assert tracker.month_report(MonthWindow(2024, 6)).habits[0].band == "high"

    def test_metric_stats(self, local_tracker):
        local_tracker.set_sleep_hours(6, date(2024, 6, 1))
        local_tracker.set_sleep_hours(8, date(2024, 6, 2))
        assert local_tracker.metric_stats(MetricType.SLEEP).average_hours == 7.0
        assert local_tracker.metric_stats(MetricType.MOOD).logged_days == 0

    def test_export_formats(self, local_tracker):
        assert local_tracker.export("json").startswith(b"{")
        assert local_tracker.export("csv").startswith(b"row,goal,2024-06-01")
        with pytest.raises(ValidationError):
            local_tracker.export("xml")

    def test_status(self, tracker):
        status = tracker.status()
        assert status["local_only"] is True
        assert status["identity"] is None
        assert status["sync"]["backend"] == "memory"


class TestSignedIn:

    @pytest.mark.asyncio
    async def test_sign_in_seeds_remote_document(self, tracker, memory_store):
        await tracker.sign_in("alice")

        stored = await memory_store.get(tracker.gateway.document_path("alice"))
        assert [h["id"] for h in stored["habits"]] == [1, 2, 3, 4, 5]
        assert tracker.identity == "alice"
        assert tracker.loading is False
        await tracker.close()

    @pytest.mark.asyncio
    async def test_sign_in_rejects_bad_identity(self, tracker):
        with pytest.raises(ValidationError):
            await tracker.sign_in("a/b")
        with pytest.raises(ValidationError):
            await tracker.sign_in("   ")

    @pytest.mark.asyncio
    async def test_mutation_persists_whole_snapshot(self, tracker, memory_store):
        await tracker.sign_in("alice")
        tracker.toggle_habit(2, date(2024, 6, 10))
        tracker.set_mood(5, date(2024, 6, 10))
        await tracker.gateway.drain()

        stored = await memory_store.get(tracker.gateway.document_path("alice"))
        assert stored["habits"][1]["data"] == {"2024-06-10": True}
        assert stored["metrics"] == {"2024-06-10": {"mood": 5}}
        assert tracker.gateway.writes_completed == 2  # seed document is written directly
        await tracker.close()

    @pytest.mark.asyncio
    async def test_noop_actions_do_not_write(self, tracker):
        await tracker.sign_in("alice")
        issued = tracker.gateway.writes_issued

        tracker.toggle_habit("missing")
        tracker.delete_habit("missing")
        with pytest.raises(ValidationError):
            tracker.set_mood(9)

        assert tracker.gateway.writes_issued == issued
        await tracker.close()

    @pytest.mark.asyncio
    async def test_remote_push_replaces_local_state(self, tracker, memory_store, settle):
        await tracker.sign_in("alice")
        await settle()

        remote = Snapshot(habits=[], metrics={})
        remote.last_updated = "2024-06-15T10:00:00+00:00"
        await memory_store.set(tracker.gateway.document_path("alice"), remote.to_document())
        await settle()

        assert tracker.habits == []
        assert tracker.last_remote_update == "2024-06-15T10:00:00+00:00"
        assert tracker.gateway.writes_issued == 0  # remote updates are never written back
        await tracker.close()

    @pytest.mark.asyncio
    async def test_echo_of_own_write_keeps_state(self, tracker, settle):
        await tracker.sign_in("alice")
        tracker.toggle_habit(1, date(2024, 6, 1))
        tracker.set_sleep_hours(7, date(2024, 6, 1))
        before = tracker.snapshot()

        await tracker.gateway.drain()
        await settle()

        after = tracker.snapshot()
        assert after.habits == before.habits
        assert after.metrics == before.metrics
        await tracker.close()

    @pytest.mark.asyncio
    async def test_read_failure_falls_back_to_seed(self, config):
        store = InMemoryDocumentStore()
        store.get = AsyncMock(side_effect=DocumentStoreError("permission denied"))
        tracker = HabitTracker(config, gateway=SyncGateway(store, config.sync))
        tracker.add_habit("Local only")

        snapshot = await tracker.sign_in("alice")

        assert [h.id for h in snapshot.habits] == [1, 2, 3, 4, 5]
        assert len(tracker.habits) == 5
        assert tracker.loading is False
        assert any("permission denied" in n for n in tracker.notices)
        await tracker.close()

    @pytest.mark.asyncio
    async def test_write_failure_keeps_local_state(self, tracker, memory_store):
        await tracker.sign_in("alice")
        memory_store.set = AsyncMock(side_effect=DocumentStoreError("offline"))

        tracker.toggle_habit(1, date(2024, 6, 2))
        await tracker.gateway.drain()

        assert "2024-06-02" in tracker.habit_store.get(1).completions
        assert tracker.gateway.writes_failed == 1
        await tracker.close()

    @pytest.mark.asyncio
    async def test_subscription_failure_adds_notice(self, config, settle):
        class FailingWatchStore(InMemoryDocumentStore):
            async def watch(self, path):
                raise DocumentStoreError("listener denied")
                yield  # pragma: no cover

        tracker = HabitTracker(config, gateway=SyncGateway(FailingWatchStore(), config.sync))
        await tracker.sign_in("alice")
        tracker.toggle_habit(1, date(2024, 6, 1))
        await settle()

        assert any("listener denied" in n for n in tracker.notices)
        assert "2024-06-01" in tracker.habit_store.get(1).completions
        assert tracker.status()["following"] is False
        await tracker.close()

    @pytest.mark.asyncio
    async def test_sign_out_returns_to_seed(self, tracker):
        await tracker.sign_in("alice")
        tracker.add_habit("Mine")
        await tracker.sign_out()

        assert tracker.local_only
        assert len(tracker.habits) == 5
        issued = tracker.gateway.writes_issued
        tracker.toggle_habit(1)
        assert tracker.gateway.writes_issued == issued
        await tracker.close()

    @pytest.mark.asyncio
    async def test_identities_are_isolated(self, tracker, memory_store):
        await tracker.sign_in("alice")
        tracker.add_habit("Alice only")
        await tracker.gateway.drain()

        await tracker.sign_in("bob")
        assert "Alice only" not in [h.name for h in tracker.habits]
        await tracker.close()

    def test_notices_are_capped(self, local_tracker):
        for i in range(MAX_NOTICES + 5):
            local_tracker._add_notice(f"n{i}")
        assert len(local_tracker.notices) == MAX_NOTICES
        assert local_tracker.notices[-1] == f"n{MAX_NOTICES + 4}"


class TestBuildTracker:

    @pytest.mark.asyncio
    async def test_file_backend_survives_restart(self, env):
        from dailyhabit.config import load_config

        config = load_config({**env, "SYNC_BACKEND": "file"})
        first = build_tracker(config)
        await first.sign_in("alice")
        first.add_habit("Persisted")
        await first.close()

        second = build_tracker(config)
        await second.sign_in("alice")
        assert "Persisted" in [h.name for h in second.habits]
        await second.close()

    @pytest.mark.asyncio
    async def test_close_is_safe_when_local(self, config):
        tracker = build_tracker(config)
        await tracker.close()
        await asyncio.sleep(0)
