#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - Tracker Service
Ties identity, the habit/metric stores and the sync gateway together

Modes:
- local-only (no identity): everything stays in memory, the gateway is
  never touched
- signed in: every local mutation schedules a whole-snapshot persist, and
  every remote push replaces local state wholesale

Version: 1.0.0
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from dailyhabit.config import TrackerConfig
from dailyhabit.core import analytics
from dailyhabit.core.models import (
    Habit,
    HabitId,
    MetricType,
    Snapshot,
    ValidationError,
    validate_text,
)
from dailyhabit.core.stores import HabitStore, MetricStore
from dailyhabit.services.data_export import export_month_csv, export_snapshot_json
from dailyhabit.services.document_store import create_document_store
from dailyhabit.services.interaction import UserInteraction
from dailyhabit.services.sync_service import (
    SnapshotSubscription,
    SyncError,
    SyncGateway,
    SyncReadFailure,
)
from dailyhabit.utils.datetime_utils import DateLike, MonthWindow, today_in_zone
from dailyhabit.utils.validators import HABIT_NAME_MAX

logger = logging.getLogger(__name__)

MAX_NOTICES = 20


class HabitTracker:
    """
    One user's habit tracker.

    User actions run synchronously against the in-memory stores so callers
    see the result at once; persistence happens in the background.
    """

    def __init__(self, config: TrackerConfig, gateway: Optional[SyncGateway] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self.gateway = gateway
        self.tz = config.timezone
        self._clock = clock
        self.bands = analytics.PerformanceBands(
            high=config.analytics.high_band,
            medium=config.analytics.medium_band,
        )

        seed = Snapshot.default()
        self.habit_store = HabitStore(seed.habits, tz=self.tz)
        self.metric_store = MetricStore(seed.metrics, tz=self.tz)
        self.habit_store.add_listener(self._on_local_change)
        self.metric_store.add_listener(self._on_local_change)

        # Session state
        self.identity: Optional[str] = None
        self.loading = False
        self.notices: List[str] = []
        self.last_remote_update: Optional[str] = None
        self._subscription: Optional[SnapshotSubscription] = None
        self._consumer: Optional[asyncio.Task] = None

    # ===== SESSION =====

    @property
    def local_only(self) -> bool:
        return self.identity is None

    async def sign_in(self, identity: str) -> Snapshot:
        """Load (or seed) the identity's document and start following it"""
        identity = validate_text(identity, max_length=128, field_name="User id")
        if "/" in identity:
            raise ValidationError("User id must not contain '/'")
        if self.gateway is None:
            raise SyncReadFailure("No sync backend configured")

        if self.identity is not None:
            await self.sign_out()

        self.identity = identity
        self.loading = True
        logger.info(f"🔑 Signed in as {identity}")

        try:
            snapshot = await self.gateway.initialize_if_absent(identity)
        except SyncReadFailure as e:
            logger.error(f"❌ {e}")
            self._add_notice(f"Could not load your data, showing defaults: {e}")
            snapshot = Snapshot.default()
            self.apply_remote_snapshot(snapshot)
            self.loading = False
            return snapshot

        self.apply_remote_snapshot(snapshot)
        self._subscription = self.gateway.subscribe(identity, on_error=self._on_sync_error)
        self._consumer = asyncio.get_running_loop().create_task(self._consume(self._subscription))
        self.loading = False
        return snapshot

    async def sign_out(self) -> None:
        """Stop following the remote document and return to the seed state"""
        await self._stop_following()
        if self.identity is not None:
            logger.info(f"👋 Signed out {self.identity}")
        self.identity = None
        self.last_remote_update = None
        self.apply_remote_snapshot(Snapshot.default())

    async def _stop_following(self) -> None:
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None

    async def _consume(self, subscription: SnapshotSubscription) -> None:
        while True:
            snapshot = await subscription.next_snapshot()
            # the watch opens with the document sign_in already applied
            if snapshot.last_updated is not None and snapshot.last_updated == self.last_remote_update:
                continue
            self.apply_remote_snapshot(snapshot)

    def _on_sync_error(self, error: SyncError) -> None:
        self._add_notice(f"Live sync stopped: {error}")

    def _add_notice(self, message: str) -> None:
        self.notices.append(message)
        del self.notices[:-MAX_NOTICES]

    async def close(self) -> None:
        await self._stop_following()
        if self.gateway is not None:
            await self.gateway.drain()
            await self.gateway.store.close()

    # ===== SNAPSHOT =====

    def snapshot(self) -> Snapshot:
        return Snapshot(
            habits=self.habit_store.habits,
            metrics=self.metric_store.metrics,
            last_updated=self.last_remote_update,
        )

    def apply_remote_snapshot(self, snapshot: Snapshot) -> None:
        """Full overwrite of local state; never triggers a persist"""
        self.habit_store.replace_all(snapshot.habits)
        self.metric_store.replace_all(snapshot.metrics)
        self.last_remote_update = snapshot.last_updated
        logger.debug(f"🔄 Local state replaced ({len(snapshot.habits)} habits, {len(snapshot.metrics)} metric days)")

    def _on_local_change(self, _payload: Any) -> None:
        if self.local_only or self.gateway is None:
            return
        self.gateway.persist(self.identity, self.snapshot())

    # ===== ACTIONS =====

    def today(self) -> date:
        if self._clock is None:
            return today_in_zone(self.tz)
        now = self._clock()
        if now.tzinfo is not None:
            now = now.astimezone(self.tz)
        return now.date()

    @property
    def habits(self) -> List[Habit]:
        return self.habit_store.habits

    def add_habit(self, name: str, goal: int = 100) -> Habit:
        name = validate_text(name, max_length=HABIT_NAME_MAX, field_name="Habit name")
        return self.habit_store.add_habit(name, goal=goal)

    def toggle_habit(self, habit_id: HabitId, day: Optional[DateLike] = None) -> Optional[bool]:
        return self.habit_store.toggle_completion(habit_id, day or self.today())

    def delete_habit(self, habit_id: HabitId) -> bool:
        return self.habit_store.delete_habit(habit_id)

    def add_habit_interactive(self, interaction: UserInteraction) -> Optional[Habit]:
        name = interaction.prompt_text("Enter new habit name:")
        if not name or not name.strip():
            return None
        return self.add_habit(name)

    def delete_habit_interactive(self, habit_id: HabitId, interaction: UserInteraction) -> bool:
        if self.habit_store.get(habit_id) is None:
            return False
        if not interaction.confirm("Delete this habit row?"):
            return False
        return self.delete_habit(habit_id)

    def set_mood(self, value: int, day: Optional[DateLike] = None) -> None:
        self.metric_store.set_mood(day or self.today(), value)

    def set_sleep_hours(self, hours: float, day: Optional[DateLike] = None) -> None:
        self.metric_store.set_sleep_hours(day or self.today(), hours)

    def adjust_sleep_hours(self, delta: float, day: Optional[DateLike] = None) -> float:
        return self.metric_store.adjust_sleep_hours(day or self.today(), delta)

    # ===== VIEWS =====

    def current_window(self) -> MonthWindow:
        return MonthWindow.containing(self.today())

    def today_stats(self) -> analytics.TodayStats:
        return analytics.today_snapshot(self.habit_store.habits, self.metric_store.metrics, self.today())

    def month_report(self, window: Optional[MonthWindow] = None) -> analytics.MonthReport:
        return analytics.month_report(
            self.habit_store.habits,
            self.metric_store.metrics,
            window or self.current_window(),
            bands=self.bands,
            target_rate=self.config.analytics.target_rate,
        )

    def metric_stats(self, metric_type: MetricType, window: Optional[MonthWindow] = None):
        window = window or self.current_window()
        return analytics.metric_stats(metric_type, self.metric_store.metrics, window.dates)

    def export(self, fmt: str = "json", window: Optional[MonthWindow] = None) -> bytes:
        if fmt == "json":
            return export_snapshot_json(self.snapshot())
        if fmt == "csv":
            return export_month_csv(self.snapshot(), window or self.current_window())
        raise ValidationError(f"Unsupported export format: {fmt}")

    def status(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "local_only": self.local_only,
            "loading": self.loading,
            "following": self._subscription is not None and self._subscription.active,
            "last_remote_update": self.last_remote_update,
            "habits": len(self.habit_store),
            "notices": list(self.notices),
            "sync": self.gateway.get_metrics() if self.gateway else None,
        }


def build_tracker(config: TrackerConfig) -> HabitTracker:
    """Tracker wired to the document store named in the configuration"""
    store = create_document_store(config.sync)
    gateway = SyncGateway(store, config.sync)
    return HabitTracker(config, gateway=gateway)
