#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - In-memory Stores
Habit list with completion marks and per-day mood/sleep entries

Every mutation that actually changes something notifies the registered
listeners with the full resulting collection; no-ops stay silent. Inbound
snapshots go through replace_all(), which never notifies.

Version: 1.0.0
"""

import copy
import logging
from typing import Callable, Dict, Iterable, List, Optional

import pytz

from dailyhabit.core.models import (
    DailyMetrics,
    Habit,
    HabitId,
    ValidationError,
    same_habit_id,
    validate_goal,
    validate_mood,
    validate_sleep_hours,
)
from dailyhabit.utils.datetime_utils import DateLike, normalize_date

logger = logging.getLogger(__name__)

HabitsListener = Callable[[List[Habit]], None]
MetricsListener = Callable[[Dict[str, DailyMetrics]], None]


class _ListenerMixin:

    def _init_listeners(self):
        self._listeners: List[Callable] = []

    def add_listener(self, listener: Callable) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, payload) -> None:
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception as e:
                # local state is already updated; a broken listener must not undo that
                logger.error(f"❌ Store listener {listener!r} failed: {e}")


class HabitStore(_ListenerMixin):
    """Ordered habit list with completion sets"""

    def __init__(self, habits: Optional[Iterable[Habit]] = None,
                 tz: Optional[pytz.BaseTzInfo] = None):
        self._habits: List[Habit] = copy.deepcopy(list(habits or []))
        self._tz = tz
        self._init_listeners()

    @property
    def habits(self) -> List[Habit]:
        return copy.deepcopy(self._habits)

    def __len__(self) -> int:
        return len(self._habits)

    def _find(self, habit_id: HabitId) -> Optional[Habit]:
        for habit in self._habits:
            if same_habit_id(habit.id, habit_id):
                return habit
        return None

    def get(self, habit_id: HabitId) -> Optional[Habit]:
        habit = self._find(habit_id)
        return copy.deepcopy(habit) if habit else None

    def add_habit(self, name: str, goal: int = 100) -> Habit:
        goal = validate_goal(goal)
        habit = Habit.create(name, goal=goal)
        while self._find(habit.id) is not None:
            habit = Habit.create(name, goal=goal)

        self._habits.append(habit)
        logger.debug(f"➕ Habit added: {habit.id} ({habit.name})")
        self._notify(self.habits)
        return copy.deepcopy(habit)

    def toggle_completion(self, habit_id: HabitId, day: DateLike) -> Optional[bool]:
        """Flip the day's mark. Returns the new state, or None for an unknown habit."""
        habit = self._find(habit_id)
        if habit is None:
            logger.debug(f"Toggle ignored, habit {habit_id} not found")
            return None

        date_key = normalize_date(day, self._tz)
        if date_key in habit.completions:
            habit.completions.discard(date_key)
            done = False
        else:
            habit.completions.add(date_key)
            done = True

        self._notify(self.habits)
        return done

    def delete_habit(self, habit_id: HabitId) -> bool:
        habit = self._find(habit_id)
        if habit is None:
            return False

        self._habits.remove(habit)
        logger.debug(f"🗑️ Habit deleted: {habit.id}")
        self._notify(self.habits)
        return True

    def replace_all(self, habits: Iterable[Habit]) -> None:
        self._habits = copy.deepcopy(list(habits))


class MetricStore(_ListenerMixin):
    """Per-day mood and sleep entries"""

    def __init__(self, metrics: Optional[Dict[str, DailyMetrics]] = None,
                 tz: Optional[pytz.BaseTzInfo] = None):
        self._metrics: Dict[str, DailyMetrics] = copy.deepcopy(dict(metrics or {}))
        self._tz = tz
        self._init_listeners()

    @property
    def metrics(self) -> Dict[str, DailyMetrics]:
        return copy.deepcopy(self._metrics)

    def get(self, day: DateLike) -> Optional[DailyMetrics]:
        entry = self._metrics.get(normalize_date(day, self._tz))
        return copy.deepcopy(entry) if entry else None

    def _entry(self, day: DateLike) -> DailyMetrics:
        date_key = normalize_date(day, self._tz)
        if date_key not in self._metrics:
            self._metrics[date_key] = DailyMetrics()
        return self._metrics[date_key]

    def set_mood(self, day: DateLike, value: int) -> None:
        """Out-of-range values raise ValidationError and leave the store untouched."""
        validate_mood(value)
        self._entry(day).mood = value
        self._notify(self.metrics)

    def set_sleep_hours(self, day: DateLike, value: float) -> None:
        validate_sleep_hours(value)
        self._entry(day).sleep_hours = value
        self._notify(self.metrics)

    def adjust_sleep_hours(self, day: DateLike, delta: float) -> float:
        """Step the day's sleep value by delta, never below zero"""
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            raise ValidationError(f"Sleep delta must be a number, got {delta!r}")

        current = self._metrics.get(normalize_date(day, self._tz))
        hours = (current.sleep_hours if current and current.sleep_hours is not None else 0) + delta
        hours = max(0, hours)
        self.set_sleep_hours(day, hours)
        return hours

    def replace_all(self, metrics: Dict[str, DailyMetrics]) -> None:
        self._metrics = copy.deepcopy(dict(metrics))
