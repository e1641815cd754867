#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - Core Data Models
Habits, daily wellness metrics and the persisted snapshot

Version: 1.0.0
"""

import copy
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from dailyhabit.utils.validators import (
    is_valid_date_key,
    is_valid_goal,
    is_valid_mood,
    is_valid_sleep_hours,
)

logger = logging.getLogger(__name__)

HabitId = Union[int, str]

# ===== ENUMS =====

class MoodLevel(Enum):
    """Five-point mood scale"""
    ANGRY = 1
    BAD = 2
    OKAY = 3
    GOOD = 4
    GREAT = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


class MetricType(Enum):
    """Tracked wellness metrics"""
    MOOD = "mood"
    SLEEP = "sleep"

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Data validation error"""
    pass


def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Validate and strip a text field"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} must contain at least {min_length} characters")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must contain at most {max_length} characters")

    return text


def validate_mood(value: Any) -> int:
    if not is_valid_mood(value):
        raise ValidationError(f"Mood must be an integer between 1 and 5, got {value!r}")
    return value


def validate_sleep_hours(value: Any) -> float:
    if not is_valid_sleep_hours(value):
        raise ValidationError(f"Sleep hours must be a non-negative number, got {value!r}")
    return value


def validate_goal(value: Any) -> int:
    if not is_valid_goal(value):
        raise ValidationError(f"Goal must be an integer between 0 and 100, got {value!r}")
    return value


def new_habit_id() -> str:
    return uuid.uuid4().hex


def same_habit_id(left: HabitId, right: HabitId) -> bool:
    """Ids arrive as int or str depending on who created them"""
    return left == right or str(left) == str(right)

# ===== CORE MODELS =====

@dataclass
class Habit:
    """A tracked habit and the days it was done"""
    id: HabitId
    name: str
    goal: int = 100
    completions: Set[str] = field(default_factory=set)

    def is_done(self, date_key: str) -> bool:
        return date_key in self.completions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "goal": self.goal,
            "data": {key: True for key in sorted(self.completions)},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        if not isinstance(data, dict):
            raise ValidationError(f"Habit entry must be an object, got {type(data).__name__}")
        if data.get("id") is None:
            raise ValidationError("Habit entry without id")

        goal = data.get("goal", 100)
        if not is_valid_goal(goal):
            logger.warning(f"⚠️ Habit {data['id']}: invalid goal {goal!r}, using 100")
            goal = 100

        completions = set()
        for key, done in (data.get("data") or {}).items():
            if not done:
                continue
            if not is_valid_date_key(key):
                logger.warning(f"⚠️ Habit {data['id']}: skipping bad date key {key!r}")
                continue
            completions.add(key)

        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            goal=goal,
            completions=completions,
        )

    @classmethod
    def create(cls, name: str, goal: int = 100) -> "Habit":
        """New habit with a fresh id and no completions. The name is taken as given."""
        return cls(id=new_habit_id(), name=name, goal=goal)


@dataclass
class DailyMetrics:
    """Mood and sleep logged for one day"""
    mood: Optional[int] = None
    sleep_hours: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        if self.mood is not None:
            data["mood"] = self.mood
        if self.sleep_hours is not None:
            data["sleep"] = self.sleep_hours
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyMetrics":
        if not isinstance(data, dict):
            raise ValidationError(f"Metrics entry must be an object, got {type(data).__name__}")

        mood = data.get("mood")
        if mood is not None and not is_valid_mood(mood):
            logger.warning(f"⚠️ Dropping out-of-range mood {mood!r}")
            mood = None

        sleep = data.get("sleep")
        if sleep is not None and not is_valid_sleep_hours(sleep):
            logger.warning(f"⚠️ Dropping invalid sleep value {sleep!r}")
            sleep = None

        return cls(mood=mood, sleep_hours=sleep)


def default_habits() -> List[Habit]:
    """Seed habit set for a new identity"""
    return [
        Habit(id=1, name="Wake up at 5:00 AM", goal=100),
        Habit(id=2, name="Deep Work (2 hrs)", goal=80),
        Habit(id=3, name="No Sugar", goal=90),
        Habit(id=4, name="Read 10 Pages", goal=100),
        Habit(id=5, name="Workout / Gym", goal=75),
    ]


@dataclass
class Snapshot:
    """Unit of persistence: everything stored for one identity"""
    habits: List[Habit] = field(default_factory=list)
    metrics: Dict[str, DailyMetrics] = field(default_factory=dict)
    last_updated: Optional[str] = None

    @classmethod
    def default(cls) -> "Snapshot":
        return cls(habits=default_habits(), metrics={})

    def copy(self) -> "Snapshot":
        return copy.deepcopy(self)

    def to_export_dict(self) -> Dict[str, Any]:
        return {
            "habits": [h.to_dict() for h in self.habits],
            "metrics": {key: self.metrics[key].to_dict() for key in sorted(self.metrics)},
        }

    def to_document(self) -> Dict[str, Any]:
        document = self.to_export_dict()
        document["lastUpdated"] = self.last_updated
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Snapshot":
        """Decode a remote document; missing sections fall back to the seed"""
        if not isinstance(document, dict):
            raise ValidationError(f"Snapshot document must be an object, got {type(document).__name__}")

        raw_habits = document.get("habits")
        if raw_habits is None:
            habits = default_habits()
        else:
            if not isinstance(raw_habits, list):
                raise ValidationError("Snapshot 'habits' must be a list")
            habits = []
            seen_ids = set()
            for raw in raw_habits:
                habit = Habit.from_dict(raw)
                if str(habit.id) in seen_ids:
                    logger.warning(f"⚠️ Duplicate habit id {habit.id} in snapshot, keeping the first")
                    continue
                seen_ids.add(str(habit.id))
                habits.append(habit)

        raw_metrics = document.get("metrics") or {}
        if not isinstance(raw_metrics, dict):
            raise ValidationError("Snapshot 'metrics' must be an object")
        metrics = {}
        for key, entry in raw_metrics.items():
            if not is_valid_date_key(key):
                logger.warning(f"⚠️ Skipping metrics for bad date key {key!r}")
                continue
            metrics[key] = DailyMetrics.from_dict(entry)

        return cls(habits=habits, metrics=metrics, last_updated=document.get("lastUpdated"))
