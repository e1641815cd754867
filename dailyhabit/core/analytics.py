#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - Analytics Engine
Daily, per-habit and per-metric statistics over a month window

Every function here is pure: same habits, metrics and window in, same
result out. Nothing is cached; callers recompute on each read.

Version: 1.0.0
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

from dailyhabit.core.models import DailyMetrics, Habit, MetricType
from dailyhabit.utils.datetime_utils import MonthWindow, normalize_date

# ===== HELPERS =====

def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero; the builtin round() rounds half to even"""
    exponent = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return int(round_half_up(part / whole * 100))


def sleep_logged(entry: Optional[DailyMetrics]) -> bool:
    # a zero value is what the stepper leaves behind after stepping back down
    return entry is not None and entry.sleep_hours is not None and entry.sleep_hours > 0


def mood_logged(entry: Optional[DailyMetrics]) -> bool:
    return entry is not None and entry.mood is not None


@dataclass(frozen=True)
class PerformanceBands:
    """Habit percentage tiers"""
    high: int = 80
    medium: int = 50

    def classify(self, percentage: int) -> str:
        if percentage >= self.high:
            return "high"
        if percentage >= self.medium:
            return "medium"
        return "low"

# ===== RESULT MODELS =====

@dataclass(frozen=True)
class DailyStat:
    date: str
    day: int
    completed: int
    not_done: int
    rate: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HabitMonthlyStats:
    habit_id: Any
    name: str
    goal: int
    days_in_window: int
    done: int
    percentage: int
    band: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MoodStats:
    logged_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {"type": MetricType.MOOD.value, "logged_days": self.logged_days}


@dataclass(frozen=True)
class SleepStats:
    average_hours: float
    logged_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": MetricType.SLEEP.value,
            "average_hours": self.average_hours,
            "logged_days": self.logged_days,
        }


@dataclass(frozen=True)
class TodayStats:
    date: str
    completed: int
    total: int
    remaining: int
    rate: int
    mood: Optional[int] = None
    sleep_hours: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MonthReport:
    year: int
    month: int
    label: str
    daily: List[DailyStat] = field(default_factory=list)
    habits: List[HabitMonthlyStats] = field(default_factory=list)
    mood: MoodStats = field(default_factory=lambda: MoodStats(0))
    sleep: SleepStats = field(default_factory=lambda: SleepStats(0.0, 0))
    average_rate: float = 0.0
    target_rate: int = 80
    days_on_target: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "label": self.label,
            "daily": [d.to_dict() for d in self.daily],
            "habits": [h.to_dict() for h in self.habits],
            "metrics": {
                "mood": self.mood.to_dict(),
                "sleep": self.sleep.to_dict(),
            },
            "average_rate": self.average_rate,
            "target_rate": self.target_rate,
            "days_on_target": self.days_on_target,
        }

# ===== STATISTICS =====

def daily_stats(habits: Sequence[Habit], month_dates: Sequence[date]) -> List[DailyStat]:
    total = len(habits)
    stats = []
    for day in month_dates:
        date_key = normalize_date(day)
        completed = sum(1 for h in habits if h.is_done(date_key))
        stats.append(DailyStat(
            date=date_key,
            day=day.day,
            completed=completed,
            not_done=total - completed,
            rate=percent(completed, total),
        ))
    return stats


def habit_monthly_stats(habit: Habit, month_dates: Sequence[date],
                        bands: PerformanceBands = PerformanceBands()) -> HabitMonthlyStats:
    days_in_window = len(month_dates)
    done = sum(1 for day in month_dates if habit.is_done(normalize_date(day)))
    percentage = percent(done, days_in_window)
    return HabitMonthlyStats(
        habit_id=habit.id,
        name=habit.name,
        goal=habit.goal,
        days_in_window=days_in_window,
        done=done,
        percentage=percentage,
        band=bands.classify(percentage),
    )


def mood_stats(metrics: Dict[str, DailyMetrics], month_dates: Sequence[date]) -> MoodStats:
    logged = sum(1 for day in month_dates if mood_logged(metrics.get(normalize_date(day))))
    return MoodStats(logged_days=logged)


def sleep_stats(metrics: Dict[str, DailyMetrics], month_dates: Sequence[date]) -> SleepStats:
    values = []
    for day in month_dates:
        entry = metrics.get(normalize_date(day))
        if sleep_logged(entry):
            values.append(entry.sleep_hours)

    if not values:
        return SleepStats(average_hours=0.0, logged_days=0)
    return SleepStats(
        average_hours=round_half_up(sum(values) / len(values), 1),
        logged_days=len(values),
    )


def metric_stats(metric_type, metrics: Dict[str, DailyMetrics], month_dates: Sequence[date]):
    metric_type = MetricType(metric_type)
    if metric_type is MetricType.MOOD:
        return mood_stats(metrics, month_dates)
    return sleep_stats(metrics, month_dates)


def today_snapshot(habits: Sequence[Habit], metrics: Dict[str, DailyMetrics], today: date) -> TodayStats:
    """Completion figures for a single day, independent of the displayed month"""
    date_key = normalize_date(today)
    total = len(habits)
    completed = sum(1 for h in habits if h.is_done(date_key))
    entry = metrics.get(date_key)
    return TodayStats(
        date=date_key,
        completed=completed,
        total=total,
        remaining=total - completed,
        rate=percent(completed, total),
        mood=entry.mood if entry else None,
        sleep_hours=entry.sleep_hours if entry else None,
    )


def month_report(habits: Sequence[Habit], metrics: Dict[str, DailyMetrics], window: MonthWindow,
                 bands: PerformanceBands = PerformanceBands(), target_rate: int = 80) -> MonthReport:
    month_dates = window.dates
    daily = daily_stats(habits, month_dates)
    average_rate = round_half_up(sum(d.rate for d in daily) / len(daily), 1) if daily else 0.0

    return MonthReport(
        year=window.year,
        month=window.month,
        label=window.label,
        daily=daily,
        habits=[habit_monthly_stats(h, month_dates, bands) for h in habits],
        mood=mood_stats(metrics, month_dates),
        sleep=sleep_stats(metrics, month_dates),
        average_rate=average_rate,
        target_rate=target_rate,
        days_on_target=sum(1 for d in daily if d.rate >= target_rate),
    )
