from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from dailyhabit.core.models import ValidationError
from dailyhabit.services.tracker_service import HabitTracker
from dailyhabit.utils.datetime_utils import normalize_date

from ..dependencies import get_tracker, resolve_day, resolve_window
from ..schemas import MetricsResponse, MoodUpdate, SleepAdjust, SleepUpdate

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("/", response_model=MetricsResponse)
async def get_metrics(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Mood and sleep entries logged within a month
    """
    window = resolve_window(tracker, year, month)
    keys = set(window.keys)
    entries = {
        key: entry.to_dict()
        for key, entry in sorted(tracker.metric_store.metrics.items())
        if key in keys
    }
    return MetricsResponse(year=window.year, month=window.month, metrics=entries)


@router.put("/{date}/mood", response_model=Dict[str, Any])
async def set_mood(date: str, payload: MoodUpdate, tracker: HabitTracker = Depends(get_tracker)):
    day = resolve_day(tracker, date)
    try:
        tracker.set_mood(payload.value, day)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"date": normalize_date(day), **tracker.metric_store.get(day).to_dict()}


@router.put("/{date}/sleep", response_model=Dict[str, Any])
async def set_sleep(date: str, payload: SleepUpdate, tracker: HabitTracker = Depends(get_tracker)):
    day = resolve_day(tracker, date)
    try:
        tracker.set_sleep_hours(payload.hours, day)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"date": normalize_date(day), **tracker.metric_store.get(day).to_dict()}


@router.post("/{date}/sleep/adjust", response_model=Dict[str, Any])
async def adjust_sleep(date: str, payload: SleepAdjust, tracker: HabitTracker = Depends(get_tracker)):
    """
    Step the day's sleep hours up or down, never below zero
    """
    day = resolve_day(tracker, date)
    try:
        hours = tracker.adjust_sleep_hours(payload.delta, day)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"date": normalize_date(day), "sleep": hours}
