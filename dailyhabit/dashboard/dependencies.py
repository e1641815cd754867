"""FastAPI dependency providers for the dashboard"""

from datetime import date
from typing import Optional

from fastapi import HTTPException, Request

from dailyhabit.core.models import ValidationError
from dailyhabit.services.tracker_service import HabitTracker
from dailyhabit.utils.datetime_utils import MonthWindow, parse_date_key


def get_tracker(request: Request) -> HabitTracker:
    """Tracker created by the application lifespan"""
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Tracker is not initialized")
    return tracker


def resolve_window(tracker: HabitTracker, year: Optional[int], month: Optional[int]) -> MonthWindow:
    """Requested month, or the one containing today"""
    if year is None and month is None:
        return tracker.current_window()
    current = tracker.current_window()
    try:
        return MonthWindow(year if year is not None else current.year,
                           month if month is not None else current.month)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


def resolve_day(tracker: HabitTracker, date_str: Optional[str]) -> date:
    if date_str is None:
        return tracker.today()
    try:
        return parse_date_key(date_str)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
