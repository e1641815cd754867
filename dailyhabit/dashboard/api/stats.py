from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from dailyhabit.services.tracker_service import HabitTracker

from ..dependencies import get_tracker, resolve_window

router = APIRouter(prefix="/api/stats", tags=["statistics"])


@router.get("/today", response_model=Dict[str, Any])
async def get_today_stats(tracker: HabitTracker = Depends(get_tracker)):
    """
    Today's completion rate, remaining habits, mood and sleep
    """
    return tracker.today_stats().to_dict()


@router.get("/month", response_model=Dict[str, Any])
async def get_month_stats(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Daily rates, per-habit percentages and metric summaries for a month
    """
    window = resolve_window(tracker, year, month)
    report = tracker.month_report(window).to_dict()

    # Month navigation
    previous, following = window.previous(), window.next()
    report["navigation"] = {
        "previous": {"year": previous.year, "month": previous.month},
        "next": {"year": following.year, "month": following.month},
    }
    return report


@router.get("/habits/{habit_id}", response_model=Dict[str, Any])
async def get_habit_stats(
    habit_id: str,
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Monthly figures for a single habit
    """
    window = resolve_window(tracker, year, month)
    for stats in tracker.month_report(window).habits:
        if str(stats.habit_id) == habit_id:
            return stats.to_dict()
    raise HTTPException(status_code=404, detail="Habit not found")
