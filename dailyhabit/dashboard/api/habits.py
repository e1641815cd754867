from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from dailyhabit.core.models import ValidationError
from dailyhabit.services.interaction import PresetInteraction
from dailyhabit.services.tracker_service import HabitTracker
from dailyhabit.utils.datetime_utils import normalize_date

from ..dependencies import get_tracker, resolve_day
from ..schemas import HabitCreate, HabitOut, ToggleRequest, ToggleResponse

router = APIRouter(prefix="/api/habits", tags=["habits"])


@router.get("/", response_model=List[HabitOut])
async def list_habits(tracker: HabitTracker = Depends(get_tracker)):
    """
    All habits in display order with their completion days
    """
    return [HabitOut.from_habit(h) for h in tracker.habits]


@router.post("/", response_model=HabitOut, status_code=201)
async def create_habit(payload: HabitCreate, tracker: HabitTracker = Depends(get_tracker)):
    """
    Append a new habit with a fresh id and no completions
    """
    try:
        habit = tracker.add_habit(payload.name, goal=payload.goal)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return HabitOut.from_habit(habit)


@router.delete("/{habit_id}", response_model=Dict[str, Any])
async def delete_habit(
    habit_id: str,
    confirm: bool = Query(False, description="Must be true to actually delete"),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Delete a habit row together with its completion history
    """
    if tracker.habit_store.get(habit_id) is None:
        raise HTTPException(status_code=404, detail="Habit not found")

    deleted = tracker.delete_habit_interactive(habit_id, PresetInteraction(confirmed=confirm))
    if not deleted:
        raise HTTPException(status_code=409, detail="Deletion was not confirmed")
    return {"deleted": True, "habit_id": habit_id}


@router.post("/{habit_id}/toggle", response_model=ToggleResponse)
async def toggle_habit(
    habit_id: str,
    payload: ToggleRequest = ToggleRequest(),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Flip the habit's completion mark for a day (today when no date is given)
    """
    day = resolve_day(tracker, payload.date)
    done = tracker.toggle_habit(habit_id, day)
    if done is None:
        raise HTTPException(status_code=404, detail="Habit not found")

    habit = tracker.habit_store.get(habit_id)
    return ToggleResponse(habit_id=habit.id, date=normalize_date(day), done=done)
