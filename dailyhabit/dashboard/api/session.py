from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from dailyhabit.core.models import ValidationError
from dailyhabit.services.sync_service import SyncReadFailure
from dailyhabit.services.tracker_service import HabitTracker

from ..dependencies import get_tracker
from ..schemas import SignInRequest

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("/", response_model=Dict[str, Any])
async def get_session(tracker: HabitTracker = Depends(get_tracker)):
    """
    Current identity, sync state and passive notices
    """
    return tracker.status()


@router.post("/sign-in", response_model=Dict[str, Any])
async def sign_in(payload: SignInRequest, tracker: HabitTracker = Depends(get_tracker)):
    """
    Switch to an identity; its document is created from the seed when missing
    """
    try:
        await tracker.sign_in(payload.user_id)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SyncReadFailure as e:
        raise HTTPException(status_code=503, detail=str(e))
    return tracker.status()


@router.post("/sign-out", response_model=Dict[str, Any])
async def sign_out(tracker: HabitTracker = Depends(get_tracker)):
    await tracker.sign_out()
    return tracker.status()
