from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from dailyhabit.services.data_export import export_filename
from dailyhabit.services.tracker_service import HabitTracker

from ..dependencies import get_tracker, resolve_window

router = APIRouter(prefix="/api/export", tags=["export"])

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
}


@router.get("/")
async def download_export(
    format: str = Query("json", pattern="^(json|csv)$"),
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Download habits and metrics as JSON backup or as a month CSV grid
    """
    window = resolve_window(tracker, year, month) if format == "csv" else None
    payload = tracker.export(format, window)
    filename = export_filename(format, window)
    return Response(
        content=payload,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
