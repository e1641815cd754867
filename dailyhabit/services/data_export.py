# services/data_export.py

import csv
import io
import json
from pathlib import Path
from typing import Optional

from dailyhabit.core.models import Snapshot
from dailyhabit.utils.datetime_utils import MonthWindow

EXPORT_FILENAME = "habit_tracker_backup.json"


def export_snapshot_json(snapshot: Snapshot) -> bytes:
    """{habits, metrics} as UTF-8 JSON; lastUpdated is left out"""
    return json.dumps(snapshot.to_export_dict(), ensure_ascii=False, indent=2).encode("utf-8")


def export_month_csv(snapshot: Snapshot, window: MonthWindow) -> bytes:
    """Tracker grid for one month: a row per habit plus mood and sleep rows"""
    keys = window.keys
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["row", "goal"] + keys)

    for habit in snapshot.habits:
        writer.writerow([habit.name, habit.goal] + [1 if habit.is_done(k) else "" for k in keys])

    mood_row, sleep_row = [], []
    for key in keys:
        entry = snapshot.metrics.get(key)
        mood_row.append(entry.mood if entry and entry.mood is not None else "")
        sleep_row.append(entry.sleep_hours if entry and entry.sleep_hours is not None else "")
    writer.writerow(["Mood", ""] + mood_row)
    writer.writerow(["Sleep Hours", ""] + sleep_row)

    return buffer.getvalue().encode("utf-8")


def export_filename(fmt: str, window: Optional[MonthWindow] = None) -> str:
    if fmt == "csv" and window is not None:
        return f"habit_tracker_{window.year:04d}_{window.month:02d}.csv"
    return EXPORT_FILENAME


def write_export(payload: bytes, export_dir: Path, filename: str = EXPORT_FILENAME) -> Path:
    export_dir = Path(export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)
    path = export_dir / filename
    with open(path, "wb") as f:
        f.write(payload)
    return path
