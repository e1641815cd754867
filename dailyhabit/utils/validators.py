import math
import re

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MOOD_MIN = 1
MOOD_MAX = 5
HABIT_NAME_MAX = 200


def is_valid_habit_name(name) -> bool:
    return isinstance(name, str) and 1 <= len(name.strip()) <= HABIT_NAME_MAX


def is_valid_date_key(date_str) -> bool:
    return isinstance(date_str, str) and bool(DATE_KEY_RE.match(date_str))


def is_valid_mood(value) -> bool:
    # bool is an int subclass; True must not pass as mood 1
    return isinstance(value, int) and not isinstance(value, bool) and MOOD_MIN <= value <= MOOD_MAX


def is_valid_sleep_hours(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def is_valid_goal(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 100
