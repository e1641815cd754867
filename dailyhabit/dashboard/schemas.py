from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from dailyhabit.core.models import Habit

# Request models

class HabitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    goal: int = Field(100, ge=0, le=100)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Habit name must not be blank')
        return v.strip()


class ToggleRequest(BaseModel):
    date: Optional[str] = None  # YYYY-MM-DD, defaults to today


class MoodUpdate(BaseModel):
    value: int = Field(..., ge=1, le=5)


class SleepUpdate(BaseModel):
    hours: float = Field(..., ge=0)


class SleepAdjust(BaseModel):
    delta: float = Field(1, description="Step added to the day's sleep hours, result floored at 0")


class SignInRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)

# Response models

class HabitOut(BaseModel):
    id: Union[int, str]
    name: str
    goal: int
    completions: List[str] = []

    @classmethod
    def from_habit(cls, habit: Habit) -> "HabitOut":
        return cls(id=habit.id, name=habit.name, goal=habit.goal, completions=sorted(habit.completions))


class ToggleResponse(BaseModel):
    habit_id: Union[int, str]
    date: str
    done: bool


class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)


class MetricsResponse(BaseModel):
    year: int
    month: int
    metrics: Dict[str, Dict[str, Any]]
