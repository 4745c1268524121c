# habit_tracker/schemas/habit.py
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class HabitBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)

    class Config:
        str_strip_whitespace = True

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class HabitCreate(HabitBase):
    pass


class HabitUpdate(HabitBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @model_validator(mode="after")
    def _require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        if "name" in self.model_fields_set and self.name is None:
            raise ValueError("name cannot be null")
        return self


class Habit(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: str
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class HabitOut(BaseModel):
    habit: Habit


class HabitList(BaseModel):
    habits: List[Habit]


class HabitLogCreate(BaseModel):
    date: dt.date
    completed: bool
    notes: Optional[str] = Field(default=None, max_length=2000)

    class Config:
        str_strip_whitespace = True


class HabitLog(BaseModel):
    id: int
    habit_id: int
    date: dt.date
    completed: bool
    notes: Optional[str] = None
    created_at: dt.datetime

    class Config:
        from_attributes = True


class HabitLogOut(BaseModel):
    log: HabitLog


class HabitLogList(BaseModel):
    logs: List[HabitLog]


class PredefinedHabit(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: str
    display_order: int
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class PredefinedHabitList(BaseModel):
    habits: List[PredefinedHabit]


# --- Weekly grid ---

class WeekCell(BaseModel):
    date: dt.date
    completed: bool = False
    log_id: Optional[int] = None


class WeekRow(BaseModel):
    habit: Habit
    cells: List[WeekCell]


class WeekGrid(BaseModel):
    week_start: dt.date
    week_end: dt.date
    today: dt.date
    days: List[dt.date]
    rows: List[WeekRow]
