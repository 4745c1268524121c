# habit_tracker/services/weekly.py
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from habit_tracker.db import models
from habit_tracker.schemas import habit as habit_schema
from habit_tracker.services import habit_logs, habits


def local_today(tz_name: str, now: datetime | None = None) -> date:
    """Today's calendar day on the local wall clock, not in UTC."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def week_start(day: date) -> date:
    """Monday of the week containing ``day``; Sunday closes the previous week."""
    return day - timedelta(days=day.weekday())


def week_days(start: date) -> list[date]:
    return [start + timedelta(days=offset) for offset in range(7)]


def build_week_grid(db: Session, any_day: date, today: date) -> habit_schema.WeekGrid:
    """Every habit against the seven days of the week holding ``any_day``."""
    days = week_days(week_start(any_day))
    logs = habit_logs.list_logs(db, days[0], days[-1])
    by_key: dict[tuple[int, date], models.HabitLog] = {(log.habit_id, log.date): log for log in logs}

    rows = []
    for habit in habits.list_habits(db):
        cells = []
        for day in days:
            log = by_key.get((habit.id, day))
            cells.append(habit_schema.WeekCell(
                date=day,
                completed=bool(log and log.completed),
                log_id=log.id if log else None,
            ))
        rows.append(habit_schema.WeekRow(habit=habit_schema.Habit.model_validate(habit), cells=cells))

    return habit_schema.WeekGrid(week_start=days[0], week_end=days[-1], today=today, days=days, rows=rows)
