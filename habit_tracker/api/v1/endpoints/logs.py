# habit_tracker/api/v1/endpoints/logs.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from habit_tracker.core.config import settings
from habit_tracker.db import session
from habit_tracker.schemas import habit as habit_schema
from habit_tracker.services import habit_logs, habits, weekly

router = APIRouter()


@router.get("/logs", response_model=habit_schema.HabitLogList)
def read_logs(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(session.get_db),
):
    """ Returns every log, or only those between start_date and end_date inclusive. """
    return {"logs": habit_logs.list_logs(db, start_date, end_date)}


@router.get("/predefined-habits", response_model=habit_schema.PredefinedHabitList)
def read_predefined_habits(db: Session = Depends(session.get_db)):
    return {"habits": habits.list_predefined_habits(db)}


@router.get("/weekly", response_model=habit_schema.WeekGrid)
def read_week(week_of: Optional[date] = None, db: Session = Depends(session.get_db)):
    """ Habit-by-day completion grid for the Monday-to-Sunday week holding week_of (default: this week). """
    today = weekly.local_today(settings.LOCAL_TIMEZONE)
    return weekly.build_week_grid(db, week_of or today, today)
