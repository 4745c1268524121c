# habit_tracker/api/v1/endpoints/habits.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from habit_tracker.core.config import settings
from habit_tracker.db import session
from habit_tracker.schemas import habit as habit_schema
from habit_tracker.services import habit_logs, habits, weekly

router = APIRouter()


@router.get("", response_model=habit_schema.HabitList)
def read_habits(search: Optional[str] = Query(default=None), db: Session = Depends(session.get_db)):
    """ Lists habits, newest first, optionally filtered by name or description. """
    return {"habits": habits.list_habits(db, search)}


@router.post("", response_model=habit_schema.HabitOut, status_code=status.HTTP_201_CREATED)
def create_habit(habit_in: habit_schema.HabitCreate, db: Session = Depends(session.get_db)):
    return {"habit": habits.create_habit(db, habit_in)}


@router.get("/{habit_id}", response_model=habit_schema.HabitOut)
def read_habit(habit_id: int, db: Session = Depends(session.get_db)):
    return {"habit": habits.get_habit(db, habit_id)}


@router.put("/{habit_id}", response_model=habit_schema.HabitOut)
def update_habit(habit_id: int, updates: habit_schema.HabitUpdate, db: Session = Depends(session.get_db)):
    """ Updates only the fields present in the body. """
    return {"habit": habits.update_habit(db, habit_id, updates)}


@router.delete("/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_habit(habit_id: int, db: Session = Depends(session.get_db)):
    """ Deletes a habit together with all of its logs. """
    habits.delete_habit(db, habit_id)
    return


@router.get("/{habit_id}/logs", response_model=habit_schema.HabitLogList)
def read_habit_logs(habit_id: int, db: Session = Depends(session.get_db)):
    return {"logs": habit_logs.list_logs_for_habit(db, habit_id)}


@router.post("/{habit_id}/logs", response_model=habit_schema.HabitLogOut)
def log_habit(
    habit_id: int,
    log_in: habit_schema.HabitLogCreate,
    response: Response,
    db: Session = Depends(session.get_db),
):
    """
    Records a day's completion for a habit. Answers 201 when the day had no log yet, 200 when it was updated.
    """
    result = habit_logs.upsert_log(
        habit_logs.HabitLogStore(db), habit_id, log_in.date, log_in.completed, log_in.notes
    )
    response.status_code = status.HTTP_201_CREATED if result.was_created else status.HTTP_200_OK
    return {"log": result.record}


@router.post("/{habit_id}/toggle", response_model=habit_schema.HabitLogOut)
def toggle_habit_day(
    habit_id: int,
    response: Response,
    day: Optional[date] = Query(default=None),
    db: Session = Depends(session.get_db),
):
    """ Flips completion for a day, today on the local calendar when no day is given. """
    day = day or weekly.local_today(settings.LOCAL_TIMEZONE)
    result = habit_logs.toggle_log(habit_logs.HabitLogStore(db), habit_id, day)
    response.status_code = status.HTTP_201_CREATED if result.was_created else status.HTTP_200_OK
    return {"log": result.record}
