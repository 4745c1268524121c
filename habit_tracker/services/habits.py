# habit_tracker/services/habits.py
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_tracker.core.errors import NotFoundError, StorageError
from habit_tracker.db import models
from habit_tracker.schemas import habit as habit_schema


def list_habits(db: Session, search: str | None = None) -> list[models.Habit]:
    """Newest habits first, optionally filtered by a case-insensitive search on name or description."""
    query = db.query(models.Habit)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(models.Habit.name.ilike(term), models.Habit.description.ilike(term)))
    return query.order_by(models.Habit.created_at.desc(), models.Habit.id.desc()).all()


def get_habit(db: Session, habit_id: int) -> models.Habit:
    habit = db.query(models.Habit).filter(models.Habit.id == habit_id).first()
    if habit is None:
        raise NotFoundError("Habit", habit_id)
    return habit


def create_habit(db: Session, habit_in: habit_schema.HabitCreate) -> models.Habit:
    habit = models.Habit(
        name=habit_in.name,
        description=habit_in.description,
        color=habit_in.color or models.DEFAULT_COLOR,
    )
    db.add(habit)
    _commit(db)
    db.refresh(habit)
    return habit


def update_habit(db: Session, habit_id: int, updates: habit_schema.HabitUpdate) -> models.Habit:
    habit = get_habit(db, habit_id)
    update_data = updates.model_dump(exclude_unset=True)
    # a null color keeps the current one; a null description clears it
    if update_data.get("color") is None:
        update_data.pop("color", None)
    for field, value in update_data.items():
        setattr(habit, field, value)
    _commit(db)
    db.refresh(habit)
    return habit


def delete_habit(db: Session, habit_id: int) -> None:
    habit = get_habit(db, habit_id)
    db.delete(habit)
    _commit(db)


def list_predefined_habits(db: Session) -> list[models.PredefinedHabit]:
    return (
        db.query(models.PredefinedHabit)
        .order_by(models.PredefinedHabit.display_order.asc(), models.PredefinedHabit.name.asc())
        .all()
    )


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(str(exc)) from exc
