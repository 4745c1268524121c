# habit_tracker/services/habit_logs.py
"""
Daily completion records for habits.

A habit has at most one log per calendar day. ``upsert_log`` reads the
existing row for ``(habit_id, date)`` and either updates it or inserts a new
one; the unique constraint on that pair catches the case where two writers
both miss on the read, and the loser retries as an update.
"""
import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from habit_tracker.core.errors import LogConflictError, NotFoundError, StorageError, ValidationError
from habit_tracker.db import models

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertResult:
    record: models.HabitLog
    was_created: bool


class HabitLogStore:
    """Single-row reads and writes of habit logs over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_log_by_habit_and_date(self, habit_id: int, day: date) -> models.HabitLog | None:
        try:
            return (
                self.db.query(models.HabitLog)
                .filter(models.HabitLog.habit_id == habit_id, models.HabitLog.date == day)
                .first()
            )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def insert_log(self, habit_id: int, day: date, completed: bool, notes: str | None) -> models.HabitLog:
        try:
            if self.db.get(models.Habit, habit_id) is None:
                raise NotFoundError("Habit", habit_id)
            log = models.HabitLog(habit_id=habit_id, date=day, completed=completed, notes=notes)
            self.db.add(log)
            self.db.commit()
            self.db.refresh(log)
        except IntegrityError as exc:
            self.db.rollback()
            raise LogConflictError(f"habit {habit_id} already has a log for {day.isoformat()}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return log

    def update_log(self, log_id: int, completed: bool, notes: str | None) -> models.HabitLog:
        try:
            log = self.db.get(models.HabitLog, log_id)
            if log is None:
                raise NotFoundError("Habit log", log_id)
            log.completed = completed
            log.notes = notes
            self.db.commit()
            self.db.refresh(log)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return log


def upsert_log(store: HabitLogStore, habit_id: int, day: date, completed: bool,
               note: str | None = None) -> UpsertResult:
    """Create the log for ``(habit_id, day)`` or overwrite its completed flag and note.

    ``day`` must already be the caller's local calendar day; no timezone
    conversion happens here. Errors from the store propagate unchanged.
    """
    existing = store.find_log_by_habit_and_date(habit_id, day)
    if existing is None:
        try:
            record = store.insert_log(habit_id, day, completed, note)
            logger.debug("Created log %s for habit %s on %s", record.id, habit_id, day)
            return UpsertResult(record=record, was_created=True)
        except LogConflictError:
            logger.info("Concurrent insert for habit %s on %s, retrying as update", habit_id, day)
            existing = store.find_log_by_habit_and_date(habit_id, day)
            if existing is None:
                raise

    record = store.update_log(existing.id, completed, note)
    logger.debug("Updated log %s for habit %s on %s", record.id, habit_id, day)
    return UpsertResult(record=record, was_created=False)


def toggle_log(store: HabitLogStore, habit_id: int, day: date) -> UpsertResult:
    """Flip a day's completion; a missing log counts as not completed. The note is kept."""
    existing = store.find_log_by_habit_and_date(habit_id, day)
    if existing is None:
        return upsert_log(store, habit_id, day, True)
    return upsert_log(store, habit_id, day, not existing.completed, existing.notes)


def list_logs_for_habit(db: Session, habit_id: int) -> list[models.HabitLog]:
    if db.get(models.Habit, habit_id) is None:
        raise NotFoundError("Habit", habit_id)
    return (
        db.query(models.HabitLog)
        .filter(models.HabitLog.habit_id == habit_id)
        .order_by(models.HabitLog.date.desc())
        .all()
    )


def list_logs(db: Session, start: date | None = None, end: date | None = None) -> list[models.HabitLog]:
    """All logs newest first, or only those within ``start``..``end`` inclusive."""
    if (start is None) != (end is None):
        raise ValidationError("start_date and end_date must be given together")
    query = db.query(models.HabitLog)
    if start is not None:
        if start > end:
            raise ValidationError("end_date: Start date must be before or equal to end date")
        query = query.filter(models.HabitLog.date >= start, models.HabitLog.date <= end)
    return query.order_by(models.HabitLog.date.desc(), models.HabitLog.habit_id.asc()).all()
