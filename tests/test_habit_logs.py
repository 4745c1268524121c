from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from habit_tracker.core.errors import NotFoundError, StorageError, ValidationError
from habit_tracker.db import models
from habit_tracker.services import habit_logs, weekly
from habit_tracker.services.habit_logs import HabitLogStore, toggle_log, upsert_log

DAY = date(2024, 3, 1)


def _count_logs(db, habit_id, day):
    return db.query(models.HabitLog).filter_by(habit_id=habit_id, date=day).count()


def test_first_call_creates_second_updates(db, make_habit):
    habit = make_habit(id=7)
    store = HabitLogStore(db)

    first = upsert_log(store, 7, DAY, True)
    assert first.was_created is True
    assert first.record.completed is True
    assert first.record.habit_id == habit.id

    second = upsert_log(store, 7, DAY, False, "felt tired")
    assert second.was_created is False
    assert second.record.id == first.record.id
    assert second.record.completed is False
    assert second.record.notes == "felt tired"

    third = upsert_log(store, 7, DAY, False, "felt tired")
    assert third.was_created is False
    assert (third.record.completed, third.record.notes) == (False, "felt tired")
    assert _count_logs(db, 7, DAY) == 1


def test_identical_calls_report_created_then_updated(db, make_habit):
    habit = make_habit()
    store = HabitLogStore(db)

    results = [upsert_log(store, habit.id, DAY, True, "done early") for _ in range(2)]

    assert [r.was_created for r in results] == [True, False]
    stored = db.query(models.HabitLog).one()
    assert (stored.completed, stored.notes) == (True, "done early")


def test_last_write_wins(db, make_habit):
    habit = make_habit()
    store = HabitLogStore(db)
    calls = [(True, None), (False, "sick"), (True, "made it up"), (False, None)]

    for completed, note in calls:
        upsert_log(store, habit.id, DAY, completed, note)

    stored = db.query(models.HabitLog).one()
    assert (stored.completed, stored.notes) == (False, None)


def test_logs_are_kept_per_day(db, make_habit):
    habit = make_habit()
    store = HabitLogStore(db)

    upsert_log(store, habit.id, date(2024, 3, 1), True)
    upsert_log(store, habit.id, date(2024, 3, 2), True)

    assert db.query(models.HabitLog).count() == 2


def test_missing_habit_is_not_found(db):
    with pytest.raises(NotFoundError):
        upsert_log(HabitLogStore(db), 404, DAY, True)
    assert db.query(models.HabitLog).count() == 0


class RacingStore(HabitLogStore):
    """The first lookup misses even though another writer already stored the row."""

    def __init__(self, db):
        super().__init__(db)
        self.lookups = 0

    def find_log_by_habit_and_date(self, habit_id, day):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return super().find_log_by_habit_and_date(habit_id, day)


def test_insert_conflict_retries_as_update(db, make_habit):
    habit = make_habit()
    db.add(models.HabitLog(habit_id=habit.id, date=DAY, completed=False))
    db.commit()

    result = upsert_log(RacingStore(db), habit.id, DAY, True, "from the other tab")

    assert result.was_created is False
    assert result.record.completed is True
    assert _count_logs(db, habit.id, DAY) == 1


class BrokenStore:
    def find_log_by_habit_and_date(self, habit_id, day):
        raise StorageError("connection refused")


def test_storage_errors_propagate():
    with pytest.raises(StorageError, match="connection refused"):
        upsert_log(BrokenStore(), 1, DAY, True)


def test_toggle_flips_and_keeps_note(db, make_habit):
    habit = make_habit()
    store = HabitLogStore(db)

    created = toggle_log(store, habit.id, DAY)
    assert created.was_created and created.record.completed is True

    upsert_log(store, habit.id, DAY, True, "before breakfast")
    flipped = toggle_log(store, habit.id, DAY)
    assert flipped.was_created is False
    assert flipped.record.completed is False
    assert flipped.record.notes == "before breakfast"


def test_deleting_habit_removes_its_logs(db, make_habit):
    habit = make_habit()
    upsert_log(HabitLogStore(db), habit.id, DAY, True)

    db.delete(habit)
    db.commit()

    assert db.query(models.HabitLog).count() == 0


def test_list_logs_for_habit_newest_first(db, make_habit):
    habit = make_habit()
    store = HabitLogStore(db)
    for day in (date(2024, 3, 1), date(2024, 3, 3), date(2024, 3, 2)):
        upsert_log(store, habit.id, day, True)

    logs = habit_logs.list_logs_for_habit(db, habit.id)
    assert [log.date for log in logs] == [date(2024, 3, 3), date(2024, 3, 2), date(2024, 3, 1)]

    with pytest.raises(NotFoundError):
        habit_logs.list_logs_for_habit(db, 999)


def test_list_logs_date_range(db, make_habit):
    habit = make_habit()
    store = HabitLogStore(db)
    for day in (date(2024, 2, 28), date(2024, 3, 1), date(2024, 3, 7), date(2024, 3, 8)):
        upsert_log(store, habit.id, day, True)

    in_range = habit_logs.list_logs(db, date(2024, 3, 1), date(2024, 3, 7))
    assert sorted(log.date for log in in_range) == [date(2024, 3, 1), date(2024, 3, 7)]
    assert len(habit_logs.list_logs(db)) == 4

    with pytest.raises(ValidationError):
        habit_logs.list_logs(db, date(2024, 3, 7), date(2024, 3, 1))
    with pytest.raises(ValidationError):
        habit_logs.list_logs(db, start=date(2024, 3, 1))


@pytest.mark.parametrize(
    "day, monday",
    [
        (date(2024, 3, 4), date(2024, 3, 4)),
        (date(2024, 3, 6), date(2024, 3, 4)),
        (date(2024, 3, 3), date(2024, 2, 26)),
        (date(2024, 1, 1), date(2024, 1, 1)),
    ],
)
def test_week_start_is_monday(day, monday):
    assert weekly.week_start(day) == monday


def test_local_today_uses_wall_clock_not_utc():
    late_evening_in_new_york = datetime(2024, 3, 2, 3, 30, tzinfo=timezone.utc)
    assert weekly.local_today("America/New_York", now=late_evening_in_new_york) == date(2024, 3, 1)
    assert weekly.local_today("UTC", now=late_evening_in_new_york) == date(2024, 3, 2)


def test_week_grid(db, make_habit):
    read = make_habit(name="Read")
    walk = make_habit(name="Take a Walk")
    store = HabitLogStore(db)
    upsert_log(store, read.id, date(2024, 3, 5), True)
    upsert_log(store, walk.id, date(2024, 3, 10), False, "rain")
    upsert_log(store, walk.id, date(2024, 3, 11), True)  # next week

    grid = weekly.build_week_grid(db, date(2024, 3, 7), today=date(2024, 3, 7))

    assert grid.week_start == date(2024, 3, 4)
    assert grid.week_end == date(2024, 3, 10)
    assert len(grid.days) == 7
    rows = {row.habit.name: row for row in grid.rows}
    assert [cell.completed for cell in rows["Read"].cells] == [False, True, False, False, False, False, False]
    walk_cells = rows["Take a Walk"].cells
    assert not any(cell.completed for cell in walk_cells)
    assert walk_cells[-1].log_id is not None


def _failing_refresh(instance):
    raise OperationalError("SELECT habit_logs", {}, Exception("disk I/O error"))


def test_reload_failure_after_write_is_a_storage_error(db, make_habit, monkeypatch):
    habit = make_habit()
    store = HabitLogStore(db)
    existing = upsert_log(store, habit.id, DAY, True).record
    monkeypatch.setattr(db, "refresh", _failing_refresh)

    with pytest.raises(StorageError, match="disk I/O error"):
        store.insert_log(habit.id, date(2024, 3, 2), True, None)
    with pytest.raises(StorageError, match="disk I/O error"):
        store.update_log(existing.id, False, "late")
