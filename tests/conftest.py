import os

# Settings are read at import time, so the environment has to be in place first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_PREDEFINED_HABITS"] = "false"
os.environ["LOGIN_USERNAME"] = "alex"
os.environ["LOGIN_PASSWORD"] = "correct horse"
os.environ["LOGIN_PHONE"] = "5550100"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOCAL_TIMEZONE"] = "UTC"
os.environ.pop("OPENAI_API_KEY", None)

import heapq
import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from habit_tracker.core.sessions import SessionRegistry
from habit_tracker.db import models
from habit_tracker.db import session as db_session
from habit_tracker.main import create_app

LOGIN = {"username": "alex", "password": "correct horse", "phone": "5550100"}
WARNING_SECONDS = 25 * 60
TIMEOUT_SECONDS = 30 * 60


class FakeTimer:
    def __init__(self, callback, interval=None):
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock plus timer queue; ``advance`` fires due timers in order."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def clock(self):
        return self.now

    def _push(self, due, timer):
        heapq.heappush(self._queue, (due, next(self._seq), timer))

    def call_later(self, delay, callback):
        timer = FakeTimer(callback)
        self._push(self.now + delay, timer)
        return timer

    def call_every(self, interval, callback):
        timer = FakeTimer(callback, interval)
        self._push(self.now + interval, timer)
        return timer

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now = due
            if timer.interval is not None:
                self._push(due + timer.interval, timer)
            timer.callback()
        self.now = target

    @property
    def pending(self):
        return [timer for _, _, timer in self._queue if not timer.cancelled]


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    db_session.enable_sqlite_foreign_keys(engine)
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def app(session_factory, scheduler):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[db_session.get_db] = override_get_db
    app.state.sessions = SessionRegistry(
        scheduler=scheduler,
        clock=scheduler.clock,
        warning_delay=WARNING_SECONDS,
        total_timeout=TIMEOUT_SECONDS,
        debounce=1.0,
        tick=1.0,
    )
    return app


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers(client):
    response = client.post("/auth/login", json=LOGIN)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def make_habit(db):
    def _make(name="Read", description=None, color="#3b82f6", **kwargs):
        habit = models.Habit(name=name, description=description, color=color, **kwargs)
        db.add(habit)
        db.commit()
        db.refresh(habit)
        return habit

    return _make
