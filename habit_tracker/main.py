# habit_tracker/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habit_tracker.api.v1.api import api_router
from habit_tracker.api.v1.endpoints import auth
from habit_tracker.core.config import settings
from habit_tracker.core.errors import register_exception_handlers
from habit_tracker.core.logging_config import setup_logging
from habit_tracker.core.sessions import SessionRegistry
from habit_tracker.db import seed, session

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    session.init_db()
    if settings.SEED_PREDEFINED_HABITS:
        db = session.SessionLocal()
        try:
            seed.seed_predefined_habits(db)
        finally:
            db.close()
    if not settings.login_configured:
        logger.warning("Login credentials are not configured; nobody can sign in")
    yield
    app.state.sessions.clear_all()


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Daily Habit Tracker API", version="0.1.0", lifespan=lifespan)
    app.state.sessions = SessionRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Habits, logs and AI routes live under /api/v1 and need a session
    app.include_router(api_router, prefix="/api/v1")

    # Login and session control
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Daily Habit Tracker API"}

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()
