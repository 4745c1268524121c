# habit_tracker/api/v1/api.py
from fastapi import APIRouter, Depends

from habit_tracker.api.v1.endpoints import habits, insights, logs
from habit_tracker.core import security

# Every data route counts as user activity for the idle session monitor
api_router = APIRouter(dependencies=[Depends(security.require_session)])

api_router.include_router(habits.router, prefix="/habits", tags=["Habits"])
api_router.include_router(logs.router, tags=["Logs"])
api_router.include_router(insights.router, prefix="/ai", tags=["AI"])
