# habit_tracker/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, status

from habit_tracker.core import security
from habit_tracker.core.config import settings
from habit_tracker.core.sessions import SessionContext, SessionRegistry
from habit_tracker.schemas import token as token_schema

router = APIRouter()


def _status(session: SessionContext) -> token_schema.SessionStatus:
    monitor = session.monitor
    return token_schema.SessionStatus(
        username=session.username,
        state=monitor.state.value,
        warning_visible=monitor.warning_visible,
        time_remaining=monitor.time_remaining_display,
    )


@router.post("/login", response_model=token_schema.Token)
async def login(
    credentials: token_schema.LoginRequest,
    registry: SessionRegistry = Depends(security.get_session_registry),
):
    username = security.verify_login(credentials)
    session = registry.open(username)
    access_token = security.create_access_token(username, session.session_id)
    return {"access_token": access_token, "token_type": "bearer", "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60}


@router.get("/session", response_model=token_schema.SessionStatus)
async def read_session(session: SessionContext = Depends(security.get_current_session)):
    """ Current idle state and countdown. Polling this does not reset the idle clock. """
    return _status(session)


@router.post("/session/stay-signed-in", response_model=token_schema.SessionStatus)
async def stay_signed_in(session: SessionContext = Depends(security.get_current_session)):
    session.monitor.stay_signed_in()
    return _status(session)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: SessionContext = Depends(security.get_current_session),
    registry: SessionRegistry = Depends(security.get_session_registry),
):
    session.monitor.sign_out()
    # the monitor forgets the session on sign-out; make sure it is gone either way
    registry.clear(session.session_id)
    return
