# habit_tracker/core/security.py
# Handles the configured-credential login, session JWTs, and the session dependencies.
import hmac
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from habit_tracker.core.config import settings
from habit_tracker.core.sessions import SessionContext, SessionRegistry
from habit_tracker.schemas import token as token_schema

# --- Login ---
def _same(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))

def verify_login(credentials: token_schema.LoginRequest) -> str:
    """Compare the submitted credentials with the configured ones. Returns the username."""
    if not settings.login_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Login is not configured. Please set LOGIN_USERNAME, LOGIN_PASSWORD and LOGIN_PHONE.",
        )
    username = credentials.username.strip()
    phone = credentials.phone.strip()
    valid = (
        _same(username, settings.LOGIN_USERNAME.strip())
        & _same(credentials.password, settings.LOGIN_PASSWORD)
        & _same(phone, settings.LOGIN_PHONE.strip())
    )
    if not valid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username, password, or phone number.")
    return username

# --- JWT Creation ---
def create_access_token(username: str, session_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": username, "sid": session_id, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> token_schema.TokenData:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise credentials_exception
    username, session_id = payload.get("sub"), payload.get("sid")
    if username is None or session_id is None:
        raise credentials_exception
    return token_schema.TokenData(username=username, session_id=session_id)

# --- Session Dependencies ---
bearer_scheme = HTTPBearer(auto_error=False)

def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions

async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionContext:
    """Resolve the bearer token to a live session. Does not count as user activity."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token_data = decode_access_token(credentials.credentials)
    session = registry.load(token_data.session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session

async def require_session(session: SessionContext = Depends(get_current_session)) -> SessionContext:
    session.monitor.record_activity()
    return session
