# habit_tracker/schemas/token.py
from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str
    phone: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenData(BaseModel):
    username: str
    session_id: str


class SessionStatus(BaseModel):
    username: str
    state: str
    warning_visible: bool
    time_remaining: str
