# habit_tracker/core/config.py
from typing import List

from pydantic_settings import BaseSettings; from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./habit_tracker.db"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # Login is a plain comparison against these values
    LOGIN_USERNAME: str = ""; LOGIN_PASSWORD: str = ""; LOGIN_PHONE: str = ""
    JWT_SECRET_KEY: str; JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Idle session policy, all in seconds
    SESSION_WARNING_SECONDS: float = 25 * 60
    SESSION_TIMEOUT_SECONDS: float = 30 * 60
    SESSION_ACTIVITY_DEBOUNCE_SECONDS: float = 1.0
    SESSION_COUNTDOWN_TICK_SECONDS: float = 1.0

    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 500
    OPENAI_TIMEOUT_SECONDS: float = 30

    LOCAL_TIMEZONE: str = "UTC"
    SEED_PREDEFINED_HABITS: bool = True

    @property
    def login_configured(self) -> bool:
        return bool(self.LOGIN_USERNAME.strip() and self.LOGIN_PASSWORD and self.LOGIN_PHONE.strip())

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
