# habit_tracker/core/errors.py
# Domain exceptions and the FastAPI handlers that turn them into JSON responses.
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class HabitTrackerError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal Server Error"

    def __init__(self, details: str | None = None):
        super().__init__(details or self.error)
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(HabitTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Validation error"


class NotFoundError(HabitTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"

    def __init__(self, resource: str, ident):
        super().__init__(f"{resource} {ident} not found")
        self.error = f"{resource} not found"


class StorageError(HabitTrackerError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "Database error"


class LogConflictError(HabitTrackerError):
    """A log for the same (habit, date) was inserted by someone else first."""
    status_code = status.HTTP_409_CONFLICT
    error = "Log already exists"


class TimerInvariantViolation(AssertionError):
    """A monitor timer fired after it had been cancelled."""


class InsightsError(HabitTrackerError):
    def __init__(self, status_code: int, error: str, details: str | None = None,
                 hint: str | None = None, error_code: str | None = None):
        super().__init__(details)
        self.status_code = status_code
        self.error = error
        self.hint = hint
        self.error_code = error_code

    def to_body(self) -> dict:
        body = super().to_body()
        if self.error_code:
            body["errorCode"] = self.error_code
        if self.hint:
            body["hint"] = self.hint
        return body


def format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # drop the "body"/"query"/"path" prefix, keep the field path
        loc = [str(item) for item in err.get("loc", ())[1:]]
        path = ".".join(loc)
        parts.append(f"{path}: {err['msg']}" if path else err["msg"])
    return ", ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HabitTrackerError)
    async def _domain_error_handler(request: Request, exc: HabitTrackerError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation error", "details": format_validation_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
