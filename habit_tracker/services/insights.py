# habit_tracker/services/insights.py
import json
import logging

import httpx
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from habit_tracker.core.config import settings
from habit_tracker.core.errors import InsightsError
from habit_tracker.db import models

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant for a daily habits tracking application. "
    "You have access to the user's habits and their completion logs. "
    "Answer questions about their habits, provide insights, suggestions, and help them "
    "understand their habit tracking data. Be friendly, concise, and helpful."
)

FALLBACK_ANSWER = "I apologize, but I could not generate a response."
BILLING_URL = "https://platform.openai.com/account/billing"


def build_habit_context(db: Session) -> list[dict]:
    """Per-habit summary of log counts and completion rate, fed to the model as JSON."""
    habits = db.query(models.Habit).order_by(models.Habit.id).all()
    logs = db.query(models.HabitLog).all()

    context = []
    for habit in habits:
        habit_logs = [log for log in logs if log.habit_id == habit.id]
        completed = sum(1 for log in habit_logs if log.completed)
        total = len(habit_logs)
        rate = f"{completed / total * 100:.1f}%" if total else "0%"
        context.append({
            "id": habit.id,
            "name": habit.name,
            "description": habit.description or "No description",
            "color": habit.color,
            "createdAt": habit.created_at.isoformat() if habit.created_at else None,
            "totalLogs": total,
            "completedLogs": completed,
            "completionRate": rate,
        })
    return context


def _error_code(response: httpx.Response) -> tuple[str, str]:
    try:
        error = response.json().get("error") or {}
    except (json.JSONDecodeError, AttributeError):
        return "", ""
    if not isinstance(error, dict):
        return "", ""
    return str(error.get("code") or ""), str(error.get("type") or "")


def _raise_for_completion_error(http_err: httpx.HTTPStatusError) -> None:
    response = http_err.response
    details = response.text
    code, error_type = _error_code(response)

    if code in {"insufficient_quota", "billing_not_active"} or error_type == "insufficient_quota":
        raise InsightsError(
            402,
            "OpenAI API quota exceeded or billing issue. Please check your OpenAI account billing and add credits.",
            details=details, error_code=code or "insufficient_quota",
            hint=f"Visit {BILLING_URL} to check your account status and add credits.",
        ) from http_err
    if response.status_code == 401:
        raise InsightsError(
            401,
            "Invalid OpenAI API key. Please check your OPENAI_API_KEY environment variable.",
            details=details, error_code=code or "401",
        ) from http_err
    if response.status_code == 429:
        quota = "quota" in details
        raise InsightsError(
            429,
            f"OpenAI API quota exceeded. Please check your plan and billing details at {BILLING_URL}"
            if quota else "OpenAI API rate limit exceeded. Please try again later.",
            details=details, error_code=code or "429",
            hint=f"Visit {BILLING_URL} to add credits or upgrade your plan."
            if quota else "Rate limits reset periodically. Please wait a moment and try again.",
        ) from http_err
    raise InsightsError(500, "Failed to process question", details=details,
                        error_code=code or str(response.status_code)) from http_err


async def ask_question(db: Session, question: str, client: httpx.AsyncClient | None = None) -> str:
    """
    Answers a question about the user's habits through an OpenAI-compatible chat completions API.
    """
    api_key = settings.OPENAI_API_KEY
    if not api_key:
        logger.error("OPENAI_API_KEY is not configured")
        raise InsightsError(
            500, "OpenAI API key is not configured. Please set OPENAI_API_KEY in your environment variables."
        )

    # sync queries run off the event loop that drives the session timers
    context = await run_in_threadpool(build_habit_context, db)
    logger.info("Asking model about %d habits", len(context))

    user_prompt = (
        f"Here is the user's habit data:\n{json.dumps(context, indent=2)}\n\n"
        f"User's question: {question}\n\n"
        "Please provide a helpful answer based on this data."
    )
    payload = {
        "model": settings.OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": settings.OPENAI_TEMPERATURE,
        "max_tokens": settings.OPENAI_MAX_TOKENS,
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT_SECONDS)
    try:
        response = await client.post(
            f"{settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions",
            headers=headers,
            json=payload,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as http_err:
        logger.error("HTTP error from completions API: %s", http_err)
        _raise_for_completion_error(http_err)
    except httpx.RequestError as exc:
        logger.error("Completions API request failed: %s", exc)
        raise InsightsError(503, "Could not reach the OpenAI API. Please try again later.", details=str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise InsightsError(500, "Failed to process question", details="Invalid JSON from completions API") from exc
    finally:
        if owns_client:
            await client.aclose()

    try:
        answer = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        answer = None
    logger.info("Completion %s received", data.get("id") if isinstance(data, dict) else None)
    return (answer or "").strip() or FALLBACK_ANSWER
