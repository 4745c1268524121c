# habit_tracker/api/v1/endpoints/insights.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from habit_tracker.db import session
from habit_tracker.schemas import ai as ai_schema
from habit_tracker.services import insights

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/ask", response_model=ai_schema.AskResponse)
async def ask_about_habits(payload: ai_schema.AskRequest, db: Session = Depends(session.get_db)):
    """
    Sends the question, with a summary of every habit's completion record, to the language model.
    """
    logger.info("Received AI question (%d chars)", len(payload.question))
    answer = await insights.ask_question(db, payload.question)
    return {"answer": answer, "question": payload.question}
