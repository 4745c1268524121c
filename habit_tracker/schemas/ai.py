# habit_tracker/schemas/ai.py
from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    question: str = Field(min_length=1, max_length=1000)

    class Config:
        str_strip_whitespace = True


class AskResponse(BaseModel):
    answer: str
    question: str
