from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

MIN_POLL_QUESTION_LENGTH = 5
MAX_POLL_QUESTION_LENGTH = 200
MIN_OPTIONS_COUNT = 2
MAX_OPTIONS_COUNT = 10
MAX_OPTION_TEXT_LENGTH = 100


def _check_options(options: List[str]) -> List[str]:
    cleaned = [o.strip() for o in options]
    for text in cleaned:
        if not text or len(text) > MAX_OPTION_TEXT_LENGTH:
            raise ValueError(f"each option must be 1-{MAX_OPTION_TEXT_LENGTH} characters")
    return cleaned


# Request schemas
class PollCreate(BaseModel):
    question: str = Field(min_length=MIN_POLL_QUESTION_LENGTH, max_length=MAX_POLL_QUESTION_LENGTH)
    options: List[str] = Field(min_length=MIN_OPTIONS_COUNT, max_length=MAX_OPTIONS_COUNT)

    @field_validator("question", mode="before")
    @classmethod
    def strip_question(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("options")
    @classmethod
    def check_options(cls, v):
        return _check_options(v)


class PollUpdate(BaseModel):
    question: Optional[str] = Field(default=None, min_length=MIN_POLL_QUESTION_LENGTH, max_length=MAX_POLL_QUESTION_LENGTH)
    options: Optional[List[str]] = None

    @field_validator("question", mode="before")
    @classmethod
    def strip_question(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("options")
    @classmethod
    def check_options(cls, v):
        return _check_options(v) if v is not None else v


# Response schemas
class PollOptionResult(BaseModel):
    id: int
    text: str
    votes: int


class PollResultsResponse(BaseModel):
    """Computed response for poll results (not directly from ORM)."""
    poll_id: int
    question: str
    is_active: bool
    options: List[PollOptionResult]
    total_votes: int
