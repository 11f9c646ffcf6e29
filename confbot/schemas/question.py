from pydantic import BaseModel, Field, field_validator
from typing import Optional

MIN_QUESTION_LENGTH = 10
MAX_QUESTION_LENGTH = 500
MAX_ANSWER_LENGTH = 2000

# Control characters other than \t, \n, \r
_CONTROL_CHARS = set(chr(c) for c in range(0x20)) - {"\t", "\n", "\r"}


# Request schemas
class QuestionCreate(BaseModel):
    text: str = Field(min_length=MIN_QUESTION_LENGTH, max_length=MAX_QUESTION_LENGTH)
    target_speaker_id: Optional[int] = None

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("text")
    @classmethod
    def no_control_chars(cls, v):
        if any(ch in _CONTROL_CHARS for ch in v):
            raise ValueError("question contains invalid characters")
        return v


class QuestionAnswer(BaseModel):
    answer: str = Field(min_length=1, max_length=MAX_ANSWER_LENGTH)

    @field_validator("answer", mode="before")
    @classmethod
    def strip_answer(cls, v):
        return v.strip() if isinstance(v, str) else v
