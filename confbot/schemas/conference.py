from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from confbot.models.conference import ConferenceAccess

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000


# Request schemas
class ConferenceCreate(BaseModel):
    title: str = Field(min_length=3, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)
    access: ConferenceAccess = ConferenceAccess.public
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def strip_text(cls, data):
        if isinstance(data, dict):
            data = {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}
        return data

    @model_validator(mode="after")
    def check_schedule(self):
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("end date must be after start date")
        return self


class ConferenceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)

    @model_validator(mode="before")
    @classmethod
    def strip_text(cls, data):
        if isinstance(data, dict):
            data = {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}
        return data
