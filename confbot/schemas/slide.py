from pydantic import BaseModel, Field, field_validator
from typing import Optional
from urllib.parse import urlparse

MAX_SLIDE_URL_LENGTH = 2048
MAX_SLIDE_TITLE_LENGTH = 200


class SlideUpdate(BaseModel):
    url: str = Field(max_length=MAX_SLIDE_URL_LENGTH)
    title: Optional[str] = Field(default="", max_length=MAX_SLIDE_TITLE_LENGTH)

    @field_validator("url")
    @classmethod
    def check_url(cls, v):
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("slide URL must be a valid HTTP/HTTPS address")
        return v

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v
