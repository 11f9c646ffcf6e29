import re
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from confbot.models.profile import ProfileRole

MAX_NAME_LENGTH = 100
MAX_LIST_ITEMS = 20
MAX_INTEREST_LENGTH = 50
MAX_OFFERING_LENGTH = 200
MAX_LOOKING_FOR_LENGTH = 200

NAME_RE = re.compile(r"^[a-zA-Zа-яА-ЯёЁ\s\-'\.]+$")
INTEREST_RE = re.compile(r"^[a-zA-Zа-яА-ЯёЁ0-9\s\-_,\.]+$")


def _clean_items(values: List[str], max_length: int, label: str) -> List[str]:
    items = [v.strip() for v in values]
    for item in items:
        if not item or len(item) > max_length:
            raise ValueError(f"each {label} must be 1-{max_length} characters")
    return items


class ProfileData(BaseModel):
    """Profile fields collected by onboarding."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    interests: List[str] = Field(default_factory=list, max_length=MAX_LIST_ITEMS)
    offerings: List[str] = Field(default_factory=list, max_length=MAX_LIST_ITEMS)
    looking_for: List[str] = Field(default_factory=list, max_length=MAX_LIST_ITEMS)
    roles: Optional[List[ProfileRole]] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def check_name(cls, v, info):
        if v is None:
            return v
        v = v.strip()
        # Empty last name is allowed
        if not v:
            if info.field_name == "first_name":
                raise ValueError("name cannot be empty")
            return v
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"name cannot be longer than {MAX_NAME_LENGTH} characters")
        if not NAME_RE.match(v):
            raise ValueError("name may contain only letters, spaces, hyphens, apostrophes and dots")
        return v

    @field_validator("interests")
    @classmethod
    def check_interests(cls, v):
        items = _clean_items(v, MAX_INTEREST_LENGTH, "interest")
        if any(not INTEREST_RE.match(item) for item in items):
            raise ValueError("interest contains invalid characters")
        return items

    @field_validator("offerings")
    @classmethod
    def check_offerings(cls, v):
        return _clean_items(v, MAX_OFFERING_LENGTH, "offering")

    @field_validator("looking_for")
    @classmethod
    def check_looking_for(cls, v):
        return _clean_items(v, MAX_LOOKING_FOR_LENGTH, "item")
