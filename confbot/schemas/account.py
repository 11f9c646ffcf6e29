from pydantic import BaseModel, field_validator
from typing import Optional


class ExternalUser(BaseModel):
    """The chat-side user as delivered by the transport."""
    identity: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("identity", mode="before")
    @classmethod
    def coerce_identity(cls, v):
        # Chat transports deliver numeric ids
        return str(v)
