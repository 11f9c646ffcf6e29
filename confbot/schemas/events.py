from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
from confbot.schemas.account import ExternalUser

SLIDE_UPDATED = "slide-updated"
QUESTION_APPROVED = "question-approved"


class SlideUpdatedEvent(BaseModel):
    url: Optional[str] = None
    title: Optional[str] = None


class QuestionApprovedEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    text: str
    has_target: bool = Field(serialization_alias="hasTarget")


# Inbound chat events posted by the transport adapter
class InboundEvent(BaseModel):
    user: ExternalUser
    kind: Literal["command", "action", "text"]
    value: str


class ButtonSchema(BaseModel):
    text: str
    action: Optional[str] = None
    url: Optional[str] = None


class ReplyResponse(BaseModel):
    text: str
    buttons: List[List[ButtonSchema]] = []


class ViewerSnapshot(BaseModel):
    conference_id: int
    code: str
    title: str
    slide: SlideUpdatedEvent
    questions: List[Dict[str, Any]]
