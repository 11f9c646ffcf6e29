"""Inbound chat events from the transport adapter."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from confbot.core.database import get_db
from confbot.dialog.engine import DialogEngine
from confbot.dialog.replies import Reply
from confbot.dialog.session_store import DialogSessionStore
from confbot.schemas.events import ButtonSchema, InboundEvent, ReplyResponse
from confbot.services.broadcaster import ConferenceBroadcaster, get_broadcaster

router = APIRouter()

_session_store: Optional[DialogSessionStore] = None


def get_session_store() -> DialogSessionStore:
    global _session_store
    if _session_store is None:
        _session_store = DialogSessionStore()
    return _session_store


def to_response(reply: Reply) -> ReplyResponse:
    return ReplyResponse(
        text=reply.text,
        buttons=[[ButtonSchema(text=b.text, action=b.action, url=b.url) for b in row] for row in reply.buttons],
    )


@router.post("", response_model=ReplyResponse)
def handle_event(
    event: InboundEvent,
    db: Session = Depends(get_db),
    sessions: DialogSessionStore = Depends(get_session_store),
    broadcaster: ConferenceBroadcaster = Depends(get_broadcaster),
):
    """Handle one command, button press or text message and return the reply to render."""
    engine = DialogEngine(db, sessions, broadcaster)
    return to_response(engine.handle(event))
