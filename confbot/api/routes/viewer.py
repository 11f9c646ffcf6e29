"""Second-screen endpoints: a snapshot plus a server-sent event stream."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from confbot.api.errors import to_http
from confbot.core.config import get_settings
from confbot.core.database import get_db
from confbot.core.errors import DomainError
from confbot.schemas.events import QuestionApprovedEvent, SlideUpdatedEvent, ViewerSnapshot
from confbot.services.broadcaster import ConferenceBroadcaster, Subscription, get_broadcaster
from confbot.services.conferences import get_conference_by_code
from confbot.services.questions import list_approved

logger = logging.getLogger(__name__)
router = APIRouter()

HEARTBEAT_SECONDS = 15


def _require_key(key: str) -> None:
    secret = get_settings().viewer_secret
    if not secret or key != secret:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="ACCESS_DENIED")


def _format_sse(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@router.get("/{code}", response_model=ViewerSnapshot)
def get_snapshot(code: str, key: str = Query(""), db: Session = Depends(get_db)):
    """Current slide and approved questions of a conference."""
    _require_key(key)
    try:
        conference = get_conference_by_code(db, code)
    except DomainError as e:
        raise to_http(e)

    questions = [
        QuestionApprovedEvent(id=q.id, text=q.text, has_target=q.target_speaker_id is not None).model_dump(by_alias=True)
        for q in list_approved(db, conference)
    ]
    return ViewerSnapshot(
        conference_id=conference.id,
        code=conference.code,
        title=conference.title,
        slide=SlideUpdatedEvent(url=conference.current_slide_url, title=conference.current_slide_title),
        questions=questions,
    )


async def _event_stream(request: Request, subscription: Subscription) -> AsyncGenerator[str, None]:
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                message = await asyncio.wait_for(subscription.get(), timeout=HEARTBEAT_SECONDS)
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
                continue
            yield _format_sse(message["event"], message["payload"])
    except asyncio.CancelledError:
        pass
    finally:
        subscription.close()
        logger.debug("Viewer left conference %s", subscription.conference_id)


@router.get("/{code}/stream")
async def stream_events(
    code: str,
    request: Request,
    key: str = Query(""),
    db: Session = Depends(get_db),
    broadcaster: ConferenceBroadcaster = Depends(get_broadcaster),
):
    """Relay slide and question events of a conference via SSE."""
    _require_key(key)
    try:
        conference = get_conference_by_code(db, code)
    except DomainError as e:
        raise to_http(e)

    subscription = await broadcaster.subscribe(conference.id)
    logger.debug("Viewer joined conference %s", conference.id)
    return StreamingResponse(_event_stream(request, subscription), media_type="text/event-stream")
