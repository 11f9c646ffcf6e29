import logging

from sqlalchemy.orm import Session

from confbot.core.database import commit
from confbot.core.validation import validate
from confbot.models.account import Account
from confbot.models.conference import Conference
from confbot.schemas.events import SLIDE_UPDATED, SlideUpdatedEvent
from confbot.schemas.slide import SlideUpdate
from confbot.services.broadcaster import emit
from confbot.services.conferences import get_moderated_conference

logger = logging.getLogger(__name__)


def set_slide(db: Session, account: Account, conference_code: str, url: str, title: str = "", broadcaster=None) -> Conference:
    data = validate(SlideUpdate, url=url, title=title or "")
    conference = get_moderated_conference(db, account, conference_code)

    conference.current_slide_url = data.url
    conference.current_slide_title = data.title or ""
    commit(db)
    db.refresh(conference)
    logger.info("Slide set for %s", conference.code)

    event = SlideUpdatedEvent(url=conference.current_slide_url, title=conference.current_slide_title)
    emit(broadcaster, conference.id, SLIDE_UPDATED, event.model_dump())
    return conference


def clear_slide(db: Session, account: Account, conference_code: str, broadcaster=None) -> Conference:
    conference = get_moderated_conference(db, account, conference_code)

    conference.current_slide_url = None
    conference.current_slide_title = None
    commit(db)
    logger.info("Slide cleared for %s", conference.code)

    emit(broadcaster, conference.id, SLIDE_UPDATED, SlideUpdatedEvent().model_dump())
    return conference
