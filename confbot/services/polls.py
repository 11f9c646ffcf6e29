"""Poll engine with exactly-once voting."""

import logging
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from confbot.core.database import commit
from confbot.core.errors import DomainError, ErrorCode, validation_error
from confbot.core.validation import validate
from confbot.models.account import Account
from confbot.models.conference import Conference
from confbot.models.poll import Poll, PollVote
from confbot.schemas.poll import PollCreate, PollOptionResult, PollResultsResponse, PollUpdate
from confbot.services.conferences import get_conference_by_code, get_moderated_conference

logger = logging.getLogger(__name__)


def get_poll(db: Session, poll_id: int) -> Poll:
    poll = db.query(Poll).filter(Poll.id == poll_id).first()
    if not poll:
        raise DomainError(ErrorCode.POLL_NOT_FOUND)
    return poll


def get_managed_poll(db: Session, account: Account, poll_id: int, allow_ended: bool = False) -> Tuple[Poll, Conference]:
    poll = get_poll(db, poll_id)
    conference = get_moderated_conference(db, account, poll.conference.code, allow_ended=allow_ended)
    return poll, conference


def create_poll(db: Session, account: Account, conference_code: str, question: str, options: List[str]) -> Poll:
    """Create an active poll; option ids are assigned 0..n-1 in input order."""
    conference = get_moderated_conference(db, account, conference_code)
    data = validate(PollCreate, question=question, options=options)

    poll = Poll(
        conference_id=conference.id,
        question=data.question,
        options_json=[{"id": i, "text": text} for i, text in enumerate(data.options)],
        is_active=True,
    )
    db.add(poll)
    commit(db)
    db.refresh(poll)
    logger.info("Poll %s created in %s with %d options", poll.id, conference.code, len(data.options))
    return poll


def vote(db: Session, voter_identity: str, poll_id: int, option_id: int) -> Poll:
    """Record a single vote for ``voter_identity``.

    The unique (poll_id, voter_identity) constraint makes the "already voted
    anywhere in this poll" check and the write one atomic INSERT.
    """
    poll = get_poll(db, poll_id)
    if not poll.is_active:
        raise DomainError(ErrorCode.POLL_INACTIVE)
    if poll.option(option_id) is None:
        raise validation_error(f"option {option_id} does not exist in poll {poll_id}")

    db.add(PollVote(poll_id=poll.id, option_id=option_id, voter_identity=str(voter_identity)))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DomainError(ErrorCode.ALREADY_VOTED)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to record vote on poll %s", poll_id)
        raise DomainError(ErrorCode.STORAGE_FAILURE, str(e)) from e

    db.refresh(poll)
    return poll


def tally(db: Session, poll: Poll) -> dict:
    """Vote count per option id."""
    rows = (
        db.query(PollVote.option_id, func.count(PollVote.id))
        .filter(PollVote.poll_id == poll.id)
        .group_by(PollVote.option_id)
        .all()
    )
    counts = {opt["id"]: 0 for opt in poll.options_json or []}
    for option_id, count in rows:
        if option_id in counts:
            counts[option_id] = count
    return counts


def get_poll_results(db: Session, poll_id: int) -> PollResultsResponse:
    poll = get_poll(db, poll_id)
    counts = tally(db, poll)
    return PollResultsResponse(
        poll_id=poll.id,
        question=poll.question,
        is_active=poll.is_active,
        options=[PollOptionResult(id=opt["id"], text=opt["text"], votes=counts[opt["id"]]) for opt in poll.options_json],
        total_votes=sum(counts.values()),
    )


def deactivate_poll(db: Session, account: Account, poll_id: int) -> Poll:
    poll, _ = get_managed_poll(db, account, poll_id, allow_ended=True)
    if poll.is_active:
        poll.is_active = False
        commit(db)
        logger.info("Poll %s deactivated", poll.id)
    return poll


def activate_poll(db: Session, account: Account, poll_id: int) -> Poll:
    poll, _ = get_managed_poll(db, account, poll_id)
    if not poll.is_active:
        poll.is_active = True
        commit(db)
        logger.info("Poll %s activated", poll.id)
    return poll


def edit_poll(db: Session, account: Account, poll_id: int, question: str = None, options: List[str] = None) -> Poll:
    """Edit the question and/or option texts. Option count and ids stay fixed."""
    poll, _ = get_managed_poll(db, account, poll_id)
    data = validate(PollUpdate, question=question, options=options)

    if data.question is not None:
        poll.question = data.question
    if data.options is not None:
        if len(data.options) != len(poll.options_json):
            raise validation_error(f"poll has {len(poll.options_json)} options; provide exactly that many")
        poll.options_json = [{"id": opt["id"], "text": text} for opt, text in zip(poll.options_json, data.options)]
    commit(db)
    db.refresh(poll)
    return poll


def delete_poll(db: Session, account: Account, poll_id: int) -> None:
    poll, conference = get_managed_poll(db, account, poll_id, allow_ended=True)
    db.delete(poll)
    commit(db)
    logger.info("Poll %s deleted from %s", poll_id, conference.code)


def list_active_polls(db: Session, conference_code: str) -> List[Poll]:
    conference = get_conference_by_code(db, conference_code)
    return (
        db.query(Poll)
        .filter(Poll.conference_id == conference.id, Poll.is_active.is_(True))
        .order_by(Poll.created_at.desc(), Poll.id.desc())
        .all()
    )


def list_polls_for_management(db: Session, account: Account, conference_code: str) -> List[Poll]:
    conference = get_moderated_conference(db, account, conference_code, allow_ended=True)
    return (
        db.query(Poll)
        .filter(Poll.conference_id == conference.id)
        .order_by(Poll.created_at.desc(), Poll.id.desc())
        .all()
    )
