"""Question moderation pipeline.

pending --approve--> approved --answer--> approved & answered
pending --reject---> rejected

Only approval reaches the second screen.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from confbot.core.database import commit
from confbot.core.errors import DomainError, ErrorCode
from confbot.core.validation import validate
from confbot.models.account import Account
from confbot.models.conference import Conference
from confbot.models.profile import Profile, ProfileRole
from confbot.models.question import Question, QuestionStatus
from confbot.schemas.events import QUESTION_APPROVED, QuestionApprovedEvent
from confbot.schemas.question import QuestionAnswer, QuestionCreate
from confbot.services.broadcaster import emit
from confbot.services.conferences import get_conference_by_code, get_moderated_conference, require_not_ended
from confbot.services.identity import get_profile

logger = logging.getLogger(__name__)


def get_question(db: Session, conference: Conference, question_id: int) -> Question:
    question = (
        db.query(Question)
        .filter(Question.id == question_id, Question.conference_id == conference.id)
        .first()
    )
    if not question:
        raise DomainError(ErrorCode.QUESTION_NOT_FOUND)
    return question


def submit_question(
    db: Session,
    account: Account,
    conference_code: str,
    text: str,
    target_speaker_id: Optional[int] = None,
) -> Question:
    """Queue a question for moderation."""
    data = validate(QuestionCreate, text=text, target_speaker_id=target_speaker_id)
    conference = get_conference_by_code(db, conference_code)
    if conference.is_ended:
        raise DomainError(ErrorCode.CONFERENCE_NOT_FOUND)

    if data.target_speaker_id is not None:
        target = (
            db.query(Profile)
            .filter(Profile.id == data.target_speaker_id, Profile.conference_id == conference.id)
            .first()
        )
        if not target or not target.has_role(ProfileRole.speaker):
            raise DomainError(ErrorCode.TARGET_USER_NOT_FOUND)

    author = get_profile(db, account, conference)
    question = Question(
        conference_id=conference.id,
        author_id=author.id if author else None,
        text=data.text,
        target_speaker_id=data.target_speaker_id,
        status=QuestionStatus.pending,
    )
    db.add(question)
    commit(db)
    db.refresh(question)
    logger.info("Question %s submitted to %s", question.id, conference.code)
    return question


def _transition(db: Session, question: Question, target: QuestionStatus) -> bool:
    """Move a pending question to ``target``. Returns False if it was no longer pending."""
    updated = (
        db.query(Question)
        .filter(Question.id == question.id, Question.status == QuestionStatus.pending)
        .update({Question.status: target}, synchronize_session=False)
    )
    commit(db)
    db.refresh(question)
    return updated == 1


def approve_question(db: Session, account: Account, conference_code: str, question_id: int, broadcaster=None) -> Question:
    """Approve a pending question and push it to the viewers.

    Re-approving is a no-op that does not broadcast again.
    """
    conference = get_moderated_conference(db, account, conference_code)
    question = get_question(db, conference, question_id)

    if not _transition(db, question, QuestionStatus.approved):
        if question.status == QuestionStatus.approved:
            return question
        raise DomainError(ErrorCode.INVALID_TRANSITION)

    logger.info("Question %s approved in %s", question.id, conference.code)
    event = QuestionApprovedEvent(id=question.id, text=question.text, has_target=question.target_speaker_id is not None)
    emit(broadcaster, conference.id, QUESTION_APPROVED, event.model_dump(by_alias=True))
    return question


def reject_question(db: Session, account: Account, conference_code: str, question_id: int) -> Question:
    conference = get_moderated_conference(db, account, conference_code)
    question = get_question(db, conference, question_id)

    if not _transition(db, question, QuestionStatus.rejected):
        if question.status == QuestionStatus.rejected:
            return question
        raise DomainError(ErrorCode.INVALID_TRANSITION)

    logger.info("Question %s rejected in %s", question.id, conference.code)
    return question


def answer_question(db: Session, account: Account, conference_code: str, question_id: int, answer_text: str) -> Question:
    data = validate(QuestionAnswer, answer=answer_text)
    conference = get_conference_by_code(db, conference_code)
    require_not_ended(conference)
    speaker = get_profile(db, account, conference)
    if not speaker or not speaker.has_role(ProfileRole.speaker):
        raise DomainError(ErrorCode.NOT_SPEAKER)

    question = get_question(db, conference, question_id)
    if question.target_speaker_id is not None and question.target_speaker_id != speaker.id:
        raise DomainError(ErrorCode.QUESTION_NOT_FOR_YOU)
    if question.status != QuestionStatus.approved:
        raise DomainError(ErrorCode.INVALID_TRANSITION)

    question.answer = data.answer
    question.answered_by_id = speaker.id
    question.is_answered = True
    commit(db)
    db.refresh(question)
    logger.info("Question %s answered by profile %s", question.id, speaker.id)
    return question


def list_for_moderation(db: Session, account: Account, conference_code: str) -> List[Question]:
    """Pending questions in submission order."""
    conference = get_moderated_conference(db, account, conference_code, allow_ended=True)
    return (
        db.query(Question)
        .filter(Question.conference_id == conference.id, Question.status == QuestionStatus.pending)
        .order_by(Question.created_at.asc(), Question.id.asc())
        .all()
    )


def list_for_speaker(db: Session, account: Account, conference_code: str) -> List[Question]:
    """Approved, unanswered questions addressed to this speaker or to all speakers."""
    conference = get_conference_by_code(db, conference_code)
    speaker = get_profile(db, account, conference)
    if not speaker or not speaker.has_role(ProfileRole.speaker):
        raise DomainError(ErrorCode.NOT_SPEAKER)
    return (
        db.query(Question)
        .filter(
            Question.conference_id == conference.id,
            Question.status == QuestionStatus.approved,
            Question.is_answered.is_(False),
            (Question.target_speaker_id.is_(None)) | (Question.target_speaker_id == speaker.id),
        )
        .order_by(Question.created_at.asc(), Question.id.asc())
        .all()
    )


def list_approved(db: Session, conference: Conference) -> List[Question]:
    return (
        db.query(Question)
        .filter(Question.conference_id == conference.id, Question.status == QuestionStatus.approved)
        .order_by(Question.created_at.asc(), Question.id.asc())
        .all()
    )
