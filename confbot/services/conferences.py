"""Conference lifecycle, membership and admin assignment."""

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from confbot.core.config import get_settings
from confbot.core.database import commit
from confbot.core.errors import DomainError, ErrorCode
from confbot.core.validation import validate
from confbot.models.account import Account, GlobalRole
from confbot.models.conference import Conference, ConferenceAdmin, generate_conference_code, normalize_code
from confbot.models.poll import Poll
from confbot.models.profile import Profile, ProfileRole
from confbot.schemas.conference import ConferenceCreate, ConferenceUpdate
from confbot.services.identity import get_account_by_identity, get_profile, is_conference_admin, is_main_admin

logger = logging.getLogger(__name__)


# ============ Lookups and guards ============

def get_conference_by_code(db: Session, code: str) -> Conference:
    conference = db.query(Conference).filter(Conference.code == normalize_code(code)).first()
    if not conference:
        raise DomainError(ErrorCode.CONFERENCE_NOT_FOUND)
    return conference


def require_moderator(db: Session, account: Account, conference: Conference) -> None:
    if not is_conference_admin(db, account, conference):
        raise DomainError(ErrorCode.ACCESS_DENIED)


def require_not_ended(conference: Conference) -> None:
    if conference.is_ended:
        raise DomainError(ErrorCode.CONFERENCE_ENDED)


def get_moderated_conference(db: Session, account: Account, code: str, allow_ended: bool = False) -> Conference:
    """Resolve ``code`` and check the account may moderate it."""
    conference = get_conference_by_code(db, code)
    require_moderator(db, account, conference)
    if not allow_ended:
        require_not_ended(conference)
    return conference


def can_create_conferences(account: Account) -> bool:
    return is_main_admin(account) or account.global_role in (GlobalRole.conference_admin, GlobalRole.main_admin)


def _unique_code(db: Session) -> str:
    settings = get_settings()
    for _ in range(settings.code_max_attempts):
        code = generate_conference_code(settings.code_length)
        if not db.query(Conference.id).filter(Conference.code == code).first():
            return code
    raise DomainError(ErrorCode.CODE_GENERATION_FAILED)


def _ensure_profile(db: Session, account: Account, conference: Conference) -> Tuple[Profile, bool]:
    profile = get_profile(db, account, conference)
    if profile:
        return profile, False
    profile = Profile(
        account_id=account.id,
        conference_id=conference.id,
        first_name=account.first_name,
        last_name=account.last_name,
        interests=[],
        offerings=[],
        looking_for=[],
        roles=[],
    )
    db.add(profile)
    db.flush()
    return profile, True


# ============ Lifecycle ============

def create_conference(db: Session, account: Account, **payload) -> Conference:
    """Create a conference owned by ``account``; the creator becomes its first admin."""
    if not can_create_conferences(account):
        raise DomainError(ErrorCode.ACCESS_DENIED)
    data = validate(ConferenceCreate, **payload)

    conference = Conference(**data.model_dump(), code=_unique_code(db), created_by=account.id)
    db.add(conference)
    db.flush()

    profile, _ = _ensure_profile(db, account, conference)
    profile.roles = sorted(set(profile.roles or []) | {ProfileRole.organizer.value})
    db.add(ConferenceAdmin(conference_id=conference.id, profile_id=profile.id))
    # Lost a race on the code's unique index
    commit(db, on_conflict=ErrorCode.CODE_GENERATION_FAILED)
    db.refresh(conference)
    logger.info("Conference %s (%s) created by %s", conference.id, conference.code, account.identity)
    return conference


def update_conference(db: Session, account: Account, code: str, **payload) -> Conference:
    conference = get_moderated_conference(db, account, code)
    data = validate(ConferenceUpdate, **payload)
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(conference, field, value)
    commit(db)
    db.refresh(conference)
    return conference


def start_conference(db: Session, account: Account, code: str) -> Conference:
    conference = get_moderated_conference(db, account, code)
    if not conference.is_active:
        conference.is_active = True
        commit(db)
        logger.info("Conference %s started", conference.code)
    return conference


def stop_conference(db: Session, account: Account, code: str) -> Conference:
    conference = get_moderated_conference(db, account, code)
    if conference.is_active:
        conference.is_active = False
        commit(db)
        logger.info("Conference %s stopped", conference.code)
    return conference


def end_conference(db: Session, account: Account, code: str) -> Conference:
    """Irreversibly end a conference. Ending twice is a no-op."""
    conference = get_moderated_conference(db, account, code, allow_ended=True)
    if conference.is_ended:
        return conference
    conference.is_ended = True
    conference.is_active = False
    db.query(Poll).filter(Poll.conference_id == conference.id).update(
        {Poll.is_active: False}, synchronize_session=False
    )
    commit(db)
    logger.info("Conference %s ended", conference.code)
    return conference


def delete_conference(db: Session, account: Account, code: str) -> None:
    """Delete a conference together with its profiles, questions and polls."""
    conference = get_moderated_conference(db, account, code, allow_ended=True)
    conference_id = conference.id
    db.delete(conference)
    commit(db)
    logger.info("Conference %s (%s) deleted by %s", conference_id, code, account.identity)


# ============ Membership ============

def join_conference(db: Session, account: Account, code: str) -> Tuple[Conference, Profile]:
    """Join by code, creating the account's profile on first join."""
    conference = get_conference_by_code(db, code)
    if conference.is_ended:
        raise DomainError(ErrorCode.CONFERENCE_NOT_FOUND)

    profile, created = _ensure_profile(db, account, conference)
    if created:
        try:
            db.commit()
        except IntegrityError:
            # A concurrent join created it first
            db.rollback()
            profile = get_profile(db, account, conference)
            if profile is None:
                raise DomainError(ErrorCode.STORAGE_FAILURE)
            return conference, profile
        logger.info("Account %s joined conference %s", account.identity, conference.code)
    return conference, profile


def list_conferences_for_account(db: Session, account: Account) -> List[Conference]:
    query = db.query(Conference)
    if not is_main_admin(account):
        query = query.join(Profile, Profile.conference_id == Conference.id).filter(Profile.account_id == account.id)
    return query.order_by(Conference.is_ended.asc(), Conference.id.desc()).all()


def list_admin_conferences(db: Session, account: Account) -> List[Conference]:
    if is_main_admin(account):
        return db.query(Conference).order_by(Conference.is_ended.asc(), Conference.id.desc()).all()
    return (
        db.query(Conference)
        .join(ConferenceAdmin, ConferenceAdmin.conference_id == Conference.id)
        .join(Profile, Profile.id == ConferenceAdmin.profile_id)
        .filter(Profile.account_id == account.id)
        .order_by(Conference.is_ended.asc(), Conference.id.desc())
        .all()
    )


def list_participants(db: Session, conference: Conference) -> List[Profile]:
    return (
        db.query(Profile)
        .filter(Profile.conference_id == conference.id, Profile.is_active.is_(True))
        .order_by(Profile.id)
        .all()
    )


def get_conference_profile(db: Session, conference: Conference, profile_id: int) -> Profile:
    profile = (
        db.query(Profile)
        .filter(Profile.id == profile_id, Profile.conference_id == conference.id)
        .first()
    )
    if not profile:
        raise DomainError(ErrorCode.TARGET_USER_NOT_FOUND)
    return profile


# ============ Conference admins ============

def list_conference_admins(db: Session, conference: Conference) -> List[Profile]:
    return [link.profile for link in conference.admin_links]


def assign_conference_admin(db: Session, account: Account, code: str, target_identity: str) -> Profile:
    if not is_main_admin(account):
        raise DomainError(ErrorCode.ACCESS_DENIED)
    conference = get_conference_by_code(db, code)
    require_not_ended(conference)

    target = get_account_by_identity(db, target_identity)
    profile = get_profile(db, target, conference) if target else None
    if not profile:
        raise DomainError(ErrorCode.TARGET_USER_NOT_FOUND)

    if profile.id in conference.admin_profile_ids:
        return profile
    db.add(ConferenceAdmin(conference_id=conference.id, profile_id=profile.id))
    try:
        db.commit()
    except IntegrityError:
        # Assigned concurrently; same end state
        db.rollback()
        return profile
    logger.info("Profile %s is now admin of %s", profile.id, conference.code)
    return profile


def revoke_conference_admin(db: Session, account: Account, code: str, profile_id: int) -> Profile:
    if not is_main_admin(account):
        raise DomainError(ErrorCode.ACCESS_DENIED)
    conference = get_conference_by_code(db, code)
    require_not_ended(conference)
    profile = get_conference_profile(db, conference, profile_id)

    deleted = (
        db.query(ConferenceAdmin)
        .filter(ConferenceAdmin.conference_id == conference.id, ConferenceAdmin.profile_id == profile.id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise DomainError(ErrorCode.TARGET_USER_NOT_ADMIN)
    commit(db)
    logger.info("Profile %s is no longer admin of %s", profile.id, conference.code)
    return profile


# ============ Speakers ============

def assign_speaker(db: Session, account: Account, code: str, profile_id: int) -> Profile:
    conference = get_moderated_conference(db, account, code)
    profile = get_conference_profile(db, conference, profile_id)
    if not profile.has_role(ProfileRole.speaker):
        profile.roles = sorted(set(profile.roles or []) | {ProfileRole.speaker.value})
        commit(db)
    return profile


def remove_speaker(db: Session, account: Account, code: str, profile_id: int) -> Profile:
    conference = get_moderated_conference(db, account, code)
    profile = get_conference_profile(db, conference, profile_id)
    if profile.has_role(ProfileRole.speaker):
        profile.roles = [r for r in profile.roles if r != ProfileRole.speaker.value]
        commit(db)
    return profile


def list_speakers(db: Session, conference: Conference) -> List[Profile]:
    return [p for p in list_participants(db, conference) if p.has_role(ProfileRole.speaker)]
