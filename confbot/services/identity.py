"""Identity & role resolution for chat users."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from confbot.core.config import get_settings
from confbot.core.database import commit
from confbot.models.account import Account, GlobalRole
from confbot.models.conference import Conference, ConferenceAdmin, normalize_code
from confbot.models.profile import Profile, ProfileRole
from confbot.schemas.account import ExternalUser

logger = logging.getLogger(__name__)


@dataclass
class RoleSet:
    is_main_admin: bool = False
    is_conference_admin: bool = False
    has_speaker_role: bool = False
    conference_admin_for: List[str] = field(default_factory=list)

    @property
    def is_moderator(self) -> bool:
        return self.is_main_admin or self.is_conference_admin


def is_main_admin(account: Account) -> bool:
    return account.identity in get_settings().main_admin_identities


def ensure_account(db: Session, user: ExternalUser) -> Account:
    """Return the account for ``user``, creating it on first contact."""
    account = db.query(Account).filter(Account.identity == user.identity).first()
    created = account is None
    if created:
        account = Account(identity=user.identity)
        db.add(account)

    changed = created
    for attr in ("username", "first_name", "last_name"):
        value = getattr(user, attr)
        if value is not None and getattr(account, attr) != value:
            setattr(account, attr, value)
            changed = True

    if is_main_admin(account) and account.global_role != GlobalRole.main_admin:
        account.global_role = GlobalRole.main_admin
        changed = True

    if changed:
        commit(db)
        db.refresh(account)
        if created:
            logger.info("Created account for identity %s", user.identity)
    return account


def get_account_by_identity(db: Session, identity: str) -> Optional[Account]:
    return db.query(Account).filter(Account.identity == str(identity)).first()


def get_profile(db: Session, account: Account, conference: Conference) -> Optional[Profile]:
    return (
        db.query(Profile)
        .filter(Profile.account_id == account.id, Profile.conference_id == conference.id)
        .first()
    )


def is_conference_admin(db: Session, account: Account, conference: Conference) -> bool:
    if is_main_admin(account):
        return True
    return (
        db.query(ConferenceAdmin)
        .join(Profile, Profile.id == ConferenceAdmin.profile_id)
        .filter(ConferenceAdmin.conference_id == conference.id, Profile.account_id == account.id)
        .first()
        is not None
    )


def has_speaker_role(db: Session, account: Account, conference: Conference) -> bool:
    profile = get_profile(db, account, conference)
    return profile is not None and profile.has_role(ProfileRole.speaker)


def resolve_roles(db: Session, account: Account, code: Optional[str] = None) -> RoleSet:
    """Effective roles of ``account``, for one conference or across all of them."""
    roles = RoleSet(is_main_admin=is_main_admin(account))

    if code is not None:
        conference = db.query(Conference).filter(Conference.code == normalize_code(code)).first()
        if conference is None:
            roles.is_conference_admin = roles.is_main_admin
            return roles
        roles.is_conference_admin = is_conference_admin(db, account, conference)
        roles.has_speaker_role = has_speaker_role(db, account, conference)
        if roles.is_conference_admin:
            roles.conference_admin_for = [conference.code]
        return roles

    admin_codes = (
        db.query(Conference.code)
        .join(ConferenceAdmin, ConferenceAdmin.conference_id == Conference.id)
        .join(Profile, Profile.id == ConferenceAdmin.profile_id)
        .filter(Profile.account_id == account.id)
        .order_by(Conference.id)
        .all()
    )
    roles.conference_admin_for = [row[0] for row in admin_codes]
    roles.is_conference_admin = roles.is_main_admin or bool(roles.conference_admin_for)
    roles.has_speaker_role = any(p.has_role(ProfileRole.speaker) for p in account.profiles)
    return roles
