import logging
from typing import Tuple

from sqlalchemy.orm import Session

from confbot.core.database import commit
from confbot.core.validation import validate
from confbot.models.account import Account
from confbot.models.conference import Conference
from confbot.models.profile import Profile
from confbot.schemas.profile import ProfileData
from confbot.services.conferences import join_conference

logger = logging.getLogger(__name__)


def upsert_profile_for_conference(db: Session, account: Account, code: str, **data) -> Tuple[Conference, Profile]:
    """Join ``code`` if needed and persist onboarding data on the profile."""
    validated = validate(ProfileData, **data)
    conference, profile = join_conference(db, account, code)

    for field, value in validated.model_dump(exclude_none=True).items():
        if field == "roles":
            value = sorted({role.value for role in validated.roles})
        setattr(profile, field, value)
    profile.onboarding_completed = True
    commit(db)
    db.refresh(profile)
    logger.info("Profile %s completed onboarding for %s", profile.id, conference.code)
    return conference, profile
