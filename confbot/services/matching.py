"""Profile search inside a conference.

Supports filters:
- role: 'speaker' | 'investor' | 'participant' | 'organizer'
- text: free-text match against interests / offerings / looking_for
"""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from confbot.core.config import get_settings
from confbot.models.conference import Conference
from confbot.models.profile import Profile, ProfileRole
from confbot.services.conferences import get_conference_by_code

SEARCHABLE_ROLES = {role.value for role in ProfileRole}


def parse_search_query(text: str) -> Tuple[Optional[ProfileRole], Optional[str]]:
    """Split "investor fintech" into a role filter and the remaining free text."""
    parts = (text or "").split()
    if not parts:
        return None, None
    first = parts[0].lower()
    if first in SEARCHABLE_ROLES:
        rest = " ".join(parts[1:])
        return ProfileRole(first), rest or None
    return None, text.strip()


def search_profiles(
    db: Session,
    conference_code: str,
    role: Optional[ProfileRole] = None,
    text: Optional[str] = None,
    limit: Optional[int] = None,
) -> Tuple[Conference, List[Profile]]:
    conference = get_conference_by_code(db, conference_code)
    limit = limit or get_settings().search_limit

    profiles = (
        db.query(Profile)
        .filter(
            Profile.conference_id == conference.id,
            Profile.is_active.is_(True),
            Profile.onboarding_completed.is_(True),
        )
        .order_by(Profile.id)
        .all()
    )

    if role is not None:
        profiles = [p for p in profiles if p.has_role(role)]

    if text and text.strip():
        needle = text.strip().lower()
        profiles = [
            p for p in profiles
            if any(needle in str(value).lower() for value in (p.interests or []) + (p.offerings or []) + (p.looking_for or []))
        ]

    return conference, profiles[:limit]
