import pytest

from confbot.core.errors import DomainError, ErrorCode
from confbot.services.profiles import upsert_profile_for_conference


def test_upsert_completes_onboarding(db, make_account, conference):
    user = make_account("2001")
    joined, profile = upsert_profile_for_conference(
        db, user, conference.code.lower(), first_name="Jean-Luc", last_name="O'Neil",
        interests=[" AI "], offerings=[], looking_for=["Co-founder"],
    )
    assert joined.id == conference.id
    assert profile.onboarding_completed
    assert profile.interests == ["AI"]
    assert profile.display_name == "Jean-Luc O'Neil"


@pytest.mark.parametrize("data", [
    {"first_name": "J4ne"},
    {"first_name": "Jane", "interests": ["x" * 51]},
    {"first_name": "Jane", "interests": ["AI"] * 21},
    {"first_name": "Jane", "offerings": ["y" * 201]},
    {"first_name": "Jane", "interests": ["<script>"]},
])
def test_invalid_profile_data(db, make_account, conference, data):
    with pytest.raises(DomainError) as exc:
        upsert_profile_for_conference(db, make_account("2001"), conference.code, **data)
    assert exc.value.code is ErrorCode.VALIDATION_ERROR


def test_unknown_conference(db, make_account):
    with pytest.raises(DomainError) as exc:
        upsert_profile_for_conference(db, make_account("2001"), "NOPE99", first_name="Jane")
    assert exc.value.code is ErrorCode.CONFERENCE_NOT_FOUND
