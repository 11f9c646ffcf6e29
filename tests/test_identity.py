from confbot.models.account import GlobalRole
from confbot.schemas.account import ExternalUser
from confbot.services.conferences import assign_speaker, join_conference
from confbot.services.identity import ensure_account, get_account_by_identity, resolve_roles


def test_ensure_account_creates_then_updates(db):
    account = ensure_account(db, ExternalUser(identity=555, first_name="Ann"))
    assert account.identity == "555"
    assert account.global_role == GlobalRole.user

    same = ensure_account(db, ExternalUser(identity="555", first_name="Anna", username="anna"))
    assert same.id == account.id
    assert same.first_name == "Anna"
    assert same.username == "anna"
    assert get_account_by_identity(db, "555").id == account.id


def test_allow_listed_identity_becomes_main_admin(main_admin):
    assert main_admin.global_role == GlobalRole.main_admin


def test_roles_for_plain_user(db, make_account, conference):
    user = make_account("2001")
    roles = resolve_roles(db, user, conference.code)
    assert not roles.is_main_admin
    assert not roles.is_moderator
    assert not roles.has_speaker_role


def test_roles_for_creator_and_speaker(db, main_admin, make_account, conference):
    creator_roles = resolve_roles(db, main_admin)
    assert creator_roles.is_main_admin
    assert creator_roles.conference_admin_for == [conference.code]

    speaker = make_account("2002", first_name="Sam")
    _, profile = join_conference(db, speaker, conference.code)
    assign_speaker(db, main_admin, conference.code, profile.id)

    roles = resolve_roles(db, speaker, conference.code.lower())
    assert roles.has_speaker_role
    assert not roles.is_conference_admin
    assert resolve_roles(db, speaker).has_speaker_role
