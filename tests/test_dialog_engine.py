import pytest

from confbot.core.errors import ErrorCode
from confbot.dialog import messages
from confbot.dialog.actions import Action
from confbot.dialog.engine import DialogEngine, is_cancel
from confbot.dialog.flows import FLOWS
from confbot.dialog.menus import ACTIONS
from confbot.models.poll import Poll
from confbot.models.profile import Profile
from confbot.models.question import Question, QuestionStatus
from confbot.schemas.account import ExternalUser
from confbot.schemas.events import InboundEvent
from confbot.services import polls, questions
from confbot.services.conferences import assign_conference_admin, assign_speaker, join_conference, revoke_conference_admin
from confbot.services.identity import get_profile

ANN = ExternalUser(identity="2001", first_name="Ann", username="ann")
ADMIN = ExternalUser(identity="1000", first_name="Main")


@pytest.fixture
def bot(db, sessions, broadcaster):
    return DialogEngine(db, sessions, broadcaster)


def press(bot, user, namespace, verb, *params):
    return bot.handle_action(user, Action.of(namespace, verb, *params).encode())


def button_actions(reply):
    return [b.action for row in reply.buttons for b in row if b.action]


def test_cancel_tokens():
    assert is_cancel("cancel")
    assert is_cancel(" /Cancel ")
    assert is_cancel("ОТМЕНА")
    assert not is_cancel("cancel please")


def test_flows_and_actions_registered():
    assert set(FLOWS) == {
        "onboarding", "join_conference", "create_conference", "edit_conference", "assign_admin",
        "set_slide", "create_poll", "edit_poll", "ask_question", "answer_question", "find_participants",
    }
    assert ("vote", "poll") in ACTIONS
    assert ("moderate", "approve") in ACTIONS


def test_start_shows_main_menu(bot):
    reply = bot.handle_command(ANN, "/start")
    assert messages.WELCOME in reply.text
    assert "menu:join" in button_actions(reply)
    # Plain users cannot create or manage conferences
    assert "menu:create_conference" not in button_actions(reply)


def test_main_admin_menu(bot, main_admin):
    reply = bot.handle_command(ADMIN, "/start")
    assert "menu:create_conference" in button_actions(reply)


def test_text_without_session(bot):
    reply = bot.handle_text(ANN, "hello")
    assert reply.text == messages.NO_ACTIVE_ACTION


def test_second_flow_replaces_first(bot, sessions, fake_redis):
    press(bot, ANN, "menu", "join")
    assert sessions.get("2001").flow == "join_conference"
    press(bot, ANN, "menu", "onboarding")
    session = sessions.get("2001")
    assert session.flow == "onboarding"
    assert session.step == "name"
    assert len(fake_redis.keys()) == 1


def test_cancel_clears_any_flow(bot, sessions):
    press(bot, ANN, "menu", "onboarding")
    bot.handle_text(ANN, "Ann Lee")
    reply = bot.handle_text(ANN, "Cancel")
    assert reply.text == messages.CANCELLED
    assert sessions.get("2001") is None


def test_menu_navigation_clears_session(bot, sessions):
    press(bot, ANN, "menu", "join")
    press(bot, ANN, "menu", "main")
    assert sessions.get("2001") is None


def test_onboarding_flow(bot, db, sessions, conference):
    press(bot, ANN, "menu", "onboarding")

    reply = bot.handle_text(ANN, "4nn")
    assert "Invalid input" in reply.text
    assert sessions.get("2001").step == "name"

    bot.handle_text(ANN, "Ann Lee")
    bot.handle_text(ANN, "AI, fintech")
    bot.handle_text(ANN, "-")
    bot.handle_text(ANN, "investors, mentors")
    assert sessions.get("2001").step == "conference_code"

    # A mistyped code keeps the user on the same step
    reply = bot.handle_text(ANN, "ZZZZZZ")
    assert messages.RETRY_HINT in reply.text
    session = sessions.get("2001")
    assert session.step == "conference_code"
    assert session.data["interests"] == ["AI", "fintech"]

    reply = bot.handle_text(ANN, conference.code.lower())
    assert "Profile saved" in reply.text
    assert sessions.get("2001") is None

    profile = db.query(Profile).filter(Profile.first_name == "Ann").one()
    assert profile.onboarding_completed
    assert profile.interests == ["AI", "fintech"]
    assert profile.offerings == []
    assert profile.looking_for == ["investors", "mentors"]


def test_join_flow(bot, db, conference):
    press(bot, ANN, "menu", "join")
    reply = bot.handle_text(ANN, conference.code)
    assert "You joined" in reply.text
    assert "menu:onboarding" in button_actions(reply)


def test_ask_and_moderate(bot, db, sessions, broadcaster, main_admin, conference):
    bot.handle_command(ANN, "/start")
    press(bot, ANN, "menu", "join")
    bot.handle_text(ANN, conference.code)

    press(bot, ANN, "ask", "conf", conference.code)
    assert sessions.get("2001").flow == "ask_question"
    reply = bot.handle_text(ANN, "short")
    assert messages.RETRY_HINT in reply.text
    bot.handle_text(ANN, "What is the roadmap for next year?")
    question = db.query(Question).one()
    assert question.status == QuestionStatus.pending

    # Participants cannot moderate
    reply = press(bot, ANN, "moderate", "approve", conference.code, question.id)
    assert reply.text == messages.ERROR_MESSAGES[ErrorCode.ACCESS_DENIED]
    db.refresh(question)
    assert question.status == QuestionStatus.pending

    reply = press(bot, ADMIN, "moderate", "approve", conference.code, question.id)
    assert f"Question #{question.id} approved" in reply.text
    press(bot, ADMIN, "moderate", "approve", conference.code, question.id)
    assert [event for _, event, _ in broadcaster.events] == ["question-approved"]


def test_vote_twice_via_buttons(bot, db, main_admin, conference):
    press(bot, ADMIN, "admin", "create_poll", conference.code)
    bot.handle_text(ADMIN, "Where do we meet?")
    reply = bot.handle_text(ADMIN, "Lunch")
    assert messages.RETRY_HINT in reply.text
    bot.handle_text(ADMIN, "Lunch, Dinner")
    poll = db.query(Poll).one()

    reply = press(bot, ANN, "vote", "poll", poll.id, 0)
    assert "Your vote was counted" in reply.text
    reply = press(bot, ANN, "vote", "poll", poll.id, 1)
    assert reply.text == messages.ERROR_MESSAGES[ErrorCode.ALREADY_VOTED]


def test_set_slide_broadcasts(bot, sessions, broadcaster, main_admin, conference):
    press(bot, ADMIN, "admin", "set_slide", conference.code)
    reply = bot.handle_text(ADMIN, "ftp://nope")
    assert messages.RETRY_HINT in reply.text
    assert sessions.get("1000").flow == "set_slide"
    bot.handle_text(ADMIN, "https://slides.example.com/3 Keynote")
    assert broadcaster.events == [
        (conference.id, "slide-updated", {"url": "https://slides.example.com/3", "title": "Keynote"}),
    ]
    assert sessions.get("1000") is None


def test_revoked_admin_is_dropped_from_flow(bot, db, sessions, main_admin, make_account, conference):
    user = make_account("2001")
    _, profile = join_conference(db, user, conference.code)
    assign_conference_admin(db, main_admin, conference.code, "2001")

    press(bot, ANN, "admin", "set_slide", conference.code)
    assert sessions.get("2001").flow == "set_slide"

    revoke_conference_admin(db, main_admin, conference.code, profile.id)
    reply = bot.handle_text(ANN, "https://slides.example.com/1")
    assert reply.text == messages.ERROR_MESSAGES[ErrorCode.ACCESS_DENIED]
    assert sessions.get("2001") is None


def test_assign_admin_flow_retries_unknown_user(bot, db, sessions, main_admin, make_account, conference):
    press(bot, ADMIN, "admin", "assign_admin", conference.code)
    reply = bot.handle_text(ADMIN, "777")
    assert messages.RETRY_HINT in reply.text
    assert sessions.get("1000").flow == "assign_admin"

    user = make_account("2001")
    join_conference(db, user, conference.code)
    reply = bot.handle_text(ADMIN, "2001")
    assert "now an admin" in reply.text
    assert get_profile(db, user, conference).id in conference.admin_profile_ids


def test_find_participants_flow(bot, db, conference):
    press(bot, ANN, "menu", "onboarding")
    for text in ("Ann Lee", "AI", "-", "-", conference.code):
        bot.handle_text(ANN, text)

    press(bot, ANN, "find", "conf", conference.code)
    reply = bot.handle_text(ANN, "participant")
    assert "Nobody" in reply.text

    press(bot, ANN, "find", "conf", conference.code)
    reply = bot.handle_text(ANN, "-")
    assert "Ann Lee" in reply.text


def test_unknown_action(bot):
    reply = bot.handle_action(ANN, "menu:does_not_exist")
    assert reply.text.startswith("❌ Invalid input")
    reply = bot.handle_action(ANN, "garbage")
    assert reply.text.startswith("❌ Invalid input")


def test_handle_dispatches_by_kind(bot):
    reply = bot.handle(InboundEvent(user=ANN, kind="command", value="/help"))
    assert reply.text == messages.HELP
    reply = bot.handle(InboundEvent(user=ANN, kind="text", value="hi"))
    assert reply.text == messages.NO_ACTIVE_ACTION


def test_navigation_leaves_active_flow(bot, db, sessions, main_admin, conference):
    press(bot, ADMIN, "admin", "create_poll", conference.code)
    assert sessions.get("1000").flow == "create_poll"

    press(bot, ADMIN, "admin", "slides", conference.code)
    assert sessions.get("1000") is None

    reply = bot.handle_text(ADMIN, "Hello everyone there")
    assert reply.text == messages.NO_ACTIVE_ACTION
    bot.handle_text(ADMIN, "a, b")
    assert db.query(Poll).count() == 0


# How each flow is entered, and a valid first answer for flows with more than one step
FLOW_ENTRIES = {
    "onboarding": (lambda c: ("menu", "onboarding"), "Ann Lee"),
    "join_conference": (lambda c: ("menu", "join"), None),
    "create_conference": (lambda c: ("menu", "create_conference"), "Summit 2027"),
    "edit_conference": (lambda c: ("admin", "edit", c["code"]), "-"),
    "assign_admin": (lambda c: ("admin", "assign_admin", c["code"]), None),
    "set_slide": (lambda c: ("admin", "set_slide", c["code"]), None),
    "create_poll": (lambda c: ("admin", "create_poll", c["code"]), "Where do we meet?"),
    "edit_poll": (lambda c: ("poll", "edit", c["poll_id"]), "-"),
    "ask_question": (lambda c: ("ask", "speaker", c["code"], "all"), None),
    "answer_question": (lambda c: ("speaker", "answer", c["code"], c["question_id"]), None),
    "find_participants": (lambda c: ("find", "conf", c["code"]), None),
}


@pytest.fixture
def flow_context(db, main_admin, conference):
    _, profile = join_conference(db, main_admin, conference.code)
    assign_speaker(db, main_admin, conference.code, profile.id)
    poll = polls.create_poll(db, main_admin, conference.code, "Where do we meet?", ["Lunch", "Dinner"])
    question = questions.submit_question(db, main_admin, conference.code, "Will the talks be recorded?")
    questions.approve_question(db, main_admin, conference.code, question.id)
    return {"code": conference.code, "poll_id": poll.id, "question_id": question.id}


def test_every_flow_has_an_entry():
    assert set(FLOW_ENTRIES) == set(FLOWS)


CANCEL_POINTS = [(name, False) for name in sorted(FLOW_ENTRIES)] + [
    (name, True) for name in sorted(FLOW_ENTRIES) if FLOW_ENTRIES[name][1] is not None
]


@pytest.mark.parametrize("flow_name, advance", CANCEL_POINTS)
def test_cancel_at_any_step(bot, sessions, flow_context, flow_name, advance):
    start, first_answer = FLOW_ENTRIES[flow_name]
    press(bot, ADMIN, *start(flow_context))
    session = sessions.get("1000")
    assert session.flow == flow_name

    if advance:
        bot.handle_text(ADMIN, first_answer)
        session = sessions.get("1000")
        assert session.flow == flow_name
        assert session.step == FLOWS[flow_name].steps[1].name

    reply = bot.handle_text(ADMIN, "отмена")
    assert reply.text == messages.CANCELLED
    assert sessions.get("1000") is None
    assert bot.handle_text(ADMIN, "anything else").text == messages.NO_ACTIVE_ACTION


def test_poll_deleted_during_edit_ends_flow(bot, db, sessions, main_admin, conference):
    poll = polls.create_poll(db, main_admin, conference.code, "Where do we meet?", ["Lunch", "Dinner"])
    press(bot, ADMIN, "poll", "edit", poll.id)
    bot.handle_text(ADMIN, "Where shall we meet?")
    assert sessions.get("1000").step == "options"

    polls.delete_poll(db, main_admin, poll.id)
    reply = bot.handle_text(ADMIN, "Brunch, Supper")
    assert reply.text.startswith(messages.ERROR_MESSAGES[ErrorCode.POLL_NOT_FOUND])
    assert sessions.get("1000") is None
    assert db.query(Poll).count() == 0


def test_unreadable_session_falls_back_to_menu(bot, fake_redis):
    fake_redis.set("dialog:session:2001", "{broken")
    reply = bot.handle_text(ANN, "Ann Lee")
    assert reply.text == messages.NO_ACTIVE_ACTION
