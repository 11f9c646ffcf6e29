import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from confbot.core.database import Base
from confbot.core.errors import DomainError, ErrorCode
from confbot.models.poll import PollVote
from confbot.schemas.account import ExternalUser
from confbot.services import polls
from confbot.services.conferences import create_conference, join_conference
from confbot.services.identity import ensure_account


@pytest.fixture
def lunch_poll(db, main_admin, conference):
    return polls.create_poll(db, main_admin, conference.code, "Where do we meet?", [" Lunch ", "Dinner"])


def test_create_assigns_ids_in_order(lunch_poll):
    assert lunch_poll.options_json == [{"id": 0, "text": "Lunch"}, {"id": 1, "text": "Dinner"}]
    assert lunch_poll.is_active


def test_create_validation(db, main_admin, conference):
    with pytest.raises(DomainError) as exc:
        polls.create_poll(db, main_admin, conference.code, "Where do we meet?", ["Lunch"])
    assert exc.value.code is ErrorCode.VALIDATION_ERROR
    with pytest.raises(DomainError):
        polls.create_poll(db, main_admin, conference.code, "Hm?", ["Lunch", "Dinner"])


def test_create_requires_moderator(db, make_account, conference):
    user = make_account("2001")
    join_conference(db, user, conference.code)
    with pytest.raises(DomainError) as exc:
        polls.create_poll(db, user, conference.code, "Where do we meet?", ["Lunch", "Dinner"])
    assert exc.value.code is ErrorCode.ACCESS_DENIED


def test_lunch_dinner_double_vote(db, lunch_poll):
    polls.vote(db, "2001", lunch_poll.id, 0)
    with pytest.raises(DomainError) as exc:
        polls.vote(db, "2001", lunch_poll.id, 1)
    assert exc.value.code is ErrorCode.ALREADY_VOTED

    polls.vote(db, "2002", lunch_poll.id, 1)
    results = polls.get_poll_results(db, lunch_poll.id)
    assert [(o.text, o.votes) for o in results.options] == [("Lunch", 1), ("Dinner", 1)]
    assert results.total_votes == 2


def test_vote_errors(db, main_admin, lunch_poll):
    with pytest.raises(DomainError) as exc:
        polls.vote(db, "2001", lunch_poll.id, 5)
    assert exc.value.code is ErrorCode.VALIDATION_ERROR

    with pytest.raises(DomainError) as exc:
        polls.vote(db, "2001", 424242, 0)
    assert exc.value.code is ErrorCode.POLL_NOT_FOUND

    polls.deactivate_poll(db, main_admin, lunch_poll.id)
    with pytest.raises(DomainError) as exc:
        polls.vote(db, "2001", lunch_poll.id, 0)
    assert exc.value.code is ErrorCode.POLL_INACTIVE

    polls.activate_poll(db, main_admin, lunch_poll.id)
    polls.vote(db, "2001", lunch_poll.id, 0)


def test_edit_keeps_option_ids(db, main_admin, lunch_poll):
    polls.vote(db, "2001", lunch_poll.id, 1)
    edited = polls.edit_poll(db, main_admin, lunch_poll.id, options=["Brunch", "Supper"])
    assert edited.options_json == [{"id": 0, "text": "Brunch"}, {"id": 1, "text": "Supper"}]
    assert polls.tally(db, edited) == {0: 0, 1: 1}

    with pytest.raises(DomainError) as exc:
        polls.edit_poll(db, main_admin, lunch_poll.id, options=["One", "Two", "Three"])
    assert exc.value.code is ErrorCode.VALIDATION_ERROR

    renamed = polls.edit_poll(db, main_admin, lunch_poll.id, question="When do we meet?")
    assert renamed.question == "When do we meet?"
    assert renamed.options_json[0]["text"] == "Brunch"


def test_delete_and_listings(db, main_admin, conference, lunch_poll):
    second = polls.create_poll(db, main_admin, conference.code, "Which track next?", ["Web", "Data"])
    polls.deactivate_poll(db, main_admin, second.id)

    assert [p.id for p in polls.list_active_polls(db, conference.code)] == [lunch_poll.id]
    assert {p.id for p in polls.list_polls_for_management(db, main_admin, conference.code)} == {lunch_poll.id, second.id}

    polls.vote(db, "2001", lunch_poll.id, 0)
    polls.delete_poll(db, main_admin, lunch_poll.id)
    assert db.query(PollVote).count() == 0
    with pytest.raises(DomainError) as exc:
        polls.get_poll(db, lunch_poll.id)
    assert exc.value.code is ErrorCode.POLL_NOT_FOUND


def test_concurrent_votes_count_once(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'votes.db'}", connect_args={"timeout": 30, "check_same_thread": False})
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    setup = Session()
    owner = ensure_account(setup, ExternalUser(identity="1000"))
    conference = create_conference(setup, owner, title="Concurrency Summit")
    poll = polls.create_poll(setup, owner, conference.code, "Where do we meet?", ["Lunch", "Dinner"])
    poll_id = poll.id
    setup.close()

    attempts = 8
    barrier = threading.Barrier(attempts)

    def attempt(option_id):
        session = Session()
        try:
            barrier.wait()
            polls.vote(session, "2001", poll_id, option_id)
            return "ok"
        except DomainError as e:
            return e.code
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(attempt, [i % 2 for i in range(attempts)]))

    assert outcomes.count("ok") == 1
    assert outcomes.count(ErrorCode.ALREADY_VOTED) == attempts - 1

    check = Session()
    assert check.query(PollVote).filter(PollVote.poll_id == poll_id).count() == 1
    check.close()
    engine.dispose()
