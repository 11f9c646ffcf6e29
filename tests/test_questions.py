import pytest

from confbot.core.errors import DomainError, ErrorCode
from confbot.models.question import QuestionStatus
from confbot.services import questions
from confbot.services.conferences import assign_speaker, end_conference, join_conference


@pytest.fixture
def devcon(db, main_admin, make_account, conference):
    """DevCon with one speaker and one participant."""
    speaker = make_account("2002", first_name="Sam")
    _, speaker_profile = join_conference(db, speaker, conference.code)
    assign_speaker(db, main_admin, conference.code, speaker_profile.id)

    participant = make_account("2001", first_name="Ann")
    join_conference(db, participant, conference.code)
    return speaker, speaker_profile, participant


def test_devcon_approval_broadcasts_once(db, main_admin, conference, devcon, broadcaster):
    speaker, speaker_profile, participant = devcon
    question = questions.submit_question(
        db, participant, conference.code, "How do you scale websockets?", target_speaker_id=speaker_profile.id
    )
    assert question.status == QuestionStatus.pending

    approved = questions.approve_question(db, main_admin, conference.code, question.id, broadcaster=broadcaster)
    assert approved.status == QuestionStatus.approved
    assert broadcaster.events == [
        (conference.id, "question-approved", {"id": question.id, "text": "How do you scale websockets?", "hasTarget": True}),
    ]

    # Re-approving is idempotent and silent
    again = questions.approve_question(db, main_admin, conference.code, question.id, broadcaster=broadcaster)
    assert again.status == QuestionStatus.approved
    assert len(broadcaster.events) == 1

    with pytest.raises(DomainError) as exc:
        questions.reject_question(db, main_admin, conference.code, question.id)
    assert exc.value.code is ErrorCode.INVALID_TRANSITION


def test_unauthorized_approve_leaves_status(db, conference, devcon, broadcaster):
    _, _, participant = devcon
    question = questions.submit_question(db, participant, conference.code, "Will slides be shared later?")

    with pytest.raises(DomainError) as exc:
        questions.approve_question(db, participant, conference.code, question.id, broadcaster=broadcaster)
    assert exc.value.code is ErrorCode.ACCESS_DENIED

    db.refresh(question)
    assert question.status == QuestionStatus.pending
    assert broadcaster.events == []


def test_rejected_question_cannot_be_approved(db, main_admin, conference, devcon):
    _, _, participant = devcon
    question = questions.submit_question(db, participant, conference.code, "Is this question off topic?")
    questions.reject_question(db, main_admin, conference.code, question.id)
    assert questions.reject_question(db, main_admin, conference.code, question.id).status == QuestionStatus.rejected
    with pytest.raises(DomainError) as exc:
        questions.approve_question(db, main_admin, conference.code, question.id)
    assert exc.value.code is ErrorCode.INVALID_TRANSITION


def test_submit_validation(db, conference, devcon):
    _, _, participant = devcon
    with pytest.raises(DomainError) as exc:
        questions.submit_question(db, participant, conference.code, "Too short")
    assert exc.value.sentinel.startswith("VALIDATION_ERROR:")

    with pytest.raises(DomainError) as exc:
        questions.submit_question(db, participant, conference.code, "Bell character \x07 inside")
    assert exc.value.code is ErrorCode.VALIDATION_ERROR

    with pytest.raises(DomainError) as exc:
        questions.submit_question(db, participant, conference.code, "Who is the speaker here?", target_speaker_id=99999)
    assert exc.value.code is ErrorCode.TARGET_USER_NOT_FOUND


def test_submit_to_ended_conference(db, main_admin, conference, devcon):
    _, _, participant = devcon
    end_conference(db, main_admin, conference.code)
    with pytest.raises(DomainError) as exc:
        questions.submit_question(db, participant, conference.code, "Is anyone still here?")
    assert exc.value.code is ErrorCode.CONFERENCE_NOT_FOUND


def test_ended_conference_is_read_only_for_moderation(db, main_admin, conference, devcon, broadcaster):
    speaker, _, participant = devcon
    pending = questions.submit_question(db, participant, conference.code, "Pending when the conference ended")
    approved = questions.submit_question(db, participant, conference.code, "Approved before the conference ended")
    questions.approve_question(db, main_admin, conference.code, approved.id)
    end_conference(db, main_admin, conference.code)

    with pytest.raises(DomainError) as exc:
        questions.approve_question(db, main_admin, conference.code, pending.id, broadcaster=broadcaster)
    assert exc.value.code is ErrorCode.CONFERENCE_ENDED
    with pytest.raises(DomainError) as exc:
        questions.reject_question(db, main_admin, conference.code, pending.id)
    assert exc.value.code is ErrorCode.CONFERENCE_ENDED
    with pytest.raises(DomainError) as exc:
        questions.answer_question(db, speaker, conference.code, approved.id, "Too late for this")
    assert exc.value.code is ErrorCode.CONFERENCE_ENDED

    db.refresh(pending)
    db.refresh(approved)
    assert pending.status == QuestionStatus.pending
    assert not approved.is_answered
    assert broadcaster.events == []

    # Reading the queue still works
    assert [q.id for q in questions.list_for_moderation(db, main_admin, conference.code)] == [pending.id]


def test_moderation_queue_order(db, main_admin, conference, devcon):
    _, _, participant = devcon
    first = questions.submit_question(db, participant, conference.code, "First question in the queue")
    second = questions.submit_question(db, participant, conference.code, "Second question in the queue")
    queue = questions.list_for_moderation(db, main_admin, conference.code)
    assert [q.id for q in queue] == [first.id, second.id]


def test_answering(db, main_admin, make_account, conference, devcon):
    speaker, speaker_profile, participant = devcon
    other = make_account("2003")
    _, other_profile = join_conference(db, other, conference.code)
    assign_speaker(db, main_admin, conference.code, other_profile.id)

    targeted = questions.submit_question(
        db, participant, conference.code, "Question only for Sam please", target_speaker_id=speaker_profile.id
    )

    with pytest.raises(DomainError) as exc:
        questions.answer_question(db, speaker, conference.code, targeted.id, "Not yet approved")
    assert exc.value.code is ErrorCode.INVALID_TRANSITION

    questions.approve_question(db, main_admin, conference.code, targeted.id)

    with pytest.raises(DomainError) as exc:
        questions.answer_question(db, participant, conference.code, targeted.id, "I am no speaker")
    assert exc.value.code is ErrorCode.NOT_SPEAKER

    with pytest.raises(DomainError) as exc:
        questions.answer_question(db, other, conference.code, targeted.id, "Not mine to answer")
    assert exc.value.code is ErrorCode.QUESTION_NOT_FOR_YOU

    assert [q.id for q in questions.list_for_speaker(db, speaker, conference.code)] == [targeted.id]
    assert questions.list_for_speaker(db, other, conference.code) == []

    answered = questions.answer_question(db, speaker, conference.code, targeted.id, "Use a message broker.")
    assert answered.is_answered
    assert answered.answered_by_id == speaker_profile.id
    assert questions.list_for_speaker(db, speaker, conference.code) == []


def test_list_approved_for_viewer(db, main_admin, conference, devcon):
    _, _, participant = devcon
    kept = questions.submit_question(db, participant, conference.code, "Approved question text")
    dropped = questions.submit_question(db, participant, conference.code, "Rejected question text")
    questions.approve_question(db, main_admin, conference.code, kept.id)
    questions.reject_question(db, main_admin, conference.code, dropped.id)
    assert [q.id for q in questions.list_approved(db, conference)] == [kept.id]
