"""Button action handlers, one per ``namespace:verb``."""

from typing import Callable, Dict, List, Tuple

from confbot.core.errors import DomainError, ErrorCode, validation_error
from confbot.dialog import messages
from confbot.dialog.actions import Action
from confbot.dialog.formatting import (
    conference_details,
    conference_status,
    numbered,
    poll_results,
    question_line,
)
from confbot.dialog.keyboards import (
    back,
    conference_management,
    conference_selection,
    confirmation,
    second_screen_url,
)
from confbot.dialog.replies import Button, Reply
from confbot.models.conference import Conference
from confbot.models.profile import ProfileRole
from confbot.services import conferences, polls, questions, slides
from confbot.services.conferences import can_create_conferences, get_conference_by_code, get_moderated_conference
from confbot.services.identity import get_profile, has_speaker_role, is_conference_admin, is_main_admin


Handler = Callable[..., Reply]
ACTIONS: Dict[Tuple[str, str], Handler] = {}

MAX_BUTTON_ROWS = 20


def action(namespace: str, verb: str):
    """Register a handler for ``namespace:verb``. Each pair is registered once."""

    def decorator(fn: Handler) -> Handler:
        key = (namespace, verb)
        if key in ACTIONS:
            raise ValueError(f"action {namespace}:{verb} is already registered")
        ACTIONS[key] = fn
        return fn

    return decorator


def get_handler(act: Action) -> Handler:
    handler = ACTIONS.get((act.namespace, act.verb))
    if handler is None:
        raise validation_error(f"unknown action {act.namespace}:{act.verb}")
    return handler


def _joined_conferences(ctx) -> List[Conference]:
    return [p.conference for p in ctx.account.profiles if p.is_active and not p.conference.is_ended]


def _pick_conference(ctx, namespace: str, title: str) -> Reply:
    joined = _joined_conferences(ctx)
    if not joined:
        return Reply(messages.JOIN_FIRST, [[Button.to("➕ Join a conference", "menu", "join")], back()])
    return Reply(title, conference_selection(joined, namespace, "conf"))


# ============ Root menus ============

@action("menu", "main")
def main(ctx, act: Action) -> Reply:
    return ctx.main_menu()


@action("menu", "my_conferences")
def my_conferences(ctx, act: Action) -> Reply:
    found = conferences.list_conferences_for_account(ctx.db, ctx.account)
    if not found:
        return Reply(
            "You haven't joined any conference yet.",
            [[Button.to("➕ Join a conference", "menu", "join")], back()],
        )
    rows = [
        [Button.to(f"{c.title} · {conference_status(c)}", "conf", "details", c.code)]
        for c in found[:MAX_BUTTON_ROWS]
    ]
    rows.append(back())
    return Reply("📋 Your conferences:", rows)


@action("menu", "all_conferences")
def all_conferences(ctx, act: Action) -> Reply:
    if not is_main_admin(ctx.account):
        raise DomainError(ErrorCode.ACCESS_DENIED)
    found = conferences.list_admin_conferences(ctx.db, ctx.account)
    if not found:
        return Reply("No conferences yet.", [back()])
    lines = [f"{c.title} [{c.code}] · {conference_status(c)} · {len(c.profiles)} participants" for c in found]
    rows = [[Button.to(c.title, "admin", "conf", c.code)] for c in found[:MAX_BUTTON_ROWS]]
    rows.append(back())
    return Reply(f"🗂 All conferences:\n\n{numbered(lines)}", rows)


@action("menu", "join")
def join(ctx, act: Action) -> Reply:
    return ctx.start_flow("join_conference")


@action("menu", "onboarding")
def onboarding(ctx, act: Action) -> Reply:
    return ctx.start_flow("onboarding")


@action("menu", "find")
def find(ctx, act: Action) -> Reply:
    return _pick_conference(ctx, "find", "🔍 Where do you want to search?")


@action("menu", "ask")
def ask(ctx, act: Action) -> Reply:
    return _pick_conference(ctx, "ask", "❓ Which conference is your question for?")


@action("menu", "polls")
def polls_menu(ctx, act: Action) -> Reply:
    return _pick_conference(ctx, "polls", "📊 Choose a conference:")


@action("menu", "speaker")
def speaker_menu(ctx, act: Action) -> Reply:
    speaking = [
        p.conference for p in ctx.account.profiles
        if p.has_role(ProfileRole.speaker) and not p.conference.is_ended
    ]
    if not speaking:
        raise DomainError(ErrorCode.NOT_SPEAKER)
    rows = [[Button.to(c.title, "speaker", "questions", c.code)] for c in speaking]
    rows.append(back())
    return Reply("🎤 Choose a conference to see questions for you:", rows)


@action("menu", "admin")
def admin_menu(ctx, act: Action) -> Reply:
    managed = conferences.list_admin_conferences(ctx.db, ctx.account)
    if not managed:
        raise DomainError(ErrorCode.ACCESS_DENIED)
    rows = [
        [Button.to(f"{c.title} · {conference_status(c)}", "admin", "conf", c.code)]
        for c in managed[:MAX_BUTTON_ROWS]
    ]
    if is_main_admin(ctx.account):
        rows.append([Button.to("🗂 All conferences", "menu", "all_conferences")])
    rows.append(back())
    return Reply("⚙️ Conferences you manage:", rows)


@action("menu", "create_conference")
def create_conference(ctx, act: Action) -> Reply:
    if not can_create_conferences(ctx.account):
        raise DomainError(ErrorCode.ACCESS_DENIED)
    return ctx.start_flow("create_conference")


# ============ Conference details ============

@action("conf", "details")
def details(ctx, act: Action) -> Reply:
    conference = get_conference_by_code(ctx.db, act.param(0))
    rows = []
    url = second_screen_url(conference.code)
    if url:
        rows.append([Button.link("📺 Second screen", url)])
    if is_conference_admin(ctx.db, ctx.account, conference):
        rows.append([Button.to("⚙️ Manage", "admin", "conf", conference.code)])
    rows.append(back("menu", "my_conferences"))
    return Reply(conference_details(conference), rows)


# ============ Conference management ============

def _management_view(ctx, conference: Conference, notice: str = "") -> Reply:
    pending = len(questions.list_for_moderation(ctx.db, ctx.account, conference.code))
    text = f"{conference_details(conference)}\n\nQuestions awaiting moderation: {pending}"
    if notice:
        text = f"{notice}\n\n{text}"
    return Reply(text, conference_management(conference, is_main_admin(ctx.account)))


@action("admin", "conf")
def admin_conference(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0), allow_ended=True)
    return _management_view(ctx, conference)


@action("admin", "edit")
def admin_edit(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0))
    reply = ctx.start_flow("edit_conference", code=conference.code)
    reply.text = f"Current title: {conference.title}\n\n{reply.text}"
    return reply


@action("admin", "start")
def admin_start(ctx, act: Action) -> Reply:
    conference = conferences.start_conference(ctx.db, ctx.account, act.param(0))
    return _management_view(ctx, conference, "▶️ Conference started.")


@action("admin", "stop")
def admin_stop(ctx, act: Action) -> Reply:
    conference = conferences.stop_conference(ctx.db, ctx.account, act.param(0))
    return _management_view(ctx, conference, "⏸ Conference stopped.")


@action("admin", "end")
def admin_end(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0))
    return Reply(
        f"🏁 End «{conference.title}»? This cannot be undone and closes all its polls.",
        confirmation("admin", "end_confirm", conference.code),
    )


@action("admin", "end_confirm")
def admin_end_confirm(ctx, act: Action) -> Reply:
    conference = conferences.end_conference(ctx.db, ctx.account, act.param(0))
    return _management_view(ctx, conference, "🏁 Conference ended.")


@action("admin", "delete")
def admin_delete(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0), allow_ended=True)
    return Reply(
        f"🗑 Delete «{conference.title}» with all its participants, questions and polls?",
        confirmation("admin", "delete_confirm", conference.code),
    )


@action("admin", "delete_confirm")
def admin_delete_confirm(ctx, act: Action) -> Reply:
    conferences.delete_conference(ctx.db, ctx.account, act.param(0))
    return ctx.main_menu("🗑 Conference deleted.")


# ============ Polls (management) ============

@action("admin", "polls")
def admin_polls(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0), allow_ended=True)
    managed = polls.list_polls_for_management(ctx.db, ctx.account, conference.code)
    rows = [
        [Button.to(f"{'🟢' if p.is_active else '⏹'} {p.question}", "poll", "manage", p.id)]
        for p in managed[:MAX_BUTTON_ROWS]
    ]
    if not conference.is_ended:
        rows.append([Button.to("➕ Create poll", "admin", "create_poll", conference.code)])
    rows.append(back("admin", "conf", conference.code))
    text = "📊 Polls:" if managed else "📊 No polls yet."
    return Reply(text, rows)


@action("admin", "create_poll")
def admin_create_poll(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0))
    return ctx.start_flow("create_poll", code=conference.code)


def _poll_management_view(ctx, poll_id: int, notice: str = "") -> Reply:
    poll, conference = polls.get_managed_poll(ctx.db, ctx.account, poll_id, allow_ended=True)
    text = poll_results(polls.get_poll_results(ctx.db, poll.id))
    if notice:
        text = f"{notice}\n\n{text}"
    rows = []
    if not conference.is_ended:
        toggle = (
            Button.to("⏹ Close", "poll", "deactivate", poll.id)
            if poll.is_active
            else Button.to("🟢 Reopen", "poll", "activate", poll.id)
        )
        rows.append([Button.to("✏️ Edit", "poll", "edit", poll.id), toggle])
    rows.append([Button.to("🗑 Delete", "poll", "delete", poll.id)])
    rows.append(back("admin", "polls", conference.code))
    return Reply(text, rows)


@action("poll", "manage")
def poll_manage(ctx, act: Action) -> Reply:
    return _poll_management_view(ctx, act.int_param(0))


@action("poll", "deactivate")
def poll_deactivate(ctx, act: Action) -> Reply:
    poll = polls.deactivate_poll(ctx.db, ctx.account, act.int_param(0))
    return _poll_management_view(ctx, poll.id, "⏹ Poll closed.")


@action("poll", "activate")
def poll_activate(ctx, act: Action) -> Reply:
    poll = polls.activate_poll(ctx.db, ctx.account, act.int_param(0))
    return _poll_management_view(ctx, poll.id, "🟢 Poll reopened.")


@action("poll", "edit")
def poll_edit(ctx, act: Action) -> Reply:
    poll, _ = polls.get_managed_poll(ctx.db, ctx.account, act.int_param(0))
    options = numbered([opt["text"] for opt in poll.options_json])
    reply = ctx.start_flow("edit_poll", poll_id=poll.id, option_count=len(poll.options_json))
    reply.text = f"📊 {poll.question}\n{options}\n\n{reply.text}"
    return reply


@action("poll", "delete")
def poll_delete(ctx, act: Action) -> Reply:
    poll, conference = polls.get_managed_poll(ctx.db, ctx.account, act.int_param(0), allow_ended=True)
    polls.delete_poll(ctx.db, ctx.account, poll.id)
    return Reply("🗑 Poll deleted.", [back("admin", "polls", conference.code)])


@action("poll", "results")
def poll_results_view(ctx, act: Action) -> Reply:
    results = polls.get_poll_results(ctx.db, act.int_param(0))
    poll = polls.get_poll(ctx.db, results.poll_id)
    return Reply(poll_results(results), [back("polls", "conf", poll.conference.code)])


# ============ Polls (voting) ============

@action("polls", "conf")
def polls_for_conference(ctx, act: Action) -> Reply:
    conference = get_conference_by_code(ctx.db, act.param(0))
    active = polls.list_active_polls(ctx.db, conference.code)
    if not active:
        return Reply(f"No open polls in «{conference.title}».", [back("menu", "polls")])
    rows = [[Button.to(p.question, "vote", "select", p.id)] for p in active[:MAX_BUTTON_ROWS]]
    rows.append(back("menu", "polls"))
    return Reply(f"📊 Open polls in «{conference.title}»:", rows)


@action("vote", "select")
def vote_select(ctx, act: Action) -> Reply:
    poll = polls.get_poll(ctx.db, act.int_param(0))
    if not poll.is_active:
        raise DomainError(ErrorCode.POLL_INACTIVE)
    rows = [[Button.to(opt["text"], "vote", "poll", poll.id, opt["id"])] for opt in poll.options_json]
    rows.append([Button.to("📈 Results", "poll", "results", poll.id)])
    rows.append(back("polls", "conf", poll.conference.code))
    return Reply(f"📊 {poll.question}", rows)


@action("vote", "poll")
def vote_cast(ctx, act: Action) -> Reply:
    poll = polls.vote(ctx.db, ctx.identity, act.int_param(0), act.int_param(1))
    results = polls.get_poll_results(ctx.db, poll.id)
    return Reply(f"✅ Your vote was counted.\n\n{poll_results(results)}", [back("polls", "conf", poll.conference.code)])


# ============ Slides ============

def _slides_view(ctx, conference: Conference, notice: str = "") -> Reply:
    if conference.current_slide_url:
        text = f"🖼 Current slide: {conference.current_slide_title or '(untitled)'}\n{conference.current_slide_url}"
    else:
        text = "🖼 No slide is shown."
    if notice:
        text = f"{notice}\n\n{text}"
    rows = []
    if not conference.is_ended:
        rows.append([
            Button.to("🖼 Set slide", "admin", "set_slide", conference.code),
            Button.to("🧹 Clear", "admin", "clear_slide", conference.code),
        ])
    rows.append(back("admin", "conf", conference.code))
    return Reply(text, rows)


@action("admin", "slides")
def admin_slides(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0), allow_ended=True)
    return _slides_view(ctx, conference)


@action("admin", "set_slide")
def admin_set_slide(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0))
    return ctx.start_flow("set_slide", code=conference.code)


@action("admin", "clear_slide")
def admin_clear_slide(ctx, act: Action) -> Reply:
    conference = slides.clear_slide(ctx.db, ctx.account, act.param(0), broadcaster=ctx.broadcaster)
    return _slides_view(ctx, conference, "🧹 Slide cleared.")


# ============ Conference admins ============

def _require_main_admin(ctx) -> None:
    if not is_main_admin(ctx.account):
        raise DomainError(ErrorCode.ACCESS_DENIED)


def _admins_view(ctx, conference: Conference, notice: str = "") -> Reply:
    admins = conferences.list_conference_admins(ctx.db, conference)
    lines = [f"{p.display_name} (id {p.account.identity})" for p in admins]
    text = f"🛡 Admins of «{conference.title}»:\n\n{numbered(lines)}" if admins else "🛡 No conference admins."
    if notice:
        text = f"{notice}\n\n{text}"
    rows = []
    if not conference.is_ended:
        rows += [[Button.to(f"➖ {p.display_name}", "admin", "revoke_admin", conference.code, p.id)] for p in admins]
        rows.append([Button.to("➕ Assign admin", "admin", "assign_admin", conference.code)])
    rows.append(back("admin", "conf", conference.code))
    return Reply(text, rows)


@action("admin", "admins")
def admin_admins(ctx, act: Action) -> Reply:
    _require_main_admin(ctx)
    conference = get_conference_by_code(ctx.db, act.param(0))
    return _admins_view(ctx, conference)


@action("admin", "assign_admin")
def admin_assign_admin(ctx, act: Action) -> Reply:
    _require_main_admin(ctx)
    conference = get_conference_by_code(ctx.db, act.param(0))
    conferences.require_not_ended(conference)
    return ctx.start_flow("assign_admin", code=conference.code)


@action("admin", "revoke_admin")
def admin_revoke_admin(ctx, act: Action) -> Reply:
    profile = conferences.revoke_conference_admin(ctx.db, ctx.account, act.param(0), act.int_param(1))
    conference = get_conference_by_code(ctx.db, act.param(0))
    return _admins_view(ctx, conference, f"➖ {profile.display_name} is no longer an admin.")


# ============ Moderation ============

def _moderation_view(ctx, conference: Conference, notice: str = "") -> Reply:
    pending = questions.list_for_moderation(ctx.db, ctx.account, conference.code)
    if pending:
        text = f"❓ Questions awaiting moderation ({len(pending)}):\n\n" + "\n".join(question_line(q) for q in pending)
    else:
        text = "❓ No questions awaiting moderation."
    if notice:
        text = f"{notice}\n\n{text}"
    rows = [
        [
            Button.to(f"✅ #{q.id}", "moderate", "approve", conference.code, q.id),
            Button.to(f"❌ #{q.id}", "moderate", "reject", conference.code, q.id),
        ]
        for q in pending[:MAX_BUTTON_ROWS]
    ]
    rows.append(back("admin", "conf", conference.code))
    return Reply(text, rows)


@action("moderate", "conf")
def moderate_conference(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0), allow_ended=True)
    return _moderation_view(ctx, conference)


@action("moderate", "approve")
def moderate_approve(ctx, act: Action) -> Reply:
    question = questions.approve_question(
        ctx.db, ctx.account, act.param(0), act.int_param(1), broadcaster=ctx.broadcaster
    )
    return _moderation_view(ctx, question.conference, f"✅ Question #{question.id} approved.")


@action("moderate", "reject")
def moderate_reject(ctx, act: Action) -> Reply:
    question = questions.reject_question(ctx.db, ctx.account, act.param(0), act.int_param(1))
    return _moderation_view(ctx, question.conference, f"❌ Question #{question.id} rejected.")


# ============ Participants and speakers ============

def _participants_view(ctx, conference: Conference, notice: str = "") -> Reply:
    members = conferences.list_participants(ctx.db, conference)
    lines = []
    for p in members:
        marker = " 🎤" if p.has_role(ProfileRole.speaker) else ""
        lines.append(f"{p.display_name}{marker}")
    text = f"👥 Participants of «{conference.title}» ({len(members)}):\n\n{numbered(lines)}" if members else "👥 No participants yet."
    if notice:
        text = f"{notice}\n\n{text}"
    rows = []
    if not conference.is_ended:
        for p in members[:MAX_BUTTON_ROWS]:
            if p.has_role(ProfileRole.speaker):
                rows.append([Button.to(f"➖ 🎤 {p.display_name}", "speaker", "remove", conference.code, p.id)])
            else:
                rows.append([Button.to(f"➕ 🎤 {p.display_name}", "speaker", "assign", conference.code, p.id)])
    rows.append(back("admin", "conf", conference.code))
    return Reply(text, rows)


@action("participants", "conf")
def participants(ctx, act: Action) -> Reply:
    conference = get_moderated_conference(ctx.db, ctx.account, act.param(0), allow_ended=True)
    return _participants_view(ctx, conference)


@action("speaker", "assign")
def speaker_assign(ctx, act: Action) -> Reply:
    profile = conferences.assign_speaker(ctx.db, ctx.account, act.param(0), act.int_param(1))
    return _participants_view(ctx, profile.conference, f"🎤 {profile.display_name} is now a speaker.")


@action("speaker", "remove")
def speaker_remove(ctx, act: Action) -> Reply:
    profile = conferences.remove_speaker(ctx.db, ctx.account, act.param(0), act.int_param(1))
    return _participants_view(ctx, profile.conference, f"🎤 {profile.display_name} is no longer a speaker.")


@action("speaker", "questions")
def speaker_questions(ctx, act: Action) -> Reply:
    conference = get_conference_by_code(ctx.db, act.param(0))
    inbox = questions.list_for_speaker(ctx.db, ctx.account, conference.code)
    if not inbox:
        return Reply("🎤 No open questions for you.", [back("menu", "speaker")])
    rows = [
        [Button.to(f"✍️ Answer #{q.id}", "speaker", "answer", conference.code, q.id)]
        for q in inbox[:MAX_BUTTON_ROWS]
    ]
    rows.append(back("menu", "speaker"))
    text = "🎤 Questions for you:\n\n" + "\n".join(question_line(q) for q in inbox)
    return Reply(text, rows)


@action("speaker", "answer")
def speaker_answer(ctx, act: Action) -> Reply:
    conference = get_conference_by_code(ctx.db, act.param(0))
    if not has_speaker_role(ctx.db, ctx.account, conference):
        raise DomainError(ErrorCode.NOT_SPEAKER)
    question = questions.get_question(ctx.db, conference, act.int_param(1))
    speaker = get_profile(ctx.db, ctx.account, conference)
    if question.target_speaker_id is not None and question.target_speaker_id != speaker.id:
        raise DomainError(ErrorCode.QUESTION_NOT_FOR_YOU)
    reply = ctx.start_flow("answer_question", code=conference.code, question_id=question.id)
    reply.text = f"❓ {question.text}\n\n{reply.text}"
    return reply


# ============ Participant search and questions ============

def _member_conference(ctx, code: str) -> Conference:
    conference = get_conference_by_code(ctx.db, code)
    if conference.is_ended:
        raise DomainError(ErrorCode.CONFERENCE_NOT_FOUND)
    if get_profile(ctx.db, ctx.account, conference) is None and not is_conference_admin(ctx.db, ctx.account, conference):
        raise DomainError(ErrorCode.ACCESS_DENIED)
    return conference


@action("find", "conf")
def find_in_conference(ctx, act: Action) -> Reply:
    conference = _member_conference(ctx, act.param(0))
    return ctx.start_flow("find_participants", code=conference.code)


@action("ask", "conf")
def ask_in_conference(ctx, act: Action) -> Reply:
    conference = _member_conference(ctx, act.param(0))
    speakers = conferences.list_speakers(ctx.db, conference)
    if not speakers:
        return ctx.start_flow("ask_question", code=conference.code, target_speaker_id=None)
    rows = [[Button.to(f"🎤 {p.display_name}", "ask", "speaker", conference.code, p.id)] for p in speakers]
    rows.append([Button.to("👥 All speakers", "ask", "speaker", conference.code, "all")])
    rows.append(back("menu", "ask"))
    return Reply("❓ Who is your question for?", rows)


@action("ask", "speaker")
def ask_speaker(ctx, act: Action) -> Reply:
    conference = _member_conference(ctx, act.param(0))
    target_speaker_id = None
    if act.param(1) != "all":
        target = conferences.get_conference_profile(ctx.db, conference, act.int_param(1))
        if not target.has_role(ProfileRole.speaker):
            raise DomainError(ErrorCode.TARGET_USER_NOT_FOUND)
        target_speaker_id = target.id
    return ctx.start_flow("ask_question", code=conference.code, target_speaker_id=target_speaker_id)
