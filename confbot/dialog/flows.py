"""Multi-step text flows.

A flow is an ordered list of steps. Each step parses the user's text, the
parsed value is stored under the step's name, and after the last step
``complete`` performs the mutation and produces the reply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from confbot.core.errors import ErrorCode
from confbot.core.validation import validate
from confbot.dialog.formatting import numbered, profile_card
from confbot.dialog.keyboards import back, conference_management
from confbot.dialog.replies import Button, Reply
from confbot.dialog.validators import comma_list, free_text, full_name, is_skip, numeric_id, slide_line
from confbot.schemas.conference import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH
from confbot.schemas.poll import MAX_OPTIONS_COUNT, MAX_POLL_QUESTION_LENGTH, MIN_OPTIONS_COUNT, MIN_POLL_QUESTION_LENGTH
from confbot.schemas.profile import MAX_LIST_ITEMS, ProfileData
from confbot.schemas.question import MAX_ANSWER_LENGTH, MAX_QUESTION_LENGTH, MIN_QUESTION_LENGTH
from confbot.services import conferences, matching, polls, profiles, questions, slides
from confbot.services.identity import is_main_admin


@dataclass
class Step:
    name: str
    prompt: str
    parse: Callable[[str], Any]
    # Not-found codes that refer to the value just typed; these re-prompt
    retry_on: FrozenSet[ErrorCode] = field(default_factory=frozenset)

    def render(self, data: Dict[str, Any]) -> str:
        return self.prompt.format_map(data)


@dataclass
class Flow:
    name: str
    steps: List[Step]
    complete: Callable[[Any, Dict[str, Any]], Reply]

    def step(self, name: str) -> Optional[Step]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def next_step(self, name: str) -> Optional[Step]:
        names = [s.name for s in self.steps]
        index = names.index(name) + 1
        return self.steps[index] if index < len(self.steps) else None


FLOWS: Dict[str, Flow] = {}


def register(flow: Flow) -> Flow:
    if flow.name in FLOWS:
        raise ValueError(f"flow '{flow.name}' is already registered")
    FLOWS[flow.name] = flow
    return flow


def get_flow(name: str) -> Flow:
    return FLOWS[name]


# ============ Onboarding ============

def _parse_name(text: str) -> List[str]:
    first, last = full_name(text)
    data = validate(ProfileData, first_name=first, last_name=last)
    return [data.first_name, data.last_name]


def _profile_list(field_name: str) -> Callable[[str], List[str]]:
    split = comma_list(0, MAX_LIST_ITEMS, optional=True)

    def parse(text: str) -> List[str]:
        items = split(text) or []
        return getattr(validate(ProfileData, **{field_name: items}), field_name)

    return parse


def _complete_onboarding(ctx, data: Dict[str, Any]) -> Reply:
    first_name, last_name = data["name"]
    conference, profile = profiles.upsert_profile_for_conference(
        ctx.db,
        ctx.account,
        data["conference_code"],
        first_name=first_name,
        last_name=last_name,
        interests=data.get("interests") or [],
        offerings=data.get("offerings") or [],
        looking_for=data.get("looking_for") or [],
    )
    return ctx.main_menu(f"✅ Profile saved for «{conference.title}»!\n\n{profile_card(profile)}")


register(Flow(
    name="onboarding",
    steps=[
        Step("name", "👤 Step 1/5: enter your first and last name (e.g. Jane Doe):", _parse_name),
        Step(
            "interests",
            '🎯 Step 2/5: list your interests, comma-separated (e.g. AI, fintech), or "-" to skip:',
            _profile_list("interests"),
        ),
        Step("offerings", '🤝 Step 3/5: what can you offer? Comma-separated, or "-" to skip:', _profile_list("offerings")),
        Step("looking_for", '🔎 Step 4/5: what are you looking for? Comma-separated, or "-" to skip:', _profile_list("looking_for")),
        Step(
            "conference_code",
            "🔑 Step 5/5: enter the conference code:",
            free_text(1, 20),
            retry_on=frozenset({ErrorCode.CONFERENCE_NOT_FOUND}),
        ),
    ],
    complete=_complete_onboarding,
))


# ============ Conferences ============

def _complete_join(ctx, data: Dict[str, Any]) -> Reply:
    conference, profile = conferences.join_conference(ctx.db, ctx.account, data["code"])
    text = f"✅ You joined «{conference.title}»."
    reply = ctx.main_menu(text)
    if not profile.onboarding_completed:
        reply.text += "\n\nFill in your profile so other participants can find you."
        reply.buttons.insert(0, [Button.to("👤 Fill in profile", "menu", "onboarding")])
    return reply


register(Flow(
    name="join_conference",
    steps=[
        Step(
            "code",
            "🔑 Enter the conference code:",
            free_text(1, 20),
            retry_on=frozenset({ErrorCode.CONFERENCE_NOT_FOUND}),
        ),
    ],
    complete=_complete_join,
))


def _complete_create_conference(ctx, data: Dict[str, Any]) -> Reply:
    conference = conferences.create_conference(
        ctx.db, ctx.account, title=data["title"], description=data.get("description") or ""
    )
    return Reply(
        f"✅ Conference «{conference.title}» created.\n\nCode: <code>{conference.code}</code>",
        conference_management(conference, is_main_admin(ctx.account)),
    )


register(Flow(
    name="create_conference",
    steps=[
        Step("title", "📝 Enter the conference title:", free_text(3, MAX_TITLE_LENGTH)),
        Step(
            "description",
            'Enter a short description, or "-" to skip:',
            free_text(0, MAX_DESCRIPTION_LENGTH, optional=True),
        ),
    ],
    complete=_complete_create_conference,
))


def _complete_edit_conference(ctx, data: Dict[str, Any]) -> Reply:
    conference = conferences.update_conference(
        ctx.db, ctx.account, data["code"], title=data.get("title"), description=data.get("description")
    )
    return Reply(
        f"✅ Conference «{conference.title}» updated.",
        conference_management(conference, is_main_admin(ctx.account)),
    )


register(Flow(
    name="edit_conference",
    steps=[
        Step("title", 'Enter a new title, or "-" to keep the current one:', free_text(3, MAX_TITLE_LENGTH, optional=True)),
        Step(
            "description",
            'Enter a new description, or "-" to keep the current one:',
            free_text(0, MAX_DESCRIPTION_LENGTH, optional=True),
        ),
    ],
    complete=_complete_edit_conference,
))


def _complete_assign_admin(ctx, data: Dict[str, Any]) -> Reply:
    profile = conferences.assign_conference_admin(ctx.db, ctx.account, data["code"], data["user_id"])
    return Reply(
        f"✅ {profile.display_name} is now an admin of this conference.",
        [back("admin", "admins", data["code"])],
    )


register(Flow(
    name="assign_admin",
    steps=[
        Step(
            "user_id",
            "🛡 Enter the numeric user id of the new admin. They must have joined the conference:",
            numeric_id,
            retry_on=frozenset({ErrorCode.TARGET_USER_NOT_FOUND}),
        ),
    ],
    complete=_complete_assign_admin,
))


# ============ Slides ============

def _complete_set_slide(ctx, data: Dict[str, Any]) -> Reply:
    url, title = data["slide"]
    slides.set_slide(ctx.db, ctx.account, data["code"], url, title, broadcaster=ctx.broadcaster)
    return Reply("✅ Slide updated on the second screen.", [back("admin", "slides", data["code"])])


register(Flow(
    name="set_slide",
    steps=[Step("slide", "🖼 Send the slide URL, optionally followed by a title:", slide_line)],
    complete=_complete_set_slide,
))


# ============ Polls ============

def _complete_create_poll(ctx, data: Dict[str, Any]) -> Reply:
    poll = polls.create_poll(ctx.db, ctx.account, data["code"], data["question"], data["options"])
    return Reply(
        f"✅ Poll «{poll.question}» created and open for voting.",
        [[Button.to("📊 Manage poll", "poll", "manage", poll.id)], back("admin", "polls", data["code"])],
    )


register(Flow(
    name="create_poll",
    steps=[
        Step("question", "📊 Enter the poll question:", free_text(MIN_POLL_QUESTION_LENGTH, MAX_POLL_QUESTION_LENGTH)),
        Step(
            "options",
            f"Enter {MIN_OPTIONS_COUNT} to {MAX_OPTIONS_COUNT} options, comma-separated:",
            comma_list(MIN_OPTIONS_COUNT, MAX_OPTIONS_COUNT),
        ),
    ],
    complete=_complete_create_poll,
))


def _complete_edit_poll(ctx, data: Dict[str, Any]) -> Reply:
    poll = polls.edit_poll(
        ctx.db, ctx.account, data["poll_id"], question=data.get("question"), options=data.get("options")
    )
    return Reply(f"✅ Poll «{poll.question}» updated.", [back("poll", "manage", poll.id)])


register(Flow(
    name="edit_poll",
    steps=[
        Step(
            "question",
            'Enter a new question, or "-" to keep the current one:',
            free_text(MIN_POLL_QUESTION_LENGTH, MAX_POLL_QUESTION_LENGTH, optional=True),
        ),
        Step(
            "options",
            'Enter {option_count} new option texts, comma-separated, or "-" to keep them:',
            comma_list(MIN_OPTIONS_COUNT, MAX_OPTIONS_COUNT, optional=True),
        ),
    ],
    complete=_complete_edit_poll,
))


# ============ Questions ============

def _complete_ask(ctx, data: Dict[str, Any]) -> Reply:
    questions.submit_question(
        ctx.db, ctx.account, data["code"], data["text"], target_speaker_id=data.get("target_speaker_id")
    )
    return ctx.main_menu("✅ Your question was sent to the moderators.")


register(Flow(
    name="ask_question",
    steps=[
        Step(
            "text",
            f"❓ Type your question ({MIN_QUESTION_LENGTH}-{MAX_QUESTION_LENGTH} characters):",
            free_text(MIN_QUESTION_LENGTH, MAX_QUESTION_LENGTH),
        ),
    ],
    complete=_complete_ask,
))


def _complete_answer(ctx, data: Dict[str, Any]) -> Reply:
    question = questions.answer_question(ctx.db, ctx.account, data["code"], data["question_id"], data["answer"])
    return Reply(f"✅ Answer to question #{question.id} saved.", [back("speaker", "questions", data["code"])])


register(Flow(
    name="answer_question",
    steps=[Step("answer", "✍️ Type your answer:", free_text(1, MAX_ANSWER_LENGTH))],
    complete=_complete_answer,
))


# ============ Matching ============

def _parse_query(text: str) -> str:
    return "" if is_skip(text) else text.strip()


def _complete_find(ctx, data: Dict[str, Any]) -> Reply:
    role, text = matching.parse_search_query(data["query"])
    conference, found = matching.search_profiles(ctx.db, data["code"], role=role, text=text)
    buttons = [[Button.to("🔍 Search again", "find", "conf", conference.code)], back()]
    if not found:
        return Reply(f"Nobody in «{conference.title}» matches your search.", buttons)
    cards = numbered([profile_card(p) for p in found])
    return Reply(f"🔍 Found in «{conference.title}»:\n\n{cards}", buttons)


register(Flow(
    name="find_participants",
    steps=[
        Step(
            "query",
            '🔍 Enter a role (speaker, investor, participant, organizer) and/or keywords, or "-" to list everyone:',
            _parse_query,
        ),
    ],
    complete=_complete_find,
))
