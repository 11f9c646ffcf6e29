"""Render domain objects as chat text."""

from typing import Iterable, List

from confbot.models.conference import Conference
from confbot.models.profile import Profile
from confbot.models.question import Question
from confbot.schemas.poll import PollResultsResponse

ROLE_LABELS = {
    "speaker": "🎤 Speaker",
    "investor": "💰 Investor",
    "participant": "👤 Participant",
    "organizer": "🛠 Organizer",
}


def _items(values: Iterable[str]) -> str:
    values = list(values or [])
    return ", ".join(values) if values else "—"


def profile_card(profile: Profile) -> str:
    lines = [f"<b>{profile.display_name}</b>"]
    if profile.account and profile.account.username:
        lines[0] += f" (@{profile.account.username})"
    if profile.roles:
        lines.append(" · ".join(ROLE_LABELS.get(r, r) for r in profile.roles))
    lines.append(f"Interests: {_items(profile.interests)}")
    lines.append(f"Offers: {_items(profile.offerings)}")
    lines.append(f"Looking for: {_items(profile.looking_for)}")
    return "\n".join(lines)


def conference_status(conference: Conference) -> str:
    if conference.is_ended:
        return "🏁 ended"
    return "🟢 active" if conference.is_active else "⏸ stopped"


def conference_details(conference: Conference) -> str:
    lines = [
        f"📌 <b>{conference.title}</b>",
        f"Code: <code>{conference.code}</code>",
        f"Status: {conference_status(conference)}",
    ]
    if conference.description:
        lines.append(f"\n{conference.description}")
    if conference.current_slide_url:
        slide = conference.current_slide_title or conference.current_slide_url
        lines.append(f"\n🖼 Current slide: {slide}")
    return "\n".join(lines)


def question_line(question: Question) -> str:
    target = f" → {question.target_speaker.display_name}" if question.target_speaker else ""
    return f"#{question.id}{target}: {question.text}"


def poll_results(results: PollResultsResponse) -> str:
    lines = [f"📊 <b>{results.question}</b>"]
    if not results.is_active:
        lines[0] += " (closed)"
    for option in results.options:
        share = round(option.votes * 100 / results.total_votes) if results.total_votes else 0
        lines.append(f"{option.text}: {option.votes} ({share}%)")
    lines.append(f"Total votes: {results.total_votes}")
    return "\n".join(lines)


def numbered(lines: List[str]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))
