from typing import Iterable, List

from sqlalchemy.orm import Session

from confbot.core.config import get_settings
from confbot.dialog.replies import Button
from confbot.models.account import Account
from confbot.models.conference import Conference
from confbot.services.conferences import can_create_conferences
from confbot.services.identity import resolve_roles


def second_screen_url(code: str):
    base = get_settings().viewer_base_url
    if not base:
        return None
    return f"{base.rstrip('/')}/{code}"


def main_menu(db: Session, account: Account) -> List[List[Button]]:
    roles = resolve_roles(db, account)
    rows = [
        [Button.to("📋 My conferences", "menu", "my_conferences")],
        [Button.to("➕ Join a conference", "menu", "join")],
        [Button.to("👤 Fill in profile", "menu", "onboarding")],
        [Button.to("🔍 Find participants", "menu", "find")],
        [Button.to("❓ Ask a question", "menu", "ask")],
        [Button.to("📊 Polls", "menu", "polls")],
    ]
    if roles.has_speaker_role:
        rows.append([Button.to("🎤 Speaker menu", "menu", "speaker")])
    if roles.is_conference_admin:
        rows.append([Button.to("⚙️ Manage conferences", "menu", "admin")])
    if can_create_conferences(account):
        rows.append([Button.to("🆕 Create conference", "menu", "create_conference")])
    return rows


def back(namespace: str = "menu", verb: str = "main", *params) -> List[Button]:
    return [Button.to("◀️ Back", namespace, verb, *params)]


def cancel_row() -> List[List[Button]]:
    return [[Button.to("◀️ Cancel", "menu", "main")]]


def conference_selection(conferences: Iterable[Conference], namespace: str, verb: str) -> List[List[Button]]:
    rows = [[Button.to(c.title, namespace, verb, c.code)] for c in conferences if not c.is_ended]
    rows.append(back())
    return rows


def conference_management(conference: Conference, is_main_admin: bool) -> List[List[Button]]:
    code = conference.code
    rows = []
    if not conference.is_ended:
        toggle = Button.to("⏸ Stop", "admin", "stop", code) if conference.is_active else Button.to("▶️ Start", "admin", "start", code)
        rows += [
            [Button.to("✏️ Edit", "admin", "edit", code), toggle],
            [Button.to("❓ Moderate questions", "moderate", "conf", code)],
            [Button.to("📊 Polls", "admin", "polls", code), Button.to("🖼 Slides", "admin", "slides", code)],
            [Button.to("👥 Participants", "participants", "conf", code)],
        ]
        if is_main_admin:
            rows.append([Button.to("🛡 Admins", "admin", "admins", code)])
        rows.append([Button.to("🏁 End conference", "admin", "end", code)])
    rows.append([Button.to("🗑 Delete", "admin", "delete", code)])
    url = second_screen_url(code)
    if url:
        rows.append([Button.link("📺 Second screen", url)])
    rows.append(back("menu", "admin"))
    return rows


def confirmation(namespace: str, verb: str, code: str, cancel_verb: str = "conf") -> List[List[Button]]:
    return [[Button.to("✅ Yes", namespace, verb, code), Button.to("❌ No", "admin", cancel_verb, code)]]
