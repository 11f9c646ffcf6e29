from typing import Optional

from sqlalchemy.orm import Session

from confbot.dialog import messages
from confbot.dialog.flows import get_flow
from confbot.dialog.keyboards import cancel_row, main_menu
from confbot.dialog.replies import Reply
from confbot.dialog.session_store import DialogSessionStore
from confbot.models.account import Account
from confbot.services.broadcaster import ConferenceBroadcaster


class DialogContext:
    """Everything a handler needs to serve one inbound event."""

    def __init__(
        self,
        db: Session,
        sessions: DialogSessionStore,
        account: Account,
        broadcaster: Optional[ConferenceBroadcaster] = None,
    ):
        self.db = db
        self.sessions = sessions
        self.account = account
        self.broadcaster = broadcaster

    @property
    def identity(self) -> str:
        return self.account.identity

    def clear_session(self) -> None:
        self.sessions.clear(self.identity)

    def start_flow(self, name: str, **data) -> Reply:
        """Replace any current session with ``name`` at its first step."""
        flow = get_flow(name)
        first = flow.steps[0]
        self.sessions.start(self.identity, flow.name, first.name, **data)
        return Reply(first.render(data), cancel_row())

    def main_menu(self, text: str = messages.MAIN_MENU) -> Reply:
        return Reply(text, main_menu(self.db, self.account))
