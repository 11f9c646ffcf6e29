"""Routes inbound chat events to commands, button actions and text flows."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from confbot.core.errors import DomainError, ErrorKind
from confbot.dialog import messages
from confbot.dialog.actions import Action
from confbot.dialog.context import DialogContext
from confbot.dialog.flows import Flow, Step, get_flow
from confbot.dialog.keyboards import cancel_row
from confbot.dialog.menus import get_handler
from confbot.dialog.replies import Reply
from confbot.dialog.session_store import DialogSession, DialogSessionStore
from confbot.schemas.account import ExternalUser
from confbot.schemas.events import InboundEvent
from confbot.services.broadcaster import ConferenceBroadcaster
from confbot.services.identity import ensure_account

logger = logging.getLogger(__name__)

CANCEL_TOKENS = frozenset({"cancel", "/cancel", "отмена"})


def is_cancel(text: str) -> bool:
    return (text or "").strip().lower() in CANCEL_TOKENS


class DialogEngine:
    """One engine per inbound event; it owns no state between events."""

    def __init__(
        self,
        db: Session,
        sessions: DialogSessionStore,
        broadcaster: Optional[ConferenceBroadcaster] = None,
    ):
        self.db = db
        self.sessions = sessions
        self.broadcaster = broadcaster

    def handle(self, event: InboundEvent) -> Reply:
        if event.kind == "command":
            return self.handle_command(event.user, event.value)
        if event.kind == "action":
            return self.handle_action(event.user, event.value)
        return self.handle_text(event.user, event.value)

    def _context(self, user: ExternalUser) -> DialogContext:
        account = ensure_account(self.db, user)
        return DialogContext(self.db, self.sessions, account, self.broadcaster)

    # ============ Commands ============

    def handle_command(self, user: ExternalUser, command: str) -> Reply:
        try:
            ctx = self._context(user)
            parts = (command or "").strip().lower().split()
            name = parts[0] if parts else ""
            if not name.startswith("/"):
                name = f"/{name}"

            if name == "/start":
                ctx.clear_session()
                return ctx.main_menu(f"{messages.WELCOME}\n\n{messages.MAIN_MENU}")
            if name == "/menu":
                ctx.clear_session()
                return ctx.main_menu()
            if name == "/cancel":
                ctx.clear_session()
                return ctx.main_menu(messages.CANCELLED)
            if name == "/help":
                return Reply(messages.HELP)
            return Reply(messages.UNKNOWN_COMMAND)
        except DomainError as e:
            return self._storage_reply(e)
        except SQLAlchemyError:
            return self._database_failure(user)

    # ============ Button actions ============

    def handle_action(self, user: ExternalUser, token: str) -> Reply:
        ctx = None
        try:
            ctx = self._context(user)
            act = Action.decode(token)
            handler = get_handler(act)
            # Any button press leaves the current flow; flow-starting handlers open a new one
            ctx.clear_session()
            return handler(ctx, act)
        except DomainError as e:
            logger.info("Action %s by %s failed: %s", token, user.identity, e.sentinel)
            if e.kind is ErrorKind.storage:
                return self._storage_reply(e)
            if ctx is None:
                return Reply(messages.error_text(e))
            if e.kind in (ErrorKind.authorization, ErrorKind.not_found):
                ctx.clear_session()
            return self._safe_menu(ctx, messages.error_text(e))
        except SQLAlchemyError:
            return self._database_failure(user)

    # ============ Free text ============

    def handle_text(self, user: ExternalUser, text: str) -> Reply:
        ctx = None
        try:
            ctx = self._context(user)
            if is_cancel(text):
                ctx.clear_session()
                return ctx.main_menu(messages.CANCELLED)

            session = self.sessions.get(ctx.identity)
            if session is None:
                return ctx.main_menu(messages.NO_ACTIVE_ACTION)

            try:
                flow = get_flow(session.flow)
            except KeyError:
                flow = None
            step = flow.step(session.step) if flow else None
            if step is None:
                logger.warning("Dropping unknown session %s/%s for %s", session.flow, session.step, ctx.identity)
                ctx.clear_session()
                return ctx.main_menu(messages.SESSION_RESET)

            return self._advance(ctx, flow, step, session, text)
        except DomainError as e:
            return self._storage_reply(e)
        except SQLAlchemyError:
            return self._database_failure(user)

    def _advance(self, ctx: DialogContext, flow: Flow, step: Step, session: DialogSession, text: str) -> Reply:
        try:
            session.data[step.name] = step.parse(text)
            following = flow.next_step(step.name)
            if following is not None:
                session.step = following.name
                self.sessions.set(ctx.identity, session)
                return Reply(following.render(session.data), cancel_row())

            reply = flow.complete(ctx, session.data)
            ctx.clear_session()
            logger.info("Flow %s completed for %s", flow.name, ctx.identity)
            return reply
        except DomainError as e:
            return self._flow_failure(ctx, step, e)

    def _flow_failure(self, ctx: DialogContext, step: Step, error: DomainError) -> Reply:
        """Re-prompt in place or leave the flow, depending on the failure kind.

        The stored session is only written on success, so re-prompting keeps
        both the step and the data collected so far.
        """
        logger.info("Flow step %s failed for %s: %s", step.name, ctx.identity, error.sentinel)
        if error.kind is ErrorKind.storage:
            raise error
        if error.kind in (ErrorKind.validation, ErrorKind.state_conflict) or error.code in step.retry_on:
            return Reply(f"{messages.error_text(error)}\n\n{messages.RETRY_HINT}", cancel_row())
        ctx.clear_session()
        return ctx.main_menu(messages.error_text(error))

    # ============ Failures ============

    def _safe_menu(self, ctx: DialogContext, text: str) -> Reply:
        try:
            return ctx.main_menu(text)
        except SQLAlchemyError:
            self.db.rollback()
            return Reply(text)

    def _storage_reply(self, error: DomainError) -> Reply:
        if error.kind is not ErrorKind.storage:
            # Only storage failures escape the per-kind handling above
            logger.warning("Unhandled domain error %s", error.sentinel)
        return Reply(messages.GENERIC_FAILURE)

    def _database_failure(self, user: ExternalUser) -> Reply:
        logger.exception("Database failure while handling event from %s", user.identity)
        self.db.rollback()
        return Reply(messages.GENERIC_FAILURE)
