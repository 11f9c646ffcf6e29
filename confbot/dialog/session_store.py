"""Redis-backed store for per-user dialog sessions."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

import redis

from confbot.core.config import get_settings
from confbot.core.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)


@dataclass
class DialogSession:
    """What a user is currently typing for."""
    flow: str
    step: str
    data: Dict[str, Any] = field(default_factory=dict)


class DialogSessionStore:
    """Session per external identity, expiring after ``ttl_seconds`` of inactivity."""

    def __init__(self, redis_client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        settings = get_settings()
        self._client = redis_client or redis.Redis.from_url(
            settings.redis_url, decode_responses=True
        )
        self._ttl_seconds = ttl_seconds or settings.session_ttl_seconds

    def _key(self, identity: str) -> str:
        return f"dialog:session:{identity}"

    def get(self, identity: str) -> Optional[DialogSession]:
        try:
            data = self._client.get(self._key(identity))
        except redis.RedisError as e:
            logger.exception("Failed to read dialog session for %s", identity)
            raise DomainError(ErrorCode.STORAGE_FAILURE, str(e)) from e
        if not data:
            return None
        try:
            return DialogSession(**json.loads(data))
        except (ValueError, TypeError):
            logger.warning("Discarding unreadable dialog session for %s", identity)
            return None

    def set(self, identity: str, session: DialogSession) -> DialogSession:
        try:
            self._client.set(self._key(identity), json.dumps(asdict(session)), ex=self._ttl_seconds)
        except redis.RedisError as e:
            logger.exception("Failed to write dialog session for %s", identity)
            raise DomainError(ErrorCode.STORAGE_FAILURE, str(e)) from e
        return session

    def clear(self, identity: str) -> None:
        try:
            self._client.delete(self._key(identity))
        except redis.RedisError as e:
            logger.exception("Failed to clear dialog session for %s", identity)
            raise DomainError(ErrorCode.STORAGE_FAILURE, str(e)) from e

    def start(self, identity: str, flow: str, step: str, **data: Any) -> DialogSession:
        """Replace whatever the user was doing with a fresh session."""
        self.clear(identity)
        return self.set(identity, DialogSession(flow=flow, step=step, data=data))
