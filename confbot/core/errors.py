"""Error kinds and sentinel codes surfaced by the domain services.

Services raise :class:`DomainError`; callers branch on ``error.kind`` and
render ``error.sentinel`` (e.g. ``VALIDATION_ERROR:<details>``) across the
boundary instead of letting exceptions leak.
"""

from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    validation = "validation"
    authorization = "authorization"
    not_found = "not_found"
    state_conflict = "state_conflict"
    storage = "storage"


class ErrorCode(str, enum.Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ACCESS_DENIED = "ACCESS_DENIED"
    NOT_SPEAKER = "NOT_SPEAKER"
    QUESTION_NOT_FOR_YOU = "QUESTION_NOT_FOR_YOU"
    CONFERENCE_NOT_FOUND = "CONFERENCE_NOT_FOUND"
    TARGET_USER_NOT_FOUND = "TARGET_USER_NOT_FOUND"
    QUESTION_NOT_FOUND = "QUESTION_NOT_FOUND"
    POLL_NOT_FOUND = "POLL_NOT_FOUND"
    TARGET_USER_NOT_ADMIN = "TARGET_USER_NOT_ADMIN"
    ALREADY_VOTED = "ALREADY_VOTED"
    POLL_INACTIVE = "POLL_INACTIVE"
    CONFERENCE_ENDED = "CONFERENCE_ENDED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CODE_GENERATION_FAILED = "CODE_GENERATION_FAILED"
    STORAGE_FAILURE = "STORAGE_FAILURE"


ERROR_KINDS = {
    ErrorCode.VALIDATION_ERROR: ErrorKind.validation,
    ErrorCode.ACCESS_DENIED: ErrorKind.authorization,
    ErrorCode.NOT_SPEAKER: ErrorKind.authorization,
    ErrorCode.QUESTION_NOT_FOR_YOU: ErrorKind.authorization,
    ErrorCode.CONFERENCE_NOT_FOUND: ErrorKind.not_found,
    ErrorCode.TARGET_USER_NOT_FOUND: ErrorKind.not_found,
    ErrorCode.QUESTION_NOT_FOUND: ErrorKind.not_found,
    ErrorCode.POLL_NOT_FOUND: ErrorKind.not_found,
    ErrorCode.TARGET_USER_NOT_ADMIN: ErrorKind.state_conflict,
    ErrorCode.ALREADY_VOTED: ErrorKind.state_conflict,
    ErrorCode.POLL_INACTIVE: ErrorKind.state_conflict,
    ErrorCode.CONFERENCE_ENDED: ErrorKind.state_conflict,
    ErrorCode.INVALID_TRANSITION: ErrorKind.state_conflict,
    ErrorCode.CODE_GENERATION_FAILED: ErrorKind.storage,
    ErrorCode.STORAGE_FAILURE: ErrorKind.storage,
}


class DomainError(Exception):
    """A failure that callers are expected to handle by kind."""

    def __init__(self, code: ErrorCode, details: Optional[str] = None):
        self.code = code
        self.details = details
        super().__init__(self.sentinel)

    @property
    def kind(self) -> ErrorKind:
        return ERROR_KINDS[self.code]

    @property
    def sentinel(self) -> str:
        if self.code is ErrorCode.VALIDATION_ERROR and self.details:
            return f"{self.code.value}:{self.details}"
        return self.code.value


def validation_error(details: str) -> DomainError:
    return DomainError(ErrorCode.VALIDATION_ERROR, details)
