"""Addressing of interactive actions (button payloads).

Every action is ``<namespace>:<verb>[:<param>...]``. Parameters are
percent-encoded, so values that contain ``:`` round-trip intact.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
from urllib.parse import quote, unquote

from confbot.core.errors import validation_error

NAMESPACES = frozenset({
    "menu",
    "conf",
    "admin",
    "speaker",
    "find",
    "ask",
    "polls",
    "vote",
    "poll",
    "moderate",
    "participants",
})


@dataclass(frozen=True)
class Action:
    namespace: str
    verb: str
    params: Tuple[str, ...] = ()

    @classmethod
    def of(cls, namespace: str, verb: str, *params) -> "Action":
        return cls(namespace, verb, tuple(str(p) for p in params))

    def encode(self) -> str:
        parts = [self.namespace, self.verb] + [quote(p, safe="") for p in self.params]
        return ":".join(parts)

    @classmethod
    def decode(cls, token: str) -> "Action":
        parts = (token or "").split(":")
        if len(parts) < 2 or parts[0] not in NAMESPACES or not parts[1]:
            raise validation_error(f"malformed action '{token}'")
        return cls(parts[0], parts[1], tuple(unquote(p) for p in parts[2:]))

    def param(self, index: int) -> str:
        try:
            return self.params[index]
        except IndexError:
            raise validation_error(f"action {self.namespace}:{self.verb} is missing parameter {index}")

    def int_param(self, index: int) -> int:
        value = self.param(index)
        try:
            return int(value)
        except ValueError:
            raise validation_error(f"parameter {index} of {self.namespace}:{self.verb} must be a number")
