from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from confbot.dialog.actions import Action


@dataclass
class Button:
    text: str
    action: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def to(cls, text: str, namespace: str, verb: str, *params) -> "Button":
        return cls(text=text, action=Action.of(namespace, verb, *params).encode())

    @classmethod
    def link(cls, text: str, url: str) -> "Button":
        return cls(text=text, url=url)


@dataclass
class Reply:
    """Transport-neutral message: text plus rows of buttons."""
    text: str
    buttons: List[List[Button]] = field(default_factory=list)
