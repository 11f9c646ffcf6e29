"""Parsers shared by dialog steps. Each returns the parsed value or raises VALIDATION_ERROR."""

import re
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from confbot.core.errors import validation_error

SKIP_TOKEN = "-"
NUMERIC_ID_RE = re.compile(r"^\d+$")


def is_skip(text: str) -> bool:
    return text.strip() in ("", SKIP_TOKEN)


def free_text(min_length: int = 1, max_length: int = 500, optional: bool = False) -> Callable[[str], Optional[str]]:
    """Trimmed text within length bounds; "-" yields None when ``optional``."""

    def parse(text: str) -> Optional[str]:
        if optional and is_skip(text):
            return None
        value = text.strip()
        if len(value) < min_length:
            raise validation_error(f"must be at least {min_length} characters")
        if len(value) > max_length:
            raise validation_error(f"must be at most {max_length} characters")
        return value

    return parse


def comma_list(min_items: int = 0, max_items: int = 20, optional: bool = False) -> Callable[[str], Optional[List[str]]]:
    """Comma-separated items, trimmed with empties dropped."""

    def parse(text: str) -> Optional[List[str]]:
        if optional and is_skip(text):
            return None
        items = [part.strip() for part in text.split(",")]
        items = [item for item in items if item]
        if len(items) < min_items:
            raise validation_error(f"enter at least {min_items} comma-separated values")
        if len(items) > max_items:
            raise validation_error(f"enter at most {max_items} comma-separated values")
        return items

    return parse


def numeric_id(text: str) -> str:
    value = text.strip()
    if not NUMERIC_ID_RE.match(value):
        raise validation_error("user id must be a number")
    return value


def full_name(text: str) -> Tuple[str, str]:
    """Split "First Last Names" into first name and the rest."""
    parts = text.split()
    if not parts:
        raise validation_error("enter at least your first name")
    return parts[0], " ".join(parts[1:])


def slide_line(text: str) -> Tuple[str, str]:
    """Parse "URL [title...]"."""
    parts = text.split()
    if not parts:
        raise validation_error("enter the slide URL")
    url, title = parts[0], " ".join(parts[1:])
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise validation_error("slide URL must be a valid HTTP/HTTPS address")
    return url, title
