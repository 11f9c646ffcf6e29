from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from confbot.core.errors import validation_error

M = TypeVar("M", bound=BaseModel)


def format_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        msg = detail.get("msg", "invalid value")
        # pydantic prefixes custom messages with "Value error, "
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        loc = ".".join(str(part) for part in detail.get("loc", ()) if not isinstance(part, int))
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def validate(schema: Type[M], **data: Any) -> M:
    """Validate ``data`` against ``schema`` or raise VALIDATION_ERROR."""
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise validation_error(format_validation_error(e)) from e
