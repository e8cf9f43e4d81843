"""
Turning raw model completions into structured data.

Both agent roles go through the same steps: strip a surrounding code fence,
parse the remainder as JSON, and validate it against the role's output model.
Any failure is a hard `MalformedResponseError`; nothing is coerced or repaired.
"""
from __future__ import annotations

import json
import re
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import MalformedResponseError
from .logger import logger

ModelT = TypeVar("ModelT", bound=BaseModel)

_OPENING_FENCE = re.compile(r"^`{3,}[\w+-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?`{3,}$")


def strip_code_fences(text: str) -> str:
    """Remove one leading and one trailing fence marker (```json ... ```)."""
    text = text.strip()
    text = _OPENING_FENCE.sub("", text, count=1)
    text = _CLOSING_FENCE.sub("", text, count=1)
    return text.strip()


def decode_response(raw: str) -> Any:
    cleaned = strip_code_fences(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON response: {e}\nRaw output:\n{raw}")
        raise MalformedResponseError(raw, detail=str(e)) from e


def decode_as(model_cls: Type[ModelT], raw: str) -> ModelT:
    """Decode `raw` and validate it against `model_cls`."""
    data = decode_response(raw)
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.warning(
            f"Response does not match {model_cls.__name__}:\n{e}\nRaw output:\n{raw}"
        )
        raise MalformedResponseError(raw, detail=str(e)) from e
