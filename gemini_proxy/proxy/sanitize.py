"""
Request body parsing and sanitization.

The upstream rejects ``generationConfig.response_mime_type`` for some models
with a 400, so it is stripped before forwarding. Everything else in the body
passes through untouched.
"""

import json
import math
from typing import Any, Dict

from ..models import JSONValue

GENERATION_CONFIG_KEY = "generationConfig"
BLOCKED_GENERATION_FIELDS = ("response_mime_type",)


class InvalidJSONBody(ValueError):
    """Raised when the request body is not valid JSON."""


def _reject_constant(name: str) -> None:
    raise InvalidJSONBody(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise InvalidJSONBody(f"number out of range: {text}")
    return value


def parse_json_body(raw: bytes) -> JSONValue:
    """
    Decode a raw request body.

    A zero-length body is treated as an empty object. NaN, Infinity and
    numbers overflowing a float are rejected so the body can be re-encoded
    as strict JSON.

    Raises:
        InvalidJSONBody: If the bytes are not valid UTF-8 JSON
    """
    if not raw:
        return {}

    try:
        return json.loads(
            raw,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float
        )
    except ValueError as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise InvalidJSONBody(str(e)) from e


def sanitize_body(body: JSONValue) -> JSONValue:
    """
    Return the body without fields the upstream refuses.

    The input is not mutated. Bodies that are not objects, or have no
    generationConfig object, come back as they are.
    """
    if not isinstance(body, dict):
        return body

    generation_config = body.get(GENERATION_CONFIG_KEY)
    if not isinstance(generation_config, dict):
        return body

    if not any(field in generation_config for field in BLOCKED_GENERATION_FIELDS):
        return body

    cleaned: Dict[str, Any] = {
        k: v for k, v in generation_config.items()
        if k not in BLOCKED_GENERATION_FIELDS
    }
    sanitized = dict(body)
    sanitized[GENERATION_CONFIG_KEY] = cleaned
    return sanitized
