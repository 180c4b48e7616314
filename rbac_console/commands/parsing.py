"""Recover a ParsedCommand from whatever text the model returned.

Parsers run in order on the fence-stripped text; the first one that yields an
object wins. A parser either returns a mapping or ``None``; a ``ValueError`` or
``RecursionError`` raised inside one counts as ``None``. When nothing matches,
the command is ``unknown``.
"""

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from ..schemas.command import ParsedCommand

logger = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
# One level of nested braces, enough for {"action": ..., "params": {...}}.
EMBEDDED_OBJECT_RE = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")
FIELD_RE_TEMPLATE = r'"{field}"\s*:\s*"([^"]+)"'

PayloadParser = Callable[[str], dict[str, Any] | None]


def strip_code_fences(text: str) -> str:
    return CODE_FENCE_RE.sub("", text).strip()


def _as_object(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def parse_strict_json(text: str) -> dict[str, Any] | None:
    return _as_object(json.loads(text))


def parse_embedded_object(text: str) -> dict[str, Any] | None:
    match = EMBEDDED_OBJECT_RE.search(text)
    if match is None:
        return None
    return _as_object(json.loads(match.group(0)))


def _extract_field(text: str, field: str) -> str | None:
    match = re.search(FIELD_RE_TEMPLATE.format(field=field), text)
    return match.group(1) if match else None


def parse_loose_fields(text: str) -> dict[str, Any] | None:
    action = _extract_field(text, "action")
    if action is None:
        return None
    return {
        "action": action,
        "params": {
            "role_name": _extract_field(text, "role_name"),
            "permission_name": _extract_field(text, "permission_name"),
        },
    }


PARSERS: tuple[tuple[str, PayloadParser], ...] = (
    ("strict_json", parse_strict_json),
    ("embedded_object", parse_embedded_object),
    ("loose_fields", parse_loose_fields),
)


def first_payload(text: str, parsers=PARSERS) -> tuple[str, dict[str, Any]] | None:
    for name, parser in parsers:
        try:
            payload = parser(text)
        except (ValueError, RecursionError) as exc:
            logger.debug("Parser %s rejected model output: %s", name, exc)
            continue
        if payload is not None:
            return name, payload
    return None


def parse_command(raw_text: str) -> ParsedCommand:
    cleaned = strip_code_fences(raw_text)
    found = first_payload(cleaned)
    if found is None:
        logger.info("Model output could not be parsed, treating command as unknown")
        return ParsedCommand.unknown()

    stage, payload = found
    try:
        parsed = ParsedCommand.from_payload(payload)
    except ValueError as exc:
        logger.info("Parsed payload was not a usable command (%s): %s", stage, exc)
        return ParsedCommand.unknown()

    logger.debug("Model output parsed by %s stage", stage)
    return parsed
