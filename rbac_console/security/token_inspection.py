import uuid
from dataclasses import dataclass, field
from typing import Any, Dict

import jwt

from ..config import settings


class InvalidTokenError(Exception):
    """Raised when a token cannot be parsed or is malformed."""


class ExpiredTokenError(Exception):
    """Raised when a token has expired."""


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Verified bearer credential: who is calling and which roles they hold."""

    user_id: uuid.UUID
    email: str
    roles: tuple[str, ...] = field(default_factory=tuple)


def _parse_token_payload(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError from exc


def validate_access_token(token: str) -> AuthContext:
    if not token or not isinstance(token, str):
        raise InvalidTokenError()

    payload = _parse_token_payload(token)

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise InvalidTokenError()
    try:
        user_id = uuid.UUID(subject)
    except ValueError as exc:
        raise InvalidTokenError() from exc

    email = payload.get("email")
    roles = payload.get("roles") or []
    if not isinstance(email, str) or not isinstance(roles, list):
        raise InvalidTokenError()

    return AuthContext(
        user_id=user_id,
        email=email,
        roles=tuple(role for role in roles if isinstance(role, str)),
    )
