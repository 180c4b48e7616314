from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

NULL_LITERALS = {"null", "none", "undefined"}


class CommandAction(str, Enum):
    CREATE_ROLE = "create_role"
    CREATE_PERMISSION = "create_permission"
    ATTACH_PERMISSION = "attach_permission"
    DETACH_PERMISSION = "detach_permission"
    UNKNOWN = "unknown"


class CommandParams(BaseModel):
    role_name: str | None = None
    permission_name: str | None = None

    @field_validator("role_name", "permission_name", mode="before")
    @classmethod
    def _normalize_name(cls, value: Any) -> str | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            return None
        text = value.strip()
        if not text or text.lower() in NULL_LITERALS:
            return None
        return text


class ParsedCommand(BaseModel):
    """Structured intent recovered from one free-text command."""

    action: CommandAction = CommandAction.UNKNOWN
    params: CommandParams = Field(default_factory=CommandParams)

    @classmethod
    def unknown(cls) -> "ParsedCommand":
        return cls()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ParsedCommand":
        raw_params = payload.get("params")
        if not isinstance(raw_params, Mapping):
            raw_params = {}
        params = CommandParams.model_validate(
            {
                key: raw_params[key]
                for key in ("role_name", "permission_name")
                if key in raw_params
            }
        )
        return cls(action=_coerce_action(payload.get("action")), params=params)

    def to_payload(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "params": self.params.model_dump(exclude_unset=True),
        }


def _coerce_action(value: Any) -> CommandAction:
    if not isinstance(value, str):
        return CommandAction.UNKNOWN
    try:
        return CommandAction(value.strip().lower())
    except ValueError:
        return CommandAction.UNKNOWN


class CommandRequest(BaseModel):
    command: str | None = Field(None, max_length=2000)


class CommandResponse(BaseModel):
    success: bool = True
    parsed: dict[str, Any]
    result: Any
