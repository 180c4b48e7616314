"""Turn one free-text administrative command into a role/permission mutation.

The command goes through the text generation API once, the model output is
recovered by the fallback parser chain, and the resulting intent is
dispatched to the role and permission services. Upstream failures propagate
unchanged; failures raised by the services are re-raised with the parsed
intent attached so the caller can show what was understood.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeVar

from ..domain.ports.rbac import PermissionCommandPort, RoleCommandPort
from ..domain.ports.text_generation import TextGenerationPort
from ..errors import AppError, NotFoundError, ValidationError
from ..schemas.command import CommandAction, CommandResponse, ParsedCommand
from ..security.token_inspection import AuthContext
from .parsing import parse_command
from .prompt import build_prompt

logger = logging.getLogger(__name__)

RESOLUTION_PAGE_SIZE = 100
DEFAULT_RESULT = {"message": "Command executed"}


class _Named(Protocol):
    name: str


NamedT = TypeVar("NamedT", bound=_Named)


def fuzzy_match(items: Sequence[NamedT], wanted: str) -> NamedT | None:
    """First item whose name contains ``wanted``, ignoring case."""
    needle = wanted.lower()
    for item in items:
        if needle in item.name.lower():
            return item
    return None


def _names_or_none(items: Sequence[_Named]) -> str:
    return ", ".join(item.name for item in items) or "none"


class CommandInterpreter:
    def __init__(
        self,
        text_generator: TextGenerationPort,
        roles: RoleCommandPort,
        permissions: PermissionCommandPort,
    ):
        self.text_generator = text_generator
        self.roles = roles
        self.permissions = permissions
        self._handlers: dict[
            CommandAction, Callable[[ParsedCommand], Awaitable[Any]]
        ] = {
            CommandAction.CREATE_ROLE: self._create_role,
            CommandAction.CREATE_PERMISSION: self._create_permission,
            CommandAction.ATTACH_PERMISSION: self._attach_permission,
            CommandAction.DETACH_PERMISSION: self._detach_permission,
            CommandAction.UNKNOWN: self._unknown,
        }

    async def interpret(
        self, command: str | None, auth_context: AuthContext | None = None
    ) -> CommandResponse:
        command_text = (command or "").strip()
        if not command_text:
            raise ValidationError("command is required")

        requested_by = auth_context.email if auth_context is not None else "anonymous"
        logger.info("Interpreting command for %s", requested_by)

        raw_output = await self.text_generator.generate(build_prompt(command_text))
        parsed = parse_command(raw_output)
        logger.info("Dispatching command action %s", parsed.action.value)

        try:
            result = await self._handlers[parsed.action](parsed)
        except AppError as exc:
            raise type(exc)(
                exc.message,
                code=exc.code,
                status_code=exc.status_code,
                details=exc.details,
                extra={**exc.extra, "parsed": parsed.to_payload()},
            ) from exc

        return CommandResponse(parsed=parsed.to_payload(), result=result)

    async def _create_role(self, parsed: ParsedCommand) -> dict[str, Any]:
        role_name = parsed.params.role_name
        if not role_name:
            raise ValidationError("Role name is required")
        role = await self.roles.create(role_name)
        return role.model_dump(mode="json")

    async def _create_permission(self, parsed: ParsedCommand) -> dict[str, Any]:
        permission_name = parsed.params.permission_name
        if not permission_name:
            raise ValidationError("Permission name is required")
        permission = await self.permissions.create(permission_name, "")
        return permission.model_dump(mode="json")

    async def _attach_permission(self, parsed: ParsedCommand) -> dict[str, Any]:
        role, permission = await self._resolve_pair(parsed)
        role_permission = await self.roles.add_permission(role.id, permission.id)
        return role_permission.model_dump(mode="json")

    async def _detach_permission(self, parsed: ParsedCommand) -> dict[str, Any]:
        role, permission = await self._resolve_pair(parsed)
        role_permission = await self.roles.remove_permission(role.id, permission.id)
        return role_permission.model_dump(mode="json")

    async def _unknown(self, parsed: ParsedCommand) -> dict[str, Any]:
        return dict(DEFAULT_RESULT)

    async def _resolve_pair(self, parsed: ParsedCommand):
        role_name = parsed.params.role_name
        permission_name = parsed.params.permission_name
        if not role_name or not permission_name:
            raise ValidationError("Role name and permission name are required")

        roles = (await self.roles.find_all(0, RESOLUTION_PAGE_SIZE)).data
        permissions = (await self.permissions.find_all(0, RESOLUTION_PAGE_SIZE)).data

        role = fuzzy_match(roles, role_name)
        permission = fuzzy_match(permissions, permission_name)
        if role is None or permission is None:
            raise NotFoundError(
                "Role or permission not found. "
                f"Found roles: {_names_or_none(roles)}. "
                f"Found permissions: {_names_or_none(permissions)}"
            )
        return role, permission
