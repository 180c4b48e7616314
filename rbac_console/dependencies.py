from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .commands.interpreter import CommandInterpreter
from .database import get_session
from .domain.ports.text_generation import TextGenerationPort
from .errors import AuthError
from .security.token_inspection import (
    AuthContext,
    ExpiredTokenError,
    InvalidTokenError,
    validate_access_token,
)
from .services.auth_service import AuthService
from .services.permission_service import PermissionService
from .services.role_service import RoleService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session(request):
        yield session


def get_role_service(db: AsyncSession = Depends(get_db)) -> RoleService:
    return RoleService(db)


def get_permission_service(db: AsyncSession = Depends(get_db)) -> PermissionService:
    return PermissionService(db)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_text_generator(request: Request) -> TextGenerationPort:
    return request.app.state.text_generator


def get_command_interpreter(
    text_generator: TextGenerationPort = Depends(get_text_generator),
    roles: RoleService = Depends(get_role_service),
    permissions: PermissionService = Depends(get_permission_service),
) -> CommandInterpreter:
    return CommandInterpreter(text_generator, roles, permissions)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthContext:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Unauthorized - No token provided")

    try:
        return validate_access_token(credentials.credentials)
    except (ExpiredTokenError, InvalidTokenError):
        raise AuthError("Unauthorized - Invalid token") from None
