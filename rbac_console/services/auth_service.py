import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..crud.role import RoleRepository
from ..crud.user import UserRepository
from ..errors import AuthError, ConflictError
from ..schemas.auth import AuthResponse, AuthUser
from ..utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


class AuthService:
    """Signup and login; issues bearer tokens carrying the user's role names."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)

    async def signup(
        self, email: str, password: str, username: str | None = None
    ) -> AuthResponse:
        email = email.strip().lower()
        try:
            if await self.user_repo.get_by_email(email) is not None:
                raise ConflictError("User with this email already exists")
            if username and await self.user_repo.get_by_username(username) is not None:
                raise ConflictError("User with this username already exists")
            user = await self.user_repo.create(
                email=email,
                password_hash=hash_password(password),
                username=username,
            )
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("User already exists") from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Registered user %s", user.id)
        token = create_access_token(user.id, user.email, [])
        return AuthResponse(
            token=token,
            user=AuthUser(id=user.id, email=user.email, username=user.username),
        )

    async def login(self, email: str, password: str) -> AuthResponse:
        user = await self.user_repo.get_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Rejected login attempt")
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)

        roles = [role.name for role in await self.role_repo.get_user_roles(user.id)]
        token = create_access_token(user.id, user.email, roles)
        return AuthResponse(
            token=token,
            user=AuthUser(id=user.id, email=user.email, username=user.username, roles=roles),
        )
