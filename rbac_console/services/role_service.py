import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..crud.permission import PermissionRepository
from ..crud.role import RoleRepository
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.role import Role
from ..schemas.role import RolePage, RolePermissionResponse, RoleResponse

logger = logging.getLogger(__name__)

ROLE_EXISTS_MESSAGE = "Role with this name already exists"
ALREADY_ATTACHED_MESSAGE = "Permission already attached to this role"


def normalize_name(name: str | None, message: str) -> str:
    text = (name or "").strip()
    if not text:
        raise ValidationError(message)
    return text


class RoleService:
    """Role management with uniqueness and existence checks.

    Every mutating method commits its own transaction and rolls back on
    failure. Storage-level unique violations that slip past the pre-checks
    (concurrent writers) surface as ``ConflictError``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.role_repo = RoleRepository(session)
        self.permission_repo = PermissionRepository(session)

    async def create(self, name: str) -> RoleResponse:
        name = normalize_name(name, "Role name is required")
        try:
            if await self.role_repo.get_by_name(name) is not None:
                raise ConflictError(ROLE_EXISTS_MESSAGE)
            role = await self.role_repo.create(name)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(ROLE_EXISTS_MESSAGE) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Created role %s (%s)", role.name, role.id)
        return RoleResponse.model_validate(role)

    async def find_by_id(self, role_id: uuid.UUID) -> RoleResponse:
        return RoleResponse.model_validate(await self._get_role(role_id))

    async def find_all(self, skip: int = 0, take: int = 10) -> RolePage:
        roles = await self.role_repo.list_all(skip, take)
        total = await self.role_repo.count()
        return RolePage(
            data=[RoleResponse.model_validate(role) for role in roles],
            total=total,
            skip=skip,
            take=take,
        )

    async def update(self, role_id: uuid.UUID, name: str | None = None) -> RoleResponse:
        try:
            role = await self._get_role(role_id)
            if name is not None:
                name = normalize_name(name, "Role name is required")
                existing = await self.role_repo.get_by_name(name)
                if existing is not None and existing.id != role.id:
                    raise ConflictError(ROLE_EXISTS_MESSAGE)
                role.name = name
            role = await self.role_repo.update(role)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(ROLE_EXISTS_MESSAGE) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Updated role %s (%s)", role.name, role.id)
        return RoleResponse.model_validate(role)

    async def delete(self, role_id: uuid.UUID) -> None:
        try:
            role = await self._get_role(role_id)
            await self.role_repo.delete(role)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Deleted role %s", role_id)

    async def add_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RolePermissionResponse:
        try:
            await self._get_role(role_id)
            await self._ensure_permission(permission_id)
            existing = await self.role_repo.get_role_permission(role_id, permission_id)
            if existing is not None:
                raise ConflictError(ALREADY_ATTACHED_MESSAGE)
            role_permission = await self.role_repo.assign_permission(role_id, permission_id)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(ALREADY_ATTACHED_MESSAGE) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Attached permission %s to role %s", permission_id, role_id)
        return RolePermissionResponse.model_validate(role_permission)

    async def remove_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RolePermissionResponse:
        try:
            await self._get_role(role_id)
            await self._ensure_permission(permission_id)
            role_permission = await self.role_repo.get_role_permission(role_id, permission_id)
            if role_permission is None:
                raise NotFoundError("Permission is not attached to this role")
            removed = RolePermissionResponse.model_validate(role_permission)
            await self.role_repo.remove_permission(role_permission)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Detached permission %s from role %s", permission_id, role_id)
        return removed

    async def _get_role(self, role_id: uuid.UUID) -> Role:
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        return role

    async def _ensure_permission(self, permission_id: uuid.UUID) -> None:
        if await self.permission_repo.get_by_id(permission_id) is None:
            raise NotFoundError("Permission not found")
