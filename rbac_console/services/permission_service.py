import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..crud.permission import PermissionRepository
from ..errors import ConflictError, NotFoundError
from ..models.permission import Permission
from ..schemas.permission import PermissionPage, PermissionResponse
from .role_service import normalize_name

logger = logging.getLogger(__name__)

PERMISSION_EXISTS_MESSAGE = "Permission with this name already exists"


class PermissionService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.permission_repo = PermissionRepository(session)

    async def create(
        self, name: str, description: str | None = None
    ) -> PermissionResponse:
        name = normalize_name(name, "Permission name is required")
        try:
            if await self.permission_repo.get_by_name(name) is not None:
                raise ConflictError(PERMISSION_EXISTS_MESSAGE)
            permission = await self.permission_repo.create(name, description)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(PERMISSION_EXISTS_MESSAGE) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Created permission %s (%s)", permission.name, permission.id)
        return PermissionResponse.model_validate(permission)

    async def find_by_id(self, permission_id: uuid.UUID) -> PermissionResponse:
        return PermissionResponse.model_validate(await self._get_permission(permission_id))

    async def find_all(self, skip: int = 0, take: int = 10) -> PermissionPage:
        permissions = await self.permission_repo.list_all(skip, take)
        total = await self.permission_repo.count()
        return PermissionPage(
            data=[PermissionResponse.model_validate(item) for item in permissions],
            total=total,
            skip=skip,
            take=take,
        )

    async def update(
        self,
        permission_id: uuid.UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> PermissionResponse:
        try:
            permission = await self._get_permission(permission_id)
            if name is not None:
                name = normalize_name(name, "Permission name is required")
                existing = await self.permission_repo.get_by_name(name)
                if existing is not None and existing.id != permission.id:
                    raise ConflictError(PERMISSION_EXISTS_MESSAGE)
                permission.name = name
            if description is not None:
                permission.description = description
            permission = await self.permission_repo.update(permission)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(PERMISSION_EXISTS_MESSAGE) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Updated permission %s (%s)", permission.name, permission.id)
        return PermissionResponse.model_validate(permission)

    async def delete(self, permission_id: uuid.UUID) -> None:
        try:
            permission = await self._get_permission(permission_id)
            await self.permission_repo.delete(permission)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Deleted permission %s", permission_id)

    async def _get_permission(self, permission_id: uuid.UUID) -> Permission:
        permission = await self.permission_repo.get_by_id(permission_id)
        if permission is None:
            raise NotFoundError("Permission not found")
        return permission
