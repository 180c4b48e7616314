import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.permission import Permission
from ..models.role_permission import RolePermission


class PermissionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, description: str | None = None) -> Permission:
        permission = Permission(name=name, description=description)
        self.session.add(permission)
        await self.session.flush()
        return await self._reload(permission.id)

    async def get_by_id(self, permission_id: uuid.UUID) -> Permission | None:
        result = await self.session.execute(
            select(Permission)
            .where(Permission.id == permission_id)
            .options(selectinload(Permission.roles))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Permission | None:
        result = await self.session.execute(
            select(Permission).where(Permission.name == name)
        )
        return result.scalar_one_or_none()

    async def list_all(self, skip: int = 0, take: int = 10) -> list[Permission]:
        result = await self.session.execute(
            select(Permission)
            .options(selectinload(Permission.roles))
            .order_by(Permission.created_at, Permission.name)
            .offset(skip)
            .limit(take)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Permission))
        return int(result.scalar_one())

    async def update(self, permission: Permission) -> Permission:
        await self.session.flush()
        return await self._reload(permission.id)

    async def delete(self, permission: Permission) -> None:
        await self.session.execute(
            delete(RolePermission).where(RolePermission.permission_id == permission.id)
        )
        await self.session.delete(permission)
        await self.session.flush()

    async def _reload(self, permission_id: uuid.UUID) -> Permission:
        permission = await self.get_by_id(permission_id)
        if permission is None:
            raise LookupError(f"Permission {permission_id} disappeared after flush")
        return permission
