import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.role import Role
from ..models.role_permission import RolePermission
from ..models.user_role import UserRole


class RoleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str) -> Role:
        role = Role(name=name)
        self.session.add(role)
        await self.session.flush()
        return await self._reload(role.id)

    async def get_by_id(self, role_id: uuid.UUID) -> Role | None:
        result = await self.session.execute(
            select(Role)
            .where(Role.id == role_id)
            .options(selectinload(Role.permissions))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Role | None:
        result = await self.session.execute(
            select(Role).where(Role.name == name)
        )
        return result.scalar_one_or_none()

    async def list_all(self, skip: int = 0, take: int = 10) -> list[Role]:
        result = await self.session.execute(
            select(Role)
            .options(selectinload(Role.permissions))
            .order_by(Role.created_at, Role.name)
            .offset(skip)
            .limit(take)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Role))
        return int(result.scalar_one())

    async def update(self, role: Role) -> Role:
        await self.session.flush()
        return await self._reload(role.id)

    async def delete(self, role: Role) -> None:
        await self.session.execute(
            delete(RolePermission).where(RolePermission.role_id == role.id)
        )
        await self.session.execute(delete(UserRole).where(UserRole.role_id == role.id))
        await self.session.delete(role)
        await self.session.flush()

    async def get_role_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RolePermission | None:
        result = await self.session.execute(
            select(RolePermission)
            .where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
            .options(
                selectinload(RolePermission.role),
                selectinload(RolePermission.permission),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def assign_permission(self, role_id: uuid.UUID, permission_id: uuid.UUID) -> RolePermission:
        role_permission = RolePermission(role_id=role_id, permission_id=permission_id)
        self.session.add(role_permission)
        await self.session.flush()
        stored = await self.get_role_permission(role_id, permission_id)
        if stored is None:
            raise LookupError(f"Role permission {role_permission.id} disappeared after flush")
        return stored

    async def remove_permission(self, role_permission: RolePermission) -> None:
        await self.session.delete(role_permission)
        await self.session.flush()

    async def get_user_roles(self, user_id: uuid.UUID) -> list[Role]:
        result = await self.session.execute(
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name)
        )
        return list(result.scalars().all())

    async def _reload(self, role_id: uuid.UUID) -> Role:
        role = await self.get_by_id(role_id)
        if role is None:
            raise LookupError(f"Role {role_id} disappeared after flush")
        return role
