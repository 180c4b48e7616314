from __future__ import annotations

import uuid
from typing import Protocol

from ...schemas.permission import PermissionPage, PermissionResponse
from ...schemas.role import RolePage, RolePermissionResponse, RoleResponse


class RoleCommandPort(Protocol):
    async def create(self, name: str) -> RoleResponse:
        ...

    async def find_all(self, skip: int = 0, take: int = 10) -> RolePage:
        ...

    async def add_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RolePermissionResponse:
        ...

    async def remove_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RolePermissionResponse:
        ...


class PermissionCommandPort(Protocol):
    async def create(
        self, name: str, description: str | None = None
    ) -> PermissionResponse:
        ...

    async def find_all(self, skip: int = 0, take: int = 10) -> PermissionPage:
        ...
