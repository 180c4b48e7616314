import uuid

import pytest

from rbac_console.errors import ConflictError, NotFoundError, ValidationError
from rbac_console.services.permission_service import PermissionService
from rbac_console.services.role_service import RoleService


@pytest.mark.anyio
async def test_create_permission_with_description(session) -> None:
    service = PermissionService(session)

    created = await service.create("publish", "Publish articles")

    assert created.name == "publish"
    assert created.description == "Publish articles"
    assert created.roles == []


@pytest.mark.anyio
async def test_duplicate_permission_conflicts(session) -> None:
    service = PermissionService(session)
    await service.create("publish")

    with pytest.raises(ConflictError, match="Permission with this name already exists"):
        await service.create("publish", "again")


@pytest.mark.anyio
async def test_blank_permission_name_rejected(session) -> None:
    with pytest.raises(ValidationError, match="Permission name is required"):
        await PermissionService(session).create("")


@pytest.mark.anyio
async def test_update_description_only(session) -> None:
    service = PermissionService(session)
    created = await service.create("publish")

    updated = await service.update(created.id, description="Publish anything")

    assert updated.name == "publish"
    assert updated.description == "Publish anything"


@pytest.mark.anyio
async def test_rename_collision_conflicts(session) -> None:
    service = PermissionService(session)
    await service.create("publish")
    other = await service.create("edit")

    with pytest.raises(ConflictError):
        await service.update(other.id, name="publish")


@pytest.mark.anyio
async def test_permission_lists_roles_holding_it(session) -> None:
    permissions = PermissionService(session)
    roles = RoleService(session)
    permission = await permissions.create("publish")
    role = await roles.create("editor")
    await roles.add_permission(role.id, permission.id)

    fetched = await permissions.find_by_id(permission.id)

    assert [summary.name for summary in fetched.roles] == ["editor"]


@pytest.mark.anyio
async def test_delete_permission(session) -> None:
    service = PermissionService(session)
    created = await service.create("publish")

    await service.delete(created.id)

    with pytest.raises(NotFoundError, match="Permission not found"):
        await service.find_by_id(created.id)
    assert (await service.find_all()).total == 0


@pytest.mark.anyio
async def test_delete_missing_permission_is_not_found(session) -> None:
    with pytest.raises(NotFoundError):
        await PermissionService(session).delete(uuid.uuid4())
