from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..dependencies import get_current_principal, get_role_service
from ..schemas.role import (
    RoleCreate,
    RolePage,
    RolePermissionRequest,
    RolePermissionResponse,
    RoleResponse,
    RoleUpdate,
)
from ..services.role_service import RoleService

router = APIRouter(
    prefix="/roles",
    tags=["roles"],
    dependencies=[Depends(get_current_principal)],
)


@router.get("", response_model=RolePage)
async def list_roles(
    skip: int = Query(0, ge=0, description="Offset for pagination"),
    take: int = Query(10, ge=1, le=100, description="Results per page"),
    service: RoleService = Depends(get_role_service),
) -> RolePage:
    return await service.find_all(skip, take)


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleCreate,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    return await service.create(payload.name)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: UUID,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    return await service.find_by_id(role_id)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: UUID,
    payload: RoleUpdate,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    return await service.update(role_id, payload.name)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: UUID,
    service: RoleService = Depends(get_role_service),
) -> Response:
    await service.delete(role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{role_id}/permissions",
    response_model=RolePermissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_permission(
    role_id: UUID,
    payload: RolePermissionRequest,
    service: RoleService = Depends(get_role_service),
) -> RolePermissionResponse:
    return await service.add_permission(role_id, payload.permission_id)


@router.delete("/{role_id}/permissions", status_code=status.HTTP_204_NO_CONTENT)
async def remove_permission(
    role_id: UUID,
    payload: RolePermissionRequest,
    service: RoleService = Depends(get_role_service),
) -> Response:
    await service.remove_permission(role_id, payload.permission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
