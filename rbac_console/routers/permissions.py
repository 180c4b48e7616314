from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..dependencies import get_current_principal, get_permission_service
from ..schemas.permission import (
    PermissionCreate,
    PermissionPage,
    PermissionResponse,
    PermissionUpdate,
)
from ..services.permission_service import PermissionService

router = APIRouter(
    prefix="/permissions",
    tags=["permissions"],
    dependencies=[Depends(get_current_principal)],
)


@router.get("", response_model=PermissionPage)
async def list_permissions(
    skip: int = Query(0, ge=0, description="Offset for pagination"),
    take: int = Query(10, ge=1, le=100, description="Results per page"),
    service: PermissionService = Depends(get_permission_service),
) -> PermissionPage:
    return await service.find_all(skip, take)


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
async def create_permission(
    payload: PermissionCreate,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    return await service.create(payload.name, payload.description)


@router.get("/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: UUID,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    return await service.find_by_id(permission_id)


@router.put("/{permission_id}", response_model=PermissionResponse)
async def update_permission(
    permission_id: UUID,
    payload: PermissionUpdate,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    return await service.update(
        permission_id, name=payload.name, description=payload.description
    )


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(
    permission_id: UUID,
    service: PermissionService = Depends(get_permission_service),
) -> Response:
    await service.delete(permission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
