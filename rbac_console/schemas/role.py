import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from .summary import PermissionSummary, RoleSummary


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class RoleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)


class RoleResponse(BaseModel):
    id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime
    permissions: list[PermissionSummary] = Field(default_factory=list)

    class Config:
        from_attributes = True


class RolePage(BaseModel):
    data: list[RoleResponse]
    total: int
    skip: int
    take: int


class RolePermissionRequest(BaseModel):
    permission_id: uuid.UUID = Field(..., alias="permissionId")

    class Config:
        populate_by_name = True


class RolePermissionResponse(BaseModel):
    id: uuid.UUID
    role_id: uuid.UUID
    permission_id: uuid.UUID
    created_at: datetime
    role: RoleSummary
    permission: PermissionSummary

    class Config:
        from_attributes = True
