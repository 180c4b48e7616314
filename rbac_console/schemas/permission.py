import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from .summary import RoleSummary


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None


class PermissionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


class PermissionResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime
    roles: list[RoleSummary] = Field(default_factory=list)

    class Config:
        from_attributes = True


class PermissionPage(BaseModel):
    data: list[PermissionResponse]
    total: int
    skip: int
    take: int
