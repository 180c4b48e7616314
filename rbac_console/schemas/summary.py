import uuid

from pydantic import BaseModel


class RoleSummary(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True


class PermissionSummary(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None

    class Config:
        from_attributes = True
