from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.config.rbac_config import Role


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: Role
    avatar: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: Role
    avatar: Optional[str] = None


class ProfileSearchResponse(BaseModel):
    data: List[ProfileSummary]
