from pydantic import BaseModel, Field, ValidationInfo, field_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from enum import Enum

from app.config.rbac_config import Role
from app.config.settings import settings


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)


def _check_date_order(end_date: Optional[date], info: ValidationInfo) -> Optional[date]:
    start_date = info.data.get("start_date")
    if end_date is not None and start_date is not None and end_date <= start_date:
        raise ValueError("End date must be after start date")
    return end_date


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    start_date: date
    end_date: Optional[date] = None
    location: Optional[Location] = None
    team_member_ids: List[str] = Field(default_factory=list, max_length=settings.max_team_members)

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v: Optional[date], info: ValidationInfo) -> Optional[date]:
        return _check_date_order(v, info)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    location: Optional[Location] = None

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v: Optional[date], info: ValidationInfo) -> Optional[date]:
        return _check_date_order(v, info)


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectDetailResponse(ProjectResponse):
    members: List["ProjectMemberResponse"] = []


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    pagination: PaginationMeta


class ProjectMemberAdd(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: Role = Role.INSPECTOR


class ProjectMemberResponse(BaseModel):
    id: Optional[str] = None
    project_id: str
    user_id: str
    role: Role
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class ProjectDashboardResponse(BaseModel):
    project: ProjectResponse
    kpis: Dict[str, Any]


ProjectDetailResponse.model_rebuild()
