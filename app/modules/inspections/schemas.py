from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

from app.modules.inspections.state_machine import InspectionStatus


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _upper(v: Any) -> Any:
    return v.upper() if isinstance(v, str) else v


class InspectionCreate(BaseModel):
    project_id: str = Field(..., min_length=1)
    checklist_id: str = Field(..., min_length=1)
    assigned_to: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = None

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return _upper(v)


class InspectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    responses: Optional[Dict[str, Any]] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return _upper(v)


class QuestionResponse(BaseModel):
    question_id: str = Field(..., min_length=1)
    value: Any = None
    evidence_ids: List[str] = []


class InspectionComplete(BaseModel):
    responses: List[QuestionResponse]


class InspectionResponse(BaseModel):
    id: str
    project_id: str
    checklist_id: str
    assigned_to: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: InspectionStatus = InspectionStatus.DRAFT
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = None
    responses: Optional[Dict[str, Any]] = None
    rejection_count: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    address: Optional[str] = None
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InspectionDetailResponse(InspectionResponse):
    progress: int = 0
    next_action: Dict[str, str] = {}
    valid_transitions: List[str] = []


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class InspectionListResponse(BaseModel):
    inspections: List[InspectionResponse]
    pagination: PaginationMeta


class SubmissionCheckResponse(BaseModel):
    can_submit: bool
    validation_errors: List[str]
    progress: int
    current_status: InspectionStatus
    next_action: Dict[str, str]


class StatusChangeResponse(BaseModel):
    success: bool = True
    inspection: InspectionResponse
    message: str
