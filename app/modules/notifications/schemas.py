from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    ASSIGNMENT = "ASSIGNMENT"
    STATUS_CHANGE = "STATUS_CHANGE"
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"
    ESCALATION = "ESCALATION"
    REPORT_READY = "REPORT_READY"
    INSPECTION_ASSIGNED = "INSPECTION_ASSIGNED"
    INSPECTION_SUBMITTED = "INSPECTION_SUBMITTED"
    INSPECTION_APPROVED = "INSPECTION_APPROVED"
    INSPECTION_REJECTED = "INSPECTION_REJECTED"


class RelatedEntityType(str, Enum):
    INSPECTION = "INSPECTION"
    PROJECT = "PROJECT"
    APPROVAL = "APPROVAL"
    REPORT = "REPORT"
    ESCALATION = "ESCALATION"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _enum_key(v):
    """Accept 'status-change' / 'status_change' / 'STATUS_CHANGE'."""
    return v.strip().upper().replace("-", "_") if isinstance(v, str) else v


class NotificationBase(BaseModel):
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    related_entity_type: RelatedEntityType
    related_entity_id: str = Field(..., min_length=1)
    priority: NotificationPriority = NotificationPriority.MEDIUM

    @field_validator("type", "related_entity_type", "priority", mode="before")
    @classmethod
    def normalize_enum(cls, v):
        return _enum_key(v)


class NotificationCreate(NotificationBase):
    user_id: str = Field(..., min_length=1)


class BulkNotificationCreate(NotificationBase):
    user_ids: List[str] = Field(..., min_length=1)


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    priority: str = "MEDIUM"
    is_read: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int
    pagination: PaginationMeta


class BulkResultResponse(BaseModel):
    success: bool
    created: int
    failed: int


class MarkAllReadResponse(BaseModel):
    success: bool
    markedAsRead: int
    failed: int
