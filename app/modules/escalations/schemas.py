from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class EscalationStatus(str, Enum):
    QUEUED = "QUEUED"
    NOTIFIED = "NOTIFIED"
    RESOLVED = "RESOLVED"
    EXPIRED = "EXPIRED"


class EscalationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


ACTIVE_STATUSES = [EscalationStatus.QUEUED.value, EscalationStatus.NOTIFIED.value]

ESCALATION_TRANSITIONS = {
    EscalationStatus.QUEUED: [EscalationStatus.NOTIFIED, EscalationStatus.EXPIRED],
    EscalationStatus.NOTIFIED: [EscalationStatus.RESOLVED, EscalationStatus.EXPIRED],
    EscalationStatus.RESOLVED: [],
    EscalationStatus.EXPIRED: [],
}

PRIORITY_RANK = {
    EscalationPriority.URGENT.value: 0,
    EscalationPriority.HIGH.value: 1,
    EscalationPriority.MEDIUM.value: 2,
    EscalationPriority.LOW.value: 3,
}


class EscalationCreate(BaseModel):
    inspection_id: str = Field(..., min_length=1)
    escalation_reason: str = Field(..., min_length=1, max_length=1000)
    priority_level: EscalationPriority = EscalationPriority.MEDIUM
    escalated_to: Optional[str] = None

    @field_validator("priority_level", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return v.upper() if isinstance(v, str) else v


class EscalationStatusUpdate(BaseModel):
    status: EscalationStatus


class EscalationResponse(BaseModel):
    id: str
    inspection_id: str
    original_manager_id: Optional[str] = None
    escalated_to: Optional[str] = None
    escalation_reason: str
    priority_level: EscalationPriority = EscalationPriority.MEDIUM
    status: EscalationStatus = EscalationStatus.QUEUED
    notification_count: int = 0
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
