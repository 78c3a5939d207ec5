from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from app.config.settings import settings
from app.modules.escalations.schemas import EscalationPriority, EscalationResponse
from app.modules.inspections.schemas import InspectionResponse
from app.modules.inspections.state_machine import ESCALATION_REQUIRED


class Decision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def _upper(v):
    return v.upper() if isinstance(v, str) else v


class ApproveRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=1000)


class RejectRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=1000)
    escalate: bool = False
    escalation_reason: Optional[str] = Field(None, min_length=1, max_length=1000)
    escalated_to: Optional[str] = None
    priority_level: EscalationPriority = EscalationPriority.HIGH

    @field_validator("priority_level", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return _upper(v)

    @model_validator(mode="after")
    def escalation_needs_reason(self):
        if self.escalate and not self.escalation_reason:
            raise ValueError("Escalation reason is required when escalating")
        return self


class ApprovalCreate(RejectRequest):
    inspection_id: str = Field(..., min_length=1)
    decision: Decision

    @field_validator("decision", mode="before")
    @classmethod
    def normalize_decision(cls, v):
        return _upper(v)


class RejectionEscalationCheck(BaseModel):
    """A plain rejection is refused once the rejection threshold is reached."""
    current_rejection_count: int = Field(0, ge=0)
    decision: Decision

    @field_validator("decision")
    @classmethod
    def escalation_required(cls, v: Decision, info: ValidationInfo) -> Decision:
        count = info.data.get("current_rejection_count") or 0
        if v == Decision.REJECTED and count >= settings.max_rejections:
            raise ValueError(ESCALATION_REQUIRED)
        return v


class ApprovalResponse(BaseModel):
    id: str
    inspection_id: str
    approver_id: str
    decision: Decision
    notes: Optional[str] = None
    review_date: Optional[datetime] = None
    is_escalated: bool = False
    escalation_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DecisionResponse(BaseModel):
    approval: ApprovalResponse
    inspection: InspectionResponse
    escalation: Optional[EscalationResponse] = None
