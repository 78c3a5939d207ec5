"""
Review decisions on inspections.

Approve and reject both require the inspection to be IN_REVIEW. Rejections
accumulate on `inspections.rejection_count`; once it has reached the
threshold a plain rejection fails validation and the caller must reject
with `escalate=True`. An escalated rejection writes the escalation_queue
record before the approval row, so a counted rejection at the threshold
always has an escalation behind it. If a later write fails, the rows
already written are deleted so the rejection can be retried.
"""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
import logging

from app.core.dependencies import check_inspection_access
from app.core.errors import raise_for_result
from app.database.repository import SupabaseDatabase, utc_now
from app.modules.approvals.schemas import Decision, RejectRequest, RejectionEscalationCheck
from app.modules.escalations.schemas import EscalationCreate
from app.modules.escalations.service import EscalationService
from app.modules.inspections import state_machine
from app.modules.inspections.state_machine import InspectionStatus
from app.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class ApprovalService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db
        self.escalations = EscalationService(db)
        self.notifications = NotificationService(db)

    def list_approvals(self, inspection_id: str, user_data: Dict[str, Any]) -> List[Dict[str, Any]]:
        inspection = raise_for_result(self.db.get_inspection(inspection_id), not_found="Inspection not found")
        check_inspection_access(inspection, user_data)
        return raise_for_result(self.db.list_approvals(inspection_id), failure="Failed to fetch approvals")

    def _in_review(self, inspection_id: str, target: InspectionStatus) -> Dict[str, Any]:
        inspection = raise_for_result(self.db.get_inspection(inspection_id), not_found="Inspection not found")
        if inspection["status"] != InspectionStatus.IN_REVIEW.value:
            raise HTTPException(
                status_code=400,
                detail=f"Can only {'approve' if target == InspectionStatus.APPROVED else 'reject'} "
                       f"inspections in IN_REVIEW status (current: {inspection['status']})"
            )
        return inspection

    def approve(self, inspection_id: str, notes: str, approver_id: str) -> Dict[str, Any]:
        inspection = self._in_review(inspection_id, InspectionStatus.APPROVED)
        approval = raise_for_result(
            self.db.create_approval({
                "inspection_id": inspection_id,
                "approver_id": approver_id,
                "decision": Decision.APPROVED.value,
                "notes": notes,
            }),
            failure="Failed to approve inspection"
        )
        updated = raise_for_result(
            self.db.update_inspection_status(
                inspection_id, InspectionStatus.APPROVED.value, {"completed_at": utc_now()}
            ),
            not_found="Inspection not found",
            failure="Failed to approve inspection"
        )
        self._notify_assignee(
            inspection, "INSPECTION_APPROVED", "Inspection Approved",
            f"{inspection['title']} has been approved"
        )
        return {"approval": approval, "inspection": updated, "escalation": None}

    def reject(self, inspection_id: str, rejection: RejectRequest, approver_id: str) -> Dict[str, Any]:
        inspection = self._in_review(inspection_id, InspectionStatus.REJECTED)
        current_count = inspection.get("rejection_count") or 0

        if not rejection.escalate:
            try:
                RejectionEscalationCheck(current_rejection_count=current_count, decision=Decision.REJECTED)
            except ValidationError as e:
                raise RequestValidationError(e.errors())

        escalation = None
        if rejection.escalate:
            escalation = self.escalations.create_escalation(
                EscalationCreate(
                    inspection_id=inspection_id,
                    escalation_reason=rejection.escalation_reason,
                    priority_level=rejection.priority_level,
                    escalated_to=rejection.escalated_to,
                ),
                approver_id
            )

        approval_result = self.db.create_approval({
            "inspection_id": inspection_id,
            "approver_id": approver_id,
            "decision": Decision.REJECTED.value,
            "notes": rejection.notes,
            "is_escalated": rejection.escalate,
            "escalation_reason": rejection.escalation_reason,
        })
        if approval_result.error:
            self._rollback_rejection(escalation)
            raise_for_result(approval_result, failure="Failed to reject inspection")
        approval = approval_result.data

        status_result = self.db.update_inspection_status(
            inspection_id,
            InspectionStatus.REJECTED.value,
            {"rejection_count": state_machine.next_rejection_count(current_count)}
        )
        if status_result.error:
            self._rollback_rejection(escalation, approval)
            raise_for_result(status_result, not_found="Inspection not found", failure="Failed to reject inspection")
        updated = status_result.data

        self._notify_assignee(
            inspection, "INSPECTION_REJECTED", "Inspection Rejected",
            f"{inspection['title']} was rejected: {rejection.notes}"
        )
        return {"approval": approval, "inspection": updated, "escalation": escalation}

    def _rollback_rejection(self, escalation: Optional[Dict[str, Any]], approval: Optional[Dict[str, Any]] = None) -> None:
        """Remove rows written by a rejection that did not complete, so it can be retried."""
        if approval:
            if self.db.delete_approval(approval["id"]).error:
                logger.warning(f"Orphaned rejection approval {approval['id']} left for inspection {approval['inspection_id']}")
        if escalation:
            if self.db.delete_escalation(escalation["id"]).error:
                logger.warning(f"Orphaned escalation {escalation['id']} left for inspection {escalation['inspection_id']}")

    def decide(self, inspection_id: str, decision: Decision, payload: RejectRequest, approver_id: str) -> Dict[str, Any]:
        if decision == Decision.APPROVED:
            return self.approve(inspection_id, payload.notes, approver_id)
        return self.reject(inspection_id, payload, approver_id)

    def _notify_assignee(self, inspection: Dict[str, Any], notification_type: str, title: str, message: str) -> None:
        assignee: Optional[str] = inspection.get("assigned_to")
        if not assignee:
            return
        self.notifications.notify(
            [assignee], notification_type, title, message, "INSPECTION", inspection["id"],
            priority="HIGH" if notification_type == "INSPECTION_REJECTED" else "MEDIUM"
        )
