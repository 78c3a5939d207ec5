from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

from app.config.rbac_config import Role
from app.core.errors import raise_for_result, validation_error
from app.database.repository import SupabaseDatabase, utc_now
from app.modules.escalations.schemas import (
    ACTIVE_STATUSES, ESCALATION_TRANSITIONS, PRIORITY_RANK,
    EscalationCreate, EscalationStatus
)
from app.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)

ESCALATION_TARGET_ROLES = (Role.EXECUTIVE.value, Role.PROJECT_MANAGER.value)


class EscalationService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db
        self.notifications = NotificationService(db)

    def get_active(self, inspection_id: str) -> Optional[Dict[str, Any]]:
        """The inspection's QUEUED/NOTIFIED escalation, or None"""
        result = self.db.get_active_escalation(inspection_id)
        if result.error and result.error.is_not_found:
            return None
        return raise_for_result(result, failure="Failed to fetch escalation")

    def get_escalation(self, escalation_id: str) -> Dict[str, Any]:
        return raise_for_result(self.db.get_escalation(escalation_id), not_found="Escalation not found")

    def queue_for_manager(self, manager_id: str) -> List[Dict[str, Any]]:
        """Active escalations on inspections of projects the user manages, plus those addressed to them.

        Sorted by priority (URGENT first), then oldest first.
        """
        project_ids = raise_for_result(
            self.db.get_member_project_ids(manager_id, role=Role.PROJECT_MANAGER.value),
            failure="Failed to fetch escalations"
        )
        inspection_ids = raise_for_result(self.db.list_inspection_ids(project_ids), failure="Failed to fetch escalations")
        managed = raise_for_result(
            self.db.list_escalations(inspection_ids=inspection_ids, statuses=ACTIVE_STATUSES),
            failure="Failed to fetch escalations"
        )
        addressed = raise_for_result(
            self.db.list_escalations(escalated_to=manager_id, statuses=ACTIVE_STATUSES),
            failure="Failed to fetch escalations"
        )
        by_id = {e["id"]: e for e in managed + addressed}
        return sorted(
            by_id.values(),
            key=lambda e: (PRIORITY_RANK.get(e.get("priority_level"), len(PRIORITY_RANK)), str(e.get("created_at") or ""))
        )

    def validate_target(self, escalated_to: Optional[str]) -> Optional[Dict[str, Any]]:
        """An escalation may only be addressed to an active executive or project manager"""
        if not escalated_to:
            return None
        profile = self.db.get_profile(escalated_to)
        if profile.error:
            if profile.error.is_not_found:
                raise validation_error("escalated_to", "Escalation target not found")
            raise_for_result(profile, failure="Failed to create escalation")
        if profile.data.get("role") not in ESCALATION_TARGET_ROLES or not profile.data.get("is_active", True):
            raise validation_error("escalated_to", "Escalations must be addressed to an executive or project manager")
        return profile.data

    def create_escalation(self, escalation_data: EscalationCreate, manager_id: str) -> Dict[str, Any]:
        inspection = self.db.get_inspection(escalation_data.inspection_id)
        if inspection.error:
            if inspection.error.is_not_found:
                raise validation_error("inspection_id", "Inspection not found")
            raise_for_result(inspection, failure="Failed to create escalation")
        self.validate_target(escalation_data.escalated_to)
        if self.get_active(escalation_data.inspection_id):
            raise HTTPException(status_code=400, detail="Inspection already has an active escalation")

        escalation = raise_for_result(
            self.db.create_escalation({
                "inspection_id": escalation_data.inspection_id,
                "original_manager_id": manager_id,
                "escalated_to": escalation_data.escalated_to,
                "escalation_reason": escalation_data.escalation_reason,
                "priority_level": escalation_data.priority_level.value,
            }),
            failure="Failed to create escalation"
        )
        self.notify_target(escalation, inspection.data)
        return escalation

    def notify_target(self, escalation: Dict[str, Any], inspection: Dict[str, Any]) -> None:
        """Tell the addressee, or every executive when the escalation is unaddressed"""
        if escalation.get("escalated_to"):
            recipients = [escalation["escalated_to"]]
        else:
            executives = self.db.list_profiles_by_role(Role.EXECUTIVE.value)
            if executives.error:
                logger.warning(f"Could not load executives for escalation {escalation['id']}: {executives.error.message}")
                return
            recipients = [p["id"] for p in executives.data]
        priority = "HIGH" if escalation.get("priority_level") in ("HIGH", "URGENT") else "MEDIUM"
        self.notifications.notify(
            recipients, "ESCALATION", "Inspection Escalated",
            f"{inspection.get('title', 'An inspection')} was escalated: {escalation['escalation_reason']}",
            "ESCALATION", escalation["id"], priority=priority
        )

    def update_status(self, escalation_id: str, new_status: EscalationStatus) -> Dict[str, Any]:
        escalation = self.get_escalation(escalation_id)
        current = EscalationStatus(escalation["status"])
        if new_status not in ESCALATION_TRANSITIONS[current]:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change escalation status from {current.value} to {new_status.value}"
            )
        updates: Dict[str, Any] = {"status": new_status.value}
        if new_status == EscalationStatus.NOTIFIED:
            updates["notification_count"] = (escalation.get("notification_count") or 0) + 1
        if new_status == EscalationStatus.RESOLVED:
            updates["resolved_at"] = utc_now()
        return raise_for_result(
            self.db.update_escalation(escalation_id, updates),
            not_found="Escalation not found",
            failure="Failed to update escalation status"
        )
