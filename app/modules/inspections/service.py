from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

from app.config.rbac_config import Role
from app.core.dependencies import (
    is_manager, is_executive, can_edit_inspection, check_inspection_access
)
from app.core.errors import raise_for_result, validation_error
from app.core.pagination import clamp_page, page_meta
from app.database.repository import SupabaseDatabase, utc_now
from app.modules.inspections import state_machine
from app.modules.inspections.schemas import InspectionCreate, InspectionUpdate, InspectionComplete
from app.modules.inspections.state_machine import InspectionStatus
from app.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)

MAX_INSPECTION_PAGE_SIZE = 100
MANAGER_ONLY_FIELDS = {"assigned_to", "priority", "due_date", "title", "description"}


class InspectionService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db
        self.notifications = NotificationService(db)

    # ===== reads =====

    def list_inspections(
        self,
        user_data: Dict[str, Any],
        project_id: Optional[str] = None,
        status: Optional[str] = None,
        assigned_to: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """Inspectors only ever see inspections assigned to them."""
        page, limit, offset = clamp_page(page, limit, MAX_INSPECTION_PAGE_SIZE)
        statuses = None
        if status:
            statuses = [s.strip().upper() for s in status.split(",") if s.strip()]
            invalid = [s for s in statuses if s not in InspectionStatus.__members__]
            if invalid:
                raise validation_error("status", f"Invalid status: {', '.join(invalid)}")
        if not (is_manager(user_data) or is_executive(user_data)):
            assigned_to = user_data["id"]

        result = self.db.list_inspections(
            project_id=project_id,
            statuses=statuses,
            assigned_to=assigned_to,
            offset=offset,
            limit=limit
        )
        inspections = raise_for_result(result, failure="Failed to fetch inspections")
        return {"inspections": inspections, "pagination": page_meta(page, limit, result.count or 0)}

    def get_inspection(self, inspection_id: str) -> Dict[str, Any]:
        return raise_for_result(self.db.get_inspection(inspection_id), not_found="Inspection not found")

    def get_visible_inspection(self, inspection_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        inspection = self.get_inspection(inspection_id)
        check_inspection_access(inspection, user_data)
        return inspection

    def _questions(self, inspection: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
        checklist = self.db.get_checklist(inspection["checklist_id"])
        if checklist.error:
            if checklist.error.is_not_found:
                return None
            raise_for_result(checklist, failure="Failed to load checklist")
        return checklist.data.get("questions") or []

    def get_inspection_detail(self, inspection_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        inspection = self.get_visible_inspection(inspection_id, user_data)
        questions = self._questions(inspection)
        return {
            **inspection,
            "progress": state_machine.calculate_progress(questions, inspection.get("responses")),
            "next_action": state_machine.next_action(inspection["status"]),
            "valid_transitions": state_machine.valid_transitions(inspection["status"]),
        }

    # ===== writes =====

    def create_inspection(self, inspection_data: InspectionCreate, creator_id: str) -> Dict[str, Any]:
        project = self.db.get_project(inspection_data.project_id)
        if project.error:
            if project.error.is_not_found:
                raise validation_error("project_id", "Invalid project ID")
            raise_for_result(project, failure="Failed to create inspection")

        checklist = self.db.get_checklist(inspection_data.checklist_id)
        if checklist.error:
            if checklist.error.is_not_found:
                raise validation_error("checklist_id", "Invalid checklist ID")
            raise_for_result(checklist, failure="Failed to create inspection")
        if checklist.data.get("project_id") != inspection_data.project_id:
            raise validation_error("checklist_id", "Checklist does not belong to this project")

        assignee = inspection_data.assigned_to or creator_id
        if inspection_data.assigned_to:
            profile = self.db.get_profile(assignee)
            if profile.error:
                if profile.error.is_not_found:
                    raise validation_error("assigned_to", "Assigned user not found")
                raise_for_result(profile, failure="Failed to create inspection")

        inspection = raise_for_result(
            self.db.create_inspection({
                "project_id": inspection_data.project_id,
                "checklist_id": inspection_data.checklist_id,
                "assigned_to": assignee,
                "title": inspection_data.title,
                "description": inspection_data.description,
                "priority": inspection_data.priority.value,
                "due_date": inspection_data.due_date.isoformat() if inspection_data.due_date else None,
                "status": InspectionStatus.DRAFT.value,
                "responses": {},
                "rejection_count": 0,
            }),
            failure="Failed to create inspection"
        )
        if assignee != creator_id:
            self.notifications.notify(
                [assignee], "INSPECTION_ASSIGNED", "New Inspection Assigned",
                f"{inspection['title']} has been assigned to you",
                "INSPECTION", inspection["id"],
                priority="HIGH" if inspection_data.priority.value == "HIGH" else "MEDIUM"
            )
        return inspection

    def update_inspection(
        self,
        inspection_id: str,
        inspection_data: InspectionUpdate,
        user_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        inspection = self.get_inspection(inspection_id)
        if not can_edit_inspection(user_data, inspection):
            raise HTTPException(status_code=403, detail="Not authorized to edit this inspection")

        updates = inspection_data.model_dump(mode="json", exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        if not is_manager(user_data) and MANAGER_ONLY_FIELDS.intersection(updates):
            raise HTTPException(status_code=403, detail="Only project managers can change assignment or scheduling")
        if "assigned_to" in updates:
            profile = self.db.get_profile(updates["assigned_to"])
            if profile.error:
                if profile.error.is_not_found:
                    raise validation_error("assigned_to", "Assigned user not found")
                raise_for_result(profile, failure="Failed to update inspection")
        if "responses" in updates:
            updates["responses"] = {**(inspection.get("responses") or {}), **updates["responses"]}

        return raise_for_result(
            self.db.update_inspection(inspection_id, updates),
            not_found="Inspection not found",
            failure="Failed to update inspection"
        )

    def delete_inspection(self, inspection_id: str) -> None:
        raise_for_result(
            self.db.delete_inspection(inspection_id),
            not_found="Inspection not found",
            failure="Failed to delete inspection"
        )

    # ===== workflow =====

    def _require_assignee(self, inspection: Dict[str, Any], user_data: Dict[str, Any]) -> None:
        if inspection.get("assigned_to") != user_data["id"]:
            raise HTTPException(status_code=403, detail="You are not assigned to this inspection")

    def _evidence(self, inspection_id: str) -> List[Dict[str, Any]]:
        return raise_for_result(self.db.list_evidence(inspection_id), failure="Failed to load evidence")

    def check_submission(self, inspection_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        inspection = self.get_inspection(inspection_id)
        self._require_assignee(inspection, user_data)
        questions = self._questions(inspection)
        errors = state_machine.validate_transition(
            inspection, InspectionStatus.PENDING.value, questions, self._evidence(inspection_id)
        )
        return {
            "can_submit": not errors,
            "validation_errors": errors,
            "progress": state_machine.calculate_progress(questions, inspection.get("responses")),
            "current_status": inspection["status"],
            "next_action": state_machine.next_action(inspection["status"]),
        }

    def _move_to_pending(self, inspection: Dict[str, Any], user_data: Dict[str, Any]) -> Dict[str, Any]:
        errors = state_machine.validate_transition(
            inspection,
            InspectionStatus.PENDING.value,
            self._questions(inspection),
            self._evidence(inspection["id"])
        )
        if errors:
            raise HTTPException(status_code=400, detail={"message": "Inspection validation failed", "errors": errors})
        updated = raise_for_result(
            self.db.update_inspection_status(
                inspection["id"], InspectionStatus.PENDING.value, {"submitted_at": utc_now()}
            ),
            not_found="Inspection not found",
            failure="Failed to submit inspection"
        )
        self._notify_managers(
            inspection, user_data["id"], "INSPECTION_SUBMITTED", "New Inspection Submitted",
            f"{inspection['title']} has been submitted for review"
        )
        return updated

    def submit(self, inspection_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Assignee submits a DRAFT (or revised REJECTED) inspection for review"""
        inspection = self.get_inspection(inspection_id)
        self._require_assignee(inspection, user_data)
        return self._move_to_pending(inspection, user_data)

    def complete(
        self,
        inspection_id: str,
        completion: InspectionComplete,
        user_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Save checklist responses and submit in one step"""
        inspection = self.get_inspection(inspection_id)
        if inspection.get("assigned_to") != user_data["id"] and not is_manager(user_data):
            raise HTTPException(status_code=403, detail="Not authorized to complete this inspection")
        if not state_machine.can_transition(inspection["status"], InspectionStatus.PENDING.value):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot complete inspection with status {inspection['status']}"
            )

        responses = {**(inspection.get("responses") or {})}
        for response in completion.responses:
            responses[response.question_id] = response.model_dump()
        saved = raise_for_result(
            self.db.update_inspection(inspection_id, {"responses": responses}),
            not_found="Inspection not found",
            failure="Failed to save responses"
        )
        return self._move_to_pending(saved, user_data)

    def start_review(self, inspection_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        inspection = self.get_inspection(inspection_id)
        errors = state_machine.validate_transition(inspection, InspectionStatus.IN_REVIEW.value)
        if errors:
            raise HTTPException(status_code=400, detail=errors[0])
        return raise_for_result(
            self.db.update_inspection_status(inspection_id, InspectionStatus.IN_REVIEW.value),
            not_found="Inspection not found",
            failure="Failed to start review"
        )

    def _notify_managers(
        self,
        inspection: Dict[str, Any],
        actor_id: str,
        notification_type: str,
        title: str,
        message: str
    ) -> None:
        members = self.db.list_project_members(inspection["project_id"])
        if members.error:
            logger.warning(f"Could not load managers for project {inspection['project_id']}: {members.error.message}")
            return
        manager_ids = [
            m["user_id"] for m in members.data
            if m.get("role") == Role.PROJECT_MANAGER.value and m["user_id"] != actor_id
        ]
        self.notifications.notify(
            manager_ids, notification_type, title, message, "INSPECTION", inspection["id"],
            priority="HIGH" if inspection.get("priority") == "HIGH" else "MEDIUM"
        )
