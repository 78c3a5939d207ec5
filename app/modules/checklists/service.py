from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

from app.core.errors import raise_for_result, validation_error
from app.database.repository import SupabaseDatabase
from app.modules.checklists.schemas import ChecklistCreate, ChecklistUpdate

logger = logging.getLogger(__name__)


class ChecklistService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db

    def list_checklists(self, project_id: Optional[str] = None, active_only: bool = False) -> List[Dict[str, Any]]:
        return raise_for_result(
            self.db.list_checklists(project_id=project_id, active_only=active_only),
            failure="Failed to fetch checklists"
        )

    def get_checklist(self, checklist_id: str) -> Dict[str, Any]:
        return raise_for_result(self.db.get_checklist(checklist_id), not_found="Checklist not found")

    def create_checklist(self, checklist_data: ChecklistCreate, creator_id: str) -> Dict[str, Any]:
        project = self.db.get_project(checklist_data.project_id)
        if project.error:
            if project.error.is_not_found:
                raise validation_error("project_id", "Project not found")
            raise_for_result(project, failure="Failed to create checklist")
        return raise_for_result(
            self.db.create_checklist({
                "project_id": checklist_data.project_id,
                "name": checklist_data.name,
                "description": checklist_data.description,
                "version": checklist_data.version,
                "questions": [q.model_dump(mode="json", exclude_none=True) for q in checklist_data.questions],
                "is_active": True,
                "created_by": creator_id,
            }),
            failure="Failed to create checklist"
        )

    def update_checklist(self, checklist_id: str, checklist_data: ChecklistUpdate) -> Dict[str, Any]:
        updates = checklist_data.model_dump(exclude_none=True, exclude={"questions"})
        if checklist_data.questions is not None:
            updates["questions"] = [q.model_dump(mode="json", exclude_none=True) for q in checklist_data.questions]
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        return raise_for_result(
            self.db.update_checklist(checklist_id, updates),
            not_found="Checklist not found",
            failure="Failed to update checklist"
        )

    def delete_checklist(self, checklist_id: str) -> None:
        """Delete a checklist that no inspection references"""
        self.get_checklist(checklist_id)
        in_use = raise_for_result(
            self.db.list_inspections_for_checklist(checklist_id),
            failure="Failed to delete checklist"
        )
        if in_use:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot delete checklist that is in use by {len(in_use)} inspection(s)"
            )
        raise_for_result(
            self.db.delete_checklist(checklist_id),
            not_found="Checklist not found",
            failure="Failed to delete checklist"
        )
