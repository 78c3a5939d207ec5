from typing import Any, Dict, List, Optional
from datetime import date
from fastapi import HTTPException
import logging

from app.config.rbac_config import Role
from app.config.settings import settings
from app.core.dependencies import is_executive
from app.core.errors import raise_for_result, validation_error
from app.core.fanout import gather_reads
from app.core.pagination import clamp_page, page_meta
from app.database.repository import HAS_DEPENDENTS, SupabaseDatabase, utc_now
from app.modules.inspections.state_machine import OPEN_STATUSES
from app.modules.projects.schemas import ProjectCreate, ProjectUpdate, ProjectMemberAdd

logger = logging.getLogger(__name__)

MAX_PROJECT_PAGE_SIZE = 50


def _location_columns(location) -> Dict[str, Any]:
    if location is None:
        return {}
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "address": location.address,
    }


class ProjectService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db

    def list_projects(
        self,
        user_data: Dict[str, Any],
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None
    ) -> Dict[str, Any]:
        """Executives see every project; everyone else sees projects they are a member of."""
        page, limit, offset = clamp_page(page, limit, MAX_PROJECT_PAGE_SIZE)
        project_ids = None
        if not is_executive(user_data):
            project_ids = raise_for_result(
                self.db.get_member_project_ids(user_data["id"]),
                failure="Failed to fetch projects"
            )
        result = self.db.list_projects(
            project_ids=project_ids,
            status=status.upper() if status else None,
            offset=offset,
            limit=limit
        )
        projects = raise_for_result(result, failure="Failed to fetch projects")
        return {"projects": projects, "pagination": page_meta(page, limit, result.count or 0)}

    def get_project(self, project_id: str) -> Dict[str, Any]:
        return raise_for_result(self.db.get_project(project_id), not_found="Project not found")

    def get_project_detail(self, project_id: str) -> Dict[str, Any]:
        project = self.get_project(project_id)
        return {**project, "members": self.list_members(project_id)}

    def create_project(self, project_data: ProjectCreate, creator_id: str) -> Dict[str, Any]:
        """Create a project with the creator as PROJECT_MANAGER plus optional team members"""
        team_ids = [uid for uid in dict.fromkeys(project_data.team_member_ids) if uid != creator_id]
        if len(team_ids) + 1 > settings.max_team_members:
            raise validation_error("team_member_ids", f"A project can have at most {settings.max_team_members} members")
        profiles = {}
        if team_ids:
            found = raise_for_result(self.db.get_profiles(team_ids), failure="Failed to create project")
            profiles = {p["id"]: p for p in found}
            missing = [uid for uid in team_ids if uid not in profiles]
            if missing:
                raise validation_error("team_member_ids", f"Unknown users: {', '.join(missing)}")

        project = raise_for_result(
            self.db.create_project({
                "name": project_data.name,
                "description": project_data.description,
                "status": "ACTIVE",
                "start_date": project_data.start_date.isoformat(),
                "end_date": project_data.end_date.isoformat() if project_data.end_date else None,
                **_location_columns(project_data.location),
            }, creator_id),
            failure="Failed to create project"
        )

        for user_id in team_ids:
            role = Role.PROJECT_MANAGER.value if profiles[user_id]["role"] == Role.PROJECT_MANAGER.value else Role.INSPECTOR.value
            member = self.db.add_project_member(project["id"], user_id, role)
            if member.error:
                logger.warning(f"Failed to add {user_id} to project {project['id']}: {member.error.message}")
        return project

    def update_project(self, project_id: str, project_data: ProjectUpdate) -> Dict[str, Any]:
        current = self.get_project(project_id)
        updates = project_data.model_dump(exclude_none=True, exclude={"location"})
        updates.update(_location_columns(project_data.location))
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        start = project_data.start_date or current.get("start_date")
        end = project_data.end_date or current.get("end_date")
        if start and end and date.fromisoformat(str(end)[:10]) <= date.fromisoformat(str(start)[:10]):
            raise validation_error("end_date", "End date must be after start date")

        for key in ("start_date", "end_date"):
            if key in updates:
                updates[key] = updates[key].isoformat()
        if "status" in updates:
            updates["status"] = updates["status"].value
        return raise_for_result(
            self.db.update_project(project_id, updates),
            not_found="Project not found",
            failure="Failed to update project"
        )

    def delete_project(self, project_id: str) -> None:
        """Delete a project. Refused while it still has inspections."""
        self.get_project(project_id)
        result = self.db.delete_project(project_id)
        if result.error and result.error.code == HAS_DEPENDENTS:
            raise HTTPException(status_code=400, detail=result.error.message)
        raise_for_result(result, not_found="Project not found", failure="Failed to delete project")

    # ===== members =====

    def list_members(self, project_id: str) -> List[Dict[str, Any]]:
        members = raise_for_result(self.db.list_project_members(project_id), failure="Failed to fetch project members")
        profiles = raise_for_result(
            self.db.get_profiles([m["user_id"] for m in members]),
            failure="Failed to fetch project members"
        )
        by_id = {p["id"]: p for p in profiles}
        return [
            {
                **m,
                "name": by_id.get(m["user_id"], {}).get("name"),
                "email": by_id.get(m["user_id"], {}).get("email"),
            }
            for m in members
        ]

    def add_member(self, project_id: str, member_data: ProjectMemberAdd) -> Dict[str, Any]:
        self.get_project(project_id)
        profile = self.db.get_profile(member_data.user_id)
        if profile.error:
            if profile.error.is_not_found:
                raise validation_error("user_id", "User not found")
            raise_for_result(profile, failure="Failed to add project member")

        members = raise_for_result(self.db.list_project_members(project_id), failure="Failed to add project member")
        if any(m["user_id"] == member_data.user_id for m in members):
            raise HTTPException(status_code=400, detail="User is already a member of this project")
        if len(members) >= settings.max_team_members:
            raise HTTPException(
                status_code=400,
                detail=f"A project can have at most {settings.max_team_members} members"
            )
        member = raise_for_result(
            self.db.add_project_member(project_id, member_data.user_id, member_data.role.value),
            failure="Failed to add project member"
        )
        return {**member, "name": profile.data.get("name"), "email": profile.data.get("email")}

    def remove_member(self, project_id: str, user_id: str) -> None:
        raise_for_result(
            self.db.remove_project_member(project_id, user_id),
            not_found="Project member not found",
            failure="Failed to remove project member"
        )

    # ===== dashboard =====

    async def get_dashboard(self, project_id: str) -> Dict[str, Any]:
        """Project plus inspection KPIs. Each count is read concurrently; a failed count reads as 0."""
        project = self.get_project(project_id)
        now = utc_now()
        kpis = await gather_reads({
            "total_inspections": lambda: self.db.count_inspections(project_id=project_id),
            "draft": lambda: self.db.count_inspections(project_id=project_id, statuses=["DRAFT"]),
            "pending": lambda: self.db.count_inspections(project_id=project_id, statuses=["PENDING"]),
            "in_review": lambda: self.db.count_inspections(project_id=project_id, statuses=["IN_REVIEW"]),
            "approved": lambda: self.db.count_inspections(project_id=project_id, statuses=["APPROVED"]),
            "rejected": lambda: self.db.count_inspections(project_id=project_id, statuses=["REJECTED"]),
            "overdue": lambda: self.db.count_inspections(project_id=project_id, statuses=OPEN_STATUSES, due_before=now),
        })
        total = kpis["total_inspections"]
        kpis["completion_rate"] = round(kpis["approved"] / total * 100, 1) if total else 0.0
        return {"project": project, "kpis": kpis}
