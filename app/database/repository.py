"""
Database access layer over the Supabase (PostgREST) client.

Every method wraps a single domain operation and returns a QueryResult.
Nothing raises across this boundary: callers branch on `result.error`
and map it to an HTTP status (not found -> 404, invalid reference -> 400,
anything else -> 500).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from fastapi import Depends
from supabase import Client

from app.database.supabase_client import get_supabase

logger = logging.getLogger(__name__)

# PostgREST code for "no rows returned"
NOT_FOUND = "PGRST116"
HAS_DEPENDENTS = "HAS_DEPENDENTS"
DATABASE_ERROR = "DATABASE_ERROR"


@dataclass
class QueryError:
    message: str
    code: Optional[str] = None

    @property
    def is_not_found(self) -> bool:
        return self.code == NOT_FOUND


@dataclass
class QueryResult:
    data: Any = None
    error: Optional[QueryError] = None
    count: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseDatabase:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # ===== helpers =====

    def _execute(self, operation: str, query) -> QueryResult:
        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Database error in {operation}: {e}")
            message = getattr(e, "message", None) or str(e)
            return QueryResult(error=QueryError(message=message, code=getattr(e, "code", None) or DATABASE_ERROR))
        if response is None:
            return QueryResult(data=[])
        return QueryResult(data=response.data if response.data is not None else [], count=getattr(response, "count", None))

    def _first(self, operation: str, query, entity: str) -> QueryResult:
        """Run a select and return its first row, or a not-found error."""
        result = self._execute(operation, query)
        if result.error:
            return result
        if not result.data:
            return QueryResult(error=QueryError(message=f"{entity} not found", code=NOT_FOUND))
        return QueryResult(data=result.data[0])

    def _paged(self, operation: str, query, offset: int, limit: int) -> QueryResult:
        return self._execute(operation, query.range(offset, offset + limit - 1))

    # ===== profiles =====

    def get_profile(self, user_id: str) -> QueryResult:
        query = self.supabase.table("profiles").select("*").eq("id", user_id)
        return self._first("get_profile", query, "Profile")

    def get_profiles(self, user_ids: List[str]) -> QueryResult:
        if not user_ids:
            return QueryResult(data=[])
        return self._execute("get_profiles", self.supabase.table("profiles").select("*").in_("id", user_ids))

    def list_profiles_by_role(self, role: str) -> QueryResult:
        query = self.supabase.table("profiles").select("*").eq("role", role).eq("is_active", True)
        return self._execute("list_profiles_by_role", query)

    def create_profile(self, profile_data: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("profiles").insert(profile_data)
        return self._first("create_profile", query, "Profile")

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("profiles").update({**updates, "updated_at": utc_now()}).eq("id", user_id)
        return self._first("update_profile", query, "Profile")

    def search_profiles(self, term: str, limit: int = 20) -> QueryResult:
        pattern = f"%{term}%"
        query = self.supabase.table("profiles")\
            .select("id, name, email, role, avatar")\
            .or_(f"name.ilike.{pattern},email.ilike.{pattern}")\
            .eq("is_active", True)\
            .order("name")\
            .limit(limit)
        return self._execute("search_profiles", query)

    # ===== projects =====

    def list_projects(
        self,
        project_ids: Optional[List[str]] = None,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 20
    ) -> QueryResult:
        """List projects, restricted to project_ids when given (None means all)."""
        if project_ids is not None and not project_ids:
            return QueryResult(data=[], count=0)
        query = self.supabase.table("projects").select("*", count="exact")
        if project_ids is not None:
            query = query.in_("id", project_ids)
        if status:
            query = query.eq("status", status)
        query = query.order("updated_at", desc=True)
        return self._paged("list_projects", query, offset, limit)

    def get_project(self, project_id: str) -> QueryResult:
        query = self.supabase.table("projects").select("*").eq("id", project_id)
        return self._first("get_project", query, "Project")

    def create_project(self, project_data: Dict[str, Any], creator_id: str) -> QueryResult:
        """Insert the project and its owner membership; the project row is removed if the membership fails."""
        result = self._first("create_project", self.supabase.table("projects").insert(project_data), "Project")
        if result.error:
            return result
        project = result.data
        member = self.add_project_member(project["id"], creator_id, "PROJECT_MANAGER")
        if member.error:
            self._execute("create_project.rollback", self.supabase.table("projects").delete().eq("id", project["id"]))
            return QueryResult(error=member.error)
        return QueryResult(data=project)

    def update_project(self, project_id: str, updates: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("projects").update({**updates, "updated_at": utc_now()}).eq("id", project_id)
        return self._first("update_project", query, "Project")

    def delete_project(self, project_id: str) -> QueryResult:
        """Delete a project and its memberships. Refused while the project has inspections."""
        existing = self._execute(
            "delete_project.inspections",
            self.supabase.table("inspections").select("id").eq("project_id", project_id).limit(1)
        )
        if existing.error:
            return existing
        if existing.data:
            return QueryResult(error=QueryError(
                message="Cannot delete project with existing inspections", code=HAS_DEPENDENTS
            ))
        members = self._execute(
            "delete_project.members",
            self.supabase.table("project_members").delete().eq("project_id", project_id)
        )
        if members.error:
            return members
        return self._first("delete_project", self.supabase.table("projects").delete().eq("id", project_id), "Project")

    def get_member_project_ids(self, user_id: str, role: Optional[str] = None) -> QueryResult:
        query = self.supabase.table("project_members").select("project_id").eq("user_id", user_id)
        if role:
            query = query.eq("role", role)
        result = self._execute("get_member_project_ids", query)
        if result.error:
            return result
        return QueryResult(data=list({m["project_id"] for m in result.data}))

    def list_project_members(self, project_id: str) -> QueryResult:
        query = self.supabase.table("project_members").select("*").eq("project_id", project_id).order("created_at")
        return self._execute("list_project_members", query)

    def get_project_member(self, project_id: str, user_id: str) -> QueryResult:
        query = self.supabase.table("project_members")\
            .select("*")\
            .eq("project_id", project_id)\
            .eq("user_id", user_id)
        return self._first("get_project_member", query, "Project member")

    def add_project_member(self, project_id: str, user_id: str, role: str) -> QueryResult:
        query = self.supabase.table("project_members").insert({
            "project_id": project_id,
            "user_id": user_id,
            "role": role,
        })
        return self._first("add_project_member", query, "Project member")

    def remove_project_member(self, project_id: str, user_id: str) -> QueryResult:
        query = self.supabase.table("project_members")\
            .delete()\
            .eq("project_id", project_id)\
            .eq("user_id", user_id)
        return self._first("remove_project_member", query, "Project member")

    # ===== checklists =====

    def list_checklists(self, project_id: Optional[str] = None, active_only: bool = False) -> QueryResult:
        query = self.supabase.table("checklists").select("*")
        if project_id:
            query = query.eq("project_id", project_id)
        if active_only:
            query = query.eq("is_active", True)
        return self._execute("list_checklists", query.order("created_at", desc=True))

    def get_checklist(self, checklist_id: str) -> QueryResult:
        query = self.supabase.table("checklists").select("*").eq("id", checklist_id)
        return self._first("get_checklist", query, "Checklist")

    def create_checklist(self, checklist_data: Dict[str, Any]) -> QueryResult:
        return self._first("create_checklist", self.supabase.table("checklists").insert(checklist_data), "Checklist")

    def update_checklist(self, checklist_id: str, updates: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("checklists").update({**updates, "updated_at": utc_now()}).eq("id", checklist_id)
        return self._first("update_checklist", query, "Checklist")

    def delete_checklist(self, checklist_id: str) -> QueryResult:
        query = self.supabase.table("checklists").delete().eq("id", checklist_id)
        return self._first("delete_checklist", query, "Checklist")

    def list_inspections_for_checklist(self, checklist_id: str) -> QueryResult:
        query = self.supabase.table("inspections").select("id").eq("checklist_id", checklist_id)
        return self._execute("list_inspections_for_checklist", query)

    # ===== inspections =====

    def list_inspections(
        self,
        project_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
        assigned_to: Optional[str] = None,
        offset: int = 0,
        limit: int = 20
    ) -> QueryResult:
        query = self.supabase.table("inspections").select("*", count="exact")
        if project_id:
            query = query.eq("project_id", project_id)
        if statuses:
            query = query.in_("status", statuses)
        if assigned_to:
            query = query.eq("assigned_to", assigned_to)
        query = query.order("created_at", desc=True)
        return self._paged("list_inspections", query, offset, limit)

    def list_project_inspections_in_range(
        self,
        project_id: str,
        created_after: Optional[str] = None,
        created_before: Optional[str] = None
    ) -> QueryResult:
        query = self.supabase.table("inspections").select("*").eq("project_id", project_id)
        if created_after:
            query = query.gte("created_at", created_after)
        if created_before:
            query = query.lte("created_at", created_before)
        return self._execute("list_project_inspections_in_range", query.order("created_at", desc=True))

    def count_inspections(
        self,
        project_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
        assigned_to: Optional[str] = None,
        due_before: Optional[str] = None,
        completed_after: Optional[str] = None,
        completed_before: Optional[str] = None
    ) -> QueryResult:
        """Count inspections matching the filters; data is the integer count."""
        query = self.supabase.table("inspections").select("id", count="exact")
        if project_id:
            query = query.eq("project_id", project_id)
        if statuses:
            query = query.in_("status", statuses)
        if assigned_to:
            query = query.eq("assigned_to", assigned_to)
        if due_before:
            query = query.lt("due_date", due_before)
        if completed_after:
            query = query.gte("completed_at", completed_after)
        if completed_before:
            query = query.lte("completed_at", completed_before)
        result = self._execute("count_inspections", query)
        if result.error:
            return result
        return QueryResult(data=result.count if result.count is not None else len(result.data))

    def get_inspection(self, inspection_id: str) -> QueryResult:
        query = self.supabase.table("inspections").select("*").eq("id", inspection_id)
        return self._first("get_inspection", query, "Inspection")

    def create_inspection(self, inspection_data: Dict[str, Any]) -> QueryResult:
        return self._first("create_inspection", self.supabase.table("inspections").insert(inspection_data), "Inspection")

    def update_inspection(self, inspection_id: str, updates: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("inspections").update({**updates, "updated_at": utc_now()}).eq("id", inspection_id)
        return self._first("update_inspection", query, "Inspection")

    def update_inspection_status(
        self,
        inspection_id: str,
        status: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> QueryResult:
        return self.update_inspection(inspection_id, {"status": status, **(extra or {})})

    def delete_inspection(self, inspection_id: str) -> QueryResult:
        """Delete an inspection after its evidence, approvals and escalations."""
        for table in ("evidence", "approvals", "escalation_queue"):
            result = self._execute(
                f"delete_inspection.{table}",
                self.supabase.table(table).delete().eq("inspection_id", inspection_id)
            )
            if result.error:
                return result
        query = self.supabase.table("inspections").delete().eq("id", inspection_id)
        return self._first("delete_inspection", query, "Inspection")

    def list_inspection_ids(self, project_ids: List[str]) -> QueryResult:
        if not project_ids:
            return QueryResult(data=[])
        query = self.supabase.table("inspections").select("id").in_("project_id", project_ids)
        result = self._execute("list_inspection_ids", query)
        if result.error:
            return result
        return QueryResult(data=[i["id"] for i in result.data])

    # ===== evidence =====

    def list_evidence(self, inspection_id: str) -> QueryResult:
        query = self.supabase.table("evidence")\
            .select("*")\
            .eq("inspection_id", inspection_id)\
            .order("created_at", desc=True)
        return self._execute("list_evidence", query)

    def get_evidence(self, evidence_id: str) -> QueryResult:
        query = self.supabase.table("evidence").select("*").eq("id", evidence_id)
        return self._first("get_evidence", query, "Evidence")

    def create_evidence(self, evidence_data: Dict[str, Any]) -> QueryResult:
        return self._first("create_evidence", self.supabase.table("evidence").insert(evidence_data), "Evidence")

    def update_evidence(self, evidence_id: str, updates: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("evidence").update(updates).eq("id", evidence_id)
        return self._first("update_evidence", query, "Evidence")

    def delete_evidence(self, evidence_id: str) -> QueryResult:
        query = self.supabase.table("evidence").delete().eq("id", evidence_id)
        return self._first("delete_evidence", query, "Evidence")

    def get_total_evidence_size(self, inspection_id: str) -> QueryResult:
        query = self.supabase.table("evidence").select("file_size").eq("inspection_id", inspection_id)
        result = self._execute("get_total_evidence_size", query)
        if result.error:
            return result
        return QueryResult(data=sum(e.get("file_size") or 0 for e in result.data))

    # ===== approvals =====

    def create_approval(self, approval_data: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("approvals").insert({
            **approval_data,
            "review_date": utc_now(),
            "is_escalated": approval_data.get("is_escalated", False),
        })
        return self._first("create_approval", query, "Approval")

    def delete_approval(self, approval_id: str) -> QueryResult:
        query = self.supabase.table("approvals").delete().eq("id", approval_id)
        return self._first("delete_approval", query, "Approval")

    def list_approvals(self, inspection_id: str) -> QueryResult:
        query = self.supabase.table("approvals")\
            .select("*")\
            .eq("inspection_id", inspection_id)\
            .order("created_at", desc=True)
        return self._execute("list_approvals", query)

    def count_approvals(self, decision: str) -> QueryResult:
        result = self._execute(
            "count_approvals",
            self.supabase.table("approvals").select("id", count="exact").eq("decision", decision)
        )
        if result.error:
            return result
        return QueryResult(data=result.count if result.count is not None else len(result.data))

    # ===== escalations =====

    def get_active_escalation(self, inspection_id: str) -> QueryResult:
        query = self.supabase.table("escalation_queue")\
            .select("*")\
            .eq("inspection_id", inspection_id)\
            .in_("status", ["QUEUED", "NOTIFIED"])\
            .order("created_at", desc=True)\
            .limit(1)
        return self._first("get_active_escalation", query, "Escalation")

    def list_escalations(
        self,
        inspection_ids: Optional[List[str]] = None,
        escalated_to: Optional[str] = None,
        statuses: Optional[List[str]] = None
    ) -> QueryResult:
        query = self.supabase.table("escalation_queue").select("*")
        if inspection_ids is not None:
            if not inspection_ids:
                return QueryResult(data=[])
            query = query.in_("inspection_id", inspection_ids)
        if escalated_to:
            query = query.eq("escalated_to", escalated_to)
        if statuses:
            query = query.in_("status", statuses)
        return self._execute("list_escalations", query.order("created_at"))

    def get_escalation(self, escalation_id: str) -> QueryResult:
        query = self.supabase.table("escalation_queue").select("*").eq("id", escalation_id)
        return self._first("get_escalation", query, "Escalation")

    def create_escalation(self, escalation_data: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("escalation_queue").insert({
            **escalation_data,
            "status": "QUEUED",
            "priority_level": escalation_data.get("priority_level") or "MEDIUM",
            "notification_count": 0,
        })
        return self._first("create_escalation", query, "Escalation")

    def update_escalation(self, escalation_id: str, updates: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("escalation_queue")\
            .update({**updates, "updated_at": utc_now()})\
            .eq("id", escalation_id)
        return self._first("update_escalation", query, "Escalation")

    def delete_escalation(self, escalation_id: str) -> QueryResult:
        query = self.supabase.table("escalation_queue").delete().eq("id", escalation_id)
        return self._first("delete_escalation", query, "Escalation")

    # ===== notifications =====

    def create_notification(self, notification_data: Dict[str, Any]) -> QueryResult:
        query = self.supabase.table("notifications").insert({
            **notification_data,
            "priority": notification_data.get("priority") or "MEDIUM",
            "is_read": False,
        })
        return self._first("create_notification", query, "Notification")

    def list_notifications(
        self,
        user_id: str,
        offset: int = 0,
        limit: int = 20,
        unread_only: bool = False,
        notification_type: Optional[str] = None
    ) -> QueryResult:
        query = self.supabase.table("notifications").select("*", count="exact").eq("user_id", user_id)
        if unread_only:
            query = query.eq("is_read", False)
        if notification_type:
            query = query.eq("type", notification_type)
        query = query.order("created_at", desc=True)
        return self._paged("list_notifications", query, offset, limit)

    def get_notification(self, notification_id: str) -> QueryResult:
        query = self.supabase.table("notifications").select("*").eq("id", notification_id)
        return self._first("get_notification", query, "Notification")

    def mark_notification_read(self, notification_id: str) -> QueryResult:
        query = self.supabase.table("notifications")\
            .update({"is_read": True, "updated_at": utc_now()})\
            .eq("id", notification_id)
        return self._first("mark_notification_read", query, "Notification")

    # ===== audit =====

    def insert_audit_log(self, entry: Dict[str, Any]) -> QueryResult:
        return self._execute("insert_audit_log", self.supabase.table("audit_logs").insert(entry))

    def list_audit_logs(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        offset: int = 0,
        limit: int = 50
    ) -> QueryResult:
        query = self.supabase.table("audit_logs").select("*", count="exact")
        if entity_type:
            query = query.eq("entity_type", entity_type)
        if entity_id:
            query = query.eq("entity_id", entity_id)
        if action:
            query = query.eq("action", action)
        query = query.order("created_at", desc=True)
        return self._paged("list_audit_logs", query, offset, limit)

    # ===== aggregates =====

    def count_projects(self, status: Optional[str] = None) -> QueryResult:
        query = self.supabase.table("projects").select("id", count="exact")
        if status:
            query = query.eq("status", status)
        result = self._execute("count_projects", query)
        if result.error:
            return result
        return QueryResult(data=result.count if result.count is not None else len(result.data))

    def count_escalations(self, statuses: Optional[List[str]] = None) -> QueryResult:
        query = self.supabase.table("escalation_queue").select("id", count="exact")
        if statuses:
            query = query.in_("status", statuses)
        result = self._execute("count_escalations", query)
        if result.error:
            return result
        return QueryResult(data=result.count if result.count is not None else len(result.data))


def get_database(supabase: Client = Depends(get_supabase)) -> SupabaseDatabase:
    return SupabaseDatabase(supabase)
