from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.inspections.routes import get_inspection_service
from app.modules.inspections.schemas import InspectionListResponse
from app.modules.inspections.service import InspectionService
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectDetailResponse,
    ProjectListResponse, ProjectMemberAdd, ProjectMemberResponse,
    ProjectDashboardResponse
)
from app.modules.projects.service import ProjectService
from typing import Dict, List, Optional

router = APIRouter(prefix="/projects", tags=["projects"])


def get_project_service(db: SupabaseDatabase = Depends(get_database)) -> ProjectService:
    return ProjectService(db)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    status: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    """List projects visible to the current user"""
    return service.list_projects(user_data, page=page, limit=limit, status=status)


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ProjectService = Depends(get_project_service),
    audit: AuditService = Depends(get_audit_service)
):
    project = service.create_project(project_data, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "PROJECT", project["id"], "CREATED", user_data["id"],
        {**request_metadata(request), "name": project["name"], "team_member_ids": project_data.team_member_ids}
    )
    return project


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    return service.get_project_detail(project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ProjectService = Depends(get_project_service),
    audit: AuditService = Depends(get_audit_service)
):
    project = service.update_project(project_id, project_data)
    background_tasks.add_task(
        audit.log_event, "PROJECT", project_id, "UPDATED", user_data["id"],
        {**request_metadata(request), "changes": project_data.model_dump(mode="json", exclude_none=True)}
    )
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ProjectService = Depends(get_project_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Delete a project (refused while it has inspections)"""
    service.delete_project(project_id)
    background_tasks.add_task(
        audit.log_event, "PROJECT", project_id, "DELETED", user_data["id"], request_metadata(request)
    )
    return Response(status_code=204)


@router.get("/{project_id}/members", response_model=List[ProjectMemberResponse])
async def list_members(
    project_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    service.get_project(project_id)
    return service.list_members(project_id)


@router.post("/{project_id}/members", response_model=ProjectMemberResponse, status_code=201)
async def add_member(
    project_id: str,
    member_data: ProjectMemberAdd,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ProjectService = Depends(get_project_service),
    audit: AuditService = Depends(get_audit_service)
):
    member = service.add_member(project_id, member_data)
    background_tasks.add_task(
        audit.log_event, "PROJECT_MEMBER", project_id, "ADDED", user_data["id"],
        {**request_metadata(request), "added_user_id": member_data.user_id, "role": member_data.role.value}
    )
    return member


@router.delete("/{project_id}/members/{user_id}", status_code=204)
async def remove_member(
    project_id: str,
    user_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ProjectService = Depends(get_project_service),
    audit: AuditService = Depends(get_audit_service)
):
    service.remove_member(project_id, user_id)
    background_tasks.add_task(
        audit.log_event, "PROJECT_MEMBER", project_id, "REMOVED", user_data["id"],
        {**request_metadata(request), "removed_user_id": user_id}
    )
    return Response(status_code=204)


@router.get("/{project_id}/inspections", response_model=InspectionListResponse)
async def list_project_inspections(
    project_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    status: Optional[str] = None,
    assigned_to: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service),
    service: InspectionService = Depends(get_inspection_service)
):
    """Inspections of a project; status accepts a comma-separated list"""
    project_service.get_project(project_id)
    return service.list_inspections(
        user_data, project_id=project_id, status=status, assigned_to=assigned_to, page=page, limit=limit
    )


@router.get("/{project_id}/dashboard", response_model=ProjectDashboardResponse)
async def project_dashboard(
    project_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service)
):
    return await service.get_dashboard(project_id)
