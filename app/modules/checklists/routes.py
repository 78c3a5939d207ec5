from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.checklists.schemas import ChecklistCreate, ChecklistUpdate, ChecklistResponse
from app.modules.checklists.service import ChecklistService
from typing import Dict, List, Optional

router = APIRouter(prefix="/checklists", tags=["checklists"])


def get_checklist_service(db: SupabaseDatabase = Depends(get_database)) -> ChecklistService:
    return ChecklistService(db)


@router.get("", response_model=List[ChecklistResponse])
async def list_checklists(
    project_id: Optional[str] = None,
    active_only: bool = False,
    user_data: Dict = Depends(get_current_user),
    service: ChecklistService = Depends(get_checklist_service)
):
    return service.list_checklists(project_id=project_id, active_only=active_only)


@router.post("", response_model=ChecklistResponse, status_code=201)
async def create_checklist(
    checklist_data: ChecklistCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ChecklistService = Depends(get_checklist_service),
    audit: AuditService = Depends(get_audit_service)
):
    checklist = service.create_checklist(checklist_data, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "CHECKLIST", checklist["id"], "CREATED", user_data["id"],
        {**request_metadata(request), "name": checklist["name"], "question_count": len(checklist_data.questions)}
    )
    return checklist


@router.get("/{checklist_id}", response_model=ChecklistResponse)
async def get_checklist(
    checklist_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ChecklistService = Depends(get_checklist_service)
):
    return service.get_checklist(checklist_id)


@router.put("/{checklist_id}", response_model=ChecklistResponse)
async def update_checklist(
    checklist_id: str,
    checklist_data: ChecklistUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ChecklistService = Depends(get_checklist_service),
    audit: AuditService = Depends(get_audit_service)
):
    checklist = service.update_checklist(checklist_id, checklist_data)
    background_tasks.add_task(
        audit.log_event, "CHECKLIST", checklist_id, "UPDATED", user_data["id"], request_metadata(request)
    )
    return checklist


@router.delete("/{checklist_id}", status_code=204)
async def delete_checklist(
    checklist_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ChecklistService = Depends(get_checklist_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Delete a checklist (refused while inspections use it)"""
    service.delete_checklist(checklist_id)
    background_tasks.add_task(
        audit.log_event, "CHECKLIST", checklist_id, "DELETED", user_data["id"], request_metadata(request)
    )
    return Response(status_code=204)
