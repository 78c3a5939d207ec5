from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.inspections.schemas import (
    InspectionCreate, InspectionUpdate, InspectionComplete, InspectionResponse,
    InspectionDetailResponse, InspectionListResponse, SubmissionCheckResponse,
    StatusChangeResponse
)
from app.modules.inspections.service import InspectionService
from typing import Dict, Optional

router = APIRouter(prefix="/inspections", tags=["inspections"])


def get_inspection_service(db: SupabaseDatabase = Depends(get_database)) -> InspectionService:
    return InspectionService(db)


@router.get("", response_model=InspectionListResponse)
async def list_inspections(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    assigned_to: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: InspectionService = Depends(get_inspection_service)
):
    """List inspections; inspectors only see their own"""
    return service.list_inspections(
        user_data, project_id=project_id, status=status, assigned_to=assigned_to, page=page, limit=limit
    )


@router.post("", response_model=InspectionResponse, status_code=201)
async def create_inspection(
    inspection_data: InspectionCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: InspectionService = Depends(get_inspection_service),
    audit: AuditService = Depends(get_audit_service)
):
    inspection = service.create_inspection(inspection_data, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection["id"], "CREATED", user_data["id"],
        {
            **request_metadata(request),
            "title": inspection["title"],
            "project_id": inspection["project_id"],
            "priority": inspection.get("priority"),
        }
    )
    return inspection


@router.get("/{inspection_id}", response_model=InspectionDetailResponse)
async def get_inspection(
    inspection_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InspectionService = Depends(get_inspection_service)
):
    return service.get_inspection_detail(inspection_id, user_data)


@router.put("/{inspection_id}", response_model=InspectionResponse)
async def update_inspection(
    inspection_id: str,
    inspection_data: InspectionUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: InspectionService = Depends(get_inspection_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Update an inspection (assignee while editable, or a project manager)"""
    inspection = service.update_inspection(inspection_id, inspection_data, user_data)
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "UPDATED", user_data["id"],
        {**request_metadata(request), "fields": sorted(inspection_data.model_dump(exclude_none=True))}
    )
    return inspection


@router.delete("/{inspection_id}", status_code=204)
async def delete_inspection(
    inspection_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: InspectionService = Depends(get_inspection_service),
    audit: AuditService = Depends(get_audit_service)
):
    service.delete_inspection(inspection_id)
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "DELETED", user_data["id"], request_metadata(request)
    )
    return Response(status_code=204)


@router.get("/{inspection_id}/submit", response_model=SubmissionCheckResponse)
async def check_submission(
    inspection_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InspectionService = Depends(get_inspection_service)
):
    """Whether the inspection can be submitted, with progress and blocking reasons"""
    return service.check_submission(inspection_id, user_data)


@router.post("/{inspection_id}/submit", response_model=StatusChangeResponse)
async def submit_inspection(
    inspection_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: InspectionService = Depends(get_inspection_service),
    audit: AuditService = Depends(get_audit_service)
):
    inspection = service.submit(inspection_id, user_data)
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "SUBMITTED", user_data["id"],
        {**request_metadata(request), "to_status": inspection["status"]}
    )
    return {"inspection": inspection, "message": "Inspection submitted successfully"}


@router.post("/{inspection_id}/complete", response_model=StatusChangeResponse)
async def complete_inspection(
    inspection_id: str,
    completion: InspectionComplete,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: InspectionService = Depends(get_inspection_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Save checklist responses and submit for review"""
    inspection = service.complete(inspection_id, completion, user_data)
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "COMPLETED", user_data["id"],
        {
            **request_metadata(request),
            "response_count": len(completion.responses),
            "evidence_provided": sum(1 for r in completion.responses if r.evidence_ids),
        }
    )
    return {"inspection": inspection, "message": "Inspection completed successfully"}


@router.post("/{inspection_id}/review", response_model=StatusChangeResponse)
async def start_review(
    inspection_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: InspectionService = Depends(get_inspection_service),
    audit: AuditService = Depends(get_audit_service)
):
    inspection = service.start_review(inspection_id, user_data)
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "REVIEW_STARTED", user_data["id"], request_metadata(request)
    )
    return {"inspection": inspection, "message": "Inspection review started"}
