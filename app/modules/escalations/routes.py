from fastapi import APIRouter, BackgroundTasks, Depends, Request
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.escalations.schemas import (
    EscalationCreate, EscalationStatusUpdate, EscalationResponse
)
from app.modules.escalations.service import EscalationService
from typing import Dict, Optional

router = APIRouter(prefix="/escalations", tags=["escalations"])


def get_escalation_service(db: SupabaseDatabase = Depends(get_database)) -> EscalationService:
    return EscalationService(db)


@router.get("")
async def list_escalations(
    inspection_id: Optional[str] = None,
    manager_id: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: EscalationService = Depends(get_escalation_service)
):
    """Active escalation for an inspection, or the escalation queue of a manager (default: caller)"""
    if inspection_id:
        return {"escalation": service.get_active(inspection_id)}
    escalations = service.queue_for_manager(manager_id or user_data["id"])
    return {"escalations": escalations, "count": len(escalations)}


@router.post("", response_model=EscalationResponse, status_code=201)
async def create_escalation(
    escalation_data: EscalationCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: EscalationService = Depends(get_escalation_service),
    audit: AuditService = Depends(get_audit_service)
):
    escalation = service.create_escalation(escalation_data, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "ESCALATION", escalation["id"], "CREATED", user_data["id"],
        {**request_metadata(request), **escalation_data.model_dump(mode="json")}
    )
    return escalation


@router.get("/{escalation_id}", response_model=EscalationResponse)
async def get_escalation(
    escalation_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EscalationService = Depends(get_escalation_service)
):
    return service.get_escalation(escalation_id)


@router.patch("/{escalation_id}", response_model=EscalationResponse)
async def update_escalation_status(
    escalation_id: str,
    status_data: EscalationStatusUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.EXECUTIVE, Role.PROJECT_MANAGER)),
    service: EscalationService = Depends(get_escalation_service),
    audit: AuditService = Depends(get_audit_service)
):
    escalation = service.update_status(escalation_id, status_data.status)
    background_tasks.add_task(
        audit.log_event, "ESCALATION", escalation_id, "UPDATED", user_data["id"],
        {**request_metadata(request), "status": status_data.status.value}
    )
    return escalation
