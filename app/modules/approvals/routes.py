from fastapi import APIRouter, BackgroundTasks, Depends, Request
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.approvals.schemas import (
    ApprovalCreate, ApproveRequest, RejectRequest, ApprovalResponse, DecisionResponse
)
from app.modules.approvals.service import ApprovalService
from typing import Dict, List

router = APIRouter(prefix="/approvals", tags=["approvals"])
inspection_router = APIRouter(prefix="/inspections", tags=["approvals"])


def get_approval_service(db: SupabaseDatabase = Depends(get_database)) -> ApprovalService:
    return ApprovalService(db)


@router.get("", response_model=List[ApprovalResponse])
async def list_approvals(
    inspection_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service)
):
    """Decision history of an inspection, newest first"""
    return service.list_approvals(inspection_id, user_data)


@router.post("", response_model=DecisionResponse, status_code=201)
async def create_approval(
    approval_data: ApprovalCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ApprovalService = Depends(get_approval_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Record an approve/reject decision for an inspection under review"""
    result = service.decide(approval_data.inspection_id, approval_data.decision, approval_data, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "INSPECTION", approval_data.inspection_id, approval_data.decision.value, user_data["id"],
        {
            **request_metadata(request),
            "approval_id": result["approval"]["id"],
            "escalation_id": result["escalation"]["id"] if result["escalation"] else None,
        }
    )
    return result


@inspection_router.get("/{inspection_id}/approvals", response_model=List[ApprovalResponse])
async def list_inspection_approvals(
    inspection_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service)
):
    return service.list_approvals(inspection_id, user_data)


@inspection_router.post("/{inspection_id}/approve", response_model=DecisionResponse)
async def approve_inspection(
    inspection_id: str,
    approval: ApproveRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ApprovalService = Depends(get_approval_service),
    audit: AuditService = Depends(get_audit_service)
):
    result = service.approve(inspection_id, approval.notes, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "APPROVED", user_data["id"],
        {**request_metadata(request), "approval_id": result["approval"]["id"], "notes": approval.notes}
    )
    return result


@inspection_router.post("/{inspection_id}/reject", response_model=DecisionResponse)
async def reject_inspection(
    inspection_id: str,
    rejection: RejectRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: ApprovalService = Depends(get_approval_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Reject an inspection under review; set escalate=true once the rejection limit is reached"""
    result = service.reject(inspection_id, rejection, user_data["id"])
    background_tasks.add_task(
        audit.log_event, "INSPECTION", inspection_id, "REJECTED", user_data["id"],
        {
            **request_metadata(request),
            "approval_id": result["approval"]["id"],
            "rejection_count": result["inspection"].get("rejection_count"),
            "escalation_id": result["escalation"]["id"] if result["escalation"] else None,
        }
    )
    return result
