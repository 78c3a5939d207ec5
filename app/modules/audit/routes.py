from fastapi import APIRouter, Depends, Query
from app.config.rbac_config import Role
from app.core.dependencies import require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.schemas import AuditLogListResponse
from app.modules.audit.service import AuditService
from typing import Dict, Optional

router = APIRouter(prefix="/audit", tags=["audit"])


def get_audit_service(db: SupabaseDatabase = Depends(get_database)) -> AuditService:
    return AuditService(db)


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER, Role.EXECUTIVE)),
    service: AuditService = Depends(get_audit_service)
):
    """Audit trail, newest first"""
    return service.list_logs(page=page, limit=limit, entity_type=entity_type, entity_id=entity_id, action=action)
