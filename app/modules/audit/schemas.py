from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional


class AuditLogResponse(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    action: str
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogResponse]
    pagination: PaginationMeta
