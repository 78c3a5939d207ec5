from fastapi import Request
from typing import Any, Dict, Optional
import logging

from app.core.errors import raise_for_result
from app.core.pagination import clamp_page, page_meta
from app.database.repository import SupabaseDatabase, utc_now

logger = logging.getLogger(__name__)

MAX_AUDIT_PAGE_SIZE = 100


def request_metadata(request: Optional[Request]) -> Dict[str, Any]:
    """Client ip, user agent and timestamp attached to every audit entry."""
    metadata: Dict[str, Any] = {"timestamp": utc_now()}
    if request is None:
        return metadata
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        metadata["ip_address"] = forwarded.split(",")[0].strip()
    elif request.client:
        metadata["ip_address"] = request.client.host
    metadata["user_agent"] = request.headers.get("user-agent")
    return metadata


class AuditService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db

    def log_event(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Append an audit entry. Failures are logged and never propagate."""
        try:
            result = self.db.insert_audit_log({
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "user_id": user_id,
                "metadata": metadata or {},
            })
            if result.error:
                logger.warning(f"Audit log failed for {entity_type}:{entity_id} {action}: {result.error.message}")
        except Exception as e:
            logger.warning(f"Audit log failed for {entity_type}:{entity_id} {action}: {e}")

    def list_logs(
        self,
        page: int = 1,
        limit: int = 50,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None
    ) -> Dict[str, Any]:
        page, limit, offset = clamp_page(page, limit, MAX_AUDIT_PAGE_SIZE)
        result = self.db.list_audit_logs(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            offset=offset,
            limit=limit
        )
        logs = raise_for_result(result, failure="Failed to fetch audit logs")
        return {"logs": logs, "pagination": page_meta(page, limit, result.count or 0)}
