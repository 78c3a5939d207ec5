from fastapi import APIRouter, Depends, Query
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.notifications.schemas import (
    NotificationCreate, BulkNotificationCreate, NotificationResponse,
    NotificationListResponse, BulkResultResponse, MarkAllReadResponse
)
from app.modules.notifications.service import NotificationService
from typing import Dict, Optional

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(db: SupabaseDatabase = Depends(get_database)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
    unread_only: bool = False,
    type: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Notifications for the current user, newest first"""
    return service.list_notifications(
        user_data["id"], page=page, limit=limit, unread_only=unread_only, notification_type=type
    )


@router.post("", response_model=NotificationResponse, status_code=201)
async def create_notification(
    notification_data: NotificationCreate,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: NotificationService = Depends(get_notification_service)
):
    return service.create_notification(notification_data)


@router.post("/bulk", response_model=BulkResultResponse, status_code=201)
async def create_bulk_notifications(
    bulk_data: BulkNotificationCreate,
    user_data: Dict = Depends(require_role(Role.PROJECT_MANAGER)),
    service: NotificationService = Depends(get_notification_service)
):
    return service.create_bulk(bulk_data)


@router.patch("/mark-all-read", response_model=MarkAllReadResponse)
async def mark_all_read(
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return await service.mark_all_read(user_data["id"])


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(notification_id, user_data["id"])
