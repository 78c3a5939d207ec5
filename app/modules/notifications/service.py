from typing import Any, Dict, Iterable, Optional
from fastapi import HTTPException
import asyncio
import logging

from app.core.errors import raise_for_result, validation_error
from app.core.pagination import clamp_page, page_meta
from app.database.repository import SupabaseDatabase

logger = logging.getLogger(__name__)

MAX_NOTIFICATION_PAGE_SIZE = 100
MARK_ALL_BATCH = 1000


class NotificationService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db

    def notify(
        self,
        user_ids: Iterable[str],
        notification_type: str,
        title: str,
        message: str,
        related_entity_type: str,
        related_entity_id: str,
        priority: str = "MEDIUM"
    ) -> int:
        """Best-effort fan-out used by workflow actions. Returns how many were created."""
        created = 0
        for user_id in dict.fromkeys(user_ids):
            result = self.db.create_notification({
                "user_id": user_id,
                "type": notification_type,
                "title": title[:100],
                "message": message[:500],
                "related_entity_type": related_entity_type,
                "related_entity_id": related_entity_id,
                "priority": priority,
            })
            if result.error:
                logger.warning(f"Notification to {user_id} failed: {result.error.message}")
            else:
                created += 1
        return created

    def list_notifications(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 50,
        unread_only: bool = False,
        notification_type: Optional[str] = None
    ) -> Dict[str, Any]:
        page, limit, offset = clamp_page(page, limit, MAX_NOTIFICATION_PAGE_SIZE)
        result = self.db.list_notifications(
            user_id,
            offset=offset,
            limit=limit,
            unread_only=unread_only,
            notification_type=notification_type.upper() if notification_type else None
        )
        notifications = raise_for_result(result, failure="Failed to fetch notifications")
        unread = self.db.list_notifications(user_id, offset=0, limit=1, unread_only=True)
        return {
            "notifications": notifications,
            "unread_count": (unread.count or 0) if unread.ok else 0,
            "pagination": page_meta(page, limit, result.count or 0),
        }

    def _payload(self, notification_data) -> Dict[str, Any]:
        return {
            "type": notification_data.type.value,
            "title": notification_data.title,
            "message": notification_data.message,
            "related_entity_type": notification_data.related_entity_type.value,
            "related_entity_id": notification_data.related_entity_id,
            "priority": notification_data.priority.value,
        }

    def create_notification(self, notification_data) -> Dict[str, Any]:
        recipient = self.db.get_profile(notification_data.user_id)
        if recipient.error:
            if recipient.error.is_not_found:
                raise validation_error("user_id", "User not found")
            raise_for_result(recipient, failure="Failed to create notification")
        return raise_for_result(
            self.db.create_notification({"user_id": notification_data.user_id, **self._payload(notification_data)}),
            failure="Failed to create notification"
        )

    def create_bulk(self, bulk_data) -> Dict[str, Any]:
        """One notification per recipient; failures are counted, not raised."""
        payload = self._payload(bulk_data)
        created = failed = 0
        for user_id in dict.fromkeys(bulk_data.user_ids):
            result = self.db.create_notification({"user_id": user_id, **payload})
            if result.error:
                logger.warning(f"Bulk notification to {user_id} failed: {result.error.message}")
                failed += 1
            else:
                created += 1
        return {"success": failed == 0, "created": created, "failed": failed}

    def mark_read(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        notification = raise_for_result(
            self.db.get_notification(notification_id),
            not_found="Notification not found"
        )
        if notification["user_id"] != user_id:
            raise HTTPException(status_code=403, detail="Not authorized to update this notification")
        return raise_for_result(
            self.db.mark_notification_read(notification_id),
            not_found="Notification not found",
            failure="Failed to mark notification as read"
        )

    async def mark_all_read(self, user_id: str) -> Dict[str, Any]:
        """Mark every unread notification read; each update succeeds or fails on its own."""
        unread = raise_for_result(
            self.db.list_notifications(user_id, offset=0, limit=MARK_ALL_BATCH, unread_only=True),
            failure="Failed to fetch notifications"
        )
        results = await asyncio.gather(
            *(asyncio.to_thread(self.db.mark_notification_read, n["id"]) for n in unread),
            return_exceptions=True
        )
        failed = 0
        for notification, result in zip(unread, results):
            if isinstance(result, BaseException) or result.error:
                reason = result if isinstance(result, BaseException) else result.error.message
                logger.warning(f"Failed to mark notification {notification['id']} read: {reason}")
                failed += 1
        return {"success": True, "markedAsRead": len(unread) - failed, "failed": failed}
