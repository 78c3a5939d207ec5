"""
NotificationService: ownership, bulk creation and mark-all-read counting.
"""

import pytest
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError

from app.modules.notifications.schemas import BulkNotificationCreate, NotificationCreate
from app.modules.notifications.service import NotificationService

from factories import failed, not_found, ok


def _notification(id="n1", user_id="inspector-1", **overrides):
    row = {
        "id": id,
        "user_id": user_id,
        "type": "STATUS_CHANGE",
        "title": "Updated",
        "message": "Inspection updated",
        "related_entity_type": "INSPECTION",
        "related_entity_id": "insp-1",
        "priority": "MEDIUM",
        "is_read": False,
    }
    row.update(overrides)
    return row


class TestMarkRead:
    def test_owner_marks_read(self, mock_db):
        mock_db.get_notification.return_value = ok(_notification())
        mock_db.mark_notification_read.return_value = ok(_notification(is_read=True))

        result = NotificationService(mock_db).mark_read("n1", "inspector-1")

        assert result["is_read"] is True

    def test_other_users_get_403(self, mock_db):
        mock_db.get_notification.return_value = ok(_notification(user_id="someone-else"))
        with pytest.raises(HTTPException) as exc:
            NotificationService(mock_db).mark_read("n1", "inspector-1")
        assert exc.value.status_code == 403
        mock_db.mark_notification_read.assert_not_called()

    def test_missing_is_404(self, mock_db):
        mock_db.get_notification.return_value = not_found("Notification")
        with pytest.raises(HTTPException) as exc:
            NotificationService(mock_db).mark_read("n1", "inspector-1")
        assert exc.value.status_code == 404


class TestMarkAllRead:
    @pytest.mark.asyncio
    async def test_all_succeed(self, mock_db):
        mock_db.list_notifications.return_value = ok([_notification(id=f"n{i}") for i in range(3)])
        mock_db.mark_notification_read.return_value = ok(_notification(is_read=True))

        result = await NotificationService(mock_db).mark_all_read("inspector-1")

        assert result == {"success": True, "markedAsRead": 3, "failed": 0}
        assert mock_db.mark_notification_read.call_count == 3

    @pytest.mark.asyncio
    async def test_partial_failures_are_counted(self, mock_db):
        mock_db.list_notifications.return_value = ok([_notification(id=f"n{i}") for i in range(3)])
        mock_db.mark_notification_read.side_effect = [
            ok(_notification(id="n0", is_read=True)),
            failed(),
            RuntimeError("socket closed"),
        ]

        result = await NotificationService(mock_db).mark_all_read("inspector-1")

        assert result == {"success": True, "markedAsRead": 1, "failed": 2}

    @pytest.mark.asyncio
    async def test_nothing_unread(self, mock_db):
        mock_db.list_notifications.return_value = ok([])
        result = await NotificationService(mock_db).mark_all_read("inspector-1")
        assert result == {"success": True, "markedAsRead": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_listing_failure_is_500(self, mock_db):
        mock_db.list_notifications.return_value = failed()
        with pytest.raises(HTTPException) as exc:
            await NotificationService(mock_db).mark_all_read("inspector-1")
        assert exc.value.status_code == 500


class TestCreate:
    def _fields(self):
        return {
            "type": "ASSIGNMENT",
            "title": "New work",
            "message": "You have a new inspection",
            "related_entity_type": "INSPECTION",
            "related_entity_id": "insp-1",
        }

    def test_unknown_recipient_is_400(self, mock_db):
        mock_db.get_profile.return_value = not_found("Profile")
        with pytest.raises(RequestValidationError):
            NotificationService(mock_db).create_notification(NotificationCreate(user_id="ghost", **self._fields()))

    def test_bulk_counts_successes_and_failures(self, mock_db):
        mock_db.create_notification.side_effect = [ok(_notification()), failed(), ok(_notification())]

        result = NotificationService(mock_db).create_bulk(
            BulkNotificationCreate(user_ids=["u1", "u2", "u3", "u1"], **self._fields())
        )

        assert result == {"success": False, "created": 2, "failed": 1}
        assert mock_db.create_notification.call_count == 3

    def test_list_reports_unread_count(self, mock_db):
        mock_db.list_notifications.side_effect = [
            ok([_notification()], count=12),
            ok([_notification()], count=4),
        ]

        result = NotificationService(mock_db).list_notifications("inspector-1", page=1, limit=10)

        assert result["unread_count"] == 4
        assert result["pagination"] == {"page": 1, "limit": 10, "total": 12, "total_pages": 2, "has_next": True, "has_prev": False}

    def test_notify_is_best_effort(self, mock_db):
        mock_db.create_notification.side_effect = [failed(), ok(_notification())]
        created = NotificationService(mock_db).notify(["u1", "u2"], "ESCALATION", "t", "m", "ESCALATION", "esc-1")
        assert created == 1
