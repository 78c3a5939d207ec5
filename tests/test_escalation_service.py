"""
EscalationService: targets, queue ordering and the status lifecycle.
"""

import pytest
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError

from app.modules.escalations.schemas import EscalationCreate, EscalationStatus
from app.modules.escalations.service import EscalationService

from factories import escalation_row, failed, inspection_row, not_found, ok


class TestGetActive:
    def test_none_when_no_active_escalation(self, mock_db):
        mock_db.get_active_escalation.return_value = not_found("Escalation")
        assert EscalationService(mock_db).get_active("insp-1") is None

    def test_database_failure_is_500(self, mock_db):
        mock_db.get_active_escalation.return_value = failed()
        with pytest.raises(HTTPException) as exc:
            EscalationService(mock_db).get_active("insp-1")
        assert exc.value.status_code == 500


class TestCreateEscalation:
    def _payload(self, **overrides):
        fields = {"inspection_id": "insp-1", "escalation_reason": "Stuck", "priority_level": "URGENT"}
        fields.update(overrides)
        return EscalationCreate(**fields)

    def test_unaddressed_escalation_notifies_executives(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_active_escalation.return_value = not_found("Escalation")
        mock_db.create_escalation.return_value = ok(escalation_row(priority_level="URGENT"))
        mock_db.list_profiles_by_role.return_value = ok([{"id": "exec-1"}, {"id": "exec-2"}])
        mock_db.create_notification.return_value = ok({"id": "n"})

        EscalationService(mock_db).create_escalation(self._payload(), "manager-1")

        mock_db.list_profiles_by_role.assert_called_once_with("EXECUTIVE")
        recipients = [c.args[0]["user_id"] for c in mock_db.create_notification.call_args_list]
        assert recipients == ["exec-1", "exec-2"]
        assert mock_db.create_notification.call_args.args[0]["priority"] == "HIGH"

    def test_target_must_be_executive_or_manager(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_profile.return_value = ok({"id": "inspector-2", "role": "INSPECTOR", "is_active": True})
        with pytest.raises(RequestValidationError) as exc:
            EscalationService(mock_db).create_escalation(self._payload(escalated_to="inspector-2"), "manager-1")
        assert exc.value.errors()[0]["loc"] == ("body", "escalated_to")

    def test_inactive_target_refused(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_profile.return_value = ok({"id": "exec-9", "role": "EXECUTIVE", "is_active": False})
        with pytest.raises(RequestValidationError):
            EscalationService(mock_db).create_escalation(self._payload(escalated_to="exec-9"), "manager-1")

    def test_one_active_escalation_per_inspection(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row())
        mock_db.get_active_escalation.return_value = ok(escalation_row())
        with pytest.raises(HTTPException) as exc:
            EscalationService(mock_db).create_escalation(self._payload(), "manager-1")
        assert exc.value.status_code == 400
        mock_db.create_escalation.assert_not_called()

    def test_unknown_inspection_is_400(self, mock_db):
        mock_db.get_inspection.return_value = not_found("Inspection")
        with pytest.raises(RequestValidationError):
            EscalationService(mock_db).create_escalation(self._payload(), "manager-1")


class TestQueue:
    def test_queue_sorted_by_priority_then_age(self, mock_db):
        mock_db.get_member_project_ids.return_value = ok(["proj-1"])
        mock_db.list_inspection_ids.return_value = ok(["insp-1", "insp-2"])
        mock_db.list_escalations.side_effect = [
            ok([
                escalation_row(id="a", priority_level="LOW", created_at="2026-01-01"),
                escalation_row(id="b", priority_level="URGENT", created_at="2026-01-03"),
            ]),
            ok([
                escalation_row(id="c", priority_level="URGENT", created_at="2026-01-02"),
                escalation_row(id="b", priority_level="URGENT", created_at="2026-01-03"),
            ]),
        ]

        queue = EscalationService(mock_db).queue_for_manager("manager-1")

        assert [e["id"] for e in queue] == ["c", "b", "a"]
        mock_db.get_member_project_ids.assert_called_once_with("manager-1", role="PROJECT_MANAGER")


class TestStatusLifecycle:
    def test_notify_increments_count(self, mock_db):
        mock_db.get_escalation.return_value = ok(escalation_row(status="QUEUED", notification_count=1))
        mock_db.update_escalation.return_value = ok(escalation_row(status="NOTIFIED", notification_count=2))

        EscalationService(mock_db).update_status("esc-1", EscalationStatus.NOTIFIED)

        assert mock_db.update_escalation.call_args.args[1] == {"status": "NOTIFIED", "notification_count": 2}

    def test_resolve_sets_resolved_at(self, mock_db):
        mock_db.get_escalation.return_value = ok(escalation_row(status="NOTIFIED"))
        mock_db.update_escalation.return_value = ok(escalation_row(status="RESOLVED"))

        EscalationService(mock_db).update_status("esc-1", EscalationStatus.RESOLVED)

        assert "resolved_at" in mock_db.update_escalation.call_args.args[1]

    @pytest.mark.parametrize("current,target", [
        ("QUEUED", EscalationStatus.RESOLVED),
        ("RESOLVED", EscalationStatus.NOTIFIED),
        ("EXPIRED", EscalationStatus.QUEUED),
    ])
    def test_illegal_moves_refused(self, mock_db, current, target):
        mock_db.get_escalation.return_value = ok(escalation_row(status=current))
        with pytest.raises(HTTPException) as exc:
            EscalationService(mock_db).update_status("esc-1", target)
        assert exc.value.status_code == 400
