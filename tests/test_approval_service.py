"""
ApprovalService: review decisions and the rejection escalation rule.
"""

import pytest
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError

from app.modules.approvals.schemas import Decision, RejectRequest
from app.modules.approvals.service import ApprovalService
from app.modules.inspections.state_machine import ESCALATION_REQUIRED

from factories import approval_row, escalation_row, failed, inspection_row, not_found, ok


class TestApprove:
    def test_approve_in_review(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW"))
        mock_db.create_approval.return_value = ok(approval_row())
        mock_db.update_inspection_status.return_value = ok(inspection_row(status="APPROVED"))

        result = ApprovalService(mock_db).approve("insp-1", "Looks good", "manager-1")

        assert result["inspection"]["status"] == "APPROVED"
        assert result["escalation"] is None
        status_call = mock_db.update_inspection_status.call_args
        assert status_call.args[1] == "APPROVED"
        assert "completed_at" in status_call.args[2]
        assert mock_db.create_notification.call_args.args[0]["type"] == "INSPECTION_APPROVED"

    @pytest.mark.parametrize("status", ["DRAFT", "PENDING", "APPROVED", "REJECTED"])
    def test_requires_in_review(self, mock_db, status):
        mock_db.get_inspection.return_value = ok(inspection_row(status=status))
        with pytest.raises(HTTPException) as exc:
            ApprovalService(mock_db).approve("insp-1", "ok", "manager-1")
        assert exc.value.status_code == 400
        mock_db.create_approval.assert_not_called()

    def test_missing_inspection_is_404(self, mock_db):
        mock_db.get_inspection.return_value = not_found("Inspection")
        with pytest.raises(HTTPException) as exc:
            ApprovalService(mock_db).approve("insp-1", "ok", "manager-1")
        assert exc.value.status_code == 404


class TestReject:
    def test_first_rejection_increments_count(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW", rejection_count=0))
        mock_db.create_approval.return_value = ok(approval_row("REJECTED"))
        mock_db.update_inspection_status.return_value = ok(inspection_row(status="REJECTED", rejection_count=1))

        result = ApprovalService(mock_db).reject("insp-1", RejectRequest(notes="Bolt missing"), "manager-1")

        status_call = mock_db.update_inspection_status.call_args
        assert status_call.args[1] == "REJECTED"
        assert status_call.args[2] == {"rejection_count": 1}
        assert result["escalation"] is None
        notification = mock_db.create_notification.call_args.args[0]
        assert notification["type"] == "INSPECTION_REJECTED"
        assert notification["priority"] == "HIGH"

    def test_plain_rejection_at_threshold_is_refused(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW", rejection_count=2))

        with pytest.raises(RequestValidationError) as exc:
            ApprovalService(mock_db).reject("insp-1", RejectRequest(notes="Still wrong"), "manager-1")

        assert ESCALATION_REQUIRED in exc.value.errors()[0]["msg"]
        mock_db.create_approval.assert_not_called()
        mock_db.update_inspection_status.assert_not_called()

    def test_escalated_rejection_at_threshold(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW", rejection_count=2))
        mock_db.get_active_escalation.return_value = not_found("Escalation")
        mock_db.create_escalation.return_value = ok(escalation_row())
        mock_db.list_profiles_by_role.return_value = ok([{"id": "exec-1"}])
        mock_db.create_approval.return_value = ok(approval_row("REJECTED", is_escalated=True))
        mock_db.update_inspection_status.return_value = ok(inspection_row(status="REJECTED", rejection_count=2))

        rejection = RejectRequest(notes="Third failure", escalate=True, escalation_reason="Contractor keeps failing")
        result = ApprovalService(mock_db).reject("insp-1", rejection, "manager-1")

        assert result["escalation"]["id"] == "esc-1"
        escalation = mock_db.create_escalation.call_args.args[0]
        assert escalation["priority_level"] == "HIGH"
        assert escalation["original_manager_id"] == "manager-1"
        assert mock_db.create_approval.call_args.args[0]["is_escalated"] is True
        assert mock_db.update_inspection_status.call_args.args[2] == {"rejection_count": 2}

    def test_escalation_is_written_before_the_approval(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW", rejection_count=2))
        mock_db.get_active_escalation.return_value = ok(escalation_row())

        rejection = RejectRequest(notes="Third failure", escalate=True, escalation_reason="Again")
        with pytest.raises(HTTPException) as exc:
            ApprovalService(mock_db).reject("insp-1", rejection, "manager-1")

        assert exc.value.detail == "Inspection already has an active escalation"
        mock_db.create_approval.assert_not_called()

    def _escalated_rejection_setup(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW", rejection_count=2))
        mock_db.get_active_escalation.return_value = not_found("Escalation")
        mock_db.create_escalation.return_value = ok(escalation_row())
        mock_db.list_profiles_by_role.return_value = ok([{"id": "exec-1"}])
        return RejectRequest(notes="Third failure", escalate=True, escalation_reason="Contractor keeps failing")

    def test_failed_approval_removes_escalation(self, mock_db):
        rejection = self._escalated_rejection_setup(mock_db)
        mock_db.create_approval.return_value = failed()

        with pytest.raises(HTTPException) as exc:
            ApprovalService(mock_db).reject("insp-1", rejection, "manager-1")

        assert exc.value.status_code == 500
        mock_db.delete_escalation.assert_called_once_with("esc-1")
        mock_db.delete_approval.assert_not_called()
        mock_db.update_inspection_status.assert_not_called()

    def test_failed_status_update_removes_approval_and_escalation(self, mock_db):
        rejection = self._escalated_rejection_setup(mock_db)
        mock_db.create_approval.return_value = ok(approval_row("REJECTED", is_escalated=True))
        mock_db.update_inspection_status.return_value = failed()

        with pytest.raises(HTTPException) as exc:
            ApprovalService(mock_db).reject("insp-1", rejection, "manager-1")

        assert exc.value.status_code == 500
        mock_db.delete_approval.assert_called_once_with("appr-1")
        mock_db.delete_escalation.assert_called_once_with("esc-1")

    def test_retry_after_failed_escalated_rejection(self, mock_db):
        rejection = self._escalated_rejection_setup(mock_db)
        mock_db.create_approval.side_effect = [failed(), ok(approval_row("REJECTED", is_escalated=True))]
        mock_db.update_inspection_status.return_value = ok(inspection_row(status="REJECTED", rejection_count=2))
        # an escalation row stays active until it is deleted
        mock_db.get_active_escalation.side_effect = lambda inspection_id: (
            ok(escalation_row())
            if mock_db.create_escalation.called and not mock_db.delete_escalation.called
            else not_found("Escalation")
        )
        service = ApprovalService(mock_db)

        with pytest.raises(HTTPException):
            service.reject("insp-1", rejection, "manager-1")
        result = service.reject("insp-1", rejection, "manager-1")

        assert result["escalation"]["id"] == "esc-1"
        assert mock_db.create_escalation.call_count == 2

    def test_plain_rejection_failure_has_nothing_to_remove(self, mock_db):
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW", rejection_count=0))
        mock_db.create_approval.return_value = failed()

        with pytest.raises(HTTPException):
            ApprovalService(mock_db).reject("insp-1", RejectRequest(notes="Bolt missing"), "manager-1")

        mock_db.delete_escalation.assert_not_called()
        mock_db.delete_approval.assert_not_called()


class TestDecide:
    def test_dispatches_on_decision(self, mock_db):
        service = ApprovalService(mock_db)
        mock_db.get_inspection.return_value = ok(inspection_row(status="IN_REVIEW"))
        mock_db.create_approval.return_value = ok(approval_row())
        mock_db.update_inspection_status.return_value = ok(inspection_row(status="APPROVED"))

        result = service.decide("insp-1", Decision.APPROVED, RejectRequest(notes="fine"), "manager-1")

        assert result["inspection"]["status"] == "APPROVED"

    def test_list_approvals_checks_visibility(self, mock_db, inspector):
        mock_db.get_inspection.return_value = ok(inspection_row(assigned_to="other"))
        with pytest.raises(HTTPException) as exc:
            ApprovalService(mock_db).list_approvals("insp-1", inspector)
        assert exc.value.status_code == 403
