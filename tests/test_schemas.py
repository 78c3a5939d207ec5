"""
Request model validation: field ranges, cross-field rules and normalisation.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from app.config.settings import settings
from app.modules.approvals.schemas import ApprovalCreate, Decision, RejectRequest, RejectionEscalationCheck
from app.modules.auth.schemas import RegisterRequest
from app.modules.checklists.schemas import ChecklistCreate, ChecklistQuestion, QuestionValidation
from app.modules.escalations.schemas import EscalationCreate, EscalationPriority
from app.modules.evidence.schemas import Annotation, EvidenceUpload
from app.modules.inspections.schemas import InspectionCreate, Priority
from app.modules.inspections.state_machine import ESCALATION_REQUIRED
from app.modules.notifications.schemas import NotificationCreate, NotificationType
from app.modules.projects.schemas import Location, ProjectCreate, ProjectUpdate
from app.modules.reports.schemas import DateRange


class TestProjectSchemas:
    def test_end_date_must_follow_start(self):
        with pytest.raises(ValidationError) as exc:
            ProjectCreate(name="Solar A", start_date=date(2026, 3, 1), end_date=date(2026, 3, 1))
        assert "End date must be after start date" in str(exc.value)

    def test_valid_dates(self):
        project = ProjectCreate(name="Solar A", start_date=date(2026, 3, 1), end_date=date(2026, 3, 2))
        assert project.team_member_ids == []

    def test_update_checks_date_order_when_both_given(self):
        with pytest.raises(ValidationError):
            ProjectUpdate(start_date=date(2026, 5, 1), end_date=date(2026, 4, 1))

    def test_name_length(self):
        with pytest.raises(ValidationError):
            ProjectCreate(name="", start_date=date(2026, 1, 1))
        with pytest.raises(ValidationError):
            ProjectCreate(name="x" * 101, start_date=date(2026, 1, 1))

    def test_team_size_limit(self):
        with pytest.raises(ValidationError):
            ProjectCreate(
                name="Big", start_date=date(2026, 1, 1),
                team_member_ids=[f"u{i}" for i in range(settings.max_team_members + 1)]
            )

    def test_location_ranges(self):
        with pytest.raises(ValidationError):
            Location(latitude=91, longitude=0)
        with pytest.raises(ValidationError):
            Location(latitude=0, longitude=-181)


class TestChecklistSchemas:
    def test_requires_a_question(self):
        with pytest.raises(ValidationError):
            ChecklistCreate(project_id="proj-1", name="Empty", questions=[])

    def test_question_ids_generated_and_unique(self):
        checklist = ChecklistCreate(
            project_id="proj-1", name="Blades",
            questions=[{"type": "text", "question": "A"}, {"type": "text", "question": "B"}]
        )
        assert checklist.questions[0].id != checklist.questions[1].id

    def test_duplicate_question_ids_rejected(self):
        with pytest.raises(ValidationError):
            ChecklistCreate(
                project_id="proj-1", name="Dup",
                questions=[{"id": "q1", "type": "text", "question": "A"}, {"id": "q1", "type": "text", "question": "B"}]
            )

    def test_select_needs_options(self):
        with pytest.raises(ValidationError):
            ChecklistQuestion(type="select", question="Pick one")
        assert ChecklistQuestion(type="select", question="Pick one", options=["a"]).options == ["a"]

    def test_min_not_above_max(self):
        with pytest.raises(ValidationError):
            QuestionValidation(min=10, max=1)


class TestInspectionSchemas:
    def test_priority_is_case_insensitive(self):
        inspection = InspectionCreate(project_id="p", checklist_id="c", title="T", priority="high")
        assert inspection.priority == Priority.HIGH

    def test_title_required(self):
        with pytest.raises(ValidationError):
            InspectionCreate(project_id="p", checklist_id="c", title="")


class TestApprovalSchemas:
    def test_escalation_needs_reason(self):
        with pytest.raises(ValidationError) as exc:
            RejectRequest(notes="Bad weld", escalate=True)
        assert "Escalation reason is required" in str(exc.value)

    def test_escalation_defaults_to_high_priority(self):
        rejection = RejectRequest(notes="Bad weld", escalate=True, escalation_reason="Third failure")
        assert rejection.priority_level == EscalationPriority.HIGH

    def test_notes_required(self):
        with pytest.raises(ValidationError):
            RejectRequest(notes="")

    def test_decision_normalised(self):
        approval = ApprovalCreate(inspection_id="insp-1", decision="approved", notes="ok")
        assert approval.decision == Decision.APPROVED

    def test_plain_rejection_refused_at_threshold(self):
        with pytest.raises(ValidationError) as exc:
            RejectionEscalationCheck(current_rejection_count=settings.max_rejections, decision=Decision.REJECTED)
        assert ESCALATION_REQUIRED in str(exc.value)

    def test_rejection_below_threshold_and_approval_at_threshold_pass(self):
        RejectionEscalationCheck(current_rejection_count=settings.max_rejections - 1, decision=Decision.REJECTED)
        RejectionEscalationCheck(current_rejection_count=settings.max_rejections, decision=Decision.APPROVED)


class TestEvidenceSchemas:
    def _upload(self, **overrides):
        fields = {
            "inspection_id": "insp-1",
            "filename": "blade.jpg",
            "mime_type": "image/jpeg",
            "file_size": 1024,
        }
        fields.update(overrides)
        return EvidenceUpload(**fields)

    def test_accepts_images_and_video(self):
        assert self._upload(mime_type="IMAGE/PNG").mime_type == "image/png"
        assert self._upload(mime_type="video/quicktime").mime_type == "video/quicktime"

    def test_rejects_other_types(self):
        with pytest.raises(ValidationError) as exc:
            self._upload(mime_type="application/pdf")
        assert "Unsupported file type" in str(exc.value)

    def test_file_size_limits(self):
        self._upload(file_size=settings.max_evidence_file_size)
        with pytest.raises(ValidationError):
            self._upload(file_size=settings.max_evidence_file_size + 1)
        with pytest.raises(ValidationError):
            self._upload(file_size=0)

    def test_coordinates_in_range(self):
        with pytest.raises(ValidationError):
            self._upload(latitude=-91)

    def test_annotation_position_normalised(self):
        with pytest.raises(ValidationError):
            Annotation(x=1.5, y=0.5, text="crack")


class TestOtherSchemas:
    def test_escalation_priority_normalised(self):
        escalation = EscalationCreate(inspection_id="insp-1", escalation_reason="Stuck", priority_level="urgent")
        assert escalation.priority_level == EscalationPriority.URGENT

    def test_notification_type_accepts_kebab_case(self):
        notification = NotificationCreate(
            user_id="u1", type="status-change", title="t", message="m",
            related_entity_type="inspection", related_entity_id="insp-1"
        )
        assert notification.type == NotificationType.STATUS_CHANGE

    def test_register_password_length(self):
        with pytest.raises(ValidationError):
            RegisterRequest(email="a@example.com", password="short", name="A")

    def test_report_date_range_order(self):
        with pytest.raises(ValidationError):
            DateRange(start="2026-02-01T00:00:00", end="2026-01-01T00:00:00")
