"""QueryResult and row builders shared by the test modules."""

from app.database.repository import DATABASE_ERROR, NOT_FOUND, QueryError, QueryResult


def ok(data=None, count=None):
    return QueryResult(data=data, count=count)


def not_found(entity="Resource"):
    return QueryResult(error=QueryError(message=f"{entity} not found", code=NOT_FOUND))


def failed(message="connection reset"):
    return QueryResult(error=QueryError(message=message, code=DATABASE_ERROR))


def inspection_row(**overrides):
    row = {
        "id": "insp-1",
        "project_id": "proj-1",
        "checklist_id": "check-1",
        "assigned_to": "inspector-1",
        "title": "Turbine 7 blade check",
        "description": None,
        "status": "DRAFT",
        "priority": "MEDIUM",
        "responses": {},
        "rejection_count": 0,
        "created_at": "2026-01-05T10:00:00+00:00",
        "updated_at": "2026-01-05T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def checklist_row(questions=None, **overrides):
    row = {
        "id": "check-1",
        "project_id": "proj-1",
        "name": "Blade inspection",
        "version": "1.0",
        "questions": questions if questions is not None else [
            {"id": "q1", "type": "boolean", "question": "Blade intact?", "required": True, "evidence_required": False},
            {"id": "q2", "type": "text", "question": "Notes", "required": False, "evidence_required": False},
        ],
        "is_active": True,
    }
    row.update(overrides)
    return row


def project_row(**overrides):
    row = {
        "id": "proj-1",
        "name": "North Ridge Wind Farm",
        "description": None,
        "status": "ACTIVE",
        "start_date": "2026-01-01",
        "end_date": "2026-12-31",
    }
    row.update(overrides)
    return row


def escalation_row(**overrides):
    row = {
        "id": "esc-1",
        "inspection_id": "insp-1",
        "original_manager_id": "manager-1",
        "escalated_to": None,
        "escalation_reason": "Repeated failures",
        "priority_level": "HIGH",
        "status": "QUEUED",
        "notification_count": 0,
        "created_at": "2026-01-06T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def approval_row(decision="APPROVED", **overrides):
    row = {
        "id": "appr-1",
        "inspection_id": "insp-1",
        "approver_id": "manager-1",
        "decision": decision,
        "notes": "Looks good",
        "is_escalated": False,
    }
    row.update(overrides)
    return row
