"""
Inspection status transitions, submission readiness and progress.

    DRAFT     -> PENDING
    PENDING   -> IN_REVIEW | DRAFT
    IN_REVIEW -> APPROVED | REJECTED | PENDING
    APPROVED  -> (terminal)
    REJECTED  -> PENDING | DRAFT

A rejection is refused once the inspection has been rejected
`max_rejections` times; from there the only way to reject is to escalate.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from app.config.settings import settings


class InspectionStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TRANSITIONS: Dict[InspectionStatus, List[InspectionStatus]] = {
    InspectionStatus.DRAFT: [InspectionStatus.PENDING],
    InspectionStatus.PENDING: [InspectionStatus.IN_REVIEW, InspectionStatus.DRAFT],
    InspectionStatus.IN_REVIEW: [InspectionStatus.APPROVED, InspectionStatus.REJECTED, InspectionStatus.PENDING],
    InspectionStatus.APPROVED: [],
    InspectionStatus.REJECTED: [InspectionStatus.PENDING, InspectionStatus.DRAFT],
}

OPEN_STATUSES = [s.value for s in (
    InspectionStatus.DRAFT, InspectionStatus.PENDING, InspectionStatus.IN_REVIEW, InspectionStatus.REJECTED
)]

ESCALATION_REQUIRED = f"Inspection must be escalated after {settings.max_rejections} rejections"

NEXT_ACTIONS = {
    InspectionStatus.DRAFT: ("SUBMIT", "Complete and submit for review"),
    InspectionStatus.PENDING: ("WAIT", "Waiting for manager review"),
    InspectionStatus.IN_REVIEW: ("WAIT", "Under review by manager"),
    InspectionStatus.APPROVED: ("COMPLETE", "Inspection approved - no action needed"),
    InspectionStatus.REJECTED: ("REVISE", "Address feedback and resubmit"),
}


def _status(value: Any) -> Optional[InspectionStatus]:
    try:
        return InspectionStatus(value)
    except ValueError:
        return None


def can_transition(current: str, target: str) -> bool:
    current_status, target_status = _status(current), _status(target)
    if current_status is None or target_status is None:
        return False
    return target_status in TRANSITIONS[current_status]


def valid_transitions(current: str) -> List[str]:
    current_status = _status(current)
    if current_status is None:
        return []
    return [s.value for s in TRANSITIONS[current_status]]


def requires_escalation(rejection_count: Optional[int]) -> bool:
    return (rejection_count or 0) >= settings.max_rejections


def next_rejection_count(rejection_count: Optional[int]) -> int:
    """Rejections accumulate and are capped at the escalation threshold."""
    return min((rejection_count or 0) + 1, settings.max_rejections)


def answer_value(response: Any) -> Any:
    """Responses are stored either as {"value": ...} objects or as raw values."""
    if isinstance(response, dict) and "value" in response:
        return response["value"]
    return response


def is_answered(response: Any) -> bool:
    value = answer_value(response)
    if value is None:
        return False
    if isinstance(value, (str, list, dict)) and len(value) == 0:
        return False
    return True


def validate_submission(
    questions: Optional[List[Dict[str, Any]]],
    responses: Optional[Dict[str, Any]],
    evidence: Iterable[Dict[str, Any]] = ()
) -> List[str]:
    """Returns the reasons an inspection is not ready to submit; empty when ready."""
    if questions is None:
        return ["Inspection checklist not found"]
    responses = responses or {}
    errors = []

    unanswered = [q for q in questions if q.get("required") and not is_answered(responses.get(q.get("id")))]
    if unanswered:
        errors.append(f"{len(unanswered)} required question(s) not answered")

    evidenced = {e.get("question_id") for e in evidence if e.get("question_id")}
    for question in questions:
        if question.get("evidence_required") and question.get("id") not in evidenced:
            errors.append(f"Evidence required for question: \"{question.get('question')}\"")
    return errors


def validate_transition(
    inspection: Dict[str, Any],
    target: str,
    questions: Optional[List[Dict[str, Any]]] = None,
    evidence: Iterable[Dict[str, Any]] = ()
) -> List[str]:
    current = inspection.get("status")
    if not can_transition(current, target):
        return [f"Cannot transition from {current} to {target}"]
    if target == InspectionStatus.PENDING.value:
        return validate_submission(questions, inspection.get("responses"), evidence)
    if target == InspectionStatus.REJECTED.value and requires_escalation(inspection.get("rejection_count")):
        return [ESCALATION_REQUIRED]
    return []


def calculate_progress(questions: Optional[List[Dict[str, Any]]], responses: Optional[Dict[str, Any]]) -> int:
    if not questions:
        return 0
    responses = responses or {}
    answered = sum(1 for q in questions if is_answered(responses.get(q.get("id"))))
    return round(answered / len(questions) * 100)


def next_action(status: str) -> Dict[str, str]:
    current = _status(status)
    if current is None:
        return {"action": "UNKNOWN", "description": "Unknown status"}
    action, description = NEXT_ACTIONS[current]
    return {"action": action, "description": description}
