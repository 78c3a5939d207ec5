"""
Executive summary and project inspection reports.

Every executive-summary figure is an independent count, read concurrently
through gather_reads; a count that fails reads as 0 and the report is still
built. A project report is a single query over the inspections created in
its date range, so a failed read fails the report.
"""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging
import uuid

from app.core.dependencies import can_generate_reports, is_executive
from app.core.errors import raise_for_result
from app.core.fanout import gather_reads
from app.database.repository import SupabaseDatabase, utc_now
from app.modules.escalations.schemas import ACTIVE_STATUSES
from app.modules.inspections.state_machine import OPEN_STATUSES, InspectionStatus
from app.modules.reports.schemas import DateRange, ProjectReportRequest

logger = logging.getLogger(__name__)


def percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def risk_level(overdue: int, escalated: int, open_inspections: int) -> str:
    """HIGH when more than 30% of open work is overdue or escalated, MEDIUM above 10%."""
    if not open_inspections:
        return "LOW"
    ratio = (overdue + escalated) / open_inspections
    if ratio > 0.3:
        return "HIGH"
    if ratio > 0.1:
        return "MEDIUM"
    return "LOW"


def key_insights(counts: Dict[str, int], completion_rate: float, approval_rate: float) -> List[str]:
    insights = []
    if counts["overdue"]:
        insights.append(f"{counts['overdue']} open inspections are past their due date")
    if counts["active_escalations"]:
        insights.append(f"{counts['active_escalations']} escalations are awaiting a decision")
    if counts["pending"] + counts["in_review"]:
        insights.append(f"{counts['pending'] + counts['in_review']} inspections are waiting for review")
    if counts["total_inspections"] and completion_rate < 50:
        insights.append(f"Only {completion_rate}% of inspections are approved")
    if counts["approvals"] + counts["rejections"] and approval_rate < 70:
        insights.append(f"Approval rate is {approval_rate}%, review rejection causes")
    return insights[:3]


class ReportService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db

    async def executive_summary(self, user_id: str, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        now = utc_now()
        completed_after = date_range.start.isoformat() if date_range and date_range.start else None
        completed_before = date_range.end.isoformat() if date_range and date_range.end else None
        counts = await gather_reads({
            "total_projects": lambda: self.db.count_projects(),
            "active_projects": lambda: self.db.count_projects(status="ACTIVE"),
            "completed_projects": lambda: self.db.count_projects(status="COMPLETED"),
            "total_inspections": lambda: self.db.count_inspections(),
            "draft": lambda: self.db.count_inspections(statuses=["DRAFT"]),
            "pending": lambda: self.db.count_inspections(statuses=["PENDING"]),
            "in_review": lambda: self.db.count_inspections(statuses=["IN_REVIEW"]),
            "approved": lambda: self.db.count_inspections(statuses=["APPROVED"]),
            "rejected": lambda: self.db.count_inspections(statuses=["REJECTED"]),
            "open_inspections": lambda: self.db.count_inspections(statuses=OPEN_STATUSES),
            "overdue": lambda: self.db.count_inspections(statuses=OPEN_STATUSES, due_before=now),
            "completed_in_range": lambda: self.db.count_inspections(
                statuses=["APPROVED"], completed_after=completed_after, completed_before=completed_before
            ),
            "approvals": lambda: self.db.count_approvals("APPROVED"),
            "rejections": lambda: self.db.count_approvals("REJECTED"),
            "active_escalations": lambda: self.db.count_escalations(ACTIVE_STATUSES),
            "resolved_escalations": lambda: self.db.count_escalations(["RESOLVED"]),
        })

        completion_rate = percentage(counts["approved"], counts["total_inspections"])
        approval_rate = percentage(counts["approvals"], counts["approvals"] + counts["rejections"])
        level = risk_level(counts["overdue"], counts["active_escalations"], counts["open_inspections"])
        logger.info(f"Executive summary generated for {user_id}: {counts['total_inspections']} inspections")

        return {
            "id": f"exec_report_{uuid.uuid4().hex}",
            "generated_by": user_id,
            "generated_at": now,
            "date_range": date_range,
            "summary": {
                "total_projects": counts["total_projects"],
                "active_projects": counts["active_projects"],
                "total_inspections": counts["total_inspections"],
                "completion_rate": completion_rate,
                "approval_rate": approval_rate,
                "risk_level": level,
                "key_insights": key_insights(counts, completion_rate, approval_rate),
            },
            "sections": {
                "projects": {
                    "total": counts["total_projects"],
                    "active": counts["active_projects"],
                    "completed": counts["completed_projects"],
                },
                "inspections": {
                    "by_status": {
                        status: counts[status.lower()]
                        for status in ("DRAFT", "PENDING", "IN_REVIEW", "APPROVED", "REJECTED")
                    },
                    "overdue": counts["overdue"],
                    "completed_in_range": counts["completed_in_range"],
                },
                "compliance": {
                    "approvals": counts["approvals"],
                    "rejections": counts["rejections"],
                    "approval_rate": approval_rate,
                },
                "risks": {
                    "level": level,
                    "active_escalations": counts["active_escalations"],
                    "resolved_escalations": counts["resolved_escalations"],
                    "overdue": counts["overdue"],
                },
            },
        }

    def _check_project_access(self, project_id: str, user_data: Dict[str, Any]) -> None:
        if not can_generate_reports(user_data):
            raise HTTPException(status_code=403, detail="Not authorized to generate reports")
        raise_for_result(self.db.get_project(project_id), not_found="Project not found")
        if is_executive(user_data):
            return
        member = self.db.get_project_member(project_id, user_data["id"])
        if member.error:
            if member.error.is_not_found:
                raise HTTPException(status_code=403, detail="You do not have access to this project")
            raise_for_result(member, failure="Failed to generate report")

    def project_report(self, report_request: ProjectReportRequest, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Inspections of one project created within the date range, with status counts"""
        self._check_project_access(report_request.project_id, user_data)
        inspections = raise_for_result(
            self.db.list_project_inspections_in_range(
                report_request.project_id,
                created_after=report_request.start_date.isoformat(),
                created_before=report_request.end_date.isoformat(),
            ),
            failure="Failed to fetch inspection data"
        )

        by_status = {status.value: 0 for status in InspectionStatus}
        for inspection in inspections:
            if inspection.get("status") in by_status:
                by_status[inspection["status"]] += 1
        logger.info(
            f"Project report for {report_request.project_id} generated by {user_data['id']}: "
            f"{len(inspections)} inspections"
        )

        return {
            "id": f"report_{uuid.uuid4().hex}",
            "project_id": report_request.project_id,
            "report_type": report_request.report_type,
            "generated_by": user_data["id"],
            "generated_at": utc_now(),
            "date_range": {"start": report_request.start_date, "end": report_request.end_date},
            "summary": {
                "total_inspections": len(inspections),
                "completed_inspections": by_status[InspectionStatus.APPROVED.value],
                "pending_inspections": by_status[InspectionStatus.PENDING.value] + by_status[InspectionStatus.IN_REVIEW.value],
                "rejected_inspections": by_status[InspectionStatus.REJECTED.value],
                "by_status": by_status,
            },
            "inspections": inspections,
        }
