from fastapi import APIRouter, BackgroundTasks, Depends, Request
from app.config.rbac_config import Role
from app.core.dependencies import get_current_user, require_role
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.reports.schemas import (
    ExecutiveSummaryRequest, ExecutiveReportResponse, ProjectReportRequest, ProjectReportResponse
)
from app.modules.reports.service import ReportService
from typing import Dict, Optional

router = APIRouter(prefix="/reports", tags=["reports"])


def get_report_service(db: SupabaseDatabase = Depends(get_database)) -> ReportService:
    return ReportService(db)


@router.post("/executive-summary", response_model=ExecutiveReportResponse)
async def executive_summary(
    request: Request,
    background_tasks: BackgroundTasks,
    body: Optional[ExecutiveSummaryRequest] = None,
    user_data: Dict = Depends(require_role(Role.EXECUTIVE)),
    service: ReportService = Depends(get_report_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Organisation-wide KPIs for executives"""
    date_range = body.date_range if body else None
    report = await service.executive_summary(user_data["id"], date_range)
    background_tasks.add_task(
        audit.log_event, "REPORT", report["id"], "GENERATED", user_data["id"],
        {
            **request_metadata(request),
            "report_type": "EXECUTIVE_SUMMARY",
            "date_range": date_range.model_dump(mode="json") if date_range else None,
        }
    )
    return {"success": True, "report": report}


@router.post("/generate", response_model=ProjectReportResponse)
async def generate_project_report(
    report_request: ProjectReportRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Inspection report for one project over a date range (project managers and executives)"""
    report = service.project_report(report_request, user_data)
    background_tasks.add_task(
        audit.log_event, "REPORT", report["id"], "GENERATED", user_data["id"],
        {
            **request_metadata(request),
            "project_id": report_request.project_id,
            "report_type": report_request.report_type,
            "date_range": {
                "start": report_request.start_date.isoformat(),
                "end": report_request.end_date.isoformat(),
            },
        }
    )
    return {"success": True, "report": report}
