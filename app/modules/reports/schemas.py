from pydantic import BaseModel, Field, ValidationInfo, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime


class DateRange(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("end")
    @classmethod
    def end_after_start(cls, v: Optional[datetime], info: ValidationInfo) -> Optional[datetime]:
        start = info.data.get("start")
        if v and start and v <= start:
            raise ValueError("End date must be after start date")
        return v


class ExecutiveSummaryRequest(BaseModel):
    date_range: Optional[DateRange] = Field(None, alias="dateRange")

    class Config:
        populate_by_name = True


class ExecutiveSummary(BaseModel):
    total_projects: int
    active_projects: int
    total_inspections: int
    completion_rate: float
    approval_rate: float
    risk_level: str
    key_insights: List[str]


class ExecutiveReport(BaseModel):
    id: str
    generated_by: str
    generated_at: datetime
    date_range: Optional[DateRange] = None
    summary: ExecutiveSummary
    sections: Dict[str, Dict[str, Any]]


class ExecutiveReportResponse(BaseModel):
    success: bool = True
    report: ExecutiveReport


class ProjectReportRequest(BaseModel):
    project_id: str = Field(..., min_length=1, alias="projectId")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    report_type: str = Field("INSPECTION_SUMMARY", max_length=50, alias="reportType")

    class Config:
        populate_by_name = True

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v: datetime, info: ValidationInfo) -> datetime:
        start = info.data.get("start_date")
        if start and v <= start:
            raise ValueError("End date must be after start date")
        return v


class ProjectReportSummary(BaseModel):
    total_inspections: int
    completed_inspections: int
    pending_inspections: int
    rejected_inspections: int
    by_status: Dict[str, int]


class ProjectReport(BaseModel):
    id: str
    project_id: str
    report_type: str
    generated_by: str
    generated_at: datetime
    date_range: DateRange
    summary: ProjectReportSummary
    inspections: List[Dict[str, Any]]


class ProjectReportResponse(BaseModel):
    success: bool = True
    report: ProjectReport
