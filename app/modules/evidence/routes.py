from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, Response, UploadFile
from supabase import Client
from app.config import settings
from app.core.dependencies import get_current_user
from app.database.repository import SupabaseDatabase, get_database
from app.database.supabase_client import get_supabase
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.evidence.schemas import EvidenceUpdate, EvidenceResponse, EvidenceUploadResponse
from app.modules.evidence.service import EvidenceService
from app.modules.evidence.storage import get_evidence_storage
from typing import Dict, List, Optional

router = APIRouter(prefix="/evidence", tags=["evidence"])
inspection_router = APIRouter(prefix="/inspections", tags=["evidence"])


def get_evidence_service(
    db: SupabaseDatabase = Depends(get_database),
    supabase: Client = Depends(get_supabase)
) -> EvidenceService:
    return EvidenceService(db, get_evidence_storage(supabase))


@router.post("/upload", response_model=EvidenceUploadResponse, status_code=201)
async def upload_evidence(
    request: Request,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    inspection_id: str = Form(...),
    question_id: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    accuracy: Optional[float] = Form(None),
    user_data: Dict = Depends(get_current_user),
    service: EvidenceService = Depends(get_evidence_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Upload a photo or video as evidence for an inspection (multipart form)"""
    # one byte past the limit is enough to reject oversized files
    content = await file.read(settings.max_evidence_file_size + 1)
    upload = service.validate_upload(
        inspection_id=inspection_id,
        question_id=question_id or None,
        filename=file.filename or "upload",
        mime_type=file.content_type or "",
        file_size=len(content),
        latitude=latitude,
        longitude=longitude,
        accuracy=accuracy,
    )
    evidence = service.upload(upload, content, user_data)
    background_tasks.add_task(
        audit.log_event, "EVIDENCE", evidence["id"], "UPLOADED", user_data["id"],
        {
            **request_metadata(request),
            "inspection_id": upload.inspection_id,
            "filename": upload.filename,
            "file_size": upload.file_size,
            "mime_type": upload.mime_type,
        }
    )
    return {"success": True, "evidence": evidence}


@router.patch("/{evidence_id}", response_model=EvidenceResponse)
async def update_evidence(
    evidence_id: str,
    evidence_data: EvidenceUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: EvidenceService = Depends(get_evidence_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Annotate evidence, or mark it verified (project managers)"""
    evidence = service.update_evidence(evidence_id, evidence_data, user_data)
    action = "VERIFIED" if evidence_data.verified else "UPDATED"
    background_tasks.add_task(
        audit.log_event, "EVIDENCE", evidence_id, action, user_data["id"],
        {**request_metadata(request), "fields": sorted(evidence_data.model_dump(exclude_none=True))}
    )
    return evidence


@router.delete("/{evidence_id}", status_code=204)
async def delete_evidence(
    evidence_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: EvidenceService = Depends(get_evidence_service),
    audit: AuditService = Depends(get_audit_service)
):
    evidence = service.delete_evidence(evidence_id, user_data)
    background_tasks.add_task(
        audit.log_event, "EVIDENCE", evidence_id, "DELETED", user_data["id"],
        {**request_metadata(request), "inspection_id": evidence["inspection_id"]}
    )
    return Response(status_code=204)


@inspection_router.get("/{inspection_id}/evidence", response_model=List[EvidenceResponse])
async def list_inspection_evidence(
    inspection_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EvidenceService = Depends(get_evidence_service)
):
    return service.list_evidence(inspection_id, user_data)
