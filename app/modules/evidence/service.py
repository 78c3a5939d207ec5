from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
import logging
import os
import uuid

from app.config.settings import settings
from app.core.dependencies import (
    can_upload_evidence, can_verify_evidence, can_delete_evidence, check_inspection_access
)
from app.core.errors import raise_for_result, validation_error
from app.database.repository import SupabaseDatabase, utc_now
from app.modules.evidence.schemas import EvidenceUpload, EvidenceUpdate

logger = logging.getLogger(__name__)


def _size_label(size: int) -> str:
    if size >= 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024 * 1024):.0f}GB"
    return f"{size / (1024 * 1024):.0f}MB"


class EvidenceService:
    def __init__(self, db: SupabaseDatabase, storage):
        self.db = db
        self.storage = storage

    def list_evidence(self, inspection_id: str, user_data: Dict[str, Any]) -> List[Dict[str, Any]]:
        inspection = raise_for_result(self.db.get_inspection(inspection_id), not_found="Inspection not found")
        check_inspection_access(inspection, user_data)
        return raise_for_result(self.db.list_evidence(inspection_id), failure="Failed to fetch evidence")

    def validate_upload(self, **fields) -> EvidenceUpload:
        try:
            return EvidenceUpload(**fields)
        except ValidationError as e:
            raise RequestValidationError(e.errors())

    def upload(self, upload: EvidenceUpload, content: bytes, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Store the blob, then the evidence row; the blob is removed if the row cannot be written."""
        inspection = self.db.get_inspection(upload.inspection_id)
        if inspection.error:
            if inspection.error.is_not_found:
                raise validation_error("inspection_id", "Inspection not found")
            raise_for_result(inspection, failure="Failed to upload evidence")
        if not can_upload_evidence(user_data, inspection.data):
            raise HTTPException(status_code=403, detail="Not authorized to upload evidence for this inspection")

        current_total = raise_for_result(
            self.db.get_total_evidence_size(upload.inspection_id),
            failure="Failed to upload evidence"
        )
        if current_total + upload.file_size > settings.max_inspection_evidence_size:
            raise validation_error(
                "file",
                f"Total evidence for an inspection cannot exceed {_size_label(settings.max_inspection_evidence_size)}"
            )

        extension = os.path.splitext(upload.filename)[1].lower()
        key = f"evidence/{upload.inspection_id}/{user_data['id']}/{uuid.uuid4().hex}{extension}"
        try:
            storage_path = self.storage.upload_file(content, key, upload.mime_type)
        except Exception as e:
            logger.error(f"Evidence upload failed for inspection {upload.inspection_id}: {e}")
            raise HTTPException(status_code=500, detail="Upload failed")

        now = utc_now()
        evidence = self.db.create_evidence({
            "inspection_id": upload.inspection_id,
            "uploaded_by": user_data["id"],
            "question_id": upload.question_id,
            "filename": os.path.basename(key),
            "original_name": upload.filename,
            "mime_type": upload.mime_type,
            "file_size": upload.file_size,
            "storage_path": storage_path,
            "public_url": self.storage.public_url(storage_path),
            "latitude": upload.latitude,
            "longitude": upload.longitude,
            "accuracy": upload.accuracy,
            "annotations": [],
            "verified": False,
            "timestamp": now,
            "metadata": {
                "uploaded_at": now,
                "linked_to_question": bool(upload.question_id),
                "content_type": upload.mime_type,
            },
        })
        if evidence.error:
            logger.error(f"Evidence record failed for {storage_path}: {evidence.error.message}")
            if not self.storage.delete_file(storage_path):
                logger.warning(f"Orphaned evidence blob left at {storage_path}")
            raise HTTPException(status_code=500, detail="Failed to create evidence record")
        return evidence.data

    def update_evidence(self, evidence_id: str, evidence_data: EvidenceUpdate, user_data: Dict[str, Any]) -> Dict[str, Any]:
        evidence = raise_for_result(self.db.get_evidence(evidence_id), not_found="Evidence not found")
        updates: Dict[str, Any] = {}
        if evidence_data.verified is not None:
            if not can_verify_evidence(user_data):
                raise HTTPException(status_code=403, detail="Only project managers can verify evidence")
            updates["verified"] = evidence_data.verified
        if evidence_data.annotations is not None:
            if not can_delete_evidence(user_data, evidence):
                raise HTTPException(status_code=403, detail="Not authorized to annotate this evidence")
            updates["annotations"] = [a.model_dump() for a in evidence_data.annotations]
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        return raise_for_result(
            self.db.update_evidence(evidence_id, updates),
            not_found="Evidence not found",
            failure="Failed to update evidence"
        )

    def delete_evidence(self, evidence_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        evidence = raise_for_result(self.db.get_evidence(evidence_id), not_found="Evidence not found")
        if not can_delete_evidence(user_data, evidence):
            raise HTTPException(status_code=403, detail="Not authorized to delete this evidence")
        raise_for_result(
            self.db.delete_evidence(evidence_id),
            not_found="Evidence not found",
            failure="Failed to delete evidence"
        )
        storage_path: Optional[str] = evidence.get("storage_path")
        if storage_path and not self.storage.delete_file(storage_path):
            logger.warning(f"Evidence {evidence_id} deleted but blob {storage_path} was not removed")
        return evidence
