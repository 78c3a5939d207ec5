from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.config.settings import settings

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "video/mp4",
    "video/mov",
    "video/quicktime",
    "video/avi",
    "video/x-msvideo",
    "video/webm",
}


class Annotation(BaseModel):
    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)
    text: str = Field(..., min_length=1, max_length=500)


class EvidenceUpload(BaseModel):
    """Form fields and file facts of an upload, checked before anything is stored."""
    inspection_id: str = Field(..., min_length=1)
    question_id: Optional[str] = None
    filename: str = Field(..., min_length=1)
    mime_type: str
    file_size: int = Field(..., gt=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)

    @field_validator("mime_type")
    @classmethod
    def supported_mime_type(cls, v: str) -> str:
        v = (v or "").lower()
        if v not in ALLOWED_MIME_TYPES:
            raise ValueError(
                "Unsupported file type. Only JPEG, PNG, WebP, GIF, MP4, MOV, AVI, WebM are allowed"
            )
        return v

    @field_validator("file_size")
    @classmethod
    def within_size_limit(cls, v: int) -> int:
        if v > settings.max_evidence_file_size:
            raise ValueError(f"File size exceeds {settings.max_evidence_file_size // (1024 * 1024)}MB limit")
        return v


class EvidenceUpdate(BaseModel):
    annotations: Optional[List[Annotation]] = None
    verified: Optional[bool] = None


class EvidenceResponse(BaseModel):
    id: str
    inspection_id: str
    uploaded_by: str
    question_id: Optional[str] = None
    filename: str
    original_name: Optional[str] = None
    mime_type: str
    file_size: int
    storage_path: Optional[str] = None
    public_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    annotations: Optional[List[Dict[str, Any]]] = None
    verified: bool = False
    metadata: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EvidenceUploadResponse(BaseModel):
    success: bool = True
    evidence: EvidenceResponse
