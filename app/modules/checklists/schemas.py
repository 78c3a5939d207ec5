from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum
import uuid


class QuestionType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    FILE = "file"


class QuestionValidation(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    @model_validator(mode="after")
    def min_not_above_max(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("Minimum cannot be greater than maximum")
        return self


class ChecklistQuestion(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: QuestionType
    question: str = Field(..., min_length=1, max_length=500)
    required: bool = False
    evidence_required: bool = False
    options: Optional[List[str]] = None
    validation: Optional[QuestionValidation] = None

    @model_validator(mode="after")
    def choices_have_options(self):
        if self.type in (QuestionType.SELECT, QuestionType.MULTISELECT) and not self.options:
            raise ValueError("Select questions need at least one option")
        return self


class ChecklistCreate(BaseModel):
    project_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    version: str = "1.0"
    questions: List[ChecklistQuestion] = Field(..., min_length=1)

    @field_validator("questions")
    @classmethod
    def unique_question_ids(cls, v: List[ChecklistQuestion]) -> List[ChecklistQuestion]:
        ids = [q.id for q in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Question ids must be unique")
        return v


class ChecklistUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    version: Optional[str] = None
    is_active: Optional[bool] = None
    questions: Optional[List[ChecklistQuestion]] = Field(None, min_length=1)


class ChecklistResponse(BaseModel):
    id: str
    project_id: str
    name: str
    description: Optional[str] = None
    version: Optional[str] = "1.0"
    questions: List[Dict[str, Any]] = []
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
