from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolhub.api.v1.homework.schemas import AttachmentItem


class SubmissionCreate(BaseModel):
    content: str = ""
    attachments: List[AttachmentItem] = Field(default_factory=list)
    notes: str = ""


class GradeRequest(BaseModel):
    # Range is checked against the frozen max_score in the service
    score: float = Field(..., allow_inf_nan=False)
    feedback: str = ""
    grade: Optional[str] = Field(None, max_length=10, description="Defaults to the letter for the percentage")


class SubmissionResponse(BaseModel):
    id: UUID
    homework_id: UUID
    student_id: UUID
    class_id: UUID
    content: str
    attachments: List[AttachmentItem]
    notes: str
    status: str
    submitted_at: datetime
    is_late: bool
    attempt_number: int
    max_score: float
    late_penalty: float
    score: Optional[float] = None
    percentage: Optional[int] = None
    final_score: Optional[float] = None
    grade: Optional[str] = None
    feedback: str
    graded_at: Optional[datetime] = None
    graded_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
