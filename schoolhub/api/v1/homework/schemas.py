"""Homework schemas."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AttachmentItem(BaseModel):
    filename: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1, description="Opaque storage reference")
    size_bytes: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = None


# ----- Homework -----
class HomeworkCreate(BaseModel):
    class_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    instructions: str = ""
    due_date: datetime
    allow_late_submission: bool = False
    late_penalty: float = Field(0, ge=0, le=100, description="Percent deducted from late scores")
    max_attempts: int = Field(1, ge=1)
    points: float = Field(100, gt=0)
    attachments: List[AttachmentItem] = Field(default_factory=list)
    publish: bool = Field(False, description="Create directly in the published state")


class HomeworkUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    instructions: Optional[str] = None
    due_date: Optional[datetime] = None
    allow_late_submission: Optional[bool] = None
    late_penalty: Optional[float] = Field(None, ge=0, le=100)
    max_attempts: Optional[int] = Field(None, ge=1)
    points: Optional[float] = Field(None, gt=0)
    attachments: Optional[List[AttachmentItem]] = None


class HomeworkResponse(BaseModel):
    id: UUID
    class_id: UUID
    teacher_id: UUID
    title: str
    description: str
    instructions: str
    due_date: datetime
    status: str
    allow_late_submission: bool
    late_penalty: float
    max_attempts: int
    points: float
    attachments: List[AttachmentItem]
    total_submissions: int
    average_score: Optional[int] = None
    published_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class HomeworkAnalytics(BaseModel):
    homework_id: UUID
    total_students: int
    total_submissions: int
    submission_rate: int
    graded_submissions: int
    late_submissions: int
    average_score: Optional[int] = None
    score_distribution: Dict[str, int]
