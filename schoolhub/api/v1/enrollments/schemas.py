from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolhub.core.enums import EnrollmentStatus


class EnrollmentCreate(BaseModel):
    student_id: UUID
    class_id: UUID
    notes: str = Field("", max_length=1000)


class TransferRequest(BaseModel):
    student_id: UUID
    new_class_id: UUID
    notes: str = Field("", max_length=1000)


class EnrollmentUpdate(BaseModel):
    status: Optional[EnrollmentStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)


class EnrollmentResponse(BaseModel):
    id: UUID
    student_id: UUID
    class_id: UUID
    status: str
    enrolled_at: datetime
    completed_at: Optional[datetime] = None
    dropped_at: Optional[datetime] = None
    notes: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransferResponse(BaseModel):
    completed_enrollment: EnrollmentResponse
    new_enrollment: EnrollmentResponse
