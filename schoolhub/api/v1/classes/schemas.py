from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: str = ""
    homeroom_teacher_id: Optional[UUID] = None
    max_students: int = Field(30, ge=1)
    is_active: bool = True


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    description: Optional[str] = None
    homeroom_teacher_id: Optional[UUID] = None
    max_students: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class ClassResponse(BaseModel):
    id: UUID
    name: str
    code: str
    description: str
    homeroom_teacher_id: Optional[UUID] = None
    max_students: int
    student_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
