"""Homework models."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid

from schoolhub.core.clock import utcnow
from schoolhub.db.session import Base


class Homework(Base):
    """Homework authored by the homeroom teacher of one class."""

    __tablename__ = "homeworks"
    __table_args__ = (
        Index("ix_homeworks_class_status", "class_id", "status"),
        Index("ix_homeworks_due_date", "due_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    teacher_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False, default="")
    due_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft | published | closed
    allow_late_submission = Column(Boolean, nullable=False, default=False)
    late_penalty = Column(Float, nullable=False, default=0)  # percent of the score, 0..100
    max_attempts = Column(Integer, nullable=False, default=1)
    points = Column(Float, nullable=False, default=100)
    attachments = Column(JSON, nullable=False, default=list)  # [{filename, path, size_bytes, mime_type}]
    # Cache over submissions; analytics recomputes from rows
    total_submissions = Column(Integer, nullable=False, default=0)
    average_score = Column(Integer, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
