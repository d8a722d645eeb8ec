"""Student-to-class enrollment history."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid, text

from schoolhub.core.clock import utcnow
from schoolhub.db.session import Base


class Enrollment(Base):
    """
    One row per (student, class). Re-enrolling into a class flips the same row back to
    enrolled; moving to another class completes this row and enrolls a different one.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_enrollment_student_class"),
        # At most one enrolled row per student
        Index(
            "uq_enrollment_active_student",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'enrolled'"),
            sqlite_where=text("status = 'enrolled'"),
        ),
        Index("ix_enrollments_class_status", "class_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="enrolled")  # enrolled | completed | dropped | suspended
    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    dropped_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
