"""Homework submissions."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    event,
)

from schoolhub.core.clock import utcnow
from schoolhub.core.grading import compute_final_score, compute_percentage, letter_grade
from schoolhub.db.session import Base


class Submission(Base):
    """One submission per (homework, student). Re-submissions bump attempt_number on the same row."""

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("homework_id", "student_id", name="uq_submission_homework_student"),
        Index("ix_submissions_student_status", "student_id", "status"),
        Index("ix_submissions_class_status", "class_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    homework_id = Column(Uuid, ForeignKey("homeworks.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False, default="")
    attachments = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="submitted")  # submitted | graded
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    is_late = Column(Boolean, nullable=False, default=False)
    attempt_number = Column(Integer, nullable=False, default=1)
    # Snapshot of the homework at submission time; grading never re-reads the homework
    max_score = Column(Float, nullable=False)
    late_penalty = Column(Float, nullable=False, default=0)
    score = Column(Float, nullable=True)
    percentage = Column(Integer, nullable=True)
    final_score = Column(Float, nullable=True)
    grade = Column(String(10), nullable=True)
    feedback = Column(Text, nullable=False, default="")
    graded_at = Column(DateTime(timezone=True), nullable=True)
    graded_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Concurrent re-submits of the same row fail with StaleDataError instead of overwriting
    __mapper_args__ = {"version_id_col": version}

    @property
    def grade_letter(self):
        return letter_grade(self.percentage)

    def refresh_derived_scores(self) -> None:
        self.percentage = compute_percentage(self.score, self.max_score)
        self.final_score = compute_final_score(self.score, bool(self.is_late), self.late_penalty)


@event.listens_for(Submission, "before_insert")
@event.listens_for(Submission, "before_update")
def _recompute_derived_scores(mapper, connection, target: Submission) -> None:
    target.refresh_derived_scores()
