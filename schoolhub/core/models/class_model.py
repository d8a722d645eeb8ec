"""School classes (rosters). Model named SchoolClass to avoid Python 'class' keyword."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from schoolhub.core.clock import utcnow
from schoolhub.db.session import Base


class SchoolClass(Base):
    """Class with a unique code, an optional homeroom teacher and a capacity limit. Soft delete via is_active."""

    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, index=True)
    code = Column(String(20), nullable=False, unique=True)  # upper-cased on write
    description = Column(Text, nullable=False, default="")
    # users <-> classes reference each other; the ALTER breaks the create-order cycle
    homeroom_teacher_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True, name="fk_classes_homeroom_teacher"),
        nullable=True,
    )
    max_students = Column(Integer, nullable=False, default=30)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
