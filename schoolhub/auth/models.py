import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, Uuid

from schoolhub.core.clock import utcnow
from schoolhub.db.session import Base


class User(Base):
    """Account with a single role tag: admin, teacher or student."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_role", "role"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    # Stored lower-cased; unique across the school
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    password_hash = Column(Text, nullable=False)
    role = Column(String(20), nullable=False, default="student")  # admin | teacher | student
    # Students: class of the single enrolled enrollment row (NULL when not enrolled)
    current_class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    # Teachers: class they are homeroom teacher of
    teaching_class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
