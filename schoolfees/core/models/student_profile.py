import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from schoolfees.db.session import Base


class StudentProfile(Base):
    """Student roster entry. Class membership is the current class only."""

    __tablename__ = "student_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    class_id = Column(String(36), nullable=False, index=True)
    class_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
