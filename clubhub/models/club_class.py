from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text
from datetime import datetime

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid


class ClubClass(Base):
    """Recurring tutor-led class. The class name doubles as its check-in code."""
    __tablename__ = "classes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    class_name = Column(String(50), unique=True, nullable=False)
    level = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    venue = Column(String(255), nullable=True)
    schedule = Column(String(255), nullable=True)
    max_students = Column(Integer, nullable=False, default=30)
    tutor_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True)
    tutor_name = Column(String(255), nullable=True)
    session_code = Column(String(32), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ClubClass {self.class_name} L{self.level}>"
