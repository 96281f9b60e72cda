from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text, Boolean, Index
from datetime import datetime

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid


class LevelVerification(Base):
    """Tutor decision on a level review - one row per decision"""
    __tablename__ = "level_verifications"

    __table_args__ = (
        Index('ix_level_verifications_student', 'student_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    from_level = Column(Integer, nullable=False)
    to_level = Column(Integer, nullable=False)
    approved = Column(Boolean, nullable=False)
    tutor_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True)
    tutor_notes = Column(Text, nullable=True)
    verified_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Certificate(Base):
    """Awarded for a completed level"""
    __tablename__ = "certificates"

    __table_args__ = (
        Index('ix_certificates_student', 'student_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    # The level that was completed, not the one the student moved up to
    level = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    certificate_number = Column(String(50), unique=True, nullable=False)
    issued_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Certificate {self.certificate_number} L{self.level}>"
