from sqlalchemy import Column, DateTime, Integer, ForeignKey, Text, Enum as SQLEnum, Index
from datetime import datetime
import enum

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid
from clubhub.models.user import enum_values


class AssessmentType(str, enum.Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    PROJECT = "project"
    EXAM = "exam"


class Grade(Base):
    """Tutor-submitted score. Informational only, never changes a level."""
    __tablename__ = "grades"

    __table_args__ = (
        Index('ix_grades_student', 'student_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    tutor_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True)
    assessment_type = Column(
        SQLEnum(AssessmentType, name="assessment_type", values_callable=enum_values),
        nullable=False,
    )
    grade = Column(Integer, nullable=False)
    level = Column(Integer, nullable=False)
    comments = Column(Text, nullable=True)
    graded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Grade {self.assessment_type.value} {self.grade} L{self.level}>"
