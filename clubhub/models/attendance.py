from sqlalchemy import Column, String, DateTime, ForeignKey, Date, Enum as SQLEnum, UniqueConstraint, Index
from datetime import datetime
import enum

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid
from clubhub.models.user import enum_values


class AttendanceType(str, enum.Enum):
    EVENT = "event"
    CLASS = "class"


class Attendance(Base):
    """
    One row per check-in, append-only.

    The unique constraints backstop the duplicate rules when two check-ins race:
    event rows leave class_name NULL and class rows leave event_id NULL,
    so each constraint only ever bites its own kind.
    """
    __tablename__ = "attendance"

    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_attendance_user_event'),
        UniqueConstraint('user_id', 'class_name', 'check_in_date', name='uq_attendance_user_class_day'),
        Index('ix_attendance_user', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    event_title = Column(String(255), nullable=True)
    class_name = Column(String(50), nullable=True)
    session_code = Column(String(32), nullable=False)
    attendance_type = Column(
        SQLEnum(AttendanceType, name="attendance_type", values_callable=enum_values),
        nullable=False,
    )
    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    # Club-local calendar day of checked_in_at
    check_in_date = Column(Date, nullable=False)

    def __repr__(self):
        return f"<Attendance {self.user_id} {self.attendance_type.value} {self.session_code}>"
