from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text, Boolean, Date, UniqueConstraint
from datetime import datetime

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid


class Event(Base):
    """Club event with a check-in session code"""
    __tablename__ = "events"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=False)
    event_time = Column(String(20), nullable=True)
    venue = Column(String(255), nullable=True)
    event_type = Column(String(50), nullable=False, default="general")
    # Stored uppercase
    session_code = Column(String(32), unique=True, index=True, nullable=False)
    max_participants = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(GUID, ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Event {self.title} [{self.session_code}]>"


class RSVP(Base):
    """Intent to attend an event, at most one per (user, event)"""
    __tablename__ = "rsvps"

    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_rsvps_user_event'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="going")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
