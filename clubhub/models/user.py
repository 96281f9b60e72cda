from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer
from datetime import datetime
from typing import Optional
import enum

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    STUDENT = "student"
    COMMITTEE = "committee"
    TUTOR = "tutor"
    ADMIN = "admin"


class VerificationStatus(str, enum.Enum):
    """Admin verification state of an account"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def enum_values(enum_cls):
    """Persist enum values (not member names) so reports read 'student', not 'STUDENT'"""
    return [member.value for member in enum_cls]


class User(Base):
    """
    Member profile - one row per account.

    membership_level is 1..5 and only moves through level verification
    (or an explicit admin reset). `version` is bumped on every profile write
    and used for compare-and-swap updates.
    """
    __tablename__ = "user_profiles"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=True)
    student_id = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.STUDENT,
        nullable=False,
    )

    # Membership
    membership_level = Column(Integer, default=1, nullable=False)
    membership_expiry = Column(DateTime, nullable=True)

    # Account verification (gates committee/tutor login)
    verified = Column(Boolean, default=False, nullable=False)
    verification_status = Column(
        SQLEnum(VerificationStatus, name="verification_status", values_callable=enum_values),
        default=VerificationStatus.PENDING,
        nullable=False,
    )

    # Tutors only
    assigned_class_id = Column(GUID, nullable=True)

    version = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_membership_active(self, now: Optional[datetime] = None) -> bool:
        """Admins never expire; everyone else is active strictly before expiry"""
        if self.role == UserRole.ADMIN:
            return True
        if self.membership_expiry is None:
            return False
        return (now or datetime.utcnow()) < self.membership_expiry

    def __repr__(self):
        return f"<User {self.email} ({self.role.value if self.role else None})>"
