# Re-export all models for convenient imports
from clubhub.models.user import User, UserRole, VerificationStatus
from clubhub.models.payment import Payment
from clubhub.models.event import Event, RSVP
from clubhub.models.club_class import ClubClass
from clubhub.models.attendance import Attendance, AttendanceType
from clubhub.models.grade import Grade, AssessmentType
from clubhub.models.level_progress import LevelVerification, Certificate

__all__ = [
    # User
    "User",
    "UserRole",
    "VerificationStatus",
    # Membership
    "Payment",
    # Directory
    "Event",
    "RSVP",
    "ClubClass",
    # Attendance
    "Attendance",
    "AttendanceType",
    # Grading / progression
    "Grade",
    "AssessmentType",
    "LevelVerification",
    "Certificate",
]
