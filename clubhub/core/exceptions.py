"""
Custom Exceptions for ClubHub
=============================

Every workflow failure is raised as one of these so the API layer can turn it
into a typed error payload instead of an unhandled 500.

Usage:
    from clubhub.core.exceptions import StudentNotFoundError, ValidationError

    if profile is None:
        raise StudentNotFoundError(student_id)

    if not 0 <= grade <= 100:
        raise ValidationError("Grade must be between 0 and 100", field="grade")
"""

from typing import Optional, Any, Dict


class ClubHubError(Exception):
    """Base exception for all ClubHub errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(ClubHubError):
    """User authentication failed"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(ClubHubError):
    """Caller's role or ownership check failed.

    The message is deliberately fixed so nothing leaks about which check failed.
    """

    def __init__(self):
        super().__init__("Not authorized", code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ClubHubError):
    """Base class for not found errors"""

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class StudentNotFoundError(ResourceNotFoundError):
    """Student referenced by a grading/level workflow not found"""

    def __init__(self, student_id: str):
        super().__init__("Student", student_id, message="Student not found")


class EventNotFoundError(ResourceNotFoundError):
    """Event not found"""

    def __init__(self, event_id: str):
        super().__init__("Event", event_id)


class ClassNotFoundError(ResourceNotFoundError):
    """Class not found"""

    def __init__(self, class_id: str):
        super().__init__("Class", class_id)


class ProfileNotFoundError(ClubHubError):
    """The authenticated caller has no profile row.

    Recoverable: the client should sign out and back in.
    """

    def __init__(self):
        super().__init__(
            "User profile not found. Please log out and log back in.",
            code="PROFILE_NOT_FOUND",
            details={"reauthenticate": True}
        )


class InvalidSessionCodeError(ClubHubError):
    """Session code matched neither an event nor a class"""

    def __init__(self, session_code: str):
        super().__init__(
            "Invalid session code. Please check and try again.",
            code="INVALID_SESSION_CODE",
            details={"session_code": session_code}
        )


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ClubHubError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


# ============================================
# Conflict Errors (409-type)
# ============================================

class DuplicateCheckInError(ClubHubError):
    """Attendance already recorded for this event, or for this class today"""

    def __init__(self, attendance_type: str):
        if attendance_type == "class":
            message = "You have already checked in for this class today."
        else:
            message = "You have already checked in for this event."
        super().__init__(
            message,
            code="DUPLICATE_CHECK_IN",
            details={"attendance_type": attendance_type}
        )


class RecordConflictError(ClubHubError):
    """Insert violated a uniqueness constraint"""

    def __init__(self, table: str):
        super().__init__(
            f"Conflicting record in {table}",
            code="RECORD_CONFLICT",
            details={"table": table}
        )


class ConcurrentUpdateError(ClubHubError):
    """Profile changed between read and write (version mismatch)"""

    def __init__(self, user_id: str, expected_version: int):
        super().__init__(
            "Profile was modified by another request. Please retry.",
            code="CONCURRENT_UPDATE",
            details={
                "user_id": user_id,
                "expected_version": expected_version,
                "retryable": True,
            }
        )


# ============================================
# Backing Store Errors (503-type)
# ============================================

class BackingStoreError(ClubHubError):
    """Transient failure talking to the database. Safe to retry."""

    def __init__(self, operation: str, message: str = "Data store is temporarily unavailable"):
        super().__init__(
            message,
            code="BACKING_STORE_ERROR",
            details={"operation": operation, "retryable": True}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ClubHubError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
