from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from clubhub.models.attendance import AttendanceType
from clubhub.models.grade import AssessmentType


# ============================================
# Payments
# ============================================

class ProcessPaymentRequest(BaseModel):
    amount: float
    payment_method: str = "online"
    reference_number: Optional[str] = Field(None, max_length=100)
    payment_type: Optional[str] = Field(None, max_length=50)


class RecordPaymentRequest(BaseModel):
    user_id: str
    amount: float
    payment_type: Optional[str] = Field(None, max_length=50)


class PaymentResponse(BaseModel):
    id: str
    user_id: str
    amount: float
    level: int
    payment_method: str
    payment_type: Optional[str] = None
    reference_number: Optional[str] = None
    status: str
    paid_at: datetime

    class Config:
        from_attributes = True


class PaymentResultResponse(BaseModel):
    success: bool = True
    payment: PaymentResponse
    new_expiry: datetime
    membership_level: int


# ============================================
# Attendance
# ============================================

class CheckInRequest(BaseModel):
    session_code: str


class AttendanceResponse(BaseModel):
    id: str
    user_id: str
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    class_name: Optional[str] = None
    session_code: str
    attendance_type: AttendanceType
    checked_in_at: datetime

    class Config:
        from_attributes = True


class CheckInResponse(BaseModel):
    success: bool = True
    message: str
    attendance: AttendanceResponse


# ============================================
# Grades
# ============================================

class GradeRequest(BaseModel):
    student_id: str
    assessment_type: str
    grade: int
    level: Optional[int] = None
    comments: Optional[str] = None


class GradeResponse(BaseModel):
    id: str
    student_id: str
    tutor_id: Optional[str] = None
    assessment_type: AssessmentType
    grade: int
    level: int
    comments: Optional[str] = None
    graded_at: datetime

    class Config:
        from_attributes = True


class GradeSummaryResponse(BaseModel):
    student_id: str
    level: Optional[int] = None
    count: int
    average: Optional[float] = None
    passed: int
    pass_rate: Optional[float] = None
    pass_threshold: int


# ============================================
# Level progression
# ============================================

class LevelVerifyRequest(BaseModel):
    student_id: str
    approved: bool
    tutor_notes: Optional[str] = None


class CertificateResponse(BaseModel):
    id: str
    student_id: str
    level: int
    title: str
    description: Optional[str] = None
    certificate_number: str
    issued_at: datetime

    class Config:
        from_attributes = True


class LevelVerificationResponse(BaseModel):
    id: str
    student_id: str
    from_level: int
    to_level: int
    approved: bool
    tutor_id: Optional[str] = None
    tutor_notes: Optional[str] = None
    verified_at: datetime

    class Config:
        from_attributes = True


class LevelDecisionResponse(BaseModel):
    success: bool
    outcome: str
    message: str
    current_level: int
    new_level: int
    certificate: Optional[CertificateResponse] = None
    verification: Optional[LevelVerificationResponse] = None
