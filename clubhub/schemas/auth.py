from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from clubhub.models.user import UserRole, VerificationStatus


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: str = "student"
    student_id: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    student_id: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    membership_level: int
    membership_expiry: Optional[datetime] = None
    membership_active: bool = False
    verified: bool
    verification_status: VerificationStatus
    assigned_class_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        response = cls.model_validate(user)
        response.membership_active = user.is_membership_active()
        return response


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse
