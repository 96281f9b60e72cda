from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from clubhub.schemas.auth import UserResponse
from clubhub.schemas.membership import AttendanceResponse


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    event_date: date
    event_time: Optional[str] = Field(None, max_length=20)
    venue: Optional[str] = Field(None, max_length=255)
    event_type: str = "general"
    max_participants: Optional[int] = Field(None, ge=1)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_date: Optional[date] = None
    event_time: Optional[str] = Field(None, max_length=20)
    venue: Optional[str] = Field(None, max_length=255)
    event_type: Optional[str] = None
    max_participants: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    event_date: date
    event_time: Optional[str] = None
    venue: Optional[str] = None
    event_type: str
    session_code: str
    max_participants: Optional[int] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RSVPResponse(BaseModel):
    id: str
    user_id: str
    event_id: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class ClassCreate(BaseModel):
    class_name: str = Field(..., min_length=1, max_length=50)
    level: int = Field(1, ge=1, le=5)
    description: Optional[str] = None
    venue: Optional[str] = None
    schedule: Optional[str] = None
    max_students: int = Field(30, ge=1)


class AssignTutorRequest(BaseModel):
    tutor_id: str


class ClassResponse(BaseModel):
    id: str
    class_name: str
    level: int
    description: Optional[str] = None
    venue: Optional[str] = None
    schedule: Optional[str] = None
    max_students: int
    tutor_id: Optional[str] = None
    tutor_name: Optional[str] = None
    session_code: str
    created_at: datetime

    class Config:
        from_attributes = True


class TutorClassResponse(BaseModel):
    club_class: ClassResponse
    students: List[UserResponse]
    attendance: List[AttendanceResponse]
