from pydantic import BaseModel


class VerifyAccountRequest(BaseModel):
    approved: bool


class RoleUpdateRequest(BaseModel):
    role: str


class LevelResetRequest(BaseModel):
    level: int


class MembershipResetResponse(BaseModel):
    success: bool = True
    reset_count: int


class StatsResponse(BaseModel):
    total_students: int
    total_committee: int
    total_tutors: int
    active_memberships: int
    total_events: int
    total_attendance: int
    total_rsvps: int
    total_payments: int
