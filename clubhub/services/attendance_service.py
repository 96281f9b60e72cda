"""
Attendance Recorder - session-code check-in for events and classes
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional
from dateutil import tz

from sqlalchemy import or_

from clubhub.core.config import settings
from clubhub.core.exceptions import (
    DuplicateCheckInError,
    InvalidSessionCodeError,
    RecordConflictError,
    ValidationError,
)
from clubhub.core.logging_config import logger
from clubhub.models.attendance import Attendance, AttendanceType
from clubhub.models.club_class import ClubClass
from clubhub.models.event import Event
from clubhub.services.access_policy import STAFF_ROLES
from clubhub.services.base import WorkflowService

SESSION_CODE_PATTERN = re.compile(r"^[A-Z0-9]{1,32}$")


@dataclass
class CheckInResult:
    attendance: Attendance
    attendance_type: AttendanceType
    name: str


def normalize_session_code(session_code: Optional[str]) -> str:
    """Trim and uppercase a session code, rejecting blank or malformed input"""
    code = (session_code or "").strip().upper()
    if not code:
        raise ValidationError("Session code is required", field="session_code")
    if not SESSION_CODE_PATTERN.match(code):
        raise ValidationError("Session code must be letters and digits only", field="session_code")
    return code


def club_calendar_day(moment: datetime) -> date:
    """Calendar day of a naive-UTC timestamp in the club's timezone"""
    return moment.replace(tzinfo=timezone.utc).astimezone(tz.gettz(settings.CLUB_TIMEZONE)).date()


class AttendanceService(WorkflowService):
    """Service for check-ins and attendance history"""

    async def check_in(self, caller_id: str, session_code: str) -> CheckInResult:
        """
        Check the caller in with a session code.

        Events are matched before classes. An event allows one check-in per
        member; a class allows one per member per calendar day.
        """
        code = normalize_session_code(session_code)
        await self.ensure_store_ready("check_in")
        profile = await self.store.get_profile(caller_id)

        events = await self.store.query(Event, Event.session_code == code, Event.is_active.is_(True))
        if events:
            return await self._check_in_event(profile.id, code, events[0])

        classes = await self.store.query(ClubClass, ClubClass.session_code == code)
        if classes:
            return await self._check_in_class(profile.id, code, classes[0])

        logger.info(f"[Attendance] Unknown session code {code} from {caller_id}")
        raise InvalidSessionCodeError(code)

    async def _check_in_event(self, user_id: str, code: str, event: Event) -> CheckInResult:
        existing = await self.store.query(
            Attendance,
            Attendance.user_id == user_id,
            Attendance.attendance_type == AttendanceType.EVENT,
            or_(Attendance.event_id == event.id, Attendance.session_code == code),
            limit=1,
        )
        if existing:
            raise DuplicateCheckInError(AttendanceType.EVENT.value)

        now = self.now()
        record = Attendance(
            user_id=user_id,
            event_id=event.id,
            event_title=event.title,
            session_code=code,
            attendance_type=AttendanceType.EVENT,
            checked_in_at=now,
            check_in_date=club_calendar_day(now),
        )
        record = await self._insert_once(record, AttendanceType.EVENT)
        logger.log_workflow_event("attendance", "event_check_in", user_id=str(user_id), event_id=str(event.id))
        return CheckInResult(attendance=record, attendance_type=AttendanceType.EVENT, name=event.title)

    async def _check_in_class(self, user_id: str, code: str, club_class: ClubClass) -> CheckInResult:
        now = self.now()
        today = club_calendar_day(now)
        existing = await self.store.query(
            Attendance,
            Attendance.user_id == user_id,
            Attendance.attendance_type == AttendanceType.CLASS,
            or_(Attendance.class_name == club_class.class_name, Attendance.session_code == code),
            Attendance.check_in_date == today,
            limit=1,
        )
        if existing:
            raise DuplicateCheckInError(AttendanceType.CLASS.value)

        record = Attendance(
            user_id=user_id,
            class_name=club_class.class_name,
            session_code=code,
            attendance_type=AttendanceType.CLASS,
            checked_in_at=now,
            check_in_date=today,
        )
        record = await self._insert_once(record, AttendanceType.CLASS)
        logger.log_workflow_event("attendance", "class_check_in", user_id=str(user_id), class_name=club_class.class_name)
        return CheckInResult(attendance=record, attendance_type=AttendanceType.CLASS, name=club_class.class_name)

    async def _insert_once(self, record: Attendance, attendance_type: AttendanceType) -> Attendance:
        # A concurrent check-in that slipped past the lookup hits the unique constraint
        try:
            record = await self.store.insert(record)
            await self.store.commit()
        except RecordConflictError:
            raise DuplicateCheckInError(attendance_type.value)
        return record

    async def get_user_attendance(self, caller_id: str, user_id: str) -> List[Attendance]:
        """Attendance history of one member, newest first"""
        await self.policy.require_self_or_role(caller_id, user_id, *STAFF_ROLES)
        return await self.store.query(
            Attendance, Attendance.user_id == str(user_id), order_by=Attendance.checked_in_at.desc()
        )

    async def get_event_attendance(self, caller_id: str, event_id: str) -> List[Attendance]:
        await self.policy.require_role(caller_id, *STAFF_ROLES)
        return await self.store.query(
            Attendance, Attendance.event_id == str(event_id), order_by=Attendance.checked_in_at.asc()
        )

    async def get_class_attendance(self, caller_id: str, class_name: str) -> List[Attendance]:
        await self.policy.require_role(caller_id, *STAFF_ROLES)
        return await self.store.query(
            Attendance, Attendance.class_name == class_name.strip().upper(), order_by=Attendance.checked_in_at.desc()
        )
