"""
Event/Class directory - the records that session codes resolve against,
plus RSVPs and tutor assignment.
"""

import secrets
import string
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from clubhub.core.config import settings
from clubhub.core.exceptions import (
    ClassNotFoundError,
    EventNotFoundError,
    RecordConflictError,
    UserNotFoundError,
    ValidationError,
)
from clubhub.core.logging_config import logger
from clubhub.models.attendance import Attendance
from clubhub.models.club_class import ClubClass
from clubhub.models.event import Event, RSVP
from clubhub.models.user import User, UserRole
from clubhub.services.access_policy import ORGANISER_ROLES, STAFF_ROLES
from clubhub.services.base import WorkflowService

SESSION_CODE_ALPHABET = string.ascii_uppercase + string.digits
EDITABLE_EVENT_FIELDS = {
    "title", "description", "event_date", "event_time", "venue",
    "event_type", "max_participants", "is_active",
}


def generate_session_code(length: Optional[int] = None) -> str:
    """Random uppercase alphanumeric check-in code"""
    length = length or settings.SESSION_CODE_LENGTH
    return "".join(secrets.choice(SESSION_CODE_ALPHABET) for _ in range(length))


@dataclass
class TutorClassView:
    club_class: ClubClass
    students: List[User] = field(default_factory=list)
    attendance: List[Attendance] = field(default_factory=list)


class DirectoryService(WorkflowService):
    """Service for events, RSVPs and classes"""

    MAX_CODE_ATTEMPTS = 10

    # ==================== EVENTS ====================

    async def _unused_session_code(self) -> str:
        for _ in range(self.MAX_CODE_ATTEMPTS):
            code = generate_session_code()
            taken = await self.store.count(Event, Event.session_code == code)
            taken += await self.store.count(ClubClass, ClubClass.session_code == code)
            if not taken:
                return code
        raise RecordConflictError("events")

    async def create_event(
        self,
        caller_id: str,
        title: str,
        event_date: date,
        description: Optional[str] = None,
        event_time: Optional[str] = None,
        venue: Optional[str] = None,
        event_type: str = "general",
        max_participants: Optional[int] = None,
    ) -> Event:
        creator = await self.policy.require_role(caller_id, *ORGANISER_ROLES)
        if not title or not title.strip():
            raise ValidationError("Title is required", field="title")
        if max_participants is not None and max_participants < 1:
            raise ValidationError("Max participants must be positive", field="max_participants")
        await self.ensure_store_ready("create_event")

        event = await self.store.insert(Event(
            title=title.strip(),
            description=description,
            event_date=event_date,
            event_time=event_time,
            venue=venue,
            event_type=event_type or "general",
            session_code=await self._unused_session_code(),
            max_participants=max_participants,
            created_by=creator.id,
            created_at=self.now(),
        ))
        await self.store.commit()

        logger.log_workflow_event("directory", "event_created", event_id=str(event.id),
                                  session_code=event.session_code)
        return event

    async def get_event(self, event_id: str) -> Event:
        event = await self.store.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event

    async def list_events(self, include_inactive: bool = False) -> List[Event]:
        criteria = [] if include_inactive else [Event.is_active.is_(True)]
        return await self.store.query(Event, *criteria, order_by=Event.event_date.asc())

    async def update_event(self, caller_id: str, event_id: str, changes: Dict[str, Any]) -> Event:
        await self.policy.require_role(caller_id, *ORGANISER_ROLES)
        unknown = set(changes) - EDITABLE_EVENT_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        event = await self.get_event(event_id)
        for key, value in changes.items():
            setattr(event, key, value)
        await self.store.commit()
        logger.log_workflow_event("directory", "event_updated", event_id=str(event.id))
        return event

    async def deactivate_event(self, caller_id: str, event_id: str) -> Event:
        """Close an event for check-in; its attendance history is kept"""
        return await self.update_event(caller_id, event_id, {"is_active": False})

    # ==================== RSVP ====================

    async def rsvp(self, caller_id: str, event_id: str) -> RSVP:
        """RSVP to an event. Repeating the call returns the existing RSVP."""
        user = await self.store.get_profile(caller_id)
        event = await self.get_event(event_id)
        existing = await self.store.query(RSVP, RSVP.user_id == user.id, RSVP.event_id == event.id)
        if existing:
            return existing[0]
        if event.max_participants:
            going = await self.store.count(RSVP, RSVP.event_id == event.id)
            if going >= event.max_participants:
                raise ValidationError("Event is full", field="event_id")
        record = await self.store.insert(RSVP(user_id=user.id, event_id=event.id, created_at=self.now()))
        await self.store.commit()
        return record

    async def cancel_rsvp(self, caller_id: str, event_id: str) -> bool:
        existing = await self.store.query(RSVP, RSVP.user_id == str(caller_id), RSVP.event_id == str(event_id))
        if not existing:
            return False
        await self.store.delete(existing[0])
        await self.store.commit()
        return True

    async def list_my_rsvps(self, caller_id: str) -> List[RSVP]:
        return await self.store.query(RSVP, RSVP.user_id == str(caller_id), order_by=RSVP.created_at.desc())

    async def list_event_rsvps(self, caller_id: str, event_id: str) -> List[RSVP]:
        await self.policy.require_role(caller_id, *STAFF_ROLES)
        await self.get_event(event_id)
        return await self.store.query(RSVP, RSVP.event_id == str(event_id), order_by=RSVP.created_at.asc())

    # ==================== CLASSES ====================

    async def create_class(
        self,
        caller_id: str,
        class_name: str,
        level: int = 1,
        description: Optional[str] = None,
        venue: Optional[str] = None,
        schedule: Optional[str] = None,
        max_students: int = 30,
    ) -> ClubClass:
        """Create a class; its uppercased name is also its check-in code"""
        await self.policy.require_role(caller_id, *ORGANISER_ROLES)
        name = (class_name or "").strip().upper()
        if not name or not name.isalnum():
            raise ValidationError("Class name must be letters and digits only", field="class_name")
        if not 1 <= level <= settings.MAX_MEMBERSHIP_LEVEL:
            raise ValidationError(
                f"Level must be between 1 and {settings.MAX_MEMBERSHIP_LEVEL}", field="level"
            )
        await self.ensure_store_ready("create_class")
        if await self.store.count(Event, Event.session_code == name):
            raise ValidationError("Class name clashes with an event session code", field="class_name")

        try:
            club_class = await self.store.insert(ClubClass(
                class_name=name,
                level=level,
                description=description,
                venue=venue,
                schedule=schedule,
                max_students=max_students,
                session_code=name,
                created_at=self.now(),
            ))
        except RecordConflictError:
            raise ValidationError(f"Class {name} already exists", field="class_name")
        await self.store.commit()

        logger.log_workflow_event("directory", "class_created", class_name=name, level=level)
        return club_class

    async def get_class(self, class_id: str) -> ClubClass:
        club_class = await self.store.get(ClubClass, class_id)
        if club_class is None:
            raise ClassNotFoundError(str(class_id))
        return club_class

    async def list_classes(self) -> List[ClubClass]:
        return await self.store.query(ClubClass, order_by=[ClubClass.level.asc(), ClubClass.class_name.asc()])

    async def assign_tutor(self, caller_id: str, class_id: str, tutor_id: str) -> ClubClass:
        await self.policy.require_role(caller_id, *ORGANISER_ROLES)
        await self.ensure_store_ready("assign_tutor")
        club_class = await self.get_class(class_id)
        try:
            tutor = await self.store.get_profile(tutor_id)
        except UserNotFoundError:
            raise ValidationError("Tutor not found", field="tutor_id")
        if tutor.role != UserRole.TUTOR:
            raise ValidationError("User is not a tutor", field="tutor_id")

        club_class.tutor_id = tutor.id
        club_class.tutor_name = tutor.full_name
        await self.store.update_profile(
            tutor.id, {"assigned_class_id": club_class.id}, expected_version=tutor.version
        )
        await self.store.commit()

        logger.log_workflow_event("directory", "tutor_assigned",
                                  class_name=club_class.class_name, tutor_id=str(tutor.id))
        return club_class

    async def get_tutor_class(self, caller_id: str) -> TutorClassView:
        """The caller's assigned class with its students and attendance"""
        tutor = await self.policy.require_role(caller_id, UserRole.TUTOR)
        if not tutor.assigned_class_id:
            raise ClassNotFoundError("unassigned")
        club_class = await self.get_class(tutor.assigned_class_id)

        students = await self.store.query(
            User,
            User.role == UserRole.STUDENT,
            User.membership_level == club_class.level,
            order_by=User.full_name.asc(),
        )
        attendance = await self.store.query(
            Attendance,
            Attendance.class_name == club_class.class_name,
            order_by=Attendance.checked_in_at.desc(),
        )
        return TutorClassView(club_class=club_class, students=students, attendance=attendance)
