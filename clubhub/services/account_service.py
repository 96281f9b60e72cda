"""
Account & membership administration

Handles:
- Signup with role-dependent initial membership state
- Password login, gated on admin verification for committee/tutor accounts
- Admin verification, role changes, level resets and the bulk membership reset
- Club statistics
"""

from datetime import timedelta
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta

from clubhub.core.config import settings
from clubhub.core.exceptions import AuthenticationError, ValidationError
from clubhub.core.logging_config import logger
from clubhub.core.security import get_password_hash, verify_password
from clubhub.models.attendance import Attendance
from clubhub.models.event import Event, RSVP
from clubhub.models.payment import Payment
from clubhub.models.user import User, UserRole, VerificationStatus
from clubhub.services.access_policy import STAFF_ROLES, ensure_may_sign_in
from clubhub.services.base import WorkflowService

SELF_SIGNUP_ROLES = (UserRole.STUDENT, UserRole.COMMITTEE, UserRole.TUTOR)


class AccountService(WorkflowService):
    """Service for member accounts and admin membership controls"""

    # ==================== SIGNUP / LOGIN ====================

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        role=UserRole.STUDENT,
        student_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        """
        Create a member profile.

        Students start verified but with an already-lapsed membership, so the
        first thing they do is pay. Committee members and tutors start with
        a live membership but must be verified by an admin before they can log in.
        """
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationError("Role must be student, committee or tutor", field="role")
        if role not in SELF_SIGNUP_ROLES:
            raise ValidationError("Role must be student, committee or tutor", field="role")
        if not password or len(password) < 6:
            raise ValidationError("Password must be at least 6 characters", field="password")
        if not full_name or not full_name.strip():
            raise ValidationError("Full name is required", field="full_name")

        email = email.strip().lower()
        await self.ensure_store_ready("register")
        if await self.store.find_profile_by_email(email):
            raise ValidationError("Email already registered", field="email")

        now = self.now()
        if role == UserRole.STUDENT:
            expiry = now - relativedelta(months=1)
            verified = True
            status = VerificationStatus.APPROVED
        else:
            expiry = now + relativedelta(months=settings.MEMBERSHIP_PERIOD_MONTHS)
            verified = False
            status = VerificationStatus.PENDING

        user = await self.store.insert(User(
            email=email,
            full_name=full_name.strip(),
            hashed_password=get_password_hash(password),
            role=role,
            student_id=student_id,
            phone=phone,
            membership_level=1,
            membership_expiry=expiry,
            verified=verified,
            verification_status=status,
            created_at=now,
        ))
        await self.store.commit()

        logger.log_workflow_event("account", "registered", user_id=str(user.id), role=role.value)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials; committee/tutor accounts must also be approved"""
        user = await self.store.find_profile_by_email(email.strip().lower())
        if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
            logger.log_auth_event("login", False, user_email=email, reason="invalid credentials")
            raise AuthenticationError("Incorrect email or password")

        ensure_may_sign_in(user)

        logger.log_auth_event("login", True, user_email=email)
        return user

    # ==================== ADMIN ====================

    async def verify_account(self, caller_id: str, user_id: str, approved: bool) -> User:
        """Approve or reject a committee/tutor account"""
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        await self.ensure_store_ready("verify_account")
        user = await self.store.get_profile(user_id)

        fields = {
            "verified": bool(approved),
            "verification_status": VerificationStatus.APPROVED if approved else VerificationStatus.REJECTED,
        }
        user = await self.store.update_profile(user.id, fields, expected_version=user.version)
        await self.store.commit()

        logger.log_workflow_event("account", "approved" if approved else "rejected",
                                  user_id=str(user.id), admin_id=str(caller_id))
        return user

    async def list_pending_verifications(self, caller_id: str) -> List[User]:
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        return await self.store.query(
            User,
            User.role.in_([UserRole.COMMITTEE, UserRole.TUTOR]),
            User.verification_status == VerificationStatus.PENDING,
            order_by=User.created_at.asc(),
        )

    async def update_role(self, caller_id: str, user_id: str, role) -> User:
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationError("Unknown role", field="role")
        await self.ensure_store_ready("update_role")
        user = await self.store.get_profile(user_id)
        user = await self.store.update_profile(user.id, {"role": role}, expected_version=user.version)
        await self.store.commit()

        logger.log_workflow_event("account", "role_changed", user_id=str(user.id), role=role.value)
        return user

    async def reset_level(self, caller_id: str, user_id: str, level: int) -> User:
        """Set a member's level directly. The only path allowed to lower it."""
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        if not isinstance(level, int) or not 1 <= level <= settings.MAX_MEMBERSHIP_LEVEL:
            raise ValidationError(
                f"Level must be between 1 and {settings.MAX_MEMBERSHIP_LEVEL}", field="level"
            )
        await self.ensure_store_ready("reset_level")
        user = await self.store.get_profile(user_id)
        previous = user.membership_level
        user = await self.store.update_profile(user.id, {"membership_level": level}, expected_version=user.version)
        await self.store.commit()

        logger.log_workflow_event("account", "level_reset", user_id=str(user.id),
                                  from_level=previous, to_level=level, admin_id=str(caller_id))
        return user

    async def reset_all_memberships(self, caller_id: str) -> int:
        """Expire every non-admin membership (start of a new term). Returns the count."""
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        await self.ensure_store_ready("reset_all_memberships")

        expired_at = self.now() - timedelta(days=settings.RESET_EXPIRY_DAYS)
        count = await self.store.update_profiles_where(
            {"membership_expiry": expired_at},
            User.role != UserRole.ADMIN,
        )
        await self.store.commit()

        logger.log_workflow_event("account", "memberships_reset", reset_count=count, admin_id=str(caller_id))
        return count

    # ==================== READS ====================

    async def list_users(self, caller_id: str, role=None) -> List[User]:
        await self.policy.require_role(caller_id, *STAFF_ROLES)
        criteria = []
        if role is not None:
            try:
                criteria.append(User.role == UserRole(role))
            except ValueError:
                raise ValidationError("Unknown role", field="role")
        return await self.store.query(User, *criteria, order_by=User.full_name.asc())

    async def get_stats(self, caller_id: str) -> Dict[str, int]:
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        now = self.now()
        return {
            "total_students": await self.store.count(User, User.role == UserRole.STUDENT),
            "total_committee": await self.store.count(User, User.role == UserRole.COMMITTEE),
            "total_tutors": await self.store.count(User, User.role == UserRole.TUTOR),
            "active_memberships": await self.store.count(
                User, User.role == UserRole.STUDENT, User.membership_expiry > now
            ),
            "total_events": await self.store.count(Event),
            "total_attendance": await self.store.count(Attendance),
            "total_rsvps": await self.store.count(RSVP),
            "total_payments": await self.store.count(Payment),
        }
