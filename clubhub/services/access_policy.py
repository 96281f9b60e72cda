"""
Role checks shared by every workflow entry point.

The caller's role is re-read from the profile store on each call; role
claims carried in the session token are never trusted for authorization.
"""

from clubhub.core.exceptions import AuthenticationError, AuthorizationError, UserNotFoundError
from clubhub.core.logging_config import logger
from clubhub.models.user import User, UserRole, VerificationStatus
from clubhub.services.data_store import DataStore

STAFF_ROLES = (UserRole.COMMITTEE, UserRole.TUTOR, UserRole.ADMIN)
GRADING_ROLES = (UserRole.TUTOR, UserRole.ADMIN)
ORGANISER_ROLES = (UserRole.COMMITTEE, UserRole.ADMIN)
# Roles whose accounts an admin must approve before they can sign in or act
VERIFIED_ROLES = (UserRole.COMMITTEE, UserRole.TUTOR)


def is_cleared(user: User) -> bool:
    return user.role not in VERIFIED_ROLES or user.verification_status == VerificationStatus.APPROVED


def ensure_may_sign_in(user: User) -> None:
    """Committee/tutor accounts need admin approval for every sign-in path"""
    if not is_cleared(user):
        logger.log_auth_event(
            "sign_in", False, user_email=user.email,
            reason=f"verification {user.verification_status.value}",
        )
        raise AuthenticationError("Account pending admin verification")


class AccessPolicy:
    def __init__(self, store: DataStore):
        self.store = store

    async def _caller(self, caller_id: str) -> User:
        try:
            return await self.store.get_profile(caller_id)
        except UserNotFoundError:
            logger.warning(f"[AccessPolicy] Unknown caller {caller_id}")
            raise AuthorizationError()

    async def require_role(self, caller_id: str, *roles: UserRole) -> User:
        """Return the caller's fresh profile if their stored role is one of `roles`"""
        caller = await self._caller(caller_id)
        if caller.role not in roles or not is_cleared(caller):
            logger.warning(
                f"[AccessPolicy] Denied {caller_id} (role={caller.role.value}); "
                f"needs one of {[r.value for r in roles]}"
            )
            raise AuthorizationError()
        return caller

    async def require_self_or_role(self, caller_id: str, subject_id: str, *roles: UserRole) -> User:
        """Allow the subject themself, or a caller holding one of `roles`"""
        caller = await self._caller(caller_id)
        if str(caller.id) == str(subject_id) or (caller.role in roles and is_cleared(caller)):
            return caller
        logger.warning(f"[AccessPolicy] Denied {caller_id} access to records of {subject_id}")
        raise AuthorizationError()
