"""
Level-Progression Workflow - tutor approve/reject decisions on a student's level

A review for a student at level L ends in one of:
- promoted:        approved and L < max. Level becomes L+1, a certificate for
                   level L is issued and the decision is recorded.
- retained:        rejected. The decision is recorded with from = to = L.
- already_at_max:  approved at the max level. Nothing is written.

The level write is a compare-and-swap on the profile version, so of two
tutors approving the same student at once only one promotion lands; the
other gets ConcurrentUpdateError and can retry against the new level.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import List, Optional

from clubhub.core.config import settings
from clubhub.core.exceptions import StudentNotFoundError, UserNotFoundError
from clubhub.core.logging_config import logger
from clubhub.models.level_progress import Certificate, LevelVerification
from clubhub.models.user import User
from clubhub.services.access_policy import GRADING_ROLES
from clubhub.services.base import WorkflowService


class LevelOutcome(str, enum.Enum):
    PROMOTED = "promoted"
    RETAINED = "retained"
    ALREADY_AT_MAX = "already_at_max"


@dataclass
class LevelDecision:
    outcome: LevelOutcome
    success: bool
    current_level: int
    new_level: int
    message: str
    certificate: Optional[Certificate] = None
    verification: Optional[LevelVerification] = None


class LevelProgressionService(WorkflowService):
    """Service for level verification and certificates"""

    def _certificate_number(self) -> str:
        return f"CH-CERT-{self.now().strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"

    async def _student(self, student_id: str) -> User:
        try:
            return await self.store.get_profile(student_id)
        except UserNotFoundError:
            raise StudentNotFoundError(str(student_id))

    async def verify_level_up(
        self,
        caller_id: str,
        student_id: str,
        approved: bool,
        tutor_notes: Optional[str] = None,
    ) -> LevelDecision:
        """
        Apply a tutor's decision to a student's current level.

        Args:
            caller_id: Tutor or admin making the decision
            student_id: Student under review
            approved: True to promote, False to keep the student at their level
            tutor_notes: Optional reasoning stored with the decision

        Returns:
            LevelDecision describing the outcome
        """
        tutor = await self.policy.require_role(caller_id, *GRADING_ROLES)
        await self.ensure_store_ready("verify_level_up")
        student = await self._student(student_id)

        current_level = student.membership_level or 1
        max_level = settings.MAX_MEMBERSHIP_LEVEL

        if approved and current_level >= max_level:
            logger.log_workflow_event(
                "level_progression", "already_at_max",
                student_id=str(student.id), tutor_id=str(tutor.id), level=current_level,
            )
            return LevelDecision(
                outcome=LevelOutcome.ALREADY_AT_MAX,
                success=True,
                current_level=current_level,
                new_level=current_level,
                message="Student is already at maximum level",
            )

        now = self.now()

        if not approved:
            verification = await self.store.insert(LevelVerification(
                student_id=student.id,
                from_level=current_level,
                to_level=current_level,
                approved=False,
                tutor_id=tutor.id,
                tutor_notes=tutor_notes,
                verified_at=now,
            ))
            await self.store.commit()
            logger.log_workflow_event(
                "level_progression", "retained",
                student_id=str(student.id), tutor_id=str(tutor.id), level=current_level,
            )
            return LevelDecision(
                outcome=LevelOutcome.RETAINED,
                success=True,
                current_level=current_level,
                new_level=current_level,
                message=f"Student remains at Level {current_level}",
                verification=verification,
            )

        next_level = current_level + 1
        # Level write first: a lost race must not leave a certificate behind
        await self.store.update_profile(
            student.id, {"membership_level": next_level}, expected_version=student.version
        )
        certificate = await self.store.insert(Certificate(
            student_id=student.id,
            level=current_level,
            title=f"Level {current_level} Certification",
            description=f"Successfully completed Level {current_level} - Verified by tutor",
            certificate_number=self._certificate_number(),
            issued_at=now,
        ))
        verification = await self.store.insert(LevelVerification(
            student_id=student.id,
            from_level=current_level,
            to_level=next_level,
            approved=True,
            tutor_id=tutor.id,
            tutor_notes=tutor_notes,
            verified_at=now,
        ))
        await self.store.commit()

        logger.log_workflow_event(
            "level_progression", "promoted",
            student_id=str(student.id), tutor_id=str(tutor.id),
            from_level=current_level, to_level=next_level,
            certificate=certificate.certificate_number,
        )
        return LevelDecision(
            outcome=LevelOutcome.PROMOTED,
            success=True,
            current_level=current_level,
            new_level=next_level,
            message=f"Student promoted to Level {next_level}",
            certificate=certificate,
            verification=verification,
        )

    async def get_certificates(self, caller_id: str, student_id: str) -> List[Certificate]:
        await self.policy.require_self_or_role(caller_id, student_id, *GRADING_ROLES)
        return await self.store.query(
            Certificate, Certificate.student_id == str(student_id), order_by=Certificate.level.asc()
        )

    async def get_verifications(self, caller_id: str, student_id: str) -> List[LevelVerification]:
        await self.policy.require_self_or_role(caller_id, student_id, *GRADING_ROLES)
        return await self.store.query(
            LevelVerification,
            LevelVerification.student_id == str(student_id),
            order_by=LevelVerification.verified_at.desc(),
        )
