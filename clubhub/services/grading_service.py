"""
Grading Workflow - tutor-submitted assessment scores

Grades are informational; nothing here changes a member's level.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from clubhub.core.config import settings
from clubhub.core.exceptions import StudentNotFoundError, UserNotFoundError, ValidationError
from clubhub.core.logging_config import logger
from clubhub.models.grade import AssessmentType, Grade
from clubhub.models.user import User
from clubhub.services.access_policy import GRADING_ROLES
from clubhub.services.base import WorkflowService


@dataclass
class GradeSummary:
    count: int
    average: Optional[float]
    passed: int
    pass_rate: Optional[float]
    pass_threshold: int


def is_passing(grade: int) -> bool:
    return grade >= settings.PASS_THRESHOLD


def summarize(grades: Sequence[Grade]) -> GradeSummary:
    """Average and pass rate over a set of grades"""
    if not grades:
        return GradeSummary(count=0, average=None, passed=0, pass_rate=None,
                            pass_threshold=settings.PASS_THRESHOLD)
    scores = [g.grade for g in grades]
    passed = sum(1 for s in scores if is_passing(s))
    return GradeSummary(
        count=len(scores),
        average=round(sum(scores) / len(scores), 2),
        passed=passed,
        pass_rate=round(passed * 100 / len(scores), 2),
        pass_threshold=settings.PASS_THRESHOLD,
    )


def parse_assessment_type(value) -> AssessmentType:
    try:
        return AssessmentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in AssessmentType)
        raise ValidationError(f"Assessment type must be one of: {allowed}", field="assessment_type")


class GradingService(WorkflowService):
    """Service for grading students"""

    async def _student(self, student_id: str) -> User:
        try:
            return await self.store.get_profile(student_id)
        except UserNotFoundError:
            raise StudentNotFoundError(str(student_id))

    async def grade_student(
        self,
        caller_id: str,
        student_id: str,
        assessment_type,
        grade: int,
        level: Optional[int] = None,
        comments: Optional[str] = None,
    ) -> Grade:
        """
        Record one assessment score for a student.

        Args:
            caller_id: Tutor or admin doing the grading
            student_id: Student being graded
            assessment_type: assignment | quiz | project | exam
            grade: Score in 0..100
            level: Level the assessment belongs to (defaults to the student's current level)
            comments: Optional tutor feedback

        Returns:
            The created Grade
        """
        tutor = await self.policy.require_role(caller_id, *GRADING_ROLES)

        if grade is None or isinstance(grade, bool) or not isinstance(grade, int):
            raise ValidationError("Grade must be a whole number", field="grade")
        if grade < 0 or grade > 100:
            raise ValidationError("Grade must be between 0 and 100", field="grade")
        kind = parse_assessment_type(assessment_type)
        if level is not None and not 1 <= level <= settings.MAX_MEMBERSHIP_LEVEL:
            raise ValidationError(
                f"Level must be between 1 and {settings.MAX_MEMBERSHIP_LEVEL}", field="level"
            )

        await self.ensure_store_ready("grade_student")
        student = await self._student(student_id)

        record = await self.store.insert(Grade(
            student_id=student.id,
            tutor_id=tutor.id,
            assessment_type=kind,
            grade=grade,
            level=level or student.membership_level or 1,
            comments=comments,
            graded_at=self.now(),
        ))
        await self.store.commit()

        logger.log_workflow_event(
            "grading", "graded",
            student_id=str(student.id), tutor_id=str(tutor.id),
            assessment_type=kind.value, grade=grade, level=record.level,
        )
        return record

    async def get_student_grades(
        self,
        caller_id: str,
        student_id: str,
        level: Optional[int] = None,
    ) -> List[Grade]:
        """All grades of a student (optionally for one level), newest first"""
        await self.policy.require_self_or_role(caller_id, student_id, *GRADING_ROLES)
        criteria = [Grade.student_id == str(student_id)]
        if level is not None:
            criteria.append(Grade.level == level)
        return await self.store.query(Grade, *criteria, order_by=Grade.graded_at.desc())

    async def get_grade_summary(
        self,
        caller_id: str,
        student_id: str,
        level: Optional[int] = None,
    ) -> GradeSummary:
        grades = await self.get_student_grades(caller_id, student_id, level)
        return summarize(grades)

    async def get_grades_by_tutor(self, caller_id: str) -> List[Grade]:
        tutor = await self.policy.require_role(caller_id, *GRADING_ROLES)
        return await self.store.query(Grade, Grade.tutor_id == tutor.id, order_by=Grade.graded_at.desc())
