"""
Unit Tests for Level Verification and Certificates
"""
import asyncio
import pytest
from datetime import datetime

from clubhub.core.exceptions import AuthorizationError, ConcurrentUpdateError, StudentNotFoundError
from clubhub.models.level_progress import Certificate, LevelVerification
from clubhub.models.user import UserRole
from clubhub.services.grading_service import GradingService
from clubhub.services.level_progression_service import LevelOutcome, LevelProgressionService

NOW = datetime(2024, 5, 20, 14, 0)


def make_service(store, capability):
    return LevelProgressionService(store, capability, clock=lambda: NOW)


class TestPromotion:
    """Test approving a level"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [1, 2, 3, 4])
    async def test_approve_promotes_and_issues_certificate(self, store, capability, tutor, make_user, level):
        """Test approval moves L to L+1 and certifies the completed level L"""
        pupil = await make_user(UserRole.STUDENT, level=level)

        decision = await make_service(store, capability).verify_level_up(
            tutor.id, pupil.id, approved=True, tutor_notes="Ready"
        )

        assert decision.outcome == LevelOutcome.PROMOTED
        assert decision.success is True
        assert decision.current_level == level
        assert decision.new_level == level + 1
        assert decision.message == f"Student promoted to Level {level + 1}"

        certificates = await store.query(Certificate, Certificate.student_id == pupil.id)
        assert len(certificates) == 1
        assert certificates[0].level == level
        assert certificates[0].title == f"Level {level} Certification"
        assert certificates[0].certificate_number.startswith("CH-CERT-20240520-")

        verification = decision.verification
        assert verification.from_level == level
        assert verification.to_level == level + 1
        assert verification.approved is True
        assert verification.tutor_id == tutor.id
        assert verification.tutor_notes == "Ready"

        profile = await store.get_profile(pupil.id)
        assert profile.membership_level == level + 1

    @pytest.mark.asyncio
    async def test_certificate_numbers_are_unique(self, store, capability, tutor, make_user):
        pupil = await make_user(UserRole.STUDENT, level=1)
        service = make_service(store, capability)

        first = await service.verify_level_up(tutor.id, pupil.id, approved=True)
        second = await service.verify_level_up(tutor.id, pupil.id, approved=True)

        assert first.certificate.certificate_number != second.certificate.certificate_number
        assert second.certificate.level == 2
        assert (await store.get_profile(pupil.id)).membership_level == 3

    @pytest.mark.asyncio
    async def test_pass_then_promote(self, store, capability, tutor, make_user):
        """Test a level-2 student averaging 75 is promoted to level 3"""
        pupil = await make_user(UserRole.STUDENT, level=2)
        grading = GradingService(store, capability)
        for kind, score in [("assignment", 70), ("quiz", 75), ("exam", 80)]:
            await grading.grade_student(tutor.id, pupil.id, kind, score)

        summary = await grading.get_grade_summary(tutor.id, pupil.id, level=2)
        assert summary.average == 75.0
        assert summary.pass_rate == 100.0

        decision = await make_service(store, capability).verify_level_up(tutor.id, pupil.id, approved=True)

        assert decision.new_level == 3
        assert decision.certificate.level == 2


class TestRetention:
    """Test rejecting a level"""

    @pytest.mark.asyncio
    async def test_reject_keeps_level(self, store, capability, tutor, make_user):
        """Test rejection records from = to = L and issues no certificate"""
        pupil = await make_user(UserRole.STUDENT, level=3)

        decision = await make_service(store, capability).verify_level_up(
            tutor.id, pupil.id, approved=False, tutor_notes="Needs more practice"
        )

        assert decision.outcome == LevelOutcome.RETAINED
        assert decision.success is True
        assert decision.new_level == 3
        assert decision.message == "Student remains at Level 3"
        assert decision.verification.from_level == 3
        assert decision.verification.to_level == 3
        assert decision.verification.approved is False
        assert await store.count(Certificate) == 0
        assert (await store.get_profile(pupil.id)).membership_level == 3

    @pytest.mark.asyncio
    async def test_reject_at_max_level_is_recorded(self, store, capability, tutor, make_user):
        pupil = await make_user(UserRole.STUDENT, level=5)

        decision = await make_service(store, capability).verify_level_up(tutor.id, pupil.id, approved=False)

        assert decision.outcome == LevelOutcome.RETAINED
        assert await store.count(LevelVerification) == 1


class TestMaxLevel:
    """Test approving a student already at level 5"""

    @pytest.mark.asyncio
    async def test_approve_at_max_writes_nothing(self, store, capability, tutor, make_user):
        """Test level 5 approval is a successful no-op"""
        pupil = await make_user(UserRole.STUDENT, level=5)
        version = pupil.version

        decision = await make_service(store, capability).verify_level_up(tutor.id, pupil.id, approved=True)

        assert decision.outcome == LevelOutcome.ALREADY_AT_MAX
        assert decision.success is True
        assert decision.new_level == 5
        assert decision.message == "Student is already at maximum level"
        assert decision.certificate is None
        assert await store.count(Certificate) == 0
        assert await store.count(LevelVerification) == 0

        profile = await store.get_profile(pupil.id)
        assert profile.membership_level == 5
        assert profile.version == version


class TestConcurrency:
    """Test the versioned level write"""

    @pytest.mark.asyncio
    async def test_stale_version_is_rejected(self, store, capability, tutor, make_user):
        """Test a decision based on an outdated read cannot overwrite a newer one"""
        pupil = await make_user(UserRole.STUDENT, level=2)
        stale_version = pupil.version

        await make_service(store, capability).verify_level_up(tutor.id, pupil.id, approved=True)

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            await store.update_profile(pupil.id, {"membership_level": 3}, expected_version=stale_version)

        assert exc_info.value.details["retryable"] is True
        assert (await store.get_profile(pupil.id)).membership_level == 3
        assert await store.count(Certificate) == 1

    @pytest.mark.asyncio
    async def test_two_tutors_approve_same_level(
        self, store, second_store, capability, tutor, admin_user, make_user, monkeypatch
    ):
        """Test two approvals racing from the same read promote once and certify once"""
        pupil = await make_user(UserRole.STUDENT, level=2)
        first = make_service(store, capability)
        second = make_service(second_store, capability)

        second_has_read = asyncio.Event()
        first_committed = asyncio.Event()
        read_student = second._student

        async def read_then_wait(student_id):
            student = await read_student(student_id)
            second_has_read.set()
            await first_committed.wait()
            return student

        monkeypatch.setattr(second, "_student", read_then_wait)

        racing = asyncio.create_task(second.verify_level_up(admin_user.id, pupil.id, approved=True))
        await second_has_read.wait()
        decision = await first.verify_level_up(tutor.id, pupil.id, approved=True)
        first_committed.set()

        with pytest.raises(ConcurrentUpdateError):
            await racing

        assert decision.outcome == LevelOutcome.PROMOTED
        assert (await store.get_profile(pupil.id)).membership_level == 3
        assert len(await store.query(Certificate, Certificate.student_id == pupil.id)) == 1
        assert await store.count(LevelVerification) == 1


class TestAccess:
    """Test who may verify and read"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [UserRole.STUDENT, UserRole.COMMITTEE])
    async def test_only_tutors_and_admins_verify(self, store, capability, make_user, student, role):
        caller = await make_user(role)
        with pytest.raises(AuthorizationError):
            await make_service(store, capability).verify_level_up(caller.id, student.id, approved=True)

        assert (await store.get_profile(student.id)).membership_level == 1

    @pytest.mark.asyncio
    async def test_admin_can_verify(self, store, capability, admin_user, student):
        decision = await make_service(store, capability).verify_level_up(admin_user.id, student.id, approved=True)
        assert decision.outcome == LevelOutcome.PROMOTED

    @pytest.mark.asyncio
    async def test_unknown_student(self, store, capability, tutor):
        with pytest.raises(StudentNotFoundError):
            await make_service(store, capability).verify_level_up(
                tutor.id, "00000000-0000-0000-0000-000000000000", approved=True
            )

    @pytest.mark.asyncio
    async def test_student_reads_own_certificates(self, store, capability, tutor, student, make_user):
        """Test a student sees their own certificates but not another's"""
        service = make_service(store, capability)
        await service.verify_level_up(tutor.id, student.id, approved=True)

        certificates = await service.get_certificates(student.id, student.id)
        assert [c.level for c in certificates] == [1]

        other = await make_user(UserRole.STUDENT)
        with pytest.raises(AuthorizationError):
            await service.get_certificates(other.id, student.id)

        verifications = await service.get_verifications(tutor.id, student.id)
        assert len(verifications) == 1
