"""
Unit Tests for Accounts and Admin Membership Controls
"""
import pytest
from datetime import datetime, timedelta

from clubhub.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from clubhub.models.user import User, UserRole, VerificationStatus
from clubhub.services.access_policy import ensure_may_sign_in
from clubhub.services.account_service import AccountService
from clubhub.services.grading_service import GradingService

NOW = datetime(2024, 9, 2, 8, 0)


def make_service(store, capability):
    return AccountService(store, capability, clock=lambda: NOW)


class TestRegister:
    """Test signup initial states"""

    @pytest.mark.asyncio
    async def test_student_starts_expired_and_verified(self, store, capability):
        """Test students must pay before their membership is active"""
        user = await make_service(store, capability).register(
            "New.Student@Example.com", "secret123", "  New Student  "
        )

        assert user.email == "new.student@example.com"
        assert user.full_name == "New Student"
        assert user.role == UserRole.STUDENT
        assert user.membership_level == 1
        assert user.membership_expiry == datetime(2024, 8, 2, 8, 0)
        assert user.verified is True
        assert user.verification_status == VerificationStatus.APPROVED
        assert user.is_membership_active(NOW) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["committee", "tutor"])
    async def test_staff_start_active_but_pending(self, store, capability, role):
        user = await make_service(store, capability).register(
            f"{role}@example.com", "secret123", "Staff Member", role=role
        )

        assert user.membership_expiry == datetime(2025, 1, 2, 8, 0)
        assert user.verified is False
        assert user.verification_status == VerificationStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["admin", "superuser"])
    async def test_rejects_admin_and_unknown_roles(self, store, capability, role):
        with pytest.raises(ValidationError) as exc_info:
            await make_service(store, capability).register("x@example.com", "secret123", "X", role=role)

        assert exc_info.value.details["field"] == "role"
        assert await store.count(User) == 0

    @pytest.mark.asyncio
    async def test_duplicate_email(self, store, capability, student):
        with pytest.raises(ValidationError) as exc_info:
            await make_service(store, capability).register(student.email.upper(), "secret123", "Copy")

        assert exc_info.value.message == "Email already registered"

    @pytest.mark.asyncio
    async def test_short_password(self, store, capability):
        with pytest.raises(ValidationError):
            await make_service(store, capability).register("short@example.com", "123", "Short")


class TestAuthenticate:
    """Test password login"""

    @pytest.mark.asyncio
    async def test_login_success(self, store, capability):
        service = make_service(store, capability)
        created = await service.register("login@example.com", "secret123", "Login User")

        user = await service.authenticate("LOGIN@example.com", "secret123")
        assert user.id == created.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, store, capability, student):
        with pytest.raises(AuthenticationError) as exc_info:
            await make_service(store, capability).authenticate(student.email, "wrong-password")

        assert exc_info.value.message == "Incorrect email or password"

    @pytest.mark.asyncio
    async def test_pending_tutor_blocked_until_approved(self, store, capability, admin_user):
        """Test committee/tutor accounts cannot log in until an admin approves them"""
        service = make_service(store, capability)
        pending = await service.register("tutor@example.com", "secret123", "Pending Tutor", role="tutor")

        with pytest.raises(AuthenticationError) as exc_info:
            await service.authenticate("tutor@example.com", "secret123")
        assert exc_info.value.message == "Account pending admin verification"

        approved = await service.verify_account(admin_user.id, pending.id, approved=True)
        assert approved.verified is True
        assert approved.verification_status == VerificationStatus.APPROVED

        user = await service.authenticate("tutor@example.com", "secret123")
        assert user.id == pending.id

    @pytest.mark.asyncio
    async def test_rejected_account_stays_blocked(self, store, capability, admin_user):
        service = make_service(store, capability)
        pending = await service.register("comm@example.com", "secret123", "Committee", role="committee")

        rejected = await service.verify_account(admin_user.id, pending.id, approved=False)
        assert rejected.verification_status == VerificationStatus.REJECTED

        with pytest.raises(AuthenticationError):
            await service.authenticate("comm@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_rejection_revokes_staff_powers(self, store, capability, admin_user, tutor, student):
        """Test a tutor rejected after approval can no longer grade"""
        service = make_service(store, capability)
        await service.verify_account(admin_user.id, tutor.id, approved=False)
        rejected = await store.get_profile(tutor.id)

        with pytest.raises(AuthenticationError):
            ensure_may_sign_in(rejected)
        with pytest.raises(AuthorizationError):
            await GradingService(store, capability).grade_student(tutor.id, student.id, "quiz", 80)

    def test_students_are_always_cleared(self):
        ensure_may_sign_in(User(role=UserRole.STUDENT, verification_status=VerificationStatus.PENDING))


class TestAdminControls:
    """Test admin-only operations"""

    @pytest.mark.asyncio
    async def test_reset_all_memberships_skips_admins(self, store, capability, admin_user, make_user):
        """Test the bulk reset expires every non-admin and reports the count"""
        future = NOW + timedelta(days=60)
        students = [await make_user(UserRole.STUDENT, expiry=future) for _ in range(3)]
        admin_expiry = admin_user.membership_expiry

        count = await make_service(store, capability).reset_all_memberships(admin_user.id)

        assert count == 3
        for pupil in students:
            profile = await store.get_profile(pupil.id)
            assert profile.membership_expiry == NOW - timedelta(days=1)
            assert profile.is_membership_active(NOW) is False
        admin = await store.get_profile(admin_user.id)
        assert admin.membership_expiry == admin_expiry
        assert admin.is_membership_active(NOW) is True

    @pytest.mark.asyncio
    async def test_reset_requires_admin(self, store, capability, tutor):
        with pytest.raises(AuthorizationError):
            await make_service(store, capability).reset_all_memberships(tutor.id)

    @pytest.mark.asyncio
    async def test_reset_level_can_lower(self, store, capability, admin_user, make_user):
        pupil = await make_user(UserRole.STUDENT, level=4)

        user = await make_service(store, capability).reset_level(admin_user.id, pupil.id, 2)

        assert user.membership_level == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [0, 6])
    async def test_reset_level_bounds(self, store, capability, admin_user, student, level):
        with pytest.raises(ValidationError):
            await make_service(store, capability).reset_level(admin_user.id, student.id, level)

    @pytest.mark.asyncio
    async def test_update_role(self, store, capability, admin_user, student):
        user = await make_service(store, capability).update_role(admin_user.id, student.id, "committee")
        assert user.role == UserRole.COMMITTEE

    @pytest.mark.asyncio
    async def test_pending_list(self, store, capability, admin_user, make_user):
        pending = await make_user(UserRole.TUTOR, verification_status=VerificationStatus.PENDING)
        await make_user(UserRole.TUTOR)

        users = await make_service(store, capability).list_pending_verifications(admin_user.id)

        assert [u.id for u in users] == [pending.id]

    @pytest.mark.asyncio
    async def test_stats(self, store, capability, admin_user, tutor, make_user):
        await make_user(UserRole.STUDENT, expiry=NOW + timedelta(days=30))
        await make_user(UserRole.STUDENT, expiry=NOW - timedelta(days=30))

        stats = await make_service(store, capability).get_stats(admin_user.id)

        assert stats["total_students"] == 2
        assert stats["total_tutors"] == 1
        assert stats["active_memberships"] == 1
        assert stats["total_payments"] == 0
