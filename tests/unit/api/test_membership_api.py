"""
API Tests for the membership workflows: payment, check-in, grading, levels, admin
"""
import pytest
from datetime import datetime
from httpx import AsyncClient

from clubhub.api.deps import get_fallback_reader, get_store_capability
from clubhub.main import app
from clubhub.models.user import UserRole
from clubhub.services.read_fallback import FallbackReader


class TestPaymentAPI:
    """Test payment endpoints"""

    @pytest.mark.asyncio
    async def test_pay_activates_membership(self, client: AsyncClient, auth_headers):
        """Test paying renews an expired membership from now"""
        response = await client.post(
            "/api/v1/payments/process", json={"amount": 50}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["membership_level"] == 1
        assert data["payment"]["payment_method"] == "online"
        assert data["payment"]["reference_number"].startswith("PAY-")
        assert datetime.fromisoformat(data["new_expiry"]) > datetime.utcnow()

        me = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert me.json()["membership_active"] is True

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/v1/payments/process", json={"amount": 0}, headers=auth_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_student_cannot_record_offline_payment(self, client: AsyncClient, auth_headers, student):
        response = await client.post(
            "/api/v1/payments/record",
            json={"user_id": student.id, "amount": 50},
            headers=auth_headers,
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Not authorized"

    @pytest.mark.asyncio
    async def test_committee_records_payment(self, client: AsyncClient, committee, student, headers_for):
        response = await client.post(
            "/api/v1/payments/record",
            json={"user_id": student.id, "amount": 50, "payment_type": "cash"},
            headers=headers_for(committee),
        )

        assert response.status_code == 200
        payment = response.json()["payment"]
        assert payment["payment_method"] == "offline"
        assert payment["reference_number"].startswith("OFFLINE-")

    @pytest.mark.asyncio
    async def test_payment_history(self, client: AsyncClient, auth_headers):
        await client.post("/api/v1/payments/process", json={"amount": 50}, headers=auth_headers)

        response = await client.get("/api/v1/payments/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["stale"] is False


class TestCheckInAPI:
    """Test attendance check-in"""

    @pytest.mark.asyncio
    async def test_check_in_once(self, client: AsyncClient, committee, headers_for, auth_headers):
        """Test the first check-in succeeds and a repeat is a conflict"""
        created = await client.post(
            "/api/v1/events",
            json={"title": "Freshers Social", "event_date": "2024-10-01"},
            headers=headers_for(committee),
        )
        assert created.status_code == 201
        code = created.json()["session_code"]

        first = await client.post(
            "/api/v1/attendance/check-in", json={"session_code": code.lower()}, headers=auth_headers
        )
        assert first.status_code == 201
        assert first.json()["attendance"]["attendance_type"] == "event"
        assert first.json()["message"] == "Checked in to Freshers Social"

        second = await client.post(
            "/api/v1/attendance/check-in", json={"session_code": code}, headers=auth_headers
        )
        assert second.status_code == 409
        assert second.json()["error"]["message"] == "You have already checked in for this event."

    @pytest.mark.asyncio
    async def test_unknown_code(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/attendance/check-in", json={"session_code": "NOPE42"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Invalid session code. Please check and try again."


class TestGradingAPI:
    """Test grading endpoints"""

    @pytest.mark.asyncio
    async def test_grade_and_summary(self, client: AsyncClient, tutor_auth_headers, student, auth_headers):
        for score in (55, 65):
            response = await client.post(
                "/api/v1/grades",
                json={"student_id": student.id, "assessment_type": "quiz", "grade": score},
                headers=tutor_auth_headers,
            )
            assert response.status_code == 201

        summary = await client.get(f"/api/v1/grades/student/{student.id}/summary", headers=auth_headers)

        assert summary.status_code == 200
        assert summary.json()["average"] == 60.0
        assert summary.json()["pass_rate"] == 50.0

    @pytest.mark.asyncio
    async def test_out_of_range_grade(self, client: AsyncClient, tutor_auth_headers, student):
        response = await client.post(
            "/api/v1/grades",
            json={"student_id": student.id, "assessment_type": "exam", "grade": 101},
            headers=tutor_auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "grade"

    @pytest.mark.asyncio
    async def test_fractional_grade_uses_error_envelope(self, client: AsyncClient, tutor_auth_headers, student):
        """Test schema-level rejections answer 400 in the same envelope as service errors"""
        response = await client.post(
            "/api/v1/grades",
            json={"student_id": student.id, "assessment_type": "quiz", "grade": 99.5},
            headers=tutor_auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["field"] == "grade"

    @pytest.mark.asyncio
    async def test_missing_field_uses_error_envelope(self, client: AsyncClient, tutor_auth_headers, student):
        response = await client.post(
            "/api/v1/grades",
            json={"student_id": student.id, "grade": 70},
            headers=tutor_auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "assessment_type"

    @pytest.mark.asyncio
    async def test_student_cannot_grade(self, client: AsyncClient, auth_headers, student):
        response = await client.post(
            "/api/v1/grades",
            json={"student_id": student.id, "assessment_type": "exam", "grade": 100},
            headers=auth_headers,
        )

        assert response.status_code == 403


class TestLevelAPI:
    """Test level verification endpoints"""

    @pytest.mark.asyncio
    async def test_promote_and_list_certificates(self, client: AsyncClient, tutor_auth_headers, student, auth_headers):
        response = await client.post(
            "/api/v1/levels/verify",
            json={"student_id": student.id, "approved": True, "tutor_notes": "Solid work"},
            headers=tutor_auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "promoted"
        assert data["new_level"] == 2
        assert data["certificate"]["level"] == 1

        certificates = await client.get(f"/api/v1/levels/{student.id}/certificates", headers=auth_headers)
        assert certificates.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_already_at_max(self, client: AsyncClient, tutor_auth_headers, make_user):
        pupil = await make_user(UserRole.STUDENT, level=5)

        response = await client.post(
            "/api/v1/levels/verify",
            json={"student_id": pupil.id, "approved": True},
            headers=tutor_auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "already_at_max"
        assert response.json()["certificate"] is None


class TestAdminAPI:
    """Test admin endpoints"""

    @pytest.mark.asyncio
    async def test_reset_memberships(self, client: AsyncClient, admin_auth_headers, student, tutor):
        response = await client.post("/api/v1/admin/memberships/reset", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["reset_count"] == 2

    @pytest.mark.asyncio
    async def test_reset_requires_admin(self, client: AsyncClient, tutor_auth_headers):
        response = await client.post("/api/v1/admin/memberships/reset", headers=tutor_auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin_auth_headers, student):
        response = await client.get("/api/v1/admin/stats", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["total_students"] == 1


class TestStoreAvailability:
    """Test behaviour when the data store is unusable"""

    @pytest.mark.asyncio
    async def test_health_summary(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "ok"

    @pytest.mark.asyncio
    async def test_health_summary_reports_unready_store(self, client: AsyncClient, stub_capability):
        app.dependency_overrides[get_store_capability] = lambda: stub_capability(False)

        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["database"] == "unavailable"

    @pytest.mark.asyncio
    async def test_health_ready(self, client: AsyncClient):
        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    @pytest.mark.asyncio
    async def test_writes_refused_when_not_ready(self, client: AsyncClient, auth_headers, stub_capability):
        app.dependency_overrides[get_store_capability] = lambda: stub_capability(False)

        response = await client.post("/api/v1/payments/process", json={"amount": 50}, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["error"]["details"]["retryable"] is True

        ready = await client.get("/api/v1/health/ready")
        assert ready.status_code == 503

    @pytest.mark.asyncio
    async def test_stale_list_served_from_snapshot(
        self, client: AsyncClient, auth_headers, read_cache, stub_capability
    ):
        """Test a list read falls back to the last snapshot and is flagged stale"""
        await client.post("/api/v1/payments/process", json={"amount": 50}, headers=auth_headers)
        app.dependency_overrides[get_fallback_reader] = lambda: FallbackReader(stub_capability(True), read_cache)
        fresh = await client.get("/api/v1/payments/me", headers=auth_headers)
        assert fresh.json()["stale"] is False

        app.dependency_overrides[get_fallback_reader] = lambda: FallbackReader(stub_capability(False), read_cache)
        stale = await client.get("/api/v1/payments/me", headers=auth_headers)

        assert stale.status_code == 200
        assert stale.json()["stale"] is True
        assert stale.json()["cached_at"] is not None
        assert stale.json()["items"] == fresh.json()["items"]
