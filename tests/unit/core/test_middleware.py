"""
Tests for request logging middleware and the structured request log
"""
import logging

import pytest
from httpx import AsyncClient

from clubhub.core.logging_config import logger
from clubhub.core.middleware import is_quiet, workflow_for_path


def request_records(caplog):
    return [r for r in caplog.records if getattr(r, "event_type", None) == "http_request"]


class TestRequestLogging:
    """Test every API request is logged once with its workflow"""

    @pytest.mark.asyncio
    async def test_api_request_logged(self, client: AsyncClient, auth_headers, caplog):
        caplog.set_level(logging.INFO, logger="clubhub")

        response = await client.get(
            "/api/v1/auth/me", headers={**auth_headers, "X-Request-ID": "req-123"}
        )

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Response-Time"].endswith("ms")
        records = request_records(caplog)
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert records[0].http_method == "GET"
        assert records[0].http_path == "/api/v1/auth/me"
        assert records[0].http_status == 200
        assert records[0].workflow == "auth"

    @pytest.mark.asyncio
    async def test_client_errors_logged_as_warning(self, client: AsyncClient, caplog):
        caplog.set_level(logging.INFO, logger="clubhub")

        await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "nope"})

        records = request_records(caplog)
        assert [r.http_status for r in records] == [401]
        assert records[0].levelno == logging.WARNING

    @pytest.mark.asyncio
    async def test_quiet_paths_not_logged(self, client: AsyncClient, caplog):
        caplog.set_level(logging.INFO, logger="clubhub")

        response = await client.get("/health")

        assert response.status_code == 200
        assert "X-Request-ID" in response.headers
        assert request_records(caplog) == []


class TestLogRequest:
    """Test the structured request log entry"""

    def test_fields_and_level(self, caplog):
        caplog.set_level(logging.INFO, logger="clubhub")

        logger.log_request("POST", "/api/v1/payments/process", 503, 12.5, level=logging.ERROR, workflow="payments")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "POST /api/v1/payments/process - 503 (12.50ms)"
        assert record.event_type == "http_request"
        assert record.http_status == 503
        assert record.duration_ms == 12.5
        assert record.workflow == "payments"


def test_workflow_for_path():
    assert workflow_for_path("/api/v1/attendance/check-in") == "attendance"
    assert workflow_for_path("/api/v1/") is None
    assert workflow_for_path("/docs") is None


def test_health_paths_are_quiet():
    assert is_quiet("/health")
    assert is_quiet("/api/v1/health/ready")
    assert not is_quiet("/api/v1/grades")
