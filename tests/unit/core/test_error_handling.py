"""
Tests for error handling middleware.
Covers the JSON error envelope, access-control errors and sanitization.
"""

import pytest
import json
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, OperationalError

from core.hierarchy import AccessDenied, AdminRequired, ResourceNotFound
from core.middleware.error_handling import (
    sanitize_error_message,
    ErrorHandlingMiddleware,
    setup_error_handlers,
)


class TestSensitiveDataSanitization:
    """Test sensitive data sanitization."""

    @pytest.mark.parametrize("sensitive_input,expected_redacted", [
        ('password="secret123"', True),
        ('token="Bearer abc123xyz"', True),
        ('api_key="sk_live_12345"', True),
        ('client_secret:abc123', True),
        ('authorization: Bearer token123', True),
        ('could not connect to postgresql+asyncpg://app:hunter2@db:5432/agency', True),
        ('username="john_doe"', False),
        ('Candidate c-1 not found', False),
    ])
    def test_sanitize_sensitive_patterns(self, sensitive_input, expected_redacted):
        sanitized = sanitize_error_message(sensitive_input)

        if expected_redacted:
            assert "[REDACTED]" in sanitized
        else:
            assert sanitized == sensitive_input

    def test_database_url_credentials_removed(self):
        sanitized = sanitize_error_message(
            "connect failed: postgresql://app:hunter2@db:5432/agency"
        )
        assert "hunter2" not in sanitized

    def test_non_string_input(self):
        assert sanitize_error_message(ValueError("bad password=x1")) == "bad [REDACTED]"


class TestErrorHandlingMiddleware:
    """Test error handling middleware with various exception types."""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        setup_error_handlers(app)
        app.add_middleware(ErrorHandlingMiddleware, debug=False)

        class Payload(BaseModel):
            hours: float

        @app.get("/success")
        async def success():
            return {"message": "success"}

        @app.get("/value-error")
        async def value_error():
            raise ValueError("Invalid input with password=secret")

        @app.get("/http-error")
        async def http_error():
            raise HTTPException(status_code=401, detail="Unauthorized with token=abc123")

        @app.get("/access-denied")
        async def access_denied():
            raise AccessDenied("Access denied to 2 record(s)", user_id="u1", denied_ids=["c1", "c2"])

        @app.get("/admin-required")
        async def admin_required():
            raise AdminRequired("Admin access required", user_id="u1")

        @app.get("/not-found")
        async def not_found():
            raise ResourceNotFound("Time entry", "e-404")

        @app.post("/validate")
        async def validate(payload: Payload):
            return payload

        @app.get("/database-integrity-error")
        async def db_integrity_error():
            raise IntegrityError("duplicate key", None, None)

        @app.get("/database-operational-error")
        async def db_operational_error():
            raise OperationalError("connection lost", None, None)

        @app.get("/generic-error")
        async def generic_err():
            raise Exception("Unexpected error with api_key=secret")

        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app)

    def test_successful_request(self, client):
        response = client.get("/success")
        assert response.status_code == 200
        assert response.json() == {"message": "success"}

    def test_value_error_handling(self, client):
        response = client.get("/value-error")
        assert response.status_code == 400

        data = response.json()
        assert data["error"]["code"] == "INVALID_INPUT"
        assert "secret" not in json.dumps(data)
        assert "[REDACTED]" in data["error"]["message"]

    def test_http_exception_handling(self, client):
        response = client.get("/http-error")
        assert response.status_code == 401

        data = response.json()
        assert data["error"]["code"] == "HTTP_EXCEPTION"
        assert "abc123" not in json.dumps(data)

    def test_access_denied_lists_denied_ids(self, client):
        response = client.get("/access-denied")
        assert response.status_code == 403

        error = response.json()["error"]
        assert error["code"] == "ACCESS_DENIED"
        assert error["details"] == {"denied_ids": ["c1", "c2"]}

    def test_admin_required(self, client):
        response = client.get("/admin-required")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ADMIN_REQUIRED"
        assert "details" not in response.json()["error"]

    def test_not_found(self, client):
        response = client.get("/not-found")
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Time entry e-404 not found"

    def test_validation_error(self, client):
        response = client.post("/validate", json={"hours": "lots"})
        assert response.status_code == 422

        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "body.hours"

    def test_database_integrity_error(self, client):
        response = client.get("/database-integrity-error")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INTEGRITY_ERROR"

    def test_database_operational_error(self, client):
        response = client.get("/database-operational-error")
        assert response.status_code == 503

        data = response.json()
        assert data["error"]["code"] == "DATABASE_ERROR"
        assert "unavailable" in data["error"]["message"].lower()

    def test_generic_error_handling(self, client):
        response = client.get("/generic-error")
        assert response.status_code == 500

        data = response.json()
        assert data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in json.dumps(data)

    def test_error_response_structure(self, client):
        data = client.get("/value-error").json()

        assert data["error"]["path"] == "/value-error"
        assert data["error"]["method"] == "GET"

    def test_debug_mode_includes_details(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware, debug=True)

        @app.get("/error")
        async def error():
            raise RuntimeError("boom")

        response = TestClient(app).get("/error")
        details = response.json()["error"]["details"]

        assert details["type"] == "RuntimeError"
        assert "traceback" in details

    def test_middleware_alone_maps_access_errors(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware)

        @app.get("/denied")
        async def denied():
            raise AccessDenied("nope", denied_ids=["x"])

        response = TestClient(app).get("/denied")

        assert response.status_code == 403
        assert response.json()["error"]["details"]["denied_ids"] == ["x"]
