"""Tests for RFC 7807 error handling."""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from apps.api.core.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    register_error_handlers,
)


@pytest.fixture
def error_app():
    """Create a test app with error handlers registered."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/test/not-found")
    async def raise_not_found():
        raise NotFoundError("Statement not found")

    @app.get("/test/validation")
    async def raise_validation():
        raise ValidationError("No rows found")

    @app.get("/test/conflict")
    async def raise_conflict():
        raise ConflictError("File already imported (duplicate hash)")

    @app.get("/test/too-large")
    async def raise_too_large():
        raise HTTPException(status_code=413, detail="Upload exceeds 10 bytes")

    @app.get("/test/unhandled")
    async def raise_unhandled():
        raise RuntimeError("Unexpected crash")

    return app


@pytest.fixture
def client(error_app):
    return TestClient(error_app, raise_server_exceptions=False)


class TestRFC7807ErrorFormat:
    """All errors should return RFC 7807 Problem Details format."""

    def test_not_found_returns_rfc7807(self, client):
        response = client.get("/test/not-found")
        assert response.status_code == 404
        body = response.json()
        assert body["type"] == "about:blank"
        assert body["title"] == "Not Found"
        assert body["status"] == 404
        assert body["detail"] == "Statement not found"
        assert body["instance"] == "/test/not-found"

    def test_validation_error_returns_rfc7807(self, client):
        response = client.get("/test/validation")
        assert response.status_code == 422
        body = response.json()
        assert body["title"] == "Unprocessable Entity"
        assert body["detail"] == "No rows found"

    def test_conflict_returns_rfc7807(self, client):
        response = client.get("/test/conflict")
        assert response.status_code == 409
        body = response.json()
        assert body["title"] == "Conflict"
        assert body["detail"] == "File already imported (duplicate hash)"

    def test_http_exception_returns_rfc7807(self, client):
        response = client.get("/test/too-large")
        assert response.status_code == 413
        body = response.json()
        assert body["title"] == "Content Too Large"
        assert body["detail"] == "Upload exceeds 10 bytes"

    def test_unknown_route_returns_rfc7807(self, client):
        response = client.get("/test/missing")
        assert response.status_code == 404
        assert response.json()["title"] == "Not Found"

    def test_unhandled_error_returns_rfc7807(self, client):
        response = client.get("/test/unhandled")
        assert response.status_code == 500
        body = response.json()
        assert body["title"] == "Internal Server Error"
        assert body["detail"] == "An unexpected error occurred"
