"""Tests for global exception handlers.

Every error type maps to its status code and the shared
``{"error": message, "code": ..., "request_id": ...}`` body, without leaking
internal error text.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AnalysisAppError,
    AppError,
    AuthenticationAppError,
    RateLimitAppError,
    StoreUnavailableError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationAppError(code="invalid_input", message="bad"), 400),
            (AuthenticationAppError(code="invalid_api_key", message="no"), 403),
            (RateLimitAppError(code="rate_limit_exceeded", message="later"), 429),
            (AnalysisAppError(code="analysis_failed", message="retry"), 500),
            (StoreUnavailableError(code="store_unavailable", message="down"), 500),
        ],
    )
    def test_status_mapping(
        self, client: TestClient, app_with_handlers: FastAPI, error: AppError, status: int
    ) -> None:
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = client.get("/boom")

        assert response.status_code == status
        body = response.json()
        assert body["error"] == error.message
        assert body["code"] == error.code
        assert "request_id" in body

    def test_client_errors_include_details(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/invalid")
        async def invalid():
            raise ValidationAppError(
                code="invalid_input",
                message="Please fill in the title, headings and content.",
                details={"missing_fields": ["content"]},
            )

        response = client.get("/invalid")

        assert response.json()["details"] == {"missing_fields": ["content"]}

    def test_server_errors_never_include_details(
        self, client: TestClient, app_with_handlers: FastAPI
    ) -> None:
        @app_with_handlers.get("/analysis")
        async def analysis():
            raise AnalysisAppError(
                code="analysis_failed",
                message="An error occurred during analysis. Please try again.",
                details={"hint": "provider said: quota exceeded for org-123"},
            )

        response = client.get("/analysis")

        assert response.status_code == 500
        assert "details" not in response.json()
        assert "org-123" not in response.text

    def test_rate_limit_error_sets_headers(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/limited")
        async def limited():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Daily analysis limit reached.",
                headers={"Retry-After": "120", "X-RateLimit-Limit": "5"},
            )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "120"
        assert response.headers["X-RateLimit-Limit"] == "5"


class TestRequestValidationHandler:
    def test_body_validation_error_is_400(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        from pydantic import BaseModel

        class Body(BaseModel):
            title: str

        @app_with_handlers.post("/items")
        async def create(body: Body):
            return body

        response = client.post("/items", json={"title": {"nested": True}})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "invalid_input"
        assert body["details"]["context"]["fields"] == ["title"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_general_exception_handler_logic(self) -> None:
        request = AsyncMock()
        request.url.path = "/v1/analyze"
        request.method = "POST"

        exc = RuntimeError("Unexpected error: redis password rejected")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["code"] == "internal_server_error"
        assert "redis password" not in data["error"]
        assert "request_id" in data

    def test_never_leaks_stack_trace(self, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/crash")
        async def crash():
            raise ValueError("Test error with details")

        client = TestClient(app_with_handlers, raise_server_exceptions=False)
        response = client.get("/crash")

        assert response.status_code == 500
        assert "Traceback" not in response.text
        assert "ValueError" not in response.text
        assert "Test error with details" not in response.text


def test_setup_registers_handlers(app_with_handlers: FastAPI) -> None:
    from fastapi.exceptions import RequestValidationError

    assert AppError in app_with_handlers.exception_handlers
    assert RequestValidationError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
