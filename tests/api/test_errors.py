"""
Tests for error translation, health check and request logging middleware.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError, WriteError

from api.errors import error_name, status_for
from api.main import create_app
from catalog.exceptions import (
    BusinessRuleConflict,
    CatalogError,
    FieldError,
    MalformedIdentifier,
    NotFound,
    UniquenessConflict,
    ValidationFailure,
)
from catalog.registry import ServiceRegistry


def failing_client(error):
    """Client whose author listing raises the given error."""
    authors = MagicMock()
    authors.find_all = AsyncMock(side_effect=error)
    app = create_app(ServiceRegistry(authors=authors, books=MagicMock()))
    return TestClient(app, raise_server_exceptions=False)


class TestStatusMapping:
    """Test cases for catalog error classification."""

    @pytest.mark.parametrize("error, expected", [
        (ValidationFailure([FieldError(field="title", message="title should not be empty")]), 400),
        (MalformedIdentifier("x"), 400),
        (NotFound("Book"), 404),
        (UniquenessConflict("isbn"), 409),
        (BusinessRuleConflict("Cannot delete author with existing books"), 409),
        (CatalogError("unclassified"), 500),
    ])
    def test_status_for(self, error, expected):
        assert status_for(error) == expected

    def test_error_names(self):
        assert error_name(400) == "Bad Request"
        assert error_name(409) == "Conflict"
        assert error_name(418) == "Error"


def test_unknown_route(client):
    response = client.get("/publishers")

    assert response.status_code == 404
    assert response.json() == {"statusCode": 404, "message": "Not Found", "error": "Not Found"}


def test_method_not_allowed(client):
    response = client.put("/authors")

    assert response.status_code == 405
    assert response.json()["error"] == "Method Not Allowed"


def test_unexpected_error_is_generic_500():
    client = failing_client(RuntimeError("connection string mongodb://secret"))

    response = client.get("/authors")

    assert response.status_code == 500
    assert response.json() == {
        "statusCode": 500,
        "message": "Something went wrong",
        "error": "Internal Server Error",
    }
    assert "secret" not in response.text


def test_unexpected_error_response_carries_request_id():
    client = failing_client(RuntimeError("boom"))

    response = client.get("/authors", headers={"X-Request-Id": "req-500"})

    assert response.status_code == 500
    assert response.headers["X-Request-Id"] == "req-500"
    assert response.json()["message"] == "Something went wrong"


def test_unclassified_catalog_error_is_generic_500():
    client = failing_client(CatalogError("internal detail"))

    response = client.get("/authors")

    assert response.status_code == 500
    assert response.json()["message"] == "Something went wrong"


def test_untranslated_duplicate_key_is_conflict():
    error = DuplicateKeyError(
        "E11000 duplicate key error",
        code=11000,
        details={"keyValue": {"isbn": "9780306406157"}, "keyPattern": {"isbn": 1}},
    )
    client = failing_client(error)

    response = client.get("/authors")

    assert response.status_code == 409
    assert response.json()["message"] == "isbn already exists"


def test_schema_rejection_is_bad_request():
    client = failing_client(WriteError("Document failed validation", code=121))

    response = client.get("/authors")

    assert response.status_code == 400
    assert response.json()["message"] == "Document failed validation"


def test_health_without_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database_status"] == "not_configured"
    assert "timestamp" in data
    assert "version" in data


def test_health_reports_degraded_database(services):
    app = create_app(services)
    app.state.db_manager = MagicMock()
    app.state.db_manager.health_check = AsyncMock(return_value={"status": "unhealthy"})

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database_status"] == "unhealthy"


def test_request_id_is_echoed(client):
    response = client.get("/authors", headers={"X-Request-Id": "abc-123"})

    assert response.headers["X-Request-Id"] == "abc-123"


def test_request_id_is_generated(client):
    response = client.get("/authors")

    assert response.headers["X-Request-Id"]
