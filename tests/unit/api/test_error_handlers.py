"""Unit tests for the error envelope handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from cookschool.access import AuthenticationError, PermissionDeniedError
from cookschool.api import register_exception_handlers
from cookschool.exceptions import ConflictError, CookSchoolError, NotFoundError, ValidationError
from cookschool.storage import StorageError


class Item(BaseModel):
    name: str = Field(..., min_length=1)


@pytest.fixture
def client():
    """A client for an app whose routes raise each error kind."""
    app = FastAPI()
    register_exception_handlers(app)

    errors = {
        "authentication": AuthenticationError("Missing bearer token"),
        "not-found": NotFoundError("Course with id '9' not found"),
        "conflict": ConflictError("Course is full"),
        "forbidden": PermissionDeniedError("Nope"),
        "invalid": ValidationError("Validation failed", {"price": ["Too low."]}),
        "storage": StorageError("disk full at /srv/uploads"),
        "internal": CookSchoolError("secret detail"),
    }

    @app.get("/raise/{kind}")
    def raise_error(kind: str):
        raise errors[kind]

    @app.post("/items")
    def create_item(item: Item):
        return item

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.mark.unit
class TestErrorEnvelope:
    """Each error kind maps to one status code and the failure envelope."""

    @pytest.mark.parametrize(
        ("kind", "status_code"),
        [
            ("authentication", 401),
            ("not-found", 404),
            ("conflict", 400),
            ("forbidden", 403),
            ("invalid", 422),
            ("storage", 500),
            ("internal", 500),
        ],
    )
    def test_status_codes(self, client: TestClient, kind: str, status_code: int) -> None:
        """The status code follows the error kind."""
        response = client.get(f"/raise/{kind}")

        assert response.status_code == status_code
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None

    def test_messages(self, client: TestClient) -> None:
        """Business errors keep their message; field errors are passed through."""
        conflict = client.get("/raise/conflict").json()
        invalid = client.get("/raise/invalid").json()

        assert conflict["message"] == "Course is full"
        assert conflict["errors"] is None
        assert invalid["errors"] == {"price": ["Too low."]}

    def test_internal_details_hidden(self, client: TestClient) -> None:
        """Unexpected failures do not leak their message."""
        assert client.get("/raise/internal").json()["message"] == "Internal server error"
        assert client.get("/raise/storage").json()["message"] == "File storage error"

    def test_request_validation(self, client: TestClient) -> None:
        """Request validation errors are keyed by field name."""
        response = client.post("/items", json={"name": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Validation failed"
        assert list(body["errors"]) == ["name"]

    def test_malformed_body(self, client: TestClient) -> None:
        """A missing body is reported against the request."""
        response = client.post("/items")

        assert response.status_code == 422
        assert list(response.json()["errors"]) == ["request"]
