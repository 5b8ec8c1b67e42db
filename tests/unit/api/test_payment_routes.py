"""Unit tests for payment routes."""

import logging
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from cookschool.store import SchoolStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def rina(login):
    """A student session."""
    return login("student", "Rina")


@pytest.fixture
def registration_id(
    client: TestClient, store: SchoolStore, course_fields: dict[str, Any], rina
) -> int:
    """Rina's registration for a 5000.00 course."""
    course = store.create_course(**course_fields)
    response = client.post(f"/api/v1/courses/{course.id}/register", headers=rina.headers)
    return response.json()["data"]["registration"]["id"]


def _submit(
    client: TestClient,
    registration_id: int,
    headers: dict[str, str],
    transaction_id: str = "TXN-001",
    proof: tuple[str, bytes, str] = ("receipt.png", PNG_BYTES, "image/png"),
):
    return client.post(
        "/api/v1/payments",
        data={
            "registration_id": str(registration_id),
            "transaction_id": transaction_id,
            "payment_date": "2030-01-20T15:00:00",
        },
        files={"payment_proof": proof},
        headers=headers,
    )


@pytest.mark.unit
class TestSubmitPayment:
    """Tests for POST /api/v1/payments."""

    def test_submit(
        self, client: TestClient, registration_id: int, rina, tmp_path: Path
    ) -> None:
        """A pending payment is recorded with the stored proof."""
        response = _submit(client, registration_id, rina.headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["amount"] == 5000.0
        assert data["payment_method"] == "bkash"
        assert data["verification_status"] == "pending"
        assert (tmp_path / data["payment_proof"]).exists()

    def test_wrong_file_type(self, client: TestClient, registration_id: int, rina) -> None:
        """Non-image proofs are a validation failure."""
        response = _submit(
            client,
            registration_id,
            rina.headers,
            proof=("receipt.pdf", b"%PDF-1.4", "application/pdf"),
        )

        assert response.status_code == 422
        assert response.json()["errors"]["payment_proof"] == [
            "The payment proof must be a file of type: jpeg, png, jpg."
        ]

    def test_missing_proof(self, client: TestClient, registration_id: int, rina) -> None:
        """The proof file is required."""
        response = client.post(
            "/api/v1/payments",
            data={
                "registration_id": str(registration_id),
                "transaction_id": "TXN-001",
                "payment_date": "2030-01-20T15:00:00",
            },
            headers=rina.headers,
        )

        assert response.status_code == 422
        assert "payment_proof" in response.json()["errors"]

    def test_duplicate_transaction(
        self, client: TestClient, registration_id: int, rina
    ) -> None:
        """Transaction IDs are unique across payments."""
        _submit(client, registration_id, rina.headers)

        response = _submit(client, registration_id, rina.headers)

        assert response.status_code == 400

    def test_duplicate_transaction_from_another_registration(
        self,
        client: TestClient,
        store: SchoolStore,
        login,
        course_fields: dict[str, Any],
        registration_id: int,
        rina,
        tmp_path: Path,
    ) -> None:
        """A transaction ID used by one student is refused for another."""
        sumi = login("student", "Sumi")
        course = store.create_course(**{**course_fields, "title_en": "Baking Basics"})
        other = client.post(f"/api/v1/courses/{course.id}/register", headers=sumi.headers)
        other_id = other.json()["data"]["registration"]["id"]
        _submit(client, registration_id, rina.headers, transaction_id="TXN1")

        response = _submit(client, other_id, sumi.headers, transaction_id="TXN1")

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert len(list(tmp_path.rglob("*.png"))) == 1

    def test_other_student_cannot_pay(
        self, client: TestClient, login, registration_id: int
    ) -> None:
        """Only the owner submits for a registration."""
        sumi = login("student", "Sumi")

        assert _submit(client, registration_id, sumi.headers).status_code == 403

    def test_unknown_registration(self, client: TestClient, rina) -> None:
        """Unknown registrations return 404."""
        assert _submit(client, 999, rina.headers).status_code == 404


@pytest.mark.unit
class TestReviewPayment:
    """Tests for GET and PUT /api/v1/payments/{id}."""

    def test_verify(
        self, client: TestClient, admin, registration_id: int, rina
    ) -> None:
        """Verifying completes the registration."""
        payment_id = _submit(client, registration_id, rina.headers).json()["data"]["id"]

        response = client.put(
            f"/api/v1/payments/{payment_id}/verify",
            json={"status": "verified"},
            headers=admin.headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Payment verified successfully"
        assert body["data"]["verified_by"] == admin.user_id
        registrations = client.get(
            f"/api/v1/students/{rina.student_id}/registrations", headers=rina.headers
        ).json()["data"]
        assert registrations[0]["payment_status"] == "completed"

    def test_reject_requires_reason(
        self, client: TestClient, admin, registration_id: int, rina
    ) -> None:
        """Rejection without a reason fails validation."""
        payment_id = _submit(client, registration_id, rina.headers).json()["data"]["id"]

        response = client.put(
            f"/api/v1/payments/{payment_id}/verify",
            json={"status": "rejected"},
            headers=admin.headers,
        )

        assert response.status_code == 422
        assert "rejection_reason" in response.json()["errors"]

    def test_review_is_final(
        self, client: TestClient, admin, registration_id: int, rina
    ) -> None:
        """A reviewed payment cannot be reviewed again."""
        payment_id = _submit(client, registration_id, rina.headers).json()["data"]["id"]
        url = f"/api/v1/payments/{payment_id}/verify"
        client.put(
            url, json={"status": "rejected", "rejection_reason": "Blurry"}, headers=admin.headers
        )

        response = client.put(url, json={"status": "verified"}, headers=admin.headers)

        assert response.status_code == 400

    def test_unknown_status(self, client: TestClient, admin) -> None:
        """Only verified and rejected are accepted."""
        response = client.put(
            "/api/v1/payments/1/verify", json={"status": "pending"}, headers=admin.headers
        )

        assert response.status_code == 422
        assert "status" in response.json()["errors"]

    def test_student_cannot_verify(
        self, client: TestClient, registration_id: int, rina
    ) -> None:
        """Students lack verify payments."""
        payment_id = _submit(client, registration_id, rina.headers).json()["data"]["id"]

        response = client.put(
            f"/api/v1/payments/{payment_id}/verify",
            json={"status": "verified"},
            headers=rina.headers,
        )

        assert response.status_code == 403

    def test_get_payment(
        self, client: TestClient, admin, login, registration_id: int, rina
    ) -> None:
        """Owner and staff see the payment with student and course."""
        payment_id = _submit(client, registration_id, rina.headers).json()["data"]["id"]

        own = client.get(f"/api/v1/payments/{payment_id}", headers=rina.headers)
        staff = client.get(f"/api/v1/payments/{payment_id}", headers=admin.headers)
        other = client.get(
            f"/api/v1/payments/{payment_id}", headers=login("student", "Sumi").headers
        )

        assert own.status_code == 200
        assert staff.json()["data"]["student_name"] == "Rina"
        assert staff.json()["data"]["course_title"] == "Bengali Home Cooking"
        assert other.status_code == 403


@pytest.mark.unit
class TestReportAndWebhook:
    """Tests for the payment report and gateway webhook."""

    def test_report(self, client: TestClient, admin, registration_id: int, rina) -> None:
        """Totals cover every matching payment."""
        _submit(client, registration_id, rina.headers)

        response = client.get(
            "/api/v1/payments/report",
            params={"start_date": "2030-01-01", "end_date": "2030-01-20"},
            headers=admin.headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["limit"] == 15
        assert data["payments"][0]["student_name"] == "Rina"
        assert data["summary"] == {
            "total_amount": 5000.0,
            "verified_amount": 0.0,
            "pending_amount": 5000.0,
            "rejected_amount": 0.0,
        }

    def test_report_forbidden_for_course_administrators(
        self, client: TestClient, login
    ) -> None:
        """Course administrators lack view payment reports."""
        manager = login("course-administrator", "Course Admin")

        response = client.get("/api/v1/payments/report", headers=manager.headers)

        assert response.status_code == 403

    def test_webhook(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        """The webhook is public and only logs the payload."""
        with caplog.at_level(logging.INFO, logger="cookschool.payments"):
            response = client.post(
                "/api/v1/payments/webhook", json={"transaction_id": "TXN-9", "status": "ok"}
            )

        assert response.status_code == 200
        assert response.json()["data"] == {"received": True}
        assert "TXN-9" in caplog.text
