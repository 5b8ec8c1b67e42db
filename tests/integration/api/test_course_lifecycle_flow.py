"""Integration tests for the full course lifecycle through the API."""

import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cookschool.api.app import create_app
from cookschool.config import Settings
from cookschool.store import SchoolStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary directory."""
    return Settings(
        db_path=str(tmp_path / "school.db"),
        upload_dir=tmp_path / "uploads",
        signing_key="integration-key",
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def tokens(settings: Settings) -> dict[str, str]:
    """API tokens for an admin and a student, created before startup."""
    store = SchoolStore(settings.db_path)
    try:
        admin = store.create_user(name="Admin", email="admin@example.com", role="super-admin")
        rina = store.create_user(name="Rina", email="rina@example.com", role="student")
        store.create_student(name="Rina", email="rina@example.com", user_id=rina.id)
        return {"admin": admin.api_token, "rina": rina.api_token}
    finally:
        store.close()


@pytest.fixture
def client(settings: Settings, tokens: dict[str, str]):
    """Create a test client running the full application lifespan."""
    with TestClient(create_app(settings), raise_server_exceptions=False) as client:
        yield client
    logging.getLogger("cookschool").handlers.clear()


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.integration
class TestCourseLifecycleFlow:
    """Integration test for course creation through certificate verification."""

    def test_full_flow(
        self, client: TestClient, settings: Settings, tokens: dict[str, str]
    ) -> None:
        """Create -> Register -> Pay -> Verify -> Complete -> Certify -> Check."""
        admin = _auth(tokens["admin"])
        rina = _auth(tokens["rina"])

        # 1. Create and staff a course
        course = client.post(
            "/api/v1/courses",
            json={
                "title_en": "Bengali Home Cooking",
                "description_en": "Everyday dishes",
                "start_date": "2030-06-01",
                "end_date": "2030-06-05",
                "daily_start_time": "10:00:00",
                "daily_end_time": "13:00:00",
                "location_details": "Kitchen 2, Dhanmondi",
                "maximum_capacity": 2,
                "price": "5000.00",
                "category": "home-cooking",
            },
            headers=admin,
        )
        assert course.status_code == 201
        course_id = course.json()["data"]["id"]

        instructor = client.post(
            "/api/v1/instructors",
            json={"name": "Chef Karim", "email": "karim@example.com"},
            headers=admin,
        )
        assigned = client.post(
            f"/api/v1/courses/{course_id}/instructors",
            json={"instructor_id": instructor.json()["data"]["id"], "is_lead": True},
            headers=admin,
        )
        assert assigned.status_code == 201

        # 2. Register
        registered = client.post(f"/api/v1/courses/{course_id}/register", headers=rina)
        assert registered.status_code == 201
        enrollment = registered.json()["data"]
        registration_id = enrollment["registration"]["id"]
        assert enrollment["payment_instructions"]["amount"] == 5000.0
        availability = client.get(f"/api/v1/courses/{course_id}/availability").json()["data"]
        assert availability["available_seats"] == 1

        # 3. Pay
        payment = client.post(
            "/api/v1/payments",
            data={
                "registration_id": str(registration_id),
                "transaction_id": "BKASH-7781",
                "payment_date": "2030-05-20T18:45:00",
            },
            files={"payment_proof": ("receipt.png", PNG_BYTES, "image/png")},
            headers=rina,
        )
        assert payment.status_code == 201
        payment_data = payment.json()["data"]
        assert (settings.upload_dir / payment_data["payment_proof"]).exists()

        pending = client.get("/api/v1/admin/payments/pending", headers=admin).json()["data"]
        assert [p["id"] for p in pending] == [payment_data["id"]]

        # 4. Verify the payment
        verified = client.put(
            f"/api/v1/payments/{payment_data['id']}/verify",
            json={"status": "verified"},
            headers=admin,
        )
        assert verified.status_code == 200
        registrations = client.get(
            f"/api/v1/students/{enrollment['registration']['student_id']}/registrations",
            headers=rina,
        ).json()["data"]
        assert registrations[0]["payment_status"] == "completed"

        # 5. Certificates need a completed course
        early = client.post(f"/api/v1/certificates/generate/{registration_id}", headers=admin)
        assert early.status_code == 400

        completed = client.put(f"/api/v1/courses/{course_id}/complete", headers=admin)
        assert completed.json()["data"]["status"] == "completed"

        # 6. Certify
        certificate = client.post(
            f"/api/v1/certificates/generate/{registration_id}", headers=admin
        )
        assert certificate.status_code == 201
        number = certificate.json()["data"]["certificate_number"]

        # 7. Anyone can check the certificate
        check = client.get(f"/api/v1/certificates/verify/{number}")
        assert check.status_code == 200
        assert check.json()["data"]["is_valid"] is True
        assert check.json()["data"]["student_name"] == "Rina"

        # 8. Dashboard reflects the whole flow
        stats = client.get("/api/v1/admin/stats", headers=admin).json()["data"]
        assert stats["courses"]["completed"] == 1
        assert stats["payments"]["verified"] == 1
        assert stats["verified_amount"] == 5000.0
        assert stats["certificates_issued"] == 1

    def test_data_survives_restart(self, settings: Settings, tokens: dict[str, str]) -> None:
        """A second application instance sees the first one's writes."""
        admin = _auth(tokens["admin"])
        with TestClient(create_app(settings)) as first:
            created = first.post(
                "/api/v1/instructors",
                json={"name": "Chef Karim", "email": "karim@example.com"},
                headers=admin,
            )
        with TestClient(create_app(settings)) as second:
            fetched = second.get(f"/api/v1/instructors/{created.json()['data']['id']}")
        logging.getLogger("cookschool").handlers.clear()

        assert fetched.status_code == 200
        assert fetched.json()["data"]["name"] == "Chef Karim"
