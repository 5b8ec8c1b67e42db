"""Unit tests for course routes."""

from typing import Any

import pytest
from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient

from cookschool.store import SchoolStore


@pytest.fixture
def course_json(course_fields: dict[str, Any]) -> dict[str, Any]:
    """Course fields as a JSON request body."""
    return jsonable_encoder(course_fields)


@pytest.fixture
def course_id(store: SchoolStore, course_fields: dict[str, Any]) -> int:
    """An upcoming course."""
    return store.create_course(**course_fields).id


@pytest.mark.unit
class TestListAndGetCourses:
    """Tests for the public course listing."""

    def test_list_empty(self, client: TestClient) -> None:
        """Anonymous callers get an empty list."""
        response = client.get("/api/v1/courses")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == []

    def test_list_filter_and_sort(
        self, client: TestClient, store: SchoolStore, course_fields: dict[str, Any]
    ) -> None:
        """Courses filter by status and sort by price."""
        cheap = store.create_course(**{**course_fields, "price": "1500.00"})
        store.create_course(**course_fields)
        published = store.create_course(**{**course_fields, "price": "9000.00"})
        store.publish_course(published.id)

        upcoming = client.get("/api/v1/courses", params={"status": "upcoming"}).json()["data"]
        by_price = client.get("/api/v1/courses", params={"sort_by": "price_asc"}).json()["data"]

        assert len(upcoming) == 2
        assert by_price[0]["id"] == cheap.id
        assert [c["price"] for c in by_price] == [1500.0, 5000.0, 9000.0]

    def test_list_rejects_bad_limit(self, client: TestClient) -> None:
        """limit must be between 1 and 100."""
        response = client.get("/api/v1/courses", params={"limit": 0})

        assert response.status_code == 422
        assert "limit" in response.json()["errors"]

    def test_get_course(self, client: TestClient, course_id: int) -> None:
        """A course is returned with derived seat counts."""
        response = client.get(f"/api/v1/courses/{course_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title_en"] == "Bengali Home Cooking"
        assert data["status"] == "upcoming"
        assert data["available_seats"] == 10
        assert data["price"] == 5000.0

    def test_get_unknown_course(self, client: TestClient) -> None:
        """Unknown courses return 404 in the error envelope."""
        response = client.get("/api/v1/courses/999")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert "999" in body["message"]


@pytest.mark.unit
class TestCreateCourse:
    """Tests for POST /api/v1/courses."""

    def test_requires_token(self, client: TestClient, course_json: dict[str, Any]) -> None:
        """Anonymous callers get 401."""
        response = client.post("/api/v1/courses", json=course_json)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_rejects_unknown_token(self, client: TestClient, course_json: dict[str, Any]) -> None:
        """An unknown bearer token is rejected."""
        response = client.post(
            "/api/v1/courses", json=course_json, headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401

    def test_create(self, client: TestClient, admin, course_json: dict[str, Any]) -> None:
        """Course administrators create upcoming courses."""
        response = client.post("/api/v1/courses", json=course_json, headers=admin.headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "upcoming"
        assert data["current_enrollment"] == 0

    def test_student_forbidden(
        self, client: TestClient, login, course_json: dict[str, Any]
    ) -> None:
        """Students lack create courses."""
        rina = login("student", "Rina")

        response = client.post("/api/v1/courses", json=course_json, headers=rina.headers)

        assert response.status_code == 403

    def test_missing_field(self, client: TestClient, admin, course_json: dict[str, Any]) -> None:
        """Missing fields are reported by name."""
        del course_json["title_en"]

        response = client.post("/api/v1/courses", json=course_json, headers=admin.headers)

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Validation failed"
        assert "title_en" in body["errors"]

    def test_end_before_start(
        self, client: TestClient, admin, course_json: dict[str, Any]
    ) -> None:
        """Course invariants are reported as field errors."""
        course_json["end_date"] = "2030-05-01"

        response = client.post("/api/v1/courses", json=course_json, headers=admin.headers)

        assert response.status_code == 422
        assert "end_date" in response.json()["errors"]


@pytest.mark.unit
class TestUpdateAndLifecycle:
    """Tests for update, publish, cancel, complete and delete."""

    def test_partial_update(self, client: TestClient, admin, course_id: int) -> None:
        """Only the given fields change."""
        response = client.put(
            f"/api/v1/courses/{course_id}",
            json={"maximum_capacity": 12, "price": 5500},
            headers=admin.headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["maximum_capacity"] == 12
        assert data["price"] == 5500.0
        assert data["title_en"] == "Bengali Home Cooking"

    def test_publish_then_publish_again(self, client: TestClient, admin, course_id: int) -> None:
        """Publishing twice is a business-rule failure."""
        first = client.put(f"/api/v1/courses/{course_id}/publish", headers=admin.headers)
        second = client.put(f"/api/v1/courses/{course_id}/publish", headers=admin.headers)

        assert first.status_code == 200
        assert first.json()["data"]["status"] == "active"
        assert second.status_code == 400

    def test_cancel_and_complete(self, client: TestClient, admin, course_id: int) -> None:
        """A canceled course cannot be completed."""
        canceled = client.put(f"/api/v1/courses/{course_id}/cancel", headers=admin.headers)
        completed = client.put(f"/api/v1/courses/{course_id}/complete", headers=admin.headers)

        assert canceled.json()["data"]["status"] == "canceled"
        assert completed.status_code == 400

    def test_delete(self, client: TestClient, admin, course_id: int) -> None:
        """Deleted courses disappear."""
        response = client.delete(f"/api/v1/courses/{course_id}", headers=admin.headers)

        assert response.status_code == 200
        assert response.json()["data"] is None
        assert client.get(f"/api/v1/courses/{course_id}").status_code == 404

    def test_delete_with_enrollment(
        self, client: TestClient, admin, login, course_id: int
    ) -> None:
        """Courses with enrolled students cannot be deleted."""
        rina = login("student", "Rina")
        client.post(f"/api/v1/courses/{course_id}/register", headers=rina.headers)

        response = client.delete(f"/api/v1/courses/{course_id}", headers=admin.headers)

        assert response.status_code == 400

    def test_admin_cannot_delete(self, client: TestClient, login, course_id: int) -> None:
        """Only super-admins hold delete courses."""
        manager = login("admin", "Office Admin")

        response = client.delete(f"/api/v1/courses/{course_id}", headers=manager.headers)

        assert response.status_code == 403


@pytest.mark.unit
class TestCourseRelations:
    """Tests for recipes, instructors, students and attendance of a course."""

    def test_attach_and_list_recipes(
        self,
        client: TestClient,
        admin,
        store: SchoolStore,
        course_id: int,
        recipe_fields: dict[str, Any],
    ) -> None:
        """Attached recipes are listed publicly; attaching twice fails."""
        recipe = store.create_recipe(**recipe_fields)
        url = f"/api/v1/courses/{course_id}/recipes"

        attached = client.post(
            url, json={"recipe_id": recipe.id, "day_number": 2}, headers=admin.headers
        )
        again = client.post(url, json={"recipe_id": recipe.id}, headers=admin.headers)
        listed = client.get(url).json()["data"]

        assert attached.status_code == 201
        assert again.status_code == 400
        assert listed[0]["day_number"] == 2
        assert listed[0]["recipe"]["name_en"] == "Chicken Rezala"

    def test_assign_and_list_instructors(
        self, client: TestClient, admin, store: SchoolStore, course_id: int
    ) -> None:
        """Instructors are assigned once and listed publicly."""
        chef = store.create_instructor(name="Chef Karim", email="karim@example.com")
        url = f"/api/v1/courses/{course_id}/instructors"

        assigned = client.post(
            url, json={"instructor_id": chef.id, "is_lead": True}, headers=admin.headers
        )
        unknown = client.post(url, json={"instructor_id": 999}, headers=admin.headers)
        listed = client.get(url).json()["data"]

        assert assigned.status_code == 201
        assert unknown.status_code == 404
        assert listed == [assigned.json()["data"]]
        assert listed[0]["instructor"]["name"] == "Chef Karim"
        assert listed[0]["is_lead"] is True

    def test_students_and_attendance(
        self, client: TestClient, admin, login, course_id: int
    ) -> None:
        """Staff see the roster and the attendance sheet."""
        rina = login("student", "Rina")
        registration = client.post(
            f"/api/v1/courses/{course_id}/register", headers=rina.headers
        ).json()["data"]["registration"]
        recorded = client.post(
            f"/api/v1/registrations/{registration['id']}/attendance",
            json={"date": "2030-06-01", "present": True},
            headers=admin.headers,
        )

        roster = client.get(f"/api/v1/courses/{course_id}/students", headers=admin.headers)
        sheet = client.get(f"/api/v1/courses/{course_id}/attendance", headers=admin.headers)
        forbidden = client.get(f"/api/v1/courses/{course_id}/students", headers=rina.headers)

        assert recorded.status_code == 201
        assert [s["name"] for s in roster.json()["data"]] == ["Rina"]
        assert sheet.json()["data"][0]["student_name"] == "Rina"
        assert sheet.json()["data"][0]["records"][0]["present"] is True
        assert forbidden.status_code == 403
