"""Unit tests for recipe routes."""

from pathlib import Path
from typing import Any

import pytest
from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient

from cookschool.store import SchoolStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def recipe_id(store: SchoolStore, recipe_fields: dict[str, Any]) -> int:
    """A stored recipe."""
    return store.create_recipe(**recipe_fields).id


@pytest.mark.unit
class TestRecipes:
    """Tests for recipe CRUD."""

    def test_create(self, client: TestClient, login, recipe_fields: dict[str, Any]) -> None:
        """Instructors create recipes."""
        chef = login("instructor", "Chef")

        response = client.post(
            "/api/v1/recipes", json=jsonable_encoder(recipe_fields), headers=chef.headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name_en"] == "Chicken Rezala"
        assert data["difficulty_level"] == "intermediate"
        assert data["ingredients"][0] == recipe_fields["ingredients"][0]
        assert data["images"] == []

    def test_create_requires_ingredients(
        self, client: TestClient, admin, recipe_fields: dict[str, Any]
    ) -> None:
        """At least one ingredient is required."""
        body = jsonable_encoder({**recipe_fields, "ingredients": []})

        response = client.post("/api/v1/recipes", json=body, headers=admin.headers)

        assert response.status_code == 422
        assert "ingredients" in response.json()["errors"]

    def test_student_cannot_create(
        self, client: TestClient, login, recipe_fields: dict[str, Any]
    ) -> None:
        """Students lack create recipes."""
        rina = login("student", "Rina")

        response = client.post(
            "/api/v1/recipes", json=jsonable_encoder(recipe_fields), headers=rina.headers
        )

        assert response.status_code == 403

    def test_list_and_get(
        self,
        client: TestClient,
        store: SchoolStore,
        recipe_id: int,
        recipe_fields: dict[str, Any],
    ) -> None:
        """Listing filters by difficulty; both are public."""
        store.create_recipe(
            **{**recipe_fields, "name_en": "Plain Rice", "difficulty_level": "beginner"}
        )

        listed = client.get("/api/v1/recipes", params={"difficulty_level": "beginner"})
        one = client.get(f"/api/v1/recipes/{recipe_id}")

        assert [r["name_en"] for r in listed.json()["data"]] == ["Plain Rice"]
        assert one.json()["data"]["id"] == recipe_id
        assert client.get("/api/v1/recipes/999").status_code == 404

    def test_update(self, client: TestClient, login, recipe_id: int) -> None:
        """Instructors edit recipes; only sent fields change."""
        chef = login("instructor", "Chef")

        response = client.put(
            f"/api/v1/recipes/{recipe_id}",
            json={"preparation_time": 45, "difficulty_level": "beginner"},
            headers=chef.headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["preparation_time"] == 45
        assert data["difficulty_level"] == "beginner"
        assert data["name_en"] == "Chicken Rezala"

    def test_update_rejects_bad_time(self, client: TestClient, admin, recipe_id: int) -> None:
        """preparation_time must stay positive."""
        response = client.put(
            f"/api/v1/recipes/{recipe_id}", json={"preparation_time": 0}, headers=admin.headers
        )

        assert response.status_code == 422
        assert "preparation_time" in response.json()["errors"]

    def test_student_cannot_update(self, client: TestClient, login, recipe_id: int) -> None:
        """Students lack edit recipes."""
        rina = login("student", "Rina")

        response = client.put(
            f"/api/v1/recipes/{recipe_id}", json={"name_en": "Mine"}, headers=rina.headers
        )

        assert response.status_code == 403

    def test_delete_removes_images(
        self, client: TestClient, admin, recipe_id: int, tmp_path: Path
    ) -> None:
        """Deleting a recipe removes its stored image files."""
        uploaded = client.post(
            f"/api/v1/recipes/{recipe_id}/images",
            files={"image": ("rezala.png", PNG_BYTES, "image/png")},
            headers=admin.headers,
        )
        image_path = uploaded.json()["data"]["image_path"]

        response = client.delete(f"/api/v1/recipes/{recipe_id}", headers=admin.headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert not (tmp_path / image_path).exists()
        assert client.get(f"/api/v1/recipes/{recipe_id}").status_code == 404

    def test_instructor_cannot_delete(self, client: TestClient, login, recipe_id: int) -> None:
        """Instructors edit recipes but lack delete recipes."""
        chef = login("instructor", "Chef")

        response = client.delete(f"/api/v1/recipes/{recipe_id}", headers=chef.headers)

        assert response.status_code == 403
        assert client.get(f"/api/v1/recipes/{recipe_id}").status_code == 200


@pytest.mark.unit
class TestRecipeImages:
    """Tests for POST /api/v1/recipes/{id}/images."""

    def test_upload(
        self, client: TestClient, admin, recipe_id: int, tmp_path: Path
    ) -> None:
        """The image is stored and attached to the recipe."""
        response = client.post(
            f"/api/v1/recipes/{recipe_id}/images",
            files={"image": ("rezala.png", PNG_BYTES, "image/png")},
            data={"is_primary": "true"},
            headers=admin.headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["is_primary"] is True
        assert (tmp_path / data["image_path"]).exists()
        recipe = client.get(f"/api/v1/recipes/{recipe_id}").json()["data"]
        assert [i["id"] for i in recipe["images"]] == [data["id"]]

    def test_rejects_non_image(
        self, client: TestClient, admin, recipe_id: int, tmp_path: Path
    ) -> None:
        """Invalid images are refused and nothing is stored."""
        response = client.post(
            f"/api/v1/recipes/{recipe_id}/images",
            files={"image": ("notes.txt", b"salt", "text/plain")},
            headers=admin.headers,
        )

        assert response.status_code == 422
        assert response.json()["errors"]["image"] == [
            "The image must be a file of type: jpeg, png, jpg."
        ]
        assert list(tmp_path.rglob("*.*")) == []

    def test_unknown_recipe(self, client: TestClient, admin) -> None:
        """Uploading to an unknown recipe returns 404."""
        response = client.post(
            "/api/v1/recipes/999/images",
            files={"image": ("rezala.png", PNG_BYTES, "image/png")},
            headers=admin.headers,
        )

        assert response.status_code == 404

    def test_student_forbidden(self, client: TestClient, login, recipe_id: int) -> None:
        """Students lack edit recipes."""
        rina = login("student", "Rina")

        response = client.post(
            f"/api/v1/recipes/{recipe_id}/images",
            files={"image": ("rezala.png", PNG_BYTES, "image/png")},
            headers=rina.headers,
        )

        assert response.status_code == 403
