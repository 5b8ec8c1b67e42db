"""Shared pytest fixtures and configuration."""

from datetime import date, time
from decimal import Decimal
from typing import Any

import pytest

from cookschool.store import DifficultyLevel


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def course_fields() -> dict[str, Any]:
    """Valid keyword arguments for SchoolStore.create_course."""
    return {
        "title_en": "Bengali Home Cooking",
        "description_en": "Five mornings of everyday dishes",
        "start_date": date(2030, 6, 1),
        "end_date": date(2030, 6, 5),
        "daily_start_time": time(10, 0),
        "daily_end_time": time(13, 0),
        "location_details": "Kitchen 2, Dhanmondi",
        "maximum_capacity": 10,
        "price": Decimal("5000.00"),
        "category": "home-cooking",
    }


@pytest.fixture
def recipe_fields() -> dict[str, Any]:
    """Valid keyword arguments for SchoolStore.create_recipe."""
    return {
        "name_en": "Chicken Rezala",
        "description_en": "Mild Mughlai curry",
        "ingredients": [
            {"name": "chicken", "quantity": "1 kg"},
            {"name": "yogurt", "quantity": "200 g"},
        ],
        "instructions": [{"step_text": "Marinate the chicken"}, {"step_text": "Simmer"}],
        "preparation_time": 60,
        "difficulty_level": DifficultyLevel.INTERMEDIATE,
    }
