"""REST API for CookSchool."""

from cookschool.api.app import app, create_app, register_exception_handlers
from cookschool.api.models import (
    APIResponse,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
)

__all__ = [
    "APIResponse",
    "CourseCreate",
    "CourseResponse",
    "CourseUpdate",
    "app",
    "create_app",
    "register_exception_handlers",
]
