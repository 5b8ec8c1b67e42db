"""Dashboard package - Admin rollups over courses, students and payments."""

from cookschool.dashboard.aggregation import DashboardService
from cookschool.dashboard.models import DashboardStats

__all__ = [
    "DashboardService",
    "DashboardStats",
]
