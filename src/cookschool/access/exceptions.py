"""Exceptions for the access module."""

from cookschool.exceptions import CookSchoolError, UnauthorizedError


class AuthenticationError(CookSchoolError):
    """Request carries no valid bearer token."""


class PermissionDeniedError(UnauthorizedError):
    """Actor lacks the capability required for an operation."""


class UnknownRoleError(UnauthorizedError):
    """Role is not present in the policy table."""
