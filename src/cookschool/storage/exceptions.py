"""Exceptions for the storage module."""

from cookschool.exceptions import CookSchoolError


class StorageError(CookSchoolError):
    """File could not be written, read or removed."""
