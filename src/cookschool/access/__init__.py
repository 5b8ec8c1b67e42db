"""Access package - Explicit role/capability policy and the request Actor."""

from cookschool.access.exceptions import (
    AuthenticationError,
    PermissionDeniedError,
    UnknownRoleError,
)
from cookschool.access.policy import (
    ROLE_CAPABILITIES,
    Actor,
    Capability,
    Role,
    capabilities_for,
    require,
    require_owner_or,
)

__all__ = [
    "ROLE_CAPABILITIES",
    "Actor",
    "AuthenticationError",
    "Capability",
    "PermissionDeniedError",
    "Role",
    "UnknownRoleError",
    "capabilities_for",
    "require",
    "require_owner_or",
]
