"""Role -> capability policy table and the per-request Actor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from cookschool.access.exceptions import PermissionDeniedError, UnknownRoleError


class Capability(StrEnum):
    """Named permission granted to a role."""

    VIEW_COURSES = "view courses"
    CREATE_COURSES = "create courses"
    EDIT_COURSES = "edit courses"
    DELETE_COURSES = "delete courses"
    PUBLISH_COURSES = "publish courses"
    CANCEL_COURSES = "cancel courses"

    VIEW_RECIPES = "view recipes"
    CREATE_RECIPES = "create recipes"
    EDIT_RECIPES = "edit recipes"
    DELETE_RECIPES = "delete recipes"

    VIEW_STUDENTS = "view students"
    CREATE_STUDENTS = "create students"
    EDIT_STUDENTS = "edit students"
    DELETE_STUDENTS = "delete students"

    VIEW_INSTRUCTORS = "view instructors"
    CREATE_INSTRUCTORS = "create instructors"
    EDIT_INSTRUCTORS = "edit instructors"
    DELETE_INSTRUCTORS = "delete instructors"

    CREATE_REGISTRATIONS = "create registrations"
    VERIFY_REGISTRATIONS = "verify registrations"
    CANCEL_REGISTRATIONS = "cancel registrations"

    CREATE_PAYMENTS = "create payments"
    VIEW_PAYMENTS = "view payments"
    VERIFY_PAYMENTS = "verify payments"
    VIEW_PAYMENT_REPORTS = "view payment reports"

    GENERATE_CERTIFICATES = "generate certificates"
    VIEW_CERTIFICATES = "view certificates"

    VIEW_DASHBOARD = "view dashboard"


class Role(StrEnum):
    """Roles known to the policy table."""

    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    COURSE_ADMINISTRATOR = "course-administrator"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


C = Capability

# Students act on their own registrations, payments and certificates through
# ownership, so the student role carries no "on behalf of" capability.
ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.SUPER_ADMIN: frozenset(Capability),
    Role.ADMIN: frozenset(
        {
            C.VIEW_COURSES, C.CREATE_COURSES, C.EDIT_COURSES, C.PUBLISH_COURSES, C.CANCEL_COURSES,
            C.VIEW_RECIPES, C.CREATE_RECIPES, C.EDIT_RECIPES,
            C.VIEW_STUDENTS, C.CREATE_STUDENTS, C.EDIT_STUDENTS,
            C.VIEW_INSTRUCTORS, C.CREATE_INSTRUCTORS, C.EDIT_INSTRUCTORS,
            C.VERIFY_REGISTRATIONS,
            C.VIEW_PAYMENTS, C.VERIFY_PAYMENTS, C.VIEW_PAYMENT_REPORTS,
            C.GENERATE_CERTIFICATES, C.VIEW_CERTIFICATES,
            C.VIEW_DASHBOARD,
        }
    ),  # fmt: skip
    Role.COURSE_ADMINISTRATOR: frozenset(
        {
            C.VIEW_COURSES, C.CREATE_COURSES, C.EDIT_COURSES, C.PUBLISH_COURSES, C.CANCEL_COURSES,
            C.VIEW_RECIPES, C.CREATE_RECIPES, C.EDIT_RECIPES,
            C.VIEW_STUDENTS,
            C.VIEW_INSTRUCTORS,
            C.VERIFY_REGISTRATIONS,
            C.VIEW_PAYMENTS, C.VERIFY_PAYMENTS,
            C.GENERATE_CERTIFICATES, C.VIEW_CERTIFICATES,
            C.VIEW_DASHBOARD,
        }
    ),  # fmt: skip
    Role.INSTRUCTOR: frozenset(
        {C.VIEW_COURSES, C.VIEW_RECIPES, C.CREATE_RECIPES, C.EDIT_RECIPES, C.VIEW_STUDENTS}
    ),
    Role.STUDENT: frozenset({C.VIEW_COURSES, C.VIEW_RECIPES}),
}


def capabilities_for(role: str) -> frozenset[Capability]:
    """Look up the capability set granted to a role.

    Args:
        role: Role name as stored on the user.

    Returns:
        Frozen set of capabilities.

    Raises:
        UnknownRoleError: If the role is not in the policy table.
    """
    try:
        return ROLE_CAPABILITIES[Role(role)]
    except ValueError as e:
        raise UnknownRoleError(f"Unknown role '{role}'") from e


@dataclass(frozen=True)
class Actor:
    """The authenticated user behind a request.

    Resolved once per request; authorization checks are set-membership tests
    against ``capabilities``.

    Attributes:
        user_id: The user's ID.
        name: Display name.
        role: Role name.
        capabilities: Capabilities granted by the role.
        student_id: The user's student profile, if they have one.
    """

    user_id: int
    name: str
    role: str
    capabilities: frozenset[Capability] = field(default_factory=frozenset)
    student_id: int | None = None

    @classmethod
    def for_role(
        cls, user_id: int, name: str, role: str, student_id: int | None = None
    ) -> Actor:
        """Build an actor whose capabilities come from the policy table."""
        return cls(
            user_id=user_id,
            name=name,
            role=role,
            capabilities=capabilities_for(role),
            student_id=student_id,
        )

    def can(self, capability: Capability) -> bool:
        """Check whether the actor holds a capability."""
        return capability in self.capabilities

    def owns_student(self, student_id: int) -> bool:
        """Check whether the given student profile belongs to the actor."""
        return self.student_id is not None and self.student_id == student_id


def require(actor: Actor, capability: Capability) -> None:
    """Fail unless the actor holds a capability.

    Raises:
        PermissionDeniedError: If the capability is missing.
    """
    if not actor.can(capability):
        raise PermissionDeniedError(
            f"User '{actor.user_id}' ({actor.role}) lacks the '{capability.value}' capability"
        )


def require_owner_or(actor: Actor, student_id: int, capability: Capability) -> None:
    """Fail unless the actor owns the student profile or holds a capability.

    Raises:
        PermissionDeniedError: If neither holds.
    """
    if not actor.owns_student(student_id):
        require(actor, capability)
