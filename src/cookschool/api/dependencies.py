"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header

from cookschool.access import Actor, AuthenticationError
from cookschool.certificates import CertificateIssuer
from cookschool.config import Settings
from cookschool.dashboard import DashboardService
from cookschool.enrollment import EnrollmentEngine
from cookschool.payments import PaymentWorkflow
from cookschool.storage import FileStorage, LocalFileStorage
from cookschool.store import SchoolStore, UserNotFoundError

# Global SchoolStore instance (initialized on app startup)
_school_store: SchoolStore | None = None


def init_school_store(db_path: str = "cookschool.db") -> SchoolStore:
    """Initialize the global SchoolStore instance."""
    global _school_store  # noqa: PLW0603
    _school_store = SchoolStore(db_path)
    return _school_store


def close_school_store() -> None:
    """Close the global SchoolStore instance."""
    global _school_store  # noqa: PLW0603
    if _school_store is not None:
        _school_store.close()
        _school_store = None


def get_school_store() -> Generator[SchoolStore, None, None]:
    """Dependency that provides the SchoolStore instance."""
    if _school_store is None:
        raise RuntimeError("SchoolStore not initialized. Call init_school_store() first.")
    yield _school_store


# Type alias for dependency injection
SchoolStoreDep = Annotated[SchoolStore, Depends(get_school_store)]

# Global FileStorage instance (initialized on app startup)
_file_storage: FileStorage | None = None


def init_file_storage(storage: FileStorage) -> FileStorage:
    """Initialize the global FileStorage instance."""
    global _file_storage  # noqa: PLW0603
    _file_storage = storage
    return _file_storage


def close_file_storage() -> None:
    """Release the global FileStorage instance."""
    global _file_storage  # noqa: PLW0603
    _file_storage = None


def get_file_storage() -> Generator[FileStorage, None, None]:
    """Dependency that provides the FileStorage instance."""
    if _file_storage is None:
        raise RuntimeError("FileStorage not initialized. Call init_file_storage() first.")
    yield _file_storage


# Type alias for dependency injection
FileStorageDep = Annotated[FileStorage, Depends(get_file_storage)]


@dataclass
class Services:
    """The workflow services sharing one store."""

    enrollment: EnrollmentEngine
    payments: PaymentWorkflow
    certificates: CertificateIssuer
    dashboard: DashboardService


# Global Services instance (initialized on app startup)
_services: Services | None = None


def init_services(store: SchoolStore, storage: FileStorage, settings: Settings) -> Services:
    """Build the workflow services around a store and file storage."""
    global _services  # noqa: PLW0603
    _services = Services(
        enrollment=EnrollmentEngine(store, settings),
        payments=PaymentWorkflow(store, storage, settings),
        certificates=CertificateIssuer(store, settings.signing_key),
        dashboard=DashboardService(store),
    )
    return _services


def close_services() -> None:
    """Release the global services."""
    global _services  # noqa: PLW0603
    _services = None


def get_services() -> Generator[Services, None, None]:
    """Dependency that provides the workflow services."""
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    yield _services


def get_enrollment_engine(services: Annotated[Services, Depends(get_services)]) -> EnrollmentEngine:
    """Dependency that provides the EnrollmentEngine."""
    return services.enrollment


def get_payment_workflow(services: Annotated[Services, Depends(get_services)]) -> PaymentWorkflow:
    """Dependency that provides the PaymentWorkflow."""
    return services.payments


def get_certificate_issuer(
    services: Annotated[Services, Depends(get_services)],
) -> CertificateIssuer:
    """Dependency that provides the CertificateIssuer."""
    return services.certificates


def get_dashboard_service(
    services: Annotated[Services, Depends(get_services)],
) -> DashboardService:
    """Dependency that provides the DashboardService."""
    return services.dashboard


# Type aliases for dependency injection
EnrollmentDep = Annotated[EnrollmentEngine, Depends(get_enrollment_engine)]
PaymentsDep = Annotated[PaymentWorkflow, Depends(get_payment_workflow)]
CertificatesDep = Annotated[CertificateIssuer, Depends(get_certificate_issuer)]
DashboardDep = Annotated[DashboardService, Depends(get_dashboard_service)]


def get_current_actor(
    store: SchoolStoreDep,
    authorization: Annotated[str | None, Header()] = None,
) -> Actor:
    """Resolve the bearer token into the acting user.

    Raises:
        AuthenticationError: If the header is missing or the token is unknown.
    """
    if not authorization:
        raise AuthenticationError("Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Malformed Authorization header")

    try:
        user = store.get_user_by_token(token.strip())
    except UserNotFoundError as e:
        raise AuthenticationError("Invalid bearer token") from e

    student = store.find_student_for_user(user.id)
    return Actor.for_role(
        user_id=user.id,
        name=user.name,
        role=user.role,
        student_id=student.id if student is not None else None,
    )


# Type alias for dependency injection
ActorDep = Annotated[Actor, Depends(get_current_actor)]


def build_file_storage(settings: Settings) -> FileStorage:
    """Create the file storage configured by settings."""
    return LocalFileStorage(settings.upload_dir)
