"""Shared fixtures for API route tests."""

from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cookschool.api import register_exception_handlers
from cookschool.api.dependencies import (
    Services,
    get_file_storage,
    get_school_store,
    get_services,
)
from cookschool.api.routes import (
    admin as admin_routes,
    certificates,
    courses,
    instructors,
    payments,
    recipes,
    registrations,
    students,
)
from cookschool.certificates import CertificateIssuer
from cookschool.config import Settings
from cookschool.dashboard import DashboardService
from cookschool.enrollment import EnrollmentEngine
from cookschool.payments import PaymentWorkflow
from cookschool.storage import LocalFileStorage
from cookschool.store import SchoolStore


@dataclass
class Login:
    """A user created for a test, with ready-made auth headers."""

    user_id: int
    student_id: int | None
    headers: dict[str, str]


@pytest.fixture
def store() -> Generator[SchoolStore, None, None]:
    """Create an in-memory SchoolStore."""
    s = SchoolStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def storage(tmp_path: Path) -> LocalFileStorage:
    """File storage under a temporary directory."""
    return LocalFileStorage(tmp_path)


@pytest.fixture
def app(store: SchoolStore, storage: LocalFileStorage) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    app = FastAPI()
    settings = Settings(signing_key="test-key", payment_account="01711111111")
    services = Services(
        enrollment=EnrollmentEngine(store, settings),
        payments=PaymentWorkflow(store, storage, settings),
        certificates=CertificateIssuer(store, settings.signing_key),
        dashboard=DashboardService(store),
    )

    def override_get_school_store():
        yield store

    def override_get_file_storage():
        yield storage

    def override_get_services():
        yield services

    app.dependency_overrides[get_school_store] = override_get_school_store
    app.dependency_overrides[get_file_storage] = override_get_file_storage
    app.dependency_overrides[get_services] = override_get_services

    register_exception_handlers(app)

    for module in (
        courses,
        registrations,
        payments,
        certificates,
        recipes,
        students,
        instructors,
        admin_routes,
    ):
        app.include_router(module.router, prefix="/api/v1")

    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def login(store: SchoolStore) -> Callable[..., Login]:
    """Factory creating a user of a role; students also get a profile."""

    def _login(role: str = "super-admin", name: str | None = None) -> Login:
        name = name or role.title()
        email = f"{name.lower().replace(' ', '.')}@example.com"
        user = store.create_user(name=name, email=email, role=role)
        student_id = None
        if role == "student":
            student_id = store.create_student(name=name, email=email, user_id=user.id).id
        return Login(
            user_id=user.id,
            student_id=student_id,
            headers={"Authorization": f"Bearer {user.api_token}"},
        )

    return _login


@pytest.fixture
def admin(login: Callable[..., Login]) -> Login:
    """A super-admin session."""
    return login("super-admin", "Root Admin")
