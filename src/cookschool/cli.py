"""CLI entry point for the CookSchool API."""

from __future__ import annotations

import sys

import click
import uvicorn

from cookschool.access import Role
from cookschool.config import ConfigError, Settings
from cookschool.logging import setup_logging
from cookschool.store import SchoolStore, UserExistsError


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="cookschool")
def main() -> None:
    """CookSchool - cooking course management API."""
    pass


@main.command()
@click.option("--host", default=None, help="Bind address (default: COOKSCHOOL_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (default: COOKSCHOOL_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes (development)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the API server."""
    settings = _load_settings()
    uvicorn.run(
        "cookschool.api.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("create-user")
@click.option("--name", required=True, help="Display name")
@click.option("--email", required=True, help="Unique email address")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.SUPER_ADMIN.value,
    show_default=True,
    help="Role from the access policy table",
)
@click.option("--phone", default=None, help="Phone number (student role only)")
def create_user(name: str, email: str, role: str, phone: str | None) -> None:
    """Create a user and print its API token.

    A student profile is created alongside users with the student role.
    """
    settings = _load_settings()
    setup_logging(settings.log_dir, level=settings.log_level, console=False)

    store = SchoolStore(settings.db_path)
    try:
        if role == Role.STUDENT:
            user, student = store.create_student_account(name=name, email=email, phone=phone)
            click.echo(f"Student profile: {student.id}")
        else:
            user = store.create_user(name=name, email=email, role=role)
    except UserExistsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()

    click.echo(f"User {user.id} ({role}) created")
    click.echo(f"API token: {user.api_token}")


if __name__ == "__main__":
    main()
