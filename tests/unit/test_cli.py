"""Unit tests for the cookschool command line."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from cookschool import cli
from cookschool.store import SchoolStore


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Point the CLI at a temporary database and log directory."""
    path = str(tmp_path / "school.db")
    monkeypatch.setenv("COOKSCHOOL_DB_PATH", path)
    monkeypatch.setenv("COOKSCHOOL_LOG_DIR", str(tmp_path / "logs"))
    return path


def _token(output: str) -> str:
    for line in output.splitlines():
        if line.startswith("API token: "):
            return line.removeprefix("API token: ")
    raise AssertionError(f"No token in output: {output!r}")


@pytest.mark.unit
class TestCreateUser:
    """Tests for `cookschool create-user`."""

    def test_creates_super_admin(self, db_path: str) -> None:
        """The default role is super-admin and the token resolves to the user."""
        result = CliRunner().invoke(
            cli.main, ["create-user", "--name", "Root", "--email", "root@example.com"]
        )

        assert result.exit_code == 0, result.output
        assert "(super-admin) created" in result.output
        store = SchoolStore(db_path)
        try:
            user = store.get_user_by_token(_token(result.output))
            assert user.email == "root@example.com"
            assert user.role == "super-admin"
        finally:
            store.close()

    def test_student_gets_profile(self, db_path: str) -> None:
        """Student users get a linked student profile."""
        result = CliRunner().invoke(
            cli.main,
            [
                "create-user",
                "--name",
                "Rina",
                "--email",
                "rina@example.com",
                "--role",
                "student",
                "--phone",
                "01700000000",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Student profile: " in result.output
        store = SchoolStore(db_path)
        try:
            user = store.get_user_by_token(_token(result.output))
            student = store.find_student_for_user(user.id)
            assert student is not None
            assert student.phone == "01700000000"
        finally:
            store.close()

    def test_duplicate_email(self, db_path: str) -> None:
        """A second user with the same email fails with exit code 1."""
        args = ["create-user", "--name", "Root", "--email", "root@example.com"]
        runner = CliRunner()
        runner.invoke(cli.main, args)

        result = runner.invoke(cli.main, args)

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_duplicate_student_leaves_no_profile(self, db_path: str) -> None:
        """A student whose email is taken gets neither a user nor a profile."""
        runner = CliRunner()
        first = runner.invoke(
            cli.main, ["create-user", "--name", "Rina", "--email", "rina@example.com"]
        )

        result = runner.invoke(
            cli.main,
            ["create-user", "--name", "Rina", "--email", "rina@example.com", "--role", "student"],
        )

        assert result.exit_code == 1
        assert "Student profile" not in result.output
        store = SchoolStore(db_path)
        try:
            user = store.get_user_by_token(_token(first.output))
            assert store.find_student_for_user(user.id) is None
        finally:
            store.close()

    def test_unknown_role(self, db_path: str) -> None:
        """Roles outside the policy table are rejected by click."""
        result = CliRunner().invoke(
            cli.main,
            ["create-user", "--name", "X", "--email", "x@example.com", "--role", "janitor"],
        )

        assert result.exit_code == 2

    def test_configuration_error(self, db_path: str, monkeypatch: pytest.MonkeyPatch) -> None:
        """Invalid environment settings exit with code 1."""
        monkeypatch.setenv("COOKSCHOOL_PORT", "eighty")

        result = CliRunner().invoke(
            cli.main, ["create-user", "--name", "Root", "--email", "root@example.com"]
        )

        assert result.exit_code == 1
        assert "Configuration error" in result.output


@pytest.mark.unit
class TestServe:
    """Tests for `cookschool serve`."""

    def test_runs_uvicorn(self, db_path: str, monkeypatch: pytest.MonkeyPatch) -> None:
        """Options override the configured bind address."""
        calls = []
        monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

        result = CliRunner().invoke(cli.main, ["serve", "--port", "9001"])

        assert result.exit_code == 0, result.output
        assert calls == [
            ("cookschool.api.app:app", {"host": "127.0.0.1", "port": 9001, "reload": False})
        ]
