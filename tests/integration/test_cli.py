"""Integration tests for the coursehub command line."""

import logging

import pytest
from click.testing import CliRunner

from coursehub.access import TokenAuthenticator
from coursehub.cli import main
from coursehub.config import DEFAULT_JWT_SECRET
from coursehub.store import EntityStore, StoreUnavailableError
from coursehub.store.database import Database


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch, tmp_path) -> CliRunner:
    monkeypatch.delenv("COURSEHUB_ENV", raising=False)
    monkeypatch.delenv("COURSEHUB_JWT_SECRET", raising=False)
    monkeypatch.setenv("COURSEHUB_LOG_DIR", str(tmp_path / "logs"))
    yield CliRunner()
    logger = logging.getLogger("coursehub")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.mark.integration
class TestCli:
    """Tests for the administration commands."""

    def test_init_and_check_db(self, runner: CliRunner, temp_db_path: str) -> None:
        init = runner.invoke(main, ["init-db", "--db", temp_db_path])
        check = runner.invoke(main, ["check-db", "--db", temp_db_path])

        assert init.exit_code == 0, init.output
        assert "Database ready" in init.output
        assert check.exit_code == 0, check.output
        assert "wal=on" in check.output

    def test_create_user_prints_token(self, runner: CliRunner, temp_db_path: str) -> None:
        result = runner.invoke(
            main,
            [
                "create-user",
                "--db",
                temp_db_path,
                "--name",
                "Ada Lovelace",
                "--email",
                "ada@example.com",
                "--role",
                "instructor",
                "--experience",
                "12",
            ],
        )

        assert result.exit_code == 0, result.output
        lines = {}
        for line in result.output.splitlines():
            if ": " in line:
                key, value = line.split(": ", 1)
                lines[key.strip()] = value.strip()
        principal = TokenAuthenticator(DEFAULT_JWT_SECRET).authenticate(lines["token"])
        assert principal.user_id == lines["id"]
        assert principal.is_instructor

    def test_create_duplicate_user_fails(self, runner: CliRunner, temp_db_path: str) -> None:
        args = ["create-user", "--db", temp_db_path, "--name", "Grace", "--email", "g@example.com"]
        runner.invoke(main, args)

        result = runner.invoke(main, args)

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_issue_token(self, runner: CliRunner, temp_db_path: str) -> None:
        store = EntityStore(temp_db_path)
        user = store.create_user(name="Grace", email="grace@example.com", role="student")
        store.close()

        result = runner.invoke(main, ["issue-token", "--db", temp_db_path, user.id])

        assert result.exit_code == 0, result.output
        principal = TokenAuthenticator(DEFAULT_JWT_SECRET).authenticate(result.output.strip())
        assert principal.user_id == user.id

    def test_issue_token_unknown_user(self, runner: CliRunner, temp_db_path: str) -> None:
        result = runner.invoke(main, ["issue-token", "--db", temp_db_path, "nonexistent-id"])

        assert result.exit_code == 1

    def test_rebuild_rosters(self, runner: CliRunner, temp_db_path: str) -> None:
        store = EntityStore(temp_db_path)
        instructor = store.create_user(name="Ada", email="ada@example.com", role="instructor")
        student = store.create_user(name="Grace", email="grace@example.com", role="student")
        course = store.create_course(
            instructor_id=instructor.id, title="T", description="D", category="C"
        )
        # active enrollment whose roster update never happened
        store.insert_active_enrollment(student.id, course.id)
        store.close()

        first = runner.invoke(main, ["rebuild-rosters", "--db", temp_db_path])
        second = runner.invoke(main, ["rebuild-rosters", "--db", temp_db_path])

        assert first.exit_code == 0, first.output
        assert f"{course.id}: added 1, removed 0" in first.output
        assert "All rosters consistent" in second.output

    @pytest.mark.parametrize(
        "args",
        [
            ["create-user", "--name", "Grace", "--email", "grace@example.com"],
            ["issue-token", "some-user-id"],
            ["rebuild-rosters"],
        ],
    )
    def test_unavailable_store_exits_cleanly(
        self,
        runner: CliRunner,
        temp_db_path: str,
        monkeypatch: pytest.MonkeyPatch,
        args: list[str],
    ) -> None:
        def unavailable(self: Database) -> None:
            raise StoreUnavailableError("Could not create tables: database is locked")

        monkeypatch.setattr(Database, "create_tables", unavailable)

        result = runner.invoke(main, [args[0], "--db", temp_db_path, *args[1:]])

        assert result.exit_code == 1
        assert "database is locked" in result.output
        assert not isinstance(result.exception, StoreUnavailableError)

    def test_create_user_rejects_oversized_experience(
        self, runner: CliRunner, temp_db_path: str
    ) -> None:
        result = runner.invoke(
            main,
            [
                "create-user",
                "--db",
                temp_db_path,
                "--name",
                "Ada",
                "--email",
                "ada@example.com",
                "--experience",
                "1000",
            ],
        )

        assert result.exit_code == 2
