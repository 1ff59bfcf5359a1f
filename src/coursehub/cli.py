"""Command-line entry point for CourseHub administration.

- init-db / check-db: create and check the database
- create-user / issue-token: provision accounts and bearer tokens
- rebuild-rosters: replay active enrollments into every course roster
- serve: run the HTTP API with uvicorn
"""

from __future__ import annotations

import sys

import click

from coursehub import __version__
from coursehub.access import AuthorizationGate, TokenAuthenticator
from coursehub.config import ConfigError, Settings, load_settings
from coursehub.enrollment import EnrollmentService
from coursehub.logging import SERVER_LOGGERS, setup_logging
from coursehub.store import EntityStore, Role, StoreError


def _settings(db_path: str | None) -> Settings:
    try:
        settings = load_settings()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    if db_path is not None:
        settings.db_path = db_path
    return settings


def _authenticator(settings: Settings) -> TokenAuthenticator:
    return TokenAuthenticator(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_expires_minutes,
    )


db_option = click.option(
    "--db",
    "db_path",
    default=None,
    help="SQLite database file (default: COURSEHUB_DB_PATH or coursehub.db).",
)


@click.group()
@click.version_option(__version__)
def main() -> None:
    """CourseHub - course enrollment service administration."""
    pass


@main.command("init-db")
@db_option
def init_db(db_path: str | None) -> None:
    """Create the database tables if they don't exist."""
    settings = _settings(db_path)
    try:
        store = EntityStore(settings.db_path, timeout=settings.store_timeout)
    except StoreError as e:
        click.echo(f"Store error: {e}", err=True)
        sys.exit(1)
    store.close()
    click.echo(f"Database ready: {settings.db_path}")


@main.command("check-db")
@db_option
def check_db(db_path: str | None) -> None:
    """Check that the database answers within the store timeout."""
    settings = _settings(db_path)
    try:
        store = EntityStore(settings.db_path, timeout=settings.store_timeout)
        try:
            store.ping()
            wal = store.database.is_wal_mode()
        finally:
            store.close()
    except StoreError as e:
        click.echo(f"Database unavailable: {e}", err=True)
        sys.exit(1)
    click.echo(f"Database OK: {settings.db_path} (wal={'on' if wal else 'off'})")


@main.command("create-user")
@db_option
@click.option("--name", required=True, help="Display name (2-50 characters).")
@click.option("--email", required=True, help="Email address.")
@click.option(
    "--role",
    type=click.Choice([role.value for role in Role], case_sensitive=False),
    default=Role.STUDENT.value,
    show_default=True,
)
@click.option("--specialization", default=None, help="Instructor specialization.")
@click.option("--experience", type=click.IntRange(min=0, max=100), default=None)
@click.option("--bio", default=None, help="Instructor bio.")
def create_user(
    db_path: str | None,
    name: str,
    email: str,
    role: str,
    specialization: str | None,
    experience: int | None,
    bio: str | None,
) -> None:
    """Register a user and print their id and an access token."""
    settings = _settings(db_path)
    try:
        store = EntityStore(settings.db_path, timeout=settings.store_timeout)
        try:
            user = store.create_user(
                name=name,
                email=email,
                role=role.lower(),
                specialization=specialization,
                experience=experience,
                bio=bio,
            )
        finally:
            store.close()
    except StoreError as e:
        click.echo(f"Could not create user: {e}", err=True)
        sys.exit(1)

    token = _authenticator(settings).issue(user.id, user.role)
    click.echo(f"Created {user.role} {user.email}")
    click.echo(f"  id:    {user.id}")
    click.echo(f"  token: {token}")


@main.command("issue-token")
@db_option
@click.argument("user_id")
@click.option("--expires-minutes", type=click.IntRange(min=1), default=None)
def issue_token(db_path: str | None, user_id: str, expires_minutes: int | None) -> None:
    """Print a bearer token for an existing user."""
    settings = _settings(db_path)
    try:
        store = EntityStore(settings.db_path, timeout=settings.store_timeout)
        try:
            user = store.get_user(user_id)
        finally:
            store.close()
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(_authenticator(settings).issue(user.id, user.role, expires_minutes))


@main.command("rebuild-rosters")
@db_option
def rebuild_rosters(db_path: str | None) -> None:
    """Make every course roster match its active enrollments."""
    settings = _settings(db_path)
    setup_logging(console=False)
    try:
        store = EntityStore(settings.db_path, timeout=settings.store_timeout)
        try:
            service = EnrollmentService(store, AuthorizationGate(store))
            repairs = service.reconcile_rosters()
        finally:
            store.close()
    except StoreError as e:
        click.echo(f"Store error: {e}", err=True)
        sys.exit(1)

    if not repairs:
        click.echo("All rosters consistent")
        return
    for repair in repairs:
        click.echo(
            f"{repair.course_id}: added {len(repair.added)}, removed {len(repair.removed)}"
        )
    click.echo(f"Repaired {len(repairs)} roster(s)")


@main.command()
@db_option
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
def serve(db_path: str | None, host: str, port: int) -> None:
    """Run the HTTP API."""
    import uvicorn

    from coursehub.api.app import create_app

    settings = _settings(db_path)
    setup_logging(server_loggers=SERVER_LOGGERS)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
