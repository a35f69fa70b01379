"""Command-line interface for RoleGate.

This module provides commands for preparing a database and bootstrapping the
first Owner.
"""

import asyncio
import uuid
from typing import NoReturn

import click

from rolegate.core.config import get_settings
from rolegate.core.logging import bind_correlation_id, configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="RoleGate")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides configuration)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """RoleGate - hierarchical roles, credentials and multi-account login."""
    settings = get_settings()
    if log_level is not None:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    # One correlation id for everything logged by this invocation
    bind_correlation_id(f"cli_{uuid.uuid4().hex[:12]}")
    ctx.obj = settings


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
@click.pass_obj
def init_db(settings, force: bool) -> None:
    """Create all tables and seed the built-in roles.

    Meant for development databases; production schemas are managed elsewhere.
    """
    from rolegate.infrastructure.persistence.database import get_db_manager, init_database

    if settings.is_production and not force:
        click.echo("ERROR: Running in production mode. Use --force to continue.", err=True)
        raise SystemExit(1)

    async def initialize() -> None:
        db = get_db_manager()
        try:
            seeded = await init_database(db)
            click.echo(f"Database initialized successfully ({seeded} roles seeded).")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
@click.option("--email", type=str, default=None, help="Owner email (prompts if not provided)")
@click.option(
    "--password",
    type=str,
    default=None,
    help="Owner password (prompts if not provided)",
)
@click.option("--first-name", type=str, default="", help="Given name")
@click.option("--last-name", type=str, default="", help="Family name")
def create_owner(email: str | None, password: str | None, first_name: str, last_name: str) -> None:
    """Register a confirmed user holding the Owner role.

    The Owner-count limit applies as for any other Owner assignment.
    """
    from rolegate.domain.services import AuthService, RoleManagementService
    from rolegate.domain.services.role_catalog import DEFAULT_ROLE_DEFINITIONS
    from rolegate.infrastructure.persistence.database import get_db_manager

    logger = get_logger(__name__)

    if email is None:
        email = click.prompt("Owner email", type=str)
    if password is None:
        password = click.prompt("Owner password", hide_input=True, confirmation_prompt=True)

    async def create() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                registered = await AuthService(session).register(
                    email, password, first_name, last_name, email_confirmed=True
                )
                if not registered.ok:
                    click.echo(f"Error: {registered.failure.message}", err=True)
                    raise SystemExit(1)
                user = registered.value.user

                # Bootstrap: act with Owner authority, still bound by the Owner limit
                assigned = await RoleManagementService(session).assign_role_to_user(
                    user.id, DEFAULT_ROLE_DEFINITIONS.owner, [DEFAULT_ROLE_DEFINITIONS.owner]
                )
                if not assigned.ok:
                    click.echo(
                        f"Error: {assigned.failure.message} The user was created "
                        f"without the Owner role.",
                        err=True,
                    )
                    raise SystemExit(1)

            click.echo(
                f"\nOwner created successfully!\n"
                f"  User ID: {user.id}\n"
                f"  Email:   {user.email}\n"
                f"  Roles:   {', '.join(assigned.value)}\n"
            )
            logger.info("Owner created via CLI", user_id=user.id)
        finally:
            await db.disconnect()

    asyncio.run(create())


@cli.command()
@click.option("--active-only", is_flag=True, help="Hide inactive roles")
def list_roles(active_only: bool) -> None:
    """List stored roles, highest first."""
    from rolegate.domain.services import RoleQueryService
    from rolegate.infrastructure.persistence.database import get_db_manager

    async def show() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                roles = await RoleQueryService(session).list_roles(active_only=active_only)
        finally:
            await db.disconnect()

        if not roles:
            click.echo("No roles found. Run 'rolegate init-db' first.")
            return
        for role in roles:
            flags = []
            if role.is_system_role:
                flags.append("system")
            if not role.is_active:
                flags.append("inactive")
            suffix = f" ({', '.join(flags)})" if flags else ""
            click.echo(f"{role.hierarchy_level:>4}  {role.name}{suffix}")

    asyncio.run(show())


@cli.command()
@click.pass_obj
def info(settings) -> None:
    """Display RoleGate configuration."""
    click.echo(f"""
RoleGate v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:    {settings.environment}
  Database:       {settings.database_url}

Tokens:
  Issuer:         {settings.jwt_issuer}
  Audience:       {settings.jwt_audience}
  Access Expire:  {settings.access_token_expire_minutes} minutes
  Refresh Expire: {settings.refresh_token_expire_days} days

Roles:
  Max Owners:     {settings.max_owners}
  Max Per User:   {settings.max_roles_per_user}

Logging:
  Level:          {settings.log_level}
  Format:         {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    Called by the `rolegate` command and by `python -m rolegate`.
    """
    cli()


if __name__ == "__main__":
    main()
