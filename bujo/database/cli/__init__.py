#!/usr/bin/env python3
"""
bujo Command-Line Interface
---------------------------

Modular command-line interface for the bullet journal.

This module provides the main CLI group and shared context setup
for all commands.

Command Structure:
    - Setup (init)
    - Entries (add, done, cancel, edit, delete, delete-chain)
    - Planning & Migration (plan, migrate, migrate-month, migrate-all)
    - Browse (show)
    - Collections (collection)
    - Meetings (meeting)
    - Health (health)

Usage:
    # Get general help
    bujo --help

    # Get help for a specific command group
    bujo show --help

    # Act as a given user
    BUJO_USER=ana bujo show day
"""
import logging
import sys
from pathlib import Path

import click

from bujo.core.paths import ALEMBIC_DIR, DB_PATH, LOG_DIR
from bujo.database import BujoDB

DATE = click.DateTime(formats=["%Y-%m-%d"])
MONTH = click.DateTime(formats=["%Y-%m", "%Y-%m-%d"])


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--alembic-dir",
    type=click.Path(),
    default=str(ALEMBIC_DIR),
    help="Path to Alembic directory",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--user",
    envvar="BUJO_USER",
    default="local",
    show_default=True,
    help="User id every command acts as",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, alembic_dir, log_dir, user, verbose):
    """bujo - bullet journal tracker"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["alembic_dir"] = Path(alembic_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["user_id"] = user
    ctx.obj["verbose"] = verbose


def get_db(ctx) -> BujoDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        ctx.obj["db"] = BujoDB(
            db_path=ctx.obj["db_path"],
            alembic_dir=ctx.obj["alembic_dir"],
            log_dir=ctx.obj["log_dir"],
        )
        ctx.obj["logger"] = ctx.obj["db"].logger
    return ctx.obj["db"]


def get_user(ctx) -> str:
    """The user id resolved by the root group."""
    return ctx.obj["user_id"]


def not_applied(message: str) -> None:
    """Report a declined operation and exit with status 1."""
    click.echo(f"⚠️  {message}", err=True)
    sys.exit(1)


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init  # noqa: E402
from .entries import add, done, cancel, edit, delete, delete_chain  # noqa: E402
from .planning import plan, migrate, migrate_month, migrate_all  # noqa: E402
from .query import show  # noqa: E402
from .collections import collection  # noqa: E402
from .meetings import meeting  # noqa: E402
from .maintenance import health  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(add)
cli.add_command(done)
cli.add_command(cancel)
cli.add_command(edit)
cli.add_command(delete)
cli.add_command(delete_chain)
cli.add_command(plan)
cli.add_command(migrate)
cli.add_command(migrate_month)
cli.add_command(migrate_all)
cli.add_command(health)

# Register command groups
cli.add_command(show)
cli.add_command(collection)
cli.add_command(meeting)


if __name__ == "__main__":
    cli(obj={})
