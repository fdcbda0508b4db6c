"""
Planning & Migration Commands
------------------------------

Move tasks between days and months.

Commands:
    - plan: Assign a monthly/future task to a day
    - migrate: Move a daily task to another day (another month delegates)
    - migrate-month: Carry a task into another month
    - migrate-all: Move every overdue open task to a day
"""
from datetime import date

import click

from bujo.core.logging_manager import handle_cli_error
from bujo.core.exceptions import DatabaseError, ValidationError
from bujo.utils.dates import month_label
from bujo.utils.rapid_log import render_entry
from . import DATE, MONTH, get_db, get_user, not_applied


@click.command()
@click.argument("anchor_id")
@click.argument("day", type=DATE)
@click.pass_context
def plan(ctx, anchor_id, day):
    """Plan a monthly/future task (ANCHOR_ID) to DAY (YYYY-MM-DD)."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            daily = db.lifecycle.plan_to_day(get_user(ctx), anchor_id, day.date())
            if daily is None:
                not_applied(f"Entry {anchor_id} cannot be planned")
            click.echo(f"📅 {daily.date_formatted}  {render_entry(daily)}")
            click.echo(f"   id: {daily.id}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "plan", additional_context={"anchor_id": anchor_id})


@click.command()
@click.argument("entry_id")
@click.argument("day", type=DATE)
@click.pass_context
def migrate(ctx, entry_id, day):
    """Migrate a daily task to DAY (YYYY-MM-DD)."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            result = db.lifecycle.migrate_entry(get_user(ctx), entry_id, day.date())
            if result is None:
                not_applied(f"Entry {entry_id} was not migrated")
            click.echo(f"➡️  {result.date_formatted}  {render_entry(result)}")
            click.echo(f"   id: {result.id}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "migrate", additional_context={"entry_id": entry_id})


@click.command("migrate-month")
@click.argument("entry_id")
@click.argument("month", type=MONTH)
@click.pass_context
def migrate_month(ctx, entry_id, month):
    """Carry a task into MONTH (YYYY-MM)."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            anchor = db.lifecycle.migrate_to_month(get_user(ctx), entry_id, month.date())
            if anchor is None:
                not_applied(f"Entry {entry_id} was not migrated")
            click.echo(f"➡️  {month_label(anchor.date)}  {render_entry(anchor)}")
            click.echo(f"   id: {anchor.id}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(
            ctx, e, "migrate-month", additional_context={"entry_id": entry_id}
        )


@click.command("migrate-all")
@click.option("--before", type=DATE, help="Migrate tasks dated before this day (default: today)")
@click.option("--to", "to_day", type=DATE, help="Target day (default: today)")
@click.pass_context
def migrate_all(ctx, before, to_day):
    """Migrate every open daily task dated before a day."""
    before_date = before.date() if before else date.today()
    to_date = to_day.date() if to_day else date.today()
    try:
        db = get_db(ctx)
        with db.session_scope():
            count = db.lifecycle.migrate_all_incomplete(get_user(ctx), before_date, to_date)
        click.echo(f"➡️  Migrated {count} task(s) to {to_date.isoformat()}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(
            ctx,
            e,
            "migrate-all",
            additional_context={"before": before_date, "to": to_date},
        )
