"""
Browse Commands
----------------

Read-only views of the logs.

Commands:
    - show day: Daily log for one day
    - show month: Every daily row of a month, by day
    - show monthly: Monthly panel (tasks and their planned days)
    - show future: Future log from the current month on
    - show unassigned: Open monthly tasks not planned to any day
    - show chain: Full history of one task across months
"""
from datetime import date
from itertools import groupby

import click

from bujo.core.logging_manager import handle_cli_error
from bujo.core.exceptions import DatabaseError, ValidationError
from bujo.utils.dates import month_label
from bujo.utils.rapid_log import render_entry
from . import DATE, MONTH, get_db, get_user, not_applied


def _date_or_today(value) -> date:
    return value.date() if value else date.today()


@click.group()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Browse the daily, monthly and future logs."""
    pass


@show.command("day")
@click.argument("day", type=DATE, required=False)
@click.option("--ids", is_flag=True, help="Show entry ids")
@click.pass_context
def day(ctx, day, ids):
    """Daily log for DAY (default: today)."""
    on_date = _date_or_today(day)
    try:
        db = get_db(ctx)
        with db.session_scope():
            entries = db.lifecycle.entries_for_date(get_user(ctx), on_date)

            click.echo(f"\n📅 {on_date.strftime('%A, %B %d, %Y')}\n")
            if not entries:
                click.echo("  Nothing logged")
            for entry in entries:
                suffix = f"  [{entry.id}]" if ids else ""
                click.echo(f"  {render_entry(entry)}{suffix}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "show-day", additional_context={"date": on_date})


@show.command("month")
@click.argument("month", type=MONTH, required=False)
@click.pass_context
def month(ctx, month):
    """Every daily row of MONTH (YYYY-MM), by day."""
    first = _date_or_today(month)
    try:
        db = get_db(ctx)
        with db.session_scope():
            entries = db.lifecycle.entries_for_month(get_user(ctx), first.year, first.month)

            click.echo(f"\n🗓️  {month_label(first)}\n")
            if not entries:
                click.echo("  Nothing logged")
            for on_date, rows in groupby(entries, key=lambda e: e.date):
                click.echo(f"  {on_date.day:2d} {on_date.strftime('%a')}")
                for entry in rows:
                    click.echo(f"       {render_entry(entry)}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "show-month", additional_context={"month": first})


@show.command("monthly")
@click.argument("month", type=MONTH, required=False)
@click.option("--ids", is_flag=True, help="Show entry ids")
@click.pass_context
def monthly(ctx, month, ids):
    """Monthly panel for MONTH (YYYY-MM) with planned days."""
    first = _date_or_today(month)
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            entries = db.lifecycle.monthly_entries(user_id, first.year, first.month)

            click.echo(f"\n📋 {month_label(first)}\n")
            if not entries:
                click.echo("  Nothing logged")
            for entry in entries:
                days = db.entries.assigned_days(user_id, entry.id)
                planned = f"  → {', '.join(str(d.day) for d in days)}" if days else ""
                suffix = f"  [{entry.id}]" if ids else ""
                click.echo(f"  {render_entry(entry)}{planned}{suffix}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "show-monthly", additional_context={"month": first})


@show.command("future")
@click.pass_context
def future(ctx):
    """Future log: monthly and future rows from this month on."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            entries = db.lifecycle.future_entries(get_user(ctx))

            click.echo("\n🔭 Future Log\n")
            if not entries:
                click.echo("  Nothing planned")
            for first, rows in groupby(entries, key=lambda e: (e.date.year, e.date.month)):
                click.echo(f"  {month_label(date(first[0], first[1], 1))}")
                for entry in rows:
                    click.echo(f"    {render_entry(entry)}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "show-future")


@show.command("unassigned")
@click.argument("month", type=MONTH, required=False)
@click.pass_context
def unassigned(ctx, month):
    """Open tasks of MONTH (YYYY-MM) not planned to any day."""
    first = _date_or_today(month)
    try:
        db = get_db(ctx)
        with db.session_scope():
            entries = db.lifecycle.unassigned_anchors(get_user(ctx), first.year, first.month)

            click.echo(f"\n📥 Unassigned in {month_label(first)}\n")
            if not entries:
                click.echo("  Every task is planned")
            for entry in entries:
                click.echo(f"  {render_entry(entry)}  [{entry.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "show-unassigned", additional_context={"month": first})


@show.command("chain")
@click.argument("entry_id")
@click.pass_context
def chain(ctx, entry_id):
    """History of the task ENTRY_ID belongs to, across months."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            entry = db.entries.get(user_id, entry_id)
            if entry is None:
                not_applied(f"No entry found with id: {entry_id}")

            rows = db.entries.chain(user_id, entry.chain_id)
            resolution = db.lifecycle.fetch_chain_resolutions(user_id, [entry.chain_id])

            click.echo(f"\n🔗 Chain {entry.chain_id}\n")
            for row in rows:
                click.echo(
                    f"  {row.date_formatted}  {row.log_type.value:<8} {render_entry(row)}"
                )
            if entry.chain_id in resolution:
                click.echo(f"\n  Resolved: {resolution[entry.chain_id].value}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "show-chain", additional_context={"entry_id": entry_id})
