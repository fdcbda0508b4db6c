"""
Entry Commands
---------------

Create, resolve, edit and delete entries.

Commands:
    - add: Rapid-log a new entry ("- note", "* event", plain text = task)
    - done: Complete an entry (synced across its chain segment)
    - cancel: Cancel an entry (synced across its chain segment)
    - edit: Change content and/or type (synced to linked rows)
    - delete: Delete a single row
    - delete-chain: Delete a task everywhere, history included
"""
from datetime import date

import click

from bujo.core.logging_manager import handle_cli_error
from bujo.core.exceptions import DatabaseError, LifecycleError, ValidationError
from bujo.database.models import EntryType, LogType
from bujo.utils.dates import month_start
from bujo.utils.rapid_log import parse_entry_prefix, render_entry
from . import DATE, get_db, get_user, not_applied


@click.command()
@click.argument("text")
@click.option("--date", "on_date", type=DATE, help="Entry date (default: today)")
@click.option(
    "--log",
    "log_type",
    type=click.Choice([LogType.DAILY.value, LogType.MONTHLY.value, LogType.FUTURE.value]),
    default=LogType.DAILY.value,
    show_default=True,
    help="Log the entry goes to",
)
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
def add(ctx, text, on_date, log_type, tags):
    """Add an entry. Prefix '- ' for a note, '* ' for an event."""
    try:
        entry_type, content = parse_entry_prefix(text)
        entry_date = on_date.date() if on_date else date.today()
        if log_type != LogType.DAILY.value:
            entry_date = month_start(entry_date)

        db = get_db(ctx)
        with db.session_scope():
            entry = db.lifecycle.create(
                get_user(ctx),
                {
                    "type": entry_type,
                    "content": content,
                    "log_type": log_type,
                    "date": entry_date,
                    "tags": list(tags),
                },
            )
            click.echo(f"✅ {render_entry(entry)}")
            click.echo(f"   id: {entry.id}")
            if entry.anchor_id:
                click.echo(f"   anchor: {entry.anchor_id}")

    except (DatabaseError, LifecycleError, ValidationError) as e:
        handle_cli_error(ctx, e, "add", additional_context={"text": text})


def _resolve(ctx, entry_id: str, operation: str, method_name: str) -> None:
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            entry = db.entries.get(user_id, entry_id)
            if entry is None:
                not_applied(f"No entry found with id: {entry_id}")

            if entry.is_anchor:
                method_name = f"{method_name}_anchor"
            applied = getattr(db.lifecycle, method_name)(user_id, entry_id)

            if not applied:
                not_applied(f"Entry {entry_id} was not updated ({entry.status.value})")
            click.echo(f"✅ {render_entry(entry)}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, operation, additional_context={"entry_id": entry_id})


@click.command()
@click.argument("entry_id")
@click.pass_context
def done(ctx, entry_id):
    """Mark an entry done."""
    _resolve(ctx, entry_id, "done", "complete")


@click.command()
@click.argument("entry_id")
@click.pass_context
def cancel(ctx, entry_id):
    """Cancel an entry."""
    _resolve(ctx, entry_id, "cancel", "cancel")


@click.command()
@click.argument("entry_id")
@click.option("--content", help="New content")
@click.option(
    "--type", "entry_type", type=click.Choice(EntryType.choices()), help="New type"
)
@click.pass_context
def edit(ctx, entry_id, content, entry_type):
    """Edit an entry's content or type; linked rows follow."""
    changes = {}
    if content is not None:
        changes["content"] = content
    if entry_type is not None:
        changes["type"] = entry_type
    if not changes:
        raise click.UsageError("Nothing to change: pass --content and/or --type")

    try:
        db = get_db(ctx)
        with db.session_scope():
            if not db.lifecycle.update_with_sync(get_user(ctx), entry_id, changes):
                not_applied(f"Entry {entry_id} was not updated (missing or migrated)")
            click.echo(f"✅ {render_entry(db.entries.get(get_user(ctx), entry_id))}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "edit", additional_context={"entry_id": entry_id})


@click.command()
@click.argument("entry_id")
@click.pass_context
def delete(ctx, entry_id):
    """Delete a single row (not migrated history, not anchors in use)."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            if not db.entries.delete(get_user(ctx), entry_id):
                not_applied(
                    f"Entry {entry_id} was not deleted; "
                    "use 'bujo delete-chain' to remove a task with its history"
                )
        click.echo(f"🗑️  Deleted {entry_id}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "delete", additional_context={"entry_id": entry_id})


@click.command("delete-chain")
@click.argument("entry_id")
@click.confirmation_option(prompt="Delete this task in every month, history included?")
@click.pass_context
def delete_chain(ctx, entry_id):
    """Delete every row of an entry's chain."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            if not db.lifecycle.delete_chain(get_user(ctx), entry_id):
                not_applied(f"No entry found with id: {entry_id}")
        click.echo(f"🗑️  Deleted chain of {entry_id}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "delete-chain", additional_context={"entry_id": entry_id})
