"""
Meeting Commands
-----------------

Meeting notes live in the built-in meetings collection.

Commands:
    - meeting list: Meetings, newest first
    - meeting add: Record a meeting
    - meeting show: A meeting with its action items
    - meeting action: Add an action item (a monthly task)
"""
import click

from bujo.core.logging_manager import handle_cli_error
from bujo.core.exceptions import DatabaseError, ValidationError
from bujo.database.models import CollectionType
from bujo.utils.rapid_log import render_entry
from . import DATE, get_db, get_user, not_applied


@click.group()
@click.pass_context
def meeting(ctx: click.Context) -> None:
    """Meeting notes and their action items."""
    pass


@meeting.command("list")
@click.pass_context
def list_meetings(ctx):
    """List meetings, newest first."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            meetings = db.collections.get_by_type(user_id, CollectionType.MEETINGS)
            notes = db.meetings.get_all(user_id, meetings.id)

            click.echo(f"\n{meetings}\n")
            if not notes:
                click.echo("  No meetings yet")
            for note in notes:
                click.echo(f"  {note}  [{note.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "meeting-list")


@meeting.command("add")
@click.argument("title")
@click.option("--date", "on_date", type=DATE, required=True, help="Meeting date")
@click.option("--attendees", help="Comma-separated attendee names")
@click.option("--agenda", help="Agenda text")
@click.option("--notes", help="Notes text")
@click.pass_context
def add_meeting(ctx, title, on_date, attendees, agenda, notes):
    """Record a meeting called TITLE."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            meetings = db.collections.get_by_type(user_id, CollectionType.MEETINGS)
            note = db.meetings.create(
                user_id,
                {
                    "collection_id": meetings.id,
                    "date": on_date.date(),
                    "title": title,
                    "attendees": attendees,
                    "agenda": agenda,
                    "notes": notes,
                },
            )
            click.echo(f"✅ {note}  [{note.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "meeting-add", additional_context={"title": title})


@meeting.command("show")
@click.argument("note_id")
@click.pass_context
def show_meeting(ctx, note_id):
    """Show a meeting and its action items."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            note = db.meetings.get(user_id, note_id)
            if note is None:
                not_applied(f"No meeting note found with id: {note_id}")

            click.echo(f"\n🗣️  {note.title}")
            click.echo(f"📅 {note.date.isoformat()}")
            if note.attendees:
                click.echo(f"👥 {', '.join(note.attendees)}")
            if note.agenda:
                click.echo(f"\nAgenda:\n  {note.agenda}")
            if note.notes:
                click.echo(f"\nNotes:\n  {note.notes}")

            items = db.collections.action_items(user_id, note.id, note.collection_id)
            if items:
                click.echo("\nAction items:")
                for item in items:
                    click.echo(f"  {render_entry(item)}  [{item.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "meeting-show", additional_context={"note_id": note_id})


@meeting.command("action")
@click.argument("note_id")
@click.argument("content")
@click.pass_context
def add_action(ctx, note_id, content):
    """Add an action item to a meeting; it lands in this month's log."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            note = db.meetings.get(user_id, note_id)
            if note is None:
                not_applied(f"No meeting note found with id: {note_id}")

            item = db.collections.create_action_item(
                user_id, note.collection_id, note.id, content
            )
            click.echo(f"✅ {render_entry(item)}  [{item.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "meeting-action", additional_context={"note_id": note_id})
