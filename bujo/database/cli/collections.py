"""
Collection Commands
--------------------

Commands:
    - collection list: All collections (creates the built-in ones)
    - collection add: Create a custom collection
    - collection show: Entries of a collection
    - collection add-item: Rapid-log an entry into a collection
    - collection delete: Delete a collection and everything in it
"""
import click

from bujo.core.logging_manager import handle_cli_error
from bujo.core.exceptions import DatabaseError, ValidationError
from bujo.database.models import CollectionType
from bujo.utils.rapid_log import parse_entry_prefix, render_entry
from . import get_db, get_user, not_applied


@click.group()
@click.pass_context
def collection(ctx: click.Context) -> None:
    """Collections: meetings, ideas and custom lists."""
    pass


@collection.command("list")
@click.pass_context
def list_collections(ctx):
    """List collections."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            for ctype in (CollectionType.MEETINGS, CollectionType.IDEAS):
                db.collections.get_by_type(user_id, ctype)

            click.echo("\n📚 Collections\n")
            for coll in db.collections.get_all(user_id):
                count = db.entries.count_in_collection(user_id, coll.id)
                click.echo(f"  {coll}  ({count})  [{coll.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "collection-list")


@collection.command("add")
@click.argument("name")
@click.option("--icon", help="Emoji shown next to the name")
@click.pass_context
def add_collection(ctx, name, icon):
    """Create a custom collection called NAME."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            coll = db.collections.create(get_user(ctx), {"name": name, "icon": icon})
            click.echo(f"✅ {coll}  [{coll.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "collection-add", additional_context={"name": name})


@collection.command("show")
@click.argument("collection_id")
@click.pass_context
def show_collection(ctx, collection_id):
    """Show the entries of a collection."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user_id = get_user(ctx)
            coll = db.collections.get(user_id, collection_id)
            if coll is None:
                not_applied(f"No collection found with id: {collection_id}")

            click.echo(f"\n{coll}\n")
            entries = db.collections.entries(user_id, coll.id)
            if not entries:
                click.echo("  Empty")
            for entry in entries:
                click.echo(f"  {render_entry(entry)}  [{entry.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(
            ctx, e, "collection-show", additional_context={"collection_id": collection_id}
        )


@collection.command("add-item")
@click.argument("collection_id")
@click.argument("text")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
def add_item(ctx, collection_id, text, tags):
    """Add an entry to a collection."""
    try:
        entry_type, content = parse_entry_prefix(text)
        db = get_db(ctx)
        with db.session_scope():
            entry = db.collections.create_entry(
                get_user(ctx),
                collection_id,
                {"type": entry_type, "content": content, "tags": list(tags)},
            )
            if entry is None:
                not_applied(f"No collection found with id: {collection_id}")
            click.echo(f"✅ {render_entry(entry)}  [{entry.id}]")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(
            ctx, e, "collection-add-item", additional_context={"collection_id": collection_id}
        )


@collection.command("delete")
@click.argument("collection_id")
@click.confirmation_option(prompt="Delete this collection and all its entries?")
@click.pass_context
def delete_collection(ctx, collection_id):
    """Delete a collection, its entries and its meeting notes."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            if not db.collections.delete(get_user(ctx), collection_id):
                not_applied(f"No collection found with id: {collection_id}")
        click.echo(f"🗑️  Deleted collection {collection_id}")

    except DatabaseError as e:
        handle_cli_error(
            ctx, e, "collection-delete", additional_context={"collection_id": collection_id}
        )
