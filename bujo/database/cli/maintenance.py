"""
Maintenance & Monitoring Commands
----------------------------------

Commands:
    - health: Run the chain integrity health check
"""
import json

import click

from bujo.core.logging_manager import handle_cli_error
from bujo.core.exceptions import DatabaseError, HealthCheckError
from . import get_db, get_user


@click.command()
@click.option("--fix", is_flag=True, help="Re-create missing monthly anchors")
@click.option("--all-users", is_flag=True, help="Check every user, not only --user")
@click.option("--json", "as_json", is_flag=True, help="Print the raw report as JSON")
@click.pass_context
def health(ctx, fix, all_users, as_json):
    """Check chain and anchor integrity."""
    try:
        db = get_db(ctx)
        user_id = None if all_users else get_user(ctx)
        report = db.health_check(user_id=user_id)

        if as_json:
            click.echo(json.dumps(report, indent=2, default=str))
        else:
            icon = {"healthy": "✅", "warning": "⚠️ ", "critical": "❌"}.get(
                report["status"], "❓"
            )
            click.echo(f"\n{icon} Database health: {report['status']}")

            for key, count in report["metrics"]["chain_integrity"].items():
                click.echo(f"  • {key}: {count}")

            if report["issues"]:
                click.echo("\nIssues:")
                for issue in report["issues"]:
                    click.echo(f"  • {issue}")
            if report["recommendations"]:
                click.echo("\nRecommendations:")
                for rec in report["recommendations"]:
                    click.echo(f"  • {rec}")

        if fix:
            results = db.repair_orphaned_daily_tasks(user_id=user_id, dry_run=False)
            click.echo(
                f"\n🔧 Repaired {results['repaired']} of {results['orphaned']} "
                "daily task(s) without anchor"
            )

    except (HealthCheckError, DatabaseError) as e:
        handle_cli_error(ctx, e, "health")
