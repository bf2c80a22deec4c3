# Overview: Flask CLI command groups for bootstrap, report sessions and maintenance.

# backend/smartseller/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py or use: python -m flask --app smartseller <group> <command>
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent) and write default settings.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-settings
#   Write defaults for any settings key that has no value yet.
#
# Report sessions:
# - python -m flask reports start-session
#   Close the active report session (if any) and open a new one.
# - python -m flask reports stop-session
#   Close the active report session.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked vendor sessions.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import report_session_service, session_service, settings_service
from .services.errors import ReportSessionNotFound


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create every table that does not exist yet and seed default settings."""
    click.echo("BUILD  Creating tables...")
    db.create_all()
    added = settings_service.seed_defaults()
    click.echo(f"PASS Database ready ({added} default settings written).")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-settings' to write defaults.")


@system_group.command('seed-settings')
@with_appcontext
def seed_settings():
    """Write defaults for settings keys without a stored value."""
    added = settings_service.seed_defaults()
    click.echo(f"PASS {added} default settings written.")


@click.group('reports')
def reports_group():
    """Report session commands."""


@reports_group.command('start-session')
@with_appcontext
def start_session_cli():
    created = report_session_service.start_new_session()
    click.echo(f"PASS Report session {created.id} started.")


@reports_group.command('stop-session')
@with_appcontext
def stop_session_cli():
    try:
        stopped = report_session_service.stop_active_session()
    except ReportSessionNotFound as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Report session {stopped.id} stopped.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked vendor sessions."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(maintenance_group)
