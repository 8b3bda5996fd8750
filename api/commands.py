"""
Flask CLI commands.

    flask --app api seed-admin
    flask --app api purge-refresh-tokens --days 30
"""
import logging
from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from models.schemas.user import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

ADMIN_ROLE = "Admin"


@click.command("seed-admin")
@click.option("--email", default=None, help="Defaults to ADMIN_EMAIL.")
@click.option("--password", default=None, help="Defaults to ADMIN_PASSWORD.")
@with_appcontext
def seed_admin(email, password):
    """Create the bootstrap Admin account, or grant Admin to an existing one. Safe to rerun."""
    email = email or current_app.config.get("ADMIN_EMAIL")
    password = password or current_app.config.get("ADMIN_PASSWORD")
    if not email:
        raise click.UsageError("set ADMIN_EMAIL or pass --email")

    services = current_app.extensions["auth_sessions"]
    directory = services.directory
    if ADMIN_ROLE not in directory.allowed_roles:
        raise click.ClickException(f"{ADMIN_ROLE!r} is not in ALLOWED_ROLES")

    user = directory.find_by_email(email)
    if user is None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise click.UsageError(
                f"an admin password of at least {MIN_PASSWORD_LENGTH} characters is required"
            )
        with services.store.transaction():
            user = directory.create_account(email, password, "Admin", None)
            directory.assign_role(user, ADMIN_ROLE)
        click.echo(f"Created admin account {user.email}.")
    elif ADMIN_ROLE in directory.roles_of(user):
        click.echo(f"{user.email} is already an admin.")
    else:
        directory.assign_role(user, ADMIN_ROLE)
        click.echo(f"Granted {ADMIN_ROLE} to {user.email}.")
    logger.info("admin seeded user_id=%s", user.id)


@click.command("purge-refresh-tokens")
@click.option("--days", type=int, default=None, help="Keep revoked tokens that expired within this many days.")
@with_appcontext
def purge_refresh_tokens(days):
    """Delete refresh token records that are revoked and long expired."""
    if days is None:
        days = current_app.config["RETENTION_DAYS"]
    if days < 0:
        raise click.BadParameter("must be >= 0", param_hint="--days")
    services = current_app.extensions["auth_sessions"]
    cutoff = services.codec.now() - timedelta(days=days)
    removed = services.store.purge(cutoff)
    logger.info("purged %d refresh token records expired before %s", removed, cutoff.isoformat())
    click.echo(f"Purged {removed} refresh token record(s).")


def register_commands(app):
    app.cli.add_command(seed_admin)
    app.cli.add_command(purge_refresh_tokens)
