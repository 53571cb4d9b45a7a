# payments_portal/create_admin.py

# Bootstrap an admin account:
#   flask --app payments_portal create-admin admin001 --full-name "Admin User"

import click
from flask import current_app
from flask.cli import with_appcontext

from payments_portal.authentication.rbac import UserRole
from payments_portal.errors import PortalError
from payments_portal.security.input_validator import InputValidator


@click.command('create-admin')
@click.argument('account_number')
@click.option('--full-name', default='Admin User', show_default=True)
@click.option('--id-number', default='0000000000000', show_default=True)
@click.password_option(help='Password for the new admin account.')
@with_appcontext
def create_admin_command(account_number, full_name, id_number, password):
    """Create a user with the admin role."""
    if not InputValidator().validate_account_number(account_number):
        raise click.BadParameter('Invalid account number', param_hint='ACCOUNT_NUMBER')
    sessions = current_app.extensions['portal.sessions']
    try:
        user = sessions.register(full_name, id_number, account_number, password, role=UserRole.ADMIN)
    except PortalError as e:
        raise click.ClickException(e.message)
    click.echo(f"Admin user {user.account_number} created with role: {user.role}")
