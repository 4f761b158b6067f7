# Overview: Flask CLI command groups for bootstrap, tenant and user administration.

# backend/stockpro/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Company management (MULTI-TENANT):
# - python -m flask companies list
#   List all companies with status and trial end.
# - python -m flask companies create --name "Padaria Central" --email contato@padaria.com --plan BASICO
#   Create a new company (tenant).
#
# Users:
# - python -m flask users create --company-id 1 --name "Ana" --email ana@padaria.com --password "Password123!" --role ADMIN
#   Create a user inside a company (prompts if options are omitted).
# - python -m flask users create-platform-admin --company-id 1 --name "Ops" --email ops@stockpro.com --password "Password123!"
#   Create a platform operator allowed to manage company lifecycle.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Company, User
from .models.tenancy import COMPANY_STATUSES
from .services import company_service
from .services.auth_service import PasswordValidationError, create_user
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables created")


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

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('companies')
def companies_group():
    """Company (tenant) management commands."""


@companies_group.command('list')
@with_appcontext
def list_companies():
    """List all companies."""
    companies = db.session.query(Company).order_by(Company.id.asc()).all()

    if not companies:
        click.echo("No companies found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<30} {'Plan':<14} {'Status':<10} {'Users':<6} {'Trial ends'}")
    click.echo("="*90)

    for c in companies:
        user_count = db.session.query(User).filter_by(company_id=c.id).count()
        trial = c.trial_ends_at.strftime("%Y-%m-%d") if c.trial_ends_at else "-"
        click.echo(f"{c.id:<5} {c.name:<30} {c.plan:<14} {c.status:<10} {user_count:<6} {trial}")

    click.echo("="*90 + "\n")


@companies_group.command('create')
@click.option('--name', required=True, help='Company name')
@click.option('--email', required=True, help='Company e-mail (unique)')
@click.option('--plan', default='BASICO', help='Plan name')
@click.option('--status', type=click.Choice(list(COMPANY_STATUSES)), default='ACTIVE', help='Initial status')
@with_appcontext
def create_company(name, email, plan, status):
    """Create a new company (tenant)."""
    try:
        company = company_service.create_company(name=name, email=email, plan=plan, status=status)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created company: {company.name} (ID: {company.id}, Status: {company.status})")


@click.group('users')
def users_group():
    """User management commands."""


def _create_user(company_id, name, email, password, role, is_platform_admin):
    try:
        user = create_user(
            company_id=company_id,
            name=name,
            email=email,
            password=password,
            role=role,
            is_platform_admin=is_platform_admin,
        )
    except PasswordValidationError as e:
        click.echo("FAIL Password does not meet requirements:")
        for error in e.errors:
            click.echo(f"  - {error}")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    return user


@users_group.command('create')
@click.option('--company-id', type=int, required=True, help='Company ID')
@click.option('--name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='E-mail (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['ADMIN', 'USER']), default='USER', help='Role')
@with_appcontext
def create_user_cli(company_id, name, email, password, role):
    """
    Create a new user inside a company.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    user = _create_user(company_id, name, email, password, role, False)
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}, Role: {user.role})")


@users_group.command('create-platform-admin')
@click.option('--company-id', type=int, required=True, help='Company the operator belongs to')
@click.option('--name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='E-mail (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_platform_admin(company_id, name, email, password):
    """Create a platform operator (company lifecycle management)."""
    user = _create_user(company_id, name, email, password, "ADMIN", True)
    click.echo(f"PASS Created platform admin: {user.email} (ID: {user.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(companies_group)
    app.cli.add_command(users_group)
