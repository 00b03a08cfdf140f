# Overview: Flask CLI command groups for bootstrap and assignment maintenance.

# backend/staffing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "staffing:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migrated databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Idempotent demo directory: two zones, four stores, employees, HR/ASM/store manager profiles.
#
# Delegations:
# - python -m flask delegations list [--employee-id 1] [--status active]
#   List delegations with their effective status.
# - python -m flask delegations expire [--date 2026-01-31]
#   Write back 'expired' for lapsed delegations. Reads never depend on this.
#
# Transfers:
# - python -m flask transfers due [--date 2026-01-31]
#   List approved transfers whose date has arrived (flags overdue ones).
# - python -m flask transfers complete-due [--date 2026-01-31]
#   Complete every due transfer, one transaction each.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Zone, Profile
from .roles import Role
from .services import delegation_service, directory_service, status_service, transfer_service
from .services.rules import current_limits
from .time_utils import today


def _as_date(value):
    return value.date() if value is not None else None


DATE_OPTION = click.DateTime(formats=["%Y-%m-%d"])


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Seed a demo directory.

    Creates (if no zones exist yet):
    - Zones: North, South
    - Stores: North A, North B, North C (North), South D (South)
    - Two employees per store
    - Profiles: HR, one ASM per zone, a store manager for North A
    """
    if db.session.query(Zone).first():
        click.echo("WARN  Directory already seeded, skipping...")
        return

    north = directory_service.create_zone("North", code="N")
    south = directory_service.create_zone("South", code="S")

    stores = [
        directory_service.create_store("North A", north.id, code="NA"),
        directory_service.create_store("North B", north.id, code="NB"),
        directory_service.create_store("North C", north.id, code="NC"),
        directory_service.create_store("South D", south.id, code="SD"),
    ]
    click.echo(f"PASS Created zones and {len(stores)} stores")

    for store in stores:
        for n in (1, 2):
            directory_service.create_employee(
                f"{store.name} Employee {n}",
                store.id,
                employee_code=f"{store.code}-{n:03d}",
                position="Sales Associate",
            )
    click.echo(f"PASS Created {len(stores) * 2} employees")

    directory_service.create_profile("HR Admin", Role.HR, email="hr@staffing.local")
    directory_service.create_profile("North ASM", Role.ASM, zone_id=north.id, email="asm.north@staffing.local")
    directory_service.create_profile("South ASM", Role.ASM, zone_id=south.id, email="asm.south@staffing.local")
    directory_service.create_profile(
        "North A Manager", Role.STORE_MANAGER, store_id=stores[0].id, email="sm.na@staffing.local"
    )
    click.echo("PASS Created profiles")

    click.echo("\n" + "=" * 60)
    click.echo(f"{'ID':<5} {'Role':<15} {'Name'}")
    click.echo("=" * 60)
    for profile in db.session.query(Profile).order_by(Profile.id).all():
        role = profile.role.value if profile.role else "-"
        click.echo(f"{profile.id:<5} {role:<15} {profile.full_name}")
    click.echo("=" * 60)
    click.echo("Send the profile id as the X-Profile-Id header.")


# =============================================================================
# DELEGATION COMMANDS
# =============================================================================

@click.group('delegations')
def delegations_group():
    """Delegation inspection and maintenance commands."""


@delegations_group.command('list')
@click.option('--employee-id', type=int, help='Filter by employee')
@click.option('--status', type=click.Choice(['pending', 'active', 'expired', 'revoked']), help='Effective status')
@with_appcontext
def list_delegations_cli(employee_id, status):
    """List delegations with their effective status."""
    on = today()
    rows = delegation_service.list_delegations(employee_id=employee_id, status=status, on=on)
    if not rows:
        click.echo("No delegations found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<6} {'Employee':<10} {'From':<6} {'To':<6} {'Valid From':<12} {'Valid Until':<12} {'Stored':<9} {'Effective'}")
    click.echo("=" * 90)
    for d in rows:
        click.echo(
            f"{d.id:<6} {d.employee_id:<10} {d.from_store_id:<6} {d.to_store_id:<6} "
            f"{d.valid_from.isoformat():<12} {d.valid_until.isoformat():<12} {d.status:<9} "
            f"{status_service.effective_status(d, on)}"
        )
    click.echo("=" * 90 + "\n")


@delegations_group.command('expire')
@click.option('--date', 'on', type=DATE_OPTION, help='Treat this date as today (YYYY-MM-DD)')
@with_appcontext
def expire_delegations_cli(on):
    """Write back 'expired' for every lapsed delegation."""
    expired = delegation_service.expire_lapsed_delegations(on=_as_date(on))
    if not expired:
        click.echo("PASS No lapsed delegations")
        return
    for d in expired:
        click.echo(f"PASS Expired delegation {d.id} (employee {d.employee_id}, ended {d.valid_until.isoformat()})")
    click.echo(f"DONE Expired {len(expired)} delegation(s)")


# =============================================================================
# TRANSFER COMMANDS
# =============================================================================

@click.group('transfers')
def transfers_group():
    """Transfer inspection and execution commands."""


@transfers_group.command('due')
@click.option('--date', 'on', type=DATE_OPTION, help='Treat this date as today (YYYY-MM-DD)')
@with_appcontext
def due_transfers_cli(on):
    """List approved transfers that are ready for execution."""
    on_date = _as_date(on) or today()
    grace_days = current_limits()["TRANSFER_OVERDUE_GRACE_DAYS"]
    rows = transfer_service.due_transfers(on=on_date)
    if not rows:
        click.echo("No transfers due.")
        return

    click.echo("\n" + "=" * 70)
    click.echo(f"{'ID':<6} {'Employee':<10} {'From':<6} {'To':<6} {'Date':<12} {'State'}")
    click.echo("=" * 70)
    for t in rows:
        state = "OVERDUE" if status_service.is_transfer_overdue(t, on_date, grace_days) else "READY"
        click.echo(
            f"{t.id:<6} {t.employee_id:<10} {t.from_store_id:<6} {t.to_store_id:<6} "
            f"{t.transfer_date.isoformat():<12} {state}"
        )
    click.echo("=" * 70 + "\n")


@transfers_group.command('complete-due')
@click.option('--date', 'on', type=DATE_OPTION, help='Treat this date as today (YYYY-MM-DD)')
@with_appcontext
def complete_due_transfers_cli(on):
    """Complete every approved transfer whose date has arrived."""
    outcomes = transfer_service.complete_due_transfers(on=_as_date(on))
    if not outcomes:
        click.echo("No transfers due.")
        return

    completed = 0
    for outcome in outcomes:
        if outcome["success"]:
            completed += 1
            click.echo(f"PASS Completed transfer {outcome['id']}")
        else:
            click.echo(f"FAIL Transfer {outcome['id']}: {outcome['error']}")
    click.echo(f"DONE {completed}/{len(outcomes)} transfer(s) completed")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(delegations_group)
    app.cli.add_command(transfers_group)
