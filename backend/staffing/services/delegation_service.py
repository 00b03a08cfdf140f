# Overview: Service-layer operations for delegations (temporary loans of an employee to another store).

"""
Delegation Service

LIFECYCLE:
1. pending: created with valid_from in the future
2. active: valid_from reached
3. expired: valid_until passed (derived on read, written back lazily)
4. revoked: explicitly ended

A delegation never changes Employee.store_id. It only annotates "currently
working at another store" for the timesheet consumer.

CONCURRENCY: create/extend lock the employee row, validate, then bump the
employee's version before writing. Two writers racing on the same employee
cannot both pass the overlap check and commit.
"""

from __future__ import annotations

from datetime import date

from flask import current_app

from staffing.extensions import db
from staffing.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from staffing.messages import DELEGATION_MESSAGES, NO_CHANGE_SUFFIX
from staffing.models import Delegation
from staffing.models.assignments import (
    DELEGATION_OPEN_STATUSES,
    DELEGATION_STATUS_EXPIRED,
    DELEGATION_STATUS_REVOKED,
)
from staffing.services import conflict_service, directory_service, scope_service, status_service
from staffing.services.concurrency import lock_for_update, lock_employee, run_with_retry, touch_employee_assignments
from staffing.services.event_service import append_assignment_event
from staffing.services.rules import (
    DELEGATION_RULES,
    KIND_DELEGATION,
    CreateDelegationRequest,
    RuleContext,
    coerce_id,
    current_limits,
    raise_for,
    run_rules,
)
from staffing import time_utils


def _today(on: date | None) -> date:
    return on or time_utils.today()


def _rejected(exc, action: str, **context):
    current_app.logger.warning("Delegation %s rejected (%s): %s %s", action, exc.error_code, exc.message, context)
    return exc


def get_delegation(delegation_id: int) -> Delegation | None:
    return db.session.query(Delegation).filter_by(id=delegation_id).first()


def _lock_delegation(delegation_id: int) -> Delegation | None:
    return lock_for_update(db.session.query(Delegation).filter_by(id=delegation_id)).first()


def _write_back_expiry(delegation: Delegation, actor_profile_id: int | None = None) -> None:
    """Persist a lapsed open record as expired. Caller commits."""
    delegation.status = DELEGATION_STATUS_EXPIRED
    delegation.expired_at = time_utils.utcnow()
    append_assignment_event(
        event_type="delegation.expired",
        entity_type="delegation",
        entity_id=delegation.id,
        employee_id=delegation.employee_id,
        actor_profile_id=actor_profile_id,
        store_id=delegation.to_store_id,
    )


def delegation_to_dict(delegation: Delegation, on: date | None = None) -> dict:
    """Stored fields plus the derived, date-dependent view."""
    today = _today(on)
    data = delegation.to_dict()
    data["effective_status"] = status_service.effective_status(delegation, today)
    data["is_in_effect"] = status_service.is_in_effect(delegation, today)
    data["days_remaining"] = status_service.days_remaining(delegation, today)
    data["is_expiring_soon"] = status_service.is_expiring_soon(
        delegation, today, current_limits()["DELEGATION_EXPIRY_WARNING_DAYS"]
    )
    return data


# =============================================================================
# WRITES
# =============================================================================

def create_delegation(request: CreateDelegationRequest, actor_id: int, *, on: date | None = None) -> Delegation:
    """
    Create a delegation after the full rule pipeline passes.

    Stored status is 'active' when valid_from <= today, else 'pending'.
    from_store_id/from_zone_id snapshot the employee's store of record.

    Raises:
        NotFoundError: caller profile, employee or destination store missing
        ValidationError / PermissionDeniedError / ConflictError: rule failure
    """
    actor = directory_service.require_profile(actor_id)
    scope = scope_service.resolve_scope(actor)
    limits = current_limits()

    def _op():
        today = _today(on)

        employee_id = coerce_id(request.employee_id)
        if employee_id is not None:
            lock_employee(employee_id)

        ctx = RuleContext(
            kind=KIND_DELEGATION,
            actor=actor,
            scope=scope,
            request=request,
            today=today,
            limits=limits,
        )
        result = run_rules(DELEGATION_RULES, ctx)
        if not result.is_valid:
            current_app.logger.warning(
                "Delegation create rejected (%s): %s employee=%s actor=%s",
                result.error_code, result.error, request.employee_id, actor.id,
            )
            raise_for(result)

        employee = ctx.employee
        touch_employee_assignments(employee)

        delegation = Delegation(
            employee_id=employee.id,
            from_store_id=employee.store_id,
            from_zone_id=employee.zone_id,
            to_store_id=ctx.to_store.id,
            to_zone_id=ctx.to_store.zone_id,
            delegated_by=actor.id,
            valid_from=ctx.start,
            valid_until=ctx.end,
            status=status_service.stored_status_for_new(ctx.start, today),
            auto_return=request.auto_return,
            extension_count=0,
            notes=request.notes,
        )
        db.session.add(delegation)
        db.session.flush()

        append_assignment_event(
            event_type="delegation.created",
            entity_type="delegation",
            entity_id=delegation.id,
            employee_id=employee.id,
            actor_profile_id=actor.id,
            store_id=delegation.to_store_id,
            note=request.notes,
        )
        db.session.commit()

        current_app.logger.info(
            "Delegation %s created: employee %s store %s -> %s (%s..%s, %s)",
            delegation.id, employee.id, delegation.from_store_id, delegation.to_store_id,
            delegation.valid_from, delegation.valid_until, delegation.status,
        )
        return delegation

    return run_with_retry(_op)


def revoke_delegation(delegation_id: int, actor_id: int, *, on: date | None = None) -> Delegation:
    """
    End a pending/active delegation early.

    Allowed for HR, the original delegator, an ASM of the from/to zone, or a
    store manager of the from/to store. A terminal record is rejected; a
    lapsed record still stored as open is written back to expired first.
    """
    actor = directory_service.require_profile(actor_id)
    scope = scope_service.resolve_scope(actor)

    def _op():
        today = _today(on)
        delegation = _lock_delegation(delegation_id)
        if not delegation:
            raise _rejected(NotFoundError(DELEGATION_MESSAGES["DELEGATION_NOT_FOUND"]), "revoke", id=delegation_id)

        if not scope_service.can_revoke_delegation(scope, delegation):
            raise _rejected(
                PermissionDeniedError(DELEGATION_MESSAGES["REVOKE_NOT_ALLOWED"]), "revoke",
                id=delegation_id, actor=actor.id,
            )

        if status_service.needs_expiry_write_back(delegation, today):
            _write_back_expiry(delegation, actor.id)
            db.session.commit()

        status = status_service.effective_status(delegation, today)
        if status not in DELEGATION_OPEN_STATUSES:
            raise _rejected(
                ValidationError(DELEGATION_MESSAGES["ALREADY_ENDED"].format(status=status)), "revoke",
                id=delegation_id,
            )

        delegation.status = DELEGATION_STATUS_REVOKED
        delegation.revoked_at = time_utils.utcnow()
        delegation.revoked_by = actor.id

        append_assignment_event(
            event_type="delegation.revoked",
            entity_type="delegation",
            entity_id=delegation.id,
            employee_id=delegation.employee_id,
            actor_profile_id=actor.id,
            store_id=delegation.to_store_id,
        )
        db.session.commit()

        current_app.logger.info("Delegation %s revoked by profile %s", delegation.id, actor.id)
        return delegation

    return run_with_retry(_op)


def extend_delegation(delegation_id: int, new_valid_until, actor_id: int, *, on: date | None = None) -> Delegation:
    """
    Push valid_until later on a pending/active delegation.

    Guards, in order: caller may extend (HR, or ASM of the from/to zone),
    record still open, extensions left, new end is a real date after
    the current end, total duration within the limit, and no overlap with
    another open delegation for the same employee.
    """
    actor = directory_service.require_profile(actor_id)
    scope = scope_service.resolve_scope(actor)
    limits = current_limits()

    def _op():
        today = _today(on)
        delegation = _lock_delegation(delegation_id)
        if not delegation:
            raise _rejected(NotFoundError(DELEGATION_MESSAGES["DELEGATION_NOT_FOUND"]), "extend", id=delegation_id)

        if not scope_service.can_extend_delegation(scope, delegation):
            raise _rejected(
                PermissionDeniedError(DELEGATION_MESSAGES["EXTEND_NOT_ALLOWED"]), "extend",
                id=delegation_id, actor=actor.id,
            )

        if status_service.needs_expiry_write_back(delegation, today):
            _write_back_expiry(delegation, actor.id)
            db.session.commit()

        status = status_service.effective_status(delegation, today)
        if status not in DELEGATION_OPEN_STATUSES:
            raise _rejected(
                ValidationError(DELEGATION_MESSAGES["ALREADY_ENDED"].format(status=status)), "extend",
                id=delegation_id,
            )

        if delegation.extension_count >= limits["MAX_DELEGATION_EXTENSIONS"]:
            raise _rejected(ValidationError(DELEGATION_MESSAGES["MAX_EXTENSIONS_REACHED"]), "extend", id=delegation_id)

        try:
            new_end = time_utils.parse_iso_date(new_valid_until)
        except (TypeError, ValueError):
            new_end = None
        if new_end is None:
            raise _rejected(ValidationError(DELEGATION_MESSAGES["MALFORMED_DATE"]), "extend", id=delegation_id)

        if new_end <= delegation.valid_until:
            raise _rejected(ValidationError(DELEGATION_MESSAGES["EXTENSION_NOT_LATER"]), "extend", id=delegation_id)

        max_days = limits["MAX_DELEGATION_DAYS"]
        if status_service.delegation_duration_days(delegation.valid_from, new_end) > max_days:
            raise _rejected(
                ValidationError(DELEGATION_MESSAGES["TOO_LONG"].format(max_days=max_days)), "extend",
                id=delegation_id,
            )

        employee = lock_employee(delegation.employee_id)
        overlapping = conflict_service.find_overlapping_delegation(
            delegation.employee_id,
            delegation.valid_from,
            new_end,
            today,
            exclude_id=delegation.id,
        )
        if overlapping:
            raise _rejected(
                ConflictError(DELEGATION_MESSAGES["OVERLAPPING_DELEGATION"] + NO_CHANGE_SUFFIX), "extend",
                id=delegation_id, conflicting=overlapping.id,
            )

        touch_employee_assignments(employee)

        previous_end = delegation.valid_until
        delegation.valid_until = new_end
        delegation.extension_count = delegation.extension_count + 1

        append_assignment_event(
            event_type="delegation.extended",
            entity_type="delegation",
            entity_id=delegation.id,
            employee_id=delegation.employee_id,
            actor_profile_id=actor.id,
            store_id=delegation.to_store_id,
            note=f"valid_until {previous_end.isoformat()} -> {new_end.isoformat()}",
        )
        db.session.commit()

        current_app.logger.info(
            "Delegation %s extended to %s by profile %s (extension %s)",
            delegation.id, new_end, actor.id, delegation.extension_count,
        )
        return delegation

    return run_with_retry(_op)


def expire_lapsed_delegations(*, on: date | None = None) -> list[Delegation]:
    """
    Write back 'expired' for every open delegation past valid_until.

    Reads never depend on this sweep; effective_status() already reports
    these records as expired.
    """
    def _op():
        today = _today(on)
        candidates = lock_for_update(
            db.session.query(Delegation).filter(
                Delegation.status.in_(DELEGATION_OPEN_STATUSES),
                Delegation.valid_until < today,
            )
        ).order_by(Delegation.id.asc()).all()

        expired = []
        for delegation in candidates:
            if status_service.needs_expiry_write_back(delegation, today):
                _write_back_expiry(delegation)
                expired.append(delegation)

        db.session.commit()
        if expired:
            current_app.logger.info("Expired %s lapsed delegation(s)", len(expired))
        return expired

    return run_with_retry(_op)


# =============================================================================
# QUERIES (consumed by the timesheet grid)
# =============================================================================

def get_active_delegation(employee_id: int, *, on: date | None = None) -> Delegation | None:
    """The delegation in effect for the employee today, if any."""
    return conflict_service.get_delegation_in_effect(employee_id, _today(on))


def is_employee_delegated(employee_id: int, *, on: date | None = None) -> bool:
    return get_active_delegation(employee_id, on=on) is not None


def is_date_restricted_by_delegation(employee_id: int, check_date, *, on: date | None = None) -> bool:
    """
    True when check_date falls on or after valid_from of the delegation
    currently in effect. Used to block new time entries once a delegation
    has started.
    """
    target = time_utils.parse_iso_date(check_date)
    if target is None:
        return False
    active = get_active_delegation(employee_id, on=on)
    if not active:
        return False
    return target >= active.valid_from


def list_delegations(
    *,
    employee_id: int | None = None,
    from_store_id: int | None = None,
    to_store_id: int | None = None,
    status: str | None = None,
    valid_on=None,
    scope=None,
    on: date | None = None,
    limit: int = 200,
) -> list[Delegation]:
    """
    List delegations, newest first.

    status filters on EFFECTIVE status, so 'expired' includes lapsed
    records still stored as active.

    When scope is given, only records with either end in scope are returned.
    """
    today = _today(on)
    q = db.session.query(Delegation)
    if scope is not None:
        q = scope_service.filter_assignments_query(scope, q, Delegation)
    if employee_id is not None:
        q = q.filter(Delegation.employee_id == employee_id)
    if from_store_id is not None:
        q = q.filter(Delegation.from_store_id == from_store_id)
    if to_store_id is not None:
        q = q.filter(Delegation.to_store_id == to_store_id)

    valid_on_date = time_utils.parse_iso_date(valid_on)
    if valid_on_date is not None:
        q = q.filter(Delegation.valid_from <= valid_on_date, Delegation.valid_until >= valid_on_date)

    rows = q.order_by(Delegation.valid_from.desc(), Delegation.id.desc()).all()
    if status:
        rows = [d for d in rows if status_service.effective_status(d, today) == status]
    return rows[:limit]


def expiring_soon(profile, *, on: date | None = None) -> list[Delegation]:
    """In-effect delegations within the warning window, limited to the caller's scope."""
    today = _today(on)
    scope = scope_service.resolve_scope(profile)
    if scope.is_empty:
        return []

    warning_days = current_limits()["DELEGATION_EXPIRY_WARNING_DAYS"]
    rows = db.session.query(Delegation).filter(
        Delegation.status.in_(DELEGATION_OPEN_STATUSES),
        Delegation.valid_from <= today,
        Delegation.valid_until >= today,
    ).order_by(Delegation.valid_until.asc()).all()

    return [
        d for d in rows
        if status_service.is_expiring_soon(d, today, warning_days)
        and (scope.covers_store(d.from_store_id) or scope.covers_store(d.to_store_id))
    ]
