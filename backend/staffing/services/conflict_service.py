# Overview: Service-layer temporal conflict detection for employee assignments.

from __future__ import annotations

from datetime import date

from staffing.extensions import db
from staffing.models import Delegation, Transfer
from staffing.models.assignments import DELEGATION_OPEN_STATUSES, TRANSFER_OPEN_STATUSES
from staffing.services import status_service


def intervals_overlap(new_start: date, new_end: date, existing_start: date, existing_end: date) -> bool:
    """Closed-interval overlap: sharing a single day counts as overlap."""
    return new_start <= existing_end and new_end >= existing_start


def open_delegations(employee_id: int, on: date, *, exclude_id: int | None = None) -> list[Delegation]:
    """
    Delegations for the employee that are pending/active as of `on`.

    Filters on stored status first (cheap, indexed) and then on effective
    status, so records that have lapsed but were never written back are
    ignored.
    """
    q = db.session.query(Delegation).filter(
        Delegation.employee_id == employee_id,
        Delegation.status.in_(DELEGATION_OPEN_STATUSES),
    )
    if exclude_id is not None:
        q = q.filter(Delegation.id != exclude_id)
    return [d for d in q.order_by(Delegation.valid_from.asc()).all() if status_service.is_open(d, on)]


def find_overlapping_delegation(
    employee_id: int,
    start: date,
    end: date,
    on: date,
    *,
    exclude_id: int | None = None,
) -> Delegation | None:
    for existing in open_delegations(employee_id, on, exclude_id=exclude_id):
        if intervals_overlap(start, end, existing.valid_from, existing.valid_until):
            return existing
    return None


def find_open_transfer(employee_id: int, *, exclude_id: int | None = None) -> Transfer | None:
    """The employee's pending/approved transfer, if any (at most one by invariant)."""
    q = db.session.query(Transfer).filter(
        Transfer.employee_id == employee_id,
        Transfer.status.in_(TRANSFER_OPEN_STATUSES),
    )
    if exclude_id is not None:
        q = q.filter(Transfer.id != exclude_id)
    return q.order_by(Transfer.created_at.asc()).first()


def find_blocking_delegation_for_transfer(employee_id: int, on: date) -> Delegation | None:
    """
    An employee on loan, or with a loan scheduled, cannot be permanently
    transferred. Any open delegation blocks.
    """
    delegations = open_delegations(employee_id, on)
    return delegations[0] if delegations else None


def get_delegation_in_effect(employee_id: int, on: date) -> Delegation | None:
    for delegation in open_delegations(employee_id, on):
        if status_service.is_in_effect(delegation, on):
            return delegation
    return None
