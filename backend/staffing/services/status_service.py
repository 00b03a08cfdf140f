# Overview: Pure status derivation for delegations and transfers.

"""
Effective Status

WHY: Delegation expiry is lazy; there is no scheduler flipping rows to
'expired' at midnight. The stored status may therefore lag the calendar.
Every consumer (rules, queries, the timesheet consumer, CLI sweeps) reads
status through these functions so there is exactly one notion of "active".

All functions are pure: they take the record and a calendar date and never
touch the database.
"""

from __future__ import annotations

from datetime import date, timedelta

from staffing.models.assignments import (
    DELEGATION_STATUS_PENDING,
    DELEGATION_STATUS_ACTIVE,
    DELEGATION_STATUS_EXPIRED,
    DELEGATION_STATUS_REVOKED,
    DELEGATION_OPEN_STATUSES,
    TRANSFER_STATUS_APPROVED,
)


def effective_status(delegation, on: date) -> str:
    """
    Status of a delegation as of calendar date `on`.

    - revoked/expired: terminal, returned as stored
    - on > valid_until: expired
    - on >= valid_from: active
    - otherwise: pending
    """
    if delegation.status in (DELEGATION_STATUS_REVOKED, DELEGATION_STATUS_EXPIRED):
        return delegation.status
    if on > delegation.valid_until:
        return DELEGATION_STATUS_EXPIRED
    if on >= delegation.valid_from:
        return DELEGATION_STATUS_ACTIVE
    return DELEGATION_STATUS_PENDING


def is_open(delegation, on: date) -> bool:
    """pending or active as of `on`: still blocks overlapping assignments."""
    return effective_status(delegation, on) in DELEGATION_OPEN_STATUSES


def is_in_effect(delegation, on: date) -> bool:
    """The employee is working at the destination store on `on`."""
    return (
        effective_status(delegation, on) == DELEGATION_STATUS_ACTIVE
        and delegation.valid_from <= on <= delegation.valid_until
    )


def days_remaining(delegation, on: date) -> int:
    return (delegation.valid_until - on).days


def is_expiring_soon(delegation, on: date, warning_days: int) -> bool:
    if not is_in_effect(delegation, on):
        return False
    return days_remaining(delegation, on) <= warning_days


def needs_expiry_write_back(delegation, on: date) -> bool:
    """Stored as pending/active but already past valid_until."""
    return (
        delegation.status in DELEGATION_OPEN_STATUSES
        and effective_status(delegation, on) == DELEGATION_STATUS_EXPIRED
    )


def stored_status_for_new(valid_from: date, on: date) -> str:
    return DELEGATION_STATUS_ACTIVE if valid_from <= on else DELEGATION_STATUS_PENDING


def delegation_duration_days(valid_from: date, valid_until: date) -> int:
    return (valid_until - valid_from).days


# =============================================================================
# TRANSFERS
# =============================================================================

def is_transfer_ready_for_execution(transfer, on: date) -> bool:
    """Approved and the scheduled date has arrived (same day counts)."""
    return transfer.status == TRANSFER_STATUS_APPROVED and transfer.transfer_date <= on


def is_transfer_overdue(transfer, on: date, grace_days: int = 1) -> bool:
    """
    Approved but still not executed well past its date.

    Read-only classification; it never blocks completion.
    """
    if transfer.status != TRANSFER_STATUS_APPROVED:
        return False
    return transfer.transfer_date < on - timedelta(days=grace_days)
