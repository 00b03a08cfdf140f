# Overview: Service-layer operations for transfers (permanent reassignment of an employee's home store).

"""
Transfer Service

LIFECYCLE:
1. pending: created, awaiting approval
2. approved: approved by someone other than the initiator
3. completed: executed on/after transfer_date
4. rejected / cancelled: ended while pending

COMPLETION is the one multi-record mutation. The employee move and the
transfer status change are issued as two conditional UPDATEs inside ONE
transaction:

    UPDATE employees SET store_id, zone_id ... WHERE id = :e AND store_id = :from
    UPDATE employee_transfers SET status = 'completed' ... WHERE id = :t AND status = 'approved'

If the employee no longer sits at the transfer's source store (an
administrative correction moved them), nothing is written and the
transfer stays approved.
"""

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from staffing.extensions import db
from staffing.errors import (
    AssignmentError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    TransactionError,
    ValidationError,
)
from staffing.messages import NO_CHANGE_SUFFIX, PROFILE_MESSAGES, TRANSFER_MESSAGES
from staffing.models import Employee, Transfer
from staffing.models.assignments import (
    TRANSFER_STATUS_APPROVED,
    TRANSFER_STATUS_CANCELLED,
    TRANSFER_STATUS_COMPLETED,
    TRANSFER_STATUS_PENDING,
    TRANSFER_STATUS_REJECTED,
)
from staffing.services import directory_service, scope_service, status_service
from staffing.services.concurrency import lock_for_update, lock_employee, run_with_retry, touch_employee_assignments
from staffing.services.event_service import append_assignment_event
from staffing.services.rules import (
    KIND_TRANSFER,
    TRANSFER_RULES,
    CreateTransferRequest,
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
    current_app.logger.warning("Transfer %s rejected (%s): %s %s", action, exc.error_code, exc.message, context)
    return exc


def get_transfer(transfer_id: int) -> Transfer | None:
    return db.session.query(Transfer).filter_by(id=transfer_id).first()


def _lock_transfer(transfer_id: int) -> Transfer | None:
    return lock_for_update(db.session.query(Transfer).filter_by(id=transfer_id)).first()


def transfer_to_dict(transfer: Transfer, on: date | None = None) -> dict:
    today = _today(on)
    data = transfer.to_dict()
    data["is_ready_for_execution"] = status_service.is_transfer_ready_for_execution(transfer, today)
    data["is_overdue"] = status_service.is_transfer_overdue(
        transfer, today, current_limits()["TRANSFER_OVERDUE_GRACE_DAYS"]
    )
    return data


# =============================================================================
# CREATE
# =============================================================================

def create_transfer(request: CreateTransferRequest, actor_id: int, *, on: date | None = None) -> Transfer:
    """
    Create a pending transfer after the full rule pipeline passes.

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
            kind=KIND_TRANSFER,
            actor=actor,
            scope=scope,
            request=request,
            today=today,
            limits=limits,
        )
        result = run_rules(TRANSFER_RULES, ctx)
        if not result.is_valid:
            current_app.logger.warning(
                "Transfer create rejected (%s): %s employee=%s actor=%s",
                result.error_code, result.error, request.employee_id, actor.id,
            )
            raise_for(result)

        employee = ctx.employee
        touch_employee_assignments(employee)

        transfer = Transfer(
            employee_id=employee.id,
            from_store_id=employee.store_id,
            from_zone_id=employee.zone_id,
            to_store_id=ctx.to_store.id,
            to_zone_id=ctx.to_store.zone_id,
            initiated_by=actor.id,
            transfer_date=ctx.start,
            status=TRANSFER_STATUS_PENDING,
            notes=request.notes,
        )
        db.session.add(transfer)
        db.session.flush()

        append_assignment_event(
            event_type="transfer.created",
            entity_type="transfer",
            entity_id=transfer.id,
            employee_id=employee.id,
            actor_profile_id=actor.id,
            store_id=transfer.from_store_id,
            note=request.notes,
        )
        db.session.commit()

        current_app.logger.info(
            "Transfer %s created: employee %s store %s -> %s on %s",
            transfer.id, employee.id, transfer.from_store_id, transfer.to_store_id, transfer.transfer_date,
        )
        return transfer

    return run_with_retry(_op)


# =============================================================================
# APPROVAL WORKFLOW
# =============================================================================

def _decide(transfer_id: int, actor_id: int, *, approve: bool) -> Transfer:
    action = "approve" if approve else "reject"
    actor = directory_service.require_profile(actor_id)
    scope = scope_service.resolve_scope(actor)

    def _op():
        transfer = _lock_transfer(transfer_id)
        if not transfer:
            raise _rejected(NotFoundError(TRANSFER_MESSAGES["TRANSFER_NOT_FOUND"]), action, id=transfer_id)

        if transfer.initiated_by == actor.id:
            raise _rejected(
                PermissionDeniedError(TRANSFER_MESSAGES["CANNOT_APPROVE_OWN_TRANSFER"]), action,
                id=transfer_id, actor=actor.id,
            )

        if not scope_service.can_approve_transfer(scope, transfer):
            raise _rejected(
                PermissionDeniedError(TRANSFER_MESSAGES["APPROVAL_NOT_ALLOWED"]), action,
                id=transfer_id, actor=actor.id,
            )

        if transfer.status != TRANSFER_STATUS_PENDING:
            raise _rejected(
                ValidationError(TRANSFER_MESSAGES["TRANSFER_ALREADY_PROCESSED"]), action,
                id=transfer_id, status=transfer.status,
            )

        now = time_utils.utcnow()
        transfer.approved_by = actor.id
        if approve:
            transfer.status = TRANSFER_STATUS_APPROVED
            transfer.approved_at = now
        else:
            transfer.status = TRANSFER_STATUS_REJECTED
            transfer.rejected_at = now

        append_assignment_event(
            event_type=f"transfer.{transfer.status}",
            entity_type="transfer",
            entity_id=transfer.id,
            employee_id=transfer.employee_id,
            actor_profile_id=actor.id,
            store_id=transfer.to_store_id,
        )
        db.session.commit()

        current_app.logger.info("Transfer %s %s by profile %s", transfer.id, transfer.status, actor.id)
        return transfer

    return run_with_retry(_op)


def approve_transfer(transfer_id: int, actor_id: int) -> Transfer:
    """pending -> approved. The approver must be in scope and must not be the initiator."""
    return _decide(transfer_id, actor_id, approve=True)


def reject_transfer(transfer_id: int, actor_id: int) -> Transfer:
    """pending -> rejected. Same guard as approval; approved_by records the rejecter."""
    return _decide(transfer_id, actor_id, approve=False)


def cancel_transfer(transfer_id: int, actor_id: int) -> Transfer:
    """pending -> cancelled by the initiator. Callers with an empty scope are denied."""
    actor = directory_service.require_profile(actor_id)
    scope = scope_service.resolve_scope(actor)

    def _op():
        transfer = _lock_transfer(transfer_id)
        if not transfer:
            raise _rejected(NotFoundError(TRANSFER_MESSAGES["TRANSFER_NOT_FOUND"]), "cancel", id=transfer_id)

        if scope.is_empty:
            raise _rejected(
                PermissionDeniedError(PROFILE_MESSAGES["NO_SCOPE"]), "cancel",
                id=transfer_id, actor=actor.id,
            )

        if transfer.initiated_by != actor.id:
            raise _rejected(
                PermissionDeniedError(TRANSFER_MESSAGES["CANCEL_NOT_INITIATOR"]), "cancel",
                id=transfer_id, actor=actor.id,
            )

        if transfer.status != TRANSFER_STATUS_PENDING:
            raise _rejected(
                ValidationError(TRANSFER_MESSAGES["CANCEL_NOT_PENDING"]), "cancel",
                id=transfer_id, status=transfer.status,
            )

        transfer.status = TRANSFER_STATUS_CANCELLED
        transfer.cancelled_at = time_utils.utcnow()

        append_assignment_event(
            event_type="transfer.cancelled",
            entity_type="transfer",
            entity_id=transfer.id,
            employee_id=transfer.employee_id,
            actor_profile_id=actor.id,
            store_id=transfer.from_store_id,
        )
        db.session.commit()

        current_app.logger.info("Transfer %s cancelled by profile %s", transfer.id, actor.id)
        return transfer

    return run_with_retry(_op)


# =============================================================================
# COMPLETION (atomic)
# =============================================================================

def complete_transfer(transfer_id: int, actor_id: int | None = None, *, on: date | None = None) -> Transfer:
    """
    approved -> completed, moving the employee's store of record.

    actor_id is optional: the scheduled sweep completes without a caller.
    When given, the caller must hold approval scope over the transfer.

    Raises:
        NotFoundError: transfer (or caller profile) missing
        ValidationError: not approved, or transfer_date still in the future
        ConflictError: employee no longer at the source store; nothing written
        TransactionError: storage failed mid-completion; rolled back
    """
    actor = directory_service.require_profile(actor_id) if actor_id is not None else None
    scope = scope_service.resolve_scope(actor) if actor is not None else None

    def _op():
        today = _today(on)
        transfer = _lock_transfer(transfer_id)
        if not transfer:
            raise _rejected(NotFoundError(TRANSFER_MESSAGES["TRANSFER_NOT_FOUND"]), "complete", id=transfer_id)

        if scope is not None and not scope_service.can_approve_transfer(scope, transfer):
            raise _rejected(
                PermissionDeniedError(TRANSFER_MESSAGES["COMPLETE_NOT_ALLOWED"]), "complete",
                id=transfer_id, actor=actor.id,
            )

        if transfer.status == TRANSFER_STATUS_PENDING:
            raise _rejected(ValidationError(TRANSFER_MESSAGES["NOT_APPROVED"]), "complete", id=transfer_id)
        if transfer.status != TRANSFER_STATUS_APPROVED:
            raise _rejected(
                ValidationError(TRANSFER_MESSAGES["TRANSFER_ALREADY_PROCESSED"]), "complete",
                id=transfer_id, status=transfer.status,
            )

        if transfer.transfer_date > today:
            raise _rejected(
                ValidationError(
                    TRANSFER_MESSAGES["NOT_YET_DUE"].format(transfer_date=transfer.transfer_date.isoformat())
                ),
                "complete",
                id=transfer_id,
            )

        employee_id = transfer.employee_id
        from_store_id = transfer.from_store_id
        to_store_id = transfer.to_store_id
        to_zone_id = transfer.to_zone_id
        actor_profile_id = actor.id if actor is not None else None

        lock_employee(employee_id)

        try:
            now = time_utils.utcnow()
            moved = db.session.execute(
                update(Employee)
                .where(Employee.id == employee_id, Employee.store_id == from_store_id)
                .values(
                    store_id=to_store_id,
                    zone_id=to_zone_id,
                    version_id=Employee.version_id + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if moved.rowcount != 1:
                db.session.rollback()
                raise _rejected(
                    ConflictError(TRANSFER_MESSAGES["SOURCE_STORE_MISMATCH"] + NO_CHANGE_SUFFIX), "complete",
                    id=transfer_id, employee=employee_id,
                )

            marked = db.session.execute(
                update(Transfer)
                .where(Transfer.id == transfer_id, Transfer.status == TRANSFER_STATUS_APPROVED)
                .values(
                    status=TRANSFER_STATUS_COMPLETED,
                    completed_at=now,
                    updated_at=now,
                    version_id=Transfer.version_id + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if marked.rowcount != 1:
                db.session.rollback()
                raise _rejected(
                    ConflictError(TRANSFER_MESSAGES["TRANSFER_ALREADY_PROCESSED"] + NO_CHANGE_SUFFIX), "complete",
                    id=transfer_id,
                )

            append_assignment_event(
                event_type="transfer.completed",
                entity_type="transfer",
                entity_id=transfer_id,
                employee_id=employee_id,
                actor_profile_id=actor_profile_id,
                store_id=to_store_id,
                occurred_at=now,
            )
            db.session.commit()
        except AssignmentError:
            raise
        except (OperationalError, StaleDataError):
            raise
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Transfer %s completion failed; rolled back", transfer_id)
            raise TransactionError(TRANSFER_MESSAGES["COMPLETION_FAILED"] + NO_CHANGE_SUFFIX)

        current_app.logger.info(
            "Transfer %s completed: employee %s store %s -> %s",
            transfer_id, employee_id, from_store_id, to_store_id,
        )
        return get_transfer(transfer_id)

    return run_with_retry(_op)


def complete_due_transfers(*, on: date | None = None) -> list[dict]:
    """
    Complete every approved transfer whose date has arrived, one at a time.

    Each completion is its own transaction; a conflict on one transfer does
    not stop the others.
    """
    outcomes = []
    for transfer in due_transfers(on=on):
        transfer_id = transfer.id
        try:
            complete_transfer(transfer_id, on=on)
            outcomes.append({"id": transfer_id, "success": True, "error": None})
        except AssignmentError as exc:
            outcomes.append({"id": transfer_id, "success": False, "error": exc.message})
    return outcomes


# =============================================================================
# QUERIES
# =============================================================================

def is_ready_for_execution(transfer: Transfer, *, on: date | None = None) -> bool:
    return status_service.is_transfer_ready_for_execution(transfer, _today(on))


def is_overdue(transfer: Transfer, *, on: date | None = None) -> bool:
    return status_service.is_transfer_overdue(
        transfer, _today(on), current_limits()["TRANSFER_OVERDUE_GRACE_DAYS"]
    )


def list_transfers(
    *,
    employee_id: int | None = None,
    from_store_id: int | None = None,
    to_store_id: int | None = None,
    status: str | None = None,
    initiated_by: int | None = None,
    approved_by: int | None = None,
    date_from=None,
    date_to=None,
    scope=None,
    limit: int = 200,
) -> list[Transfer]:
    q = db.session.query(Transfer)
    if scope is not None:
        q = scope_service.filter_assignments_query(scope, q, Transfer)
    if employee_id is not None:
        q = q.filter(Transfer.employee_id == employee_id)
    if from_store_id is not None:
        q = q.filter(Transfer.from_store_id == from_store_id)
    if to_store_id is not None:
        q = q.filter(Transfer.to_store_id == to_store_id)
    if status:
        q = q.filter(Transfer.status == status)
    if initiated_by is not None:
        q = q.filter(Transfer.initiated_by == initiated_by)
    if approved_by is not None:
        q = q.filter(Transfer.approved_by == approved_by)

    start = time_utils.parse_iso_date(date_from)
    end = time_utils.parse_iso_date(date_to)
    if start is not None:
        q = q.filter(Transfer.transfer_date >= start)
    if end is not None:
        q = q.filter(Transfer.transfer_date <= end)

    return q.order_by(Transfer.transfer_date.desc(), Transfer.id.desc()).limit(limit).all()


def due_transfers(*, scope=None, on: date | None = None) -> list[Transfer]:
    """Approved transfers whose date has arrived, oldest first."""
    today = _today(on)
    q = db.session.query(Transfer).filter(
        Transfer.status == TRANSFER_STATUS_APPROVED, Transfer.transfer_date <= today
    )
    if scope is not None:
        q = scope_service.filter_assignments_query(scope, q, Transfer)
    return q.order_by(Transfer.transfer_date.asc(), Transfer.id.asc()).all()
