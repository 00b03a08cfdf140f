# Overview: Service-layer operations for concurrency; encapsulates locking and retry.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Employee
from staffing.time_utils import utcnow


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite the version bump in touch_employee_assignments() is what
    serializes writers.
    """
    return query.with_for_update()


def lock_employee(employee_id: int) -> Employee | None:
    """Lock the employee row that guards all of that employee's assignment records."""
    return lock_for_update(db.session.query(Employee).filter_by(id=employee_id)).first()


def touch_employee_assignments(employee: Employee) -> None:
    """
    Bump the employee's version so a concurrent writer that validated
    against the same snapshot fails with StaleDataError on flush.

    Call AFTER validation and BEFORE inserting/changing assignment records.
    """
    employee.updated_at = utcnow()
    db.session.flush()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Each retry starts from a rolled-back
    session, so validation re-reads whatever the winning writer committed.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent assignment write detected (attempt %s/%s): %s",
                attempt + 1, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc

