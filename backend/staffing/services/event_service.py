# Overview: Service-layer operations for the assignment event trail.

from __future__ import annotations

from typing import Optional
from datetime import datetime

from ..extensions import db
from ..models import AssignmentEvent
from staffing.time_utils import utcnow
"""
Assignment Event Trail Invariants (authoritative)

- Append-only: no updates, no deletes.
- Events are written inside the same DB transaction as the transition they
  record; a rolled-back transition leaves no event behind.
- occurred_at is business time; created_at is system time (DB default).
"""


def append_assignment_event(
    *,
    event_type: str,
    entity_type: str,
    entity_id: int,
    employee_id: int,
    actor_profile_id: int | None = None,
    store_id: int | None = None,
    occurred_at: Optional[datetime] = None,
    note: Optional[str] = None,
) -> AssignmentEvent:
    """
    Append an assignment event.

    event_type examples:
    - delegation.created / delegation.revoked / delegation.extended / delegation.expired
    - transfer.created / transfer.approved / transfer.rejected
    - transfer.cancelled / transfer.completed
    - employee.store_corrected
    """
    ev = AssignmentEvent(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        employee_id=employee_id,
        actor_profile_id=actor_profile_id,
        store_id=store_id,
        occurred_at=occurred_at or utcnow(),
        note=note,
    )
    db.session.add(ev)
    db.session.flush()
    return ev


def list_events(
    *,
    employee_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int = 200,
) -> list[AssignmentEvent]:
    q = db.session.query(AssignmentEvent)
    if employee_id is not None:
        q = q.filter(AssignmentEvent.employee_id == employee_id)
    if entity_type is not None:
        q = q.filter(AssignmentEvent.entity_type == entity_type)
    if entity_id is not None:
        q = q.filter(AssignmentEvent.entity_id == entity_id)
    return q.order_by(AssignmentEvent.occurred_at.asc(), AssignmentEvent.id.asc()).limit(limit).all()
