from __future__ import annotations

from ..extensions import db
from staffing.time_utils import to_utc_z, to_iso_date


# Delegation status constants
DELEGATION_STATUS_PENDING = "pending"
DELEGATION_STATUS_ACTIVE = "active"
DELEGATION_STATUS_EXPIRED = "expired"
DELEGATION_STATUS_REVOKED = "revoked"

DELEGATION_OPEN_STATUSES = (DELEGATION_STATUS_PENDING, DELEGATION_STATUS_ACTIVE)
DELEGATION_TERMINAL_STATUSES = (DELEGATION_STATUS_EXPIRED, DELEGATION_STATUS_REVOKED)

# Transfer status constants
TRANSFER_STATUS_PENDING = "pending"
TRANSFER_STATUS_APPROVED = "approved"
TRANSFER_STATUS_REJECTED = "rejected"
TRANSFER_STATUS_COMPLETED = "completed"
TRANSFER_STATUS_CANCELLED = "cancelled"

TRANSFER_OPEN_STATUSES = (TRANSFER_STATUS_PENDING, TRANSFER_STATUS_APPROVED)
TRANSFER_TERMINAL_STATUSES = (
    TRANSFER_STATUS_REJECTED,
    TRANSFER_STATUS_COMPLETED,
    TRANSFER_STATUS_CANCELLED,
)


class Delegation(db.Model):
    """
    Temporary loan of an employee to another store.

    LIFECYCLE:
    1. pending: created with valid_from in the future
    2. active: valid_from reached (stored as active when created on/after valid_from)
    3. expired: valid_until passed (derived on read; written back lazily)
    4. revoked: explicitly ended

    The stored status can lag behind the calendar. Always read through
    delegation_service.effective_status(), never compare .status directly.

    from_store_id/from_zone_id snapshot the employee's store of record at
    creation time. A delegation never changes Employee.store_id.
    """
    __tablename__ = "employee_delegations"
    __table_args__ = (
        db.CheckConstraint("valid_until > valid_from", name="ck_delegations_valid_range"),
        db.Index("ix_delegations_employee_status", "employee_id", "status"),
        db.Index("ix_delegations_employee_range", "employee_id", "valid_from", "valid_until"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    from_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    from_zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)
    to_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    to_zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)

    delegated_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False)

    valid_from = db.Column(db.Date, nullable=False)
    valid_until = db.Column(db.Date, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=DELEGATION_STATUS_PENDING, index=True)
    auto_return = db.Column(db.Boolean, nullable=False, default=True)
    extension_count = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    expired_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    employee = db.relationship("Employee", backref=db.backref("delegations", lazy=True))
    from_store = db.relationship("Store", foreign_keys=[from_store_id])
    to_store = db.relationship("Store", foreign_keys=[to_store_id])
    delegated_by_profile = db.relationship("Profile", foreign_keys=[delegated_by])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<Delegation id={self.id} employee_id={self.employee_id} "
            f"{self.valid_from}..{self.valid_until} status={self.status}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "from_store_id": self.from_store_id,
            "from_zone_id": self.from_zone_id,
            "to_store_id": self.to_store_id,
            "to_zone_id": self.to_zone_id,
            "delegated_by": self.delegated_by,
            "valid_from": to_iso_date(self.valid_from),
            "valid_until": to_iso_date(self.valid_until),
            "status": self.status,
            "auto_return": self.auto_return,
            "extension_count": self.extension_count,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "expired_at": to_utc_z(self.expired_at) if self.expired_at else None,
            "revoked_at": to_utc_z(self.revoked_at) if self.revoked_at else None,
            "revoked_by": self.revoked_by,
            "version_id": self.version_id,
        }


class Transfer(db.Model):
    """
    Permanent reassignment of an employee to another store.

    LIFECYCLE:
    1. pending: created, awaiting approval
    2. approved: approved by someone other than the initiator
    3. completed: executed on/after transfer_date; Employee.store_id/zone_id
       now equal to_store_id/to_zone_id
    4. rejected: refused while pending (approved_by records who rejected)
    5. cancelled: withdrawn by the initiator while pending

    INVARIANT: at most one pending/approved transfer per employee.
    """
    __tablename__ = "employee_transfers"
    __table_args__ = (
        db.Index("ix_transfers_employee_status", "employee_id", "status"),
        db.Index("ix_transfers_status_date", "status", "transfer_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    from_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    from_zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)
    to_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    to_zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)

    initiated_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False)
    approved_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    transfer_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=TRANSFER_STATUS_PENDING, index=True)
    notes = db.Column(db.Text, nullable=True)

    # Timestamps for each lifecycle stage
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    employee = db.relationship("Employee", backref=db.backref("transfers", lazy=True))
    from_store = db.relationship("Store", foreign_keys=[from_store_id])
    to_store = db.relationship("Store", foreign_keys=[to_store_id])
    initiated_by_profile = db.relationship("Profile", foreign_keys=[initiated_by])
    approved_by_profile = db.relationship("Profile", foreign_keys=[approved_by])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<Transfer id={self.id} employee_id={self.employee_id} "
            f"{self.from_store_id}->{self.to_store_id} status={self.status}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "from_store_id": self.from_store_id,
            "from_zone_id": self.from_zone_id,
            "to_store_id": self.to_store_id,
            "to_zone_id": self.to_zone_id,
            "initiated_by": self.initiated_by,
            "approved_by": self.approved_by,
            "transfer_date": to_iso_date(self.transfer_date),
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "rejected_at": to_utc_z(self.rejected_at) if self.rejected_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "version_id": self.version_id,
        }


class AssignmentEvent(db.Model):
    """
    Append-only trail of assignment state transitions.

    Written in the same transaction as the transition it records; never
    updated or deleted. occurred_at is business time, created_at is system time.
    """
    __tablename__ = "assignment_events"
    __table_args__ = (
        db.Index("ix_assignment_events_entity", "entity_type", "entity_id"),
        db.Index("ix_assignment_events_employee", "employee_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(64), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)
    actor_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "employee_id": self.employee_id,
            "actor_profile_id": self.actor_profile_id,
            "store_id": self.store_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
