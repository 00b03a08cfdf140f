from __future__ import annotations

from ..extensions import db
from ..roles import Role
from staffing.time_utils import to_utc_z


class Zone(db.Model):
    """
    Geographic/organizational grouping of stores.

    Pure grouping: no mutable state the assignment engine depends on.
    """
    __tablename__ = "zones"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Zone id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "created_at": to_utc_z(self.created_at),
        }


class Store(db.Model):
    """
    Store within a zone.

    INVARIANT: zone_id is fixed once the store exists. Employee.zone_id is a
    denormalized copy of it, so moving a store between zones would silently
    break every employee record pointing at the store.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("zone_id", "name", name="uq_stores_zone_name"),
        db.Index("ix_stores_zone_id", "zone_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    zone = db.relationship("Zone", backref=db.backref("stores", lazy=True))

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r} zone_id={self.zone_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "zone_id": self.zone_id,
            "name": self.name,
            "code": self.code,
            "created_at": to_utc_z(self.created_at),
        }


class Employee(db.Model):
    """
    Employee and their store of record.

    INVARIANT: zone_id == store.zone_id at all times.

    store_id/zone_id change only through a completed Transfer or an
    administrative correction; both are conditional updates on the expected
    prior store_id. Delegations never touch these columns.

    version_id doubles as the assignment lock: every workflow that inserts
    or mutates assignment records for this employee bumps it, so two
    concurrent writers for the same employee cannot both commit.
    """
    __tablename__ = "employees"
    __table_args__ = (
        db.Index("ix_employees_store_active", "store_id", "is_active"),
        db.Index("ix_employees_zone_id", "zone_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    employee_code = db.Column(db.String(64), nullable=True, unique=True, index=True)
    position = db.Column(db.String(120), nullable=True)

    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store", backref=db.backref("employees", lazy=True))
    zone = db.relationship("Zone")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.full_name!r} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "employee_code": self.employee_code,
            "position": self.position,
            "store_id": self.store_id,
            "zone_id": self.zone_id,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Profile(db.Model):
    """
    A caller acting on assignments.

    - HR: company-wide, no zone/store needed
    - ASM: zone_id required
    - STORE_MANAGER: store_id required (zone_id is informational; the
      store's zone is authoritative)

    A profile with no role, or missing the assignment its role requires,
    resolves to an empty scope and is denied everything.
    """
    __tablename__ = "profiles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True)

    role = db.Column(db.Enum(Role, name="profile_role", native_enum=False, length=32), nullable=True)
    zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=True, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    zone = db.relationship("Zone")
    store = db.relationship("Store")

    def __repr__(self) -> str:
        return f"<Profile id={self.id} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role.value if self.role else None,
            "zone_id": self.zone_id,
            "store_id": self.store_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
