# Overview: Service-layer operations for the zone/store/employee/profile directory.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from staffing.extensions import db
from staffing.errors import ConflictError, NotFoundError, ValidationError
from staffing.messages import NO_CHANGE_SUFFIX, PROFILE_MESSAGES
from staffing.models import Zone, Store, Employee, Profile
from staffing.roles import parse_role
from staffing.services.concurrency import run_with_retry
from staffing.services.event_service import append_assignment_event
from staffing.time_utils import utcnow


def get_zone(zone_id: int) -> Zone | None:
    return db.session.query(Zone).filter_by(id=zone_id).first()


def get_store(store_id: int) -> Store | None:
    return db.session.query(Store).filter_by(id=store_id).first()


def get_employee(employee_id: int) -> Employee | None:
    return db.session.query(Employee).filter_by(id=employee_id).first()


def get_profile(profile_id: int) -> Profile | None:
    return db.session.query(Profile).filter_by(id=profile_id).first()


def require_profile(profile_id) -> Profile:
    profile = get_profile(profile_id) if profile_id is not None else None
    if not profile:
        raise NotFoundError(PROFILE_MESSAGES["PROFILE_NOT_FOUND"])
    return profile


def list_stores(zone_id: int | None = None) -> list[Store]:
    q = db.session.query(Store)
    if zone_id is not None:
        q = q.filter(Store.zone_id == zone_id)
    return q.order_by(Store.name.asc()).all()


def get_zone_store_ids(zone_id: int) -> set[int]:
    rows = db.session.query(Store.id).filter_by(zone_id=zone_id).all()
    return {row[0] for row in rows}


def list_employees(
    *,
    store_id: int | None = None,
    zone_id: int | None = None,
    active_only: bool = True,
) -> list[Employee]:
    q = db.session.query(Employee)
    if store_id is not None:
        q = q.filter(Employee.store_id == store_id)
    if zone_id is not None:
        q = q.filter(Employee.zone_id == zone_id)
    if active_only:
        q = q.filter(Employee.is_active.is_(True))
    return q.order_by(Employee.full_name.asc()).all()


def create_zone(name: str, code: str | None = None) -> Zone:
    if not name:
        raise ValidationError("Zone name is required")
    zone = Zone(name=name, code=code)
    db.session.add(zone)
    db.session.commit()
    return zone


def create_store(name: str, zone_id: int, code: str | None = None) -> Store:
    if not name:
        raise ValidationError("Store name is required")
    if not get_zone(zone_id):
        raise NotFoundError("Zone not found")

    store = Store(name=name, zone_id=zone_id, code=code)
    db.session.add(store)
    db.session.commit()
    return store


def create_employee(
    full_name: str,
    store_id: int,
    *,
    employee_code: str | None = None,
    position: str | None = None,
    is_active: bool = True,
) -> Employee:
    """Create an employee; zone_id is always derived from the store."""
    if not full_name:
        raise ValidationError("Employee name is required")
    store = get_store(store_id)
    if not store:
        raise NotFoundError("Store not found")

    employee = Employee(
        full_name=full_name,
        employee_code=employee_code,
        position=position,
        store_id=store.id,
        zone_id=store.zone_id,
        is_active=is_active,
    )
    db.session.add(employee)
    db.session.commit()
    return employee


def create_profile(
    full_name: str,
    role,
    *,
    zone_id: int | None = None,
    store_id: int | None = None,
    email: str | None = None,
    is_active: bool = True,
) -> Profile:
    """
    Create a caller profile.

    role may be a Role or its string value; unknown strings are stored as
    NULL, which resolves to an empty scope.
    """
    if not full_name:
        raise ValidationError("Profile name is required")
    if store_id is not None and zone_id is None:
        store = get_store(store_id)
        if not store:
            raise NotFoundError("Store not found")
        zone_id = store.zone_id

    profile = Profile(
        full_name=full_name,
        email=email,
        role=parse_role(role),
        zone_id=zone_id,
        store_id=store_id,
        is_active=is_active,
    )
    db.session.add(profile)
    db.session.commit()
    return profile


def correct_employee_store(
    employee_id: int,
    *,
    expected_store_id: int,
    new_store_id: int,
    actor_profile_id: int | None = None,
    note: str | None = None,
) -> Employee:
    """
    Administrative correction of an employee's store of record.

    Compare-and-set on the expected prior store: if anything else moved the
    employee in the meantime (a transfer completion, another correction),
    this raises ConflictError instead of overwriting.
    """
    def _op():
        new_store = get_store(new_store_id)
        if not new_store:
            raise NotFoundError("Store not found")

        result = db.session.execute(
            update(Employee)
            .where(Employee.id == employee_id, Employee.store_id == expected_store_id)
            .values(
                store_id=new_store.id,
                zone_id=new_store.zone_id,
                version_id=Employee.version_id + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            if not get_employee(employee_id):
                raise NotFoundError("Employee not found")
            raise ConflictError(
                "Employee is no longer assigned to the expected store." + NO_CHANGE_SUFFIX
            )

        append_assignment_event(
            event_type="employee.store_corrected",
            entity_type="employee",
            entity_id=employee_id,
            employee_id=employee_id,
            actor_profile_id=actor_profile_id,
            store_id=new_store.id,
            note=note or f"store {expected_store_id} -> {new_store.id}",
        )
        db.session.commit()

        employee = get_employee(employee_id)
        current_app.logger.info(
            "Employee %s store corrected %s -> %s", employee_id, expected_store_id, new_store.id
        )
        return employee

    return run_with_retry(_op)
