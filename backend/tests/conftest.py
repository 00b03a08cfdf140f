"""
Pytest fixtures for staffing backend tests.

Provides the test app on in-memory SQLite, per-test table cleanup, a small
two-zone directory, and request helpers.
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest
from staffing import create_app
from staffing.config import Config
from staffing.extensions import db
from staffing.models import Employee, Delegation, Transfer
from staffing.roles import Role
from staffing.services import directory_service
from staffing.time_utils import today


class StaffingTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_TRACK_MODIFICATIONS = False


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(StaffingTestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def directory(db_session):
    """
    Two zones, four stores, employees and one profile per role.

    Z1: Store A, Store B, Store C
    Z2: Store D

    Everything is returned as plain ids so tests never hold stale ORM rows.
    """
    z1 = directory_service.create_zone("Zone 1", code="Z1")
    z2 = directory_service.create_zone("Zone 2", code="Z2")

    store_a = directory_service.create_store("Store A", z1.id, code="A")
    store_b = directory_service.create_store("Store B", z1.id, code="B")
    store_c = directory_service.create_store("Store C", z1.id, code="C")
    store_d = directory_service.create_store("Store D", z2.id, code="D")

    emp_a = directory_service.create_employee("Alice Ames", store_a.id, employee_code="E-A1")
    emp_a2 = directory_service.create_employee("Aaron Abel", store_a.id, employee_code="E-A2")
    emp_b = directory_service.create_employee("Bob Burns", store_b.id, employee_code="E-B1")
    emp_d = directory_service.create_employee("Dana Dorn", store_d.id, employee_code="E-D1")
    emp_inactive = directory_service.create_employee(
        "Ivan Idle", store_a.id, employee_code="E-A9", is_active=False
    )

    hr = directory_service.create_profile("Helen HR", Role.HR, email="hr@example.com")
    hr2 = directory_service.create_profile("Harry HR", Role.HR, email="hr2@example.com")
    asm_z1 = directory_service.create_profile("Zoe ASM", Role.ASM, zone_id=z1.id, email="asm1@example.com")
    asm_z2 = directory_service.create_profile("Zack ASM", Role.ASM, zone_id=z2.id, email="asm2@example.com")
    sm_a = directory_service.create_profile("Sam Manager", Role.STORE_MANAGER, store_id=store_a.id, email="sma@example.com")
    sm_b = directory_service.create_profile("Sue Manager", Role.STORE_MANAGER, store_id=store_b.id, email="smb@example.com")
    no_role = directory_service.create_profile("Nora Nobody", None, email="none@example.com")

    return SimpleNamespace(
        z1=z1.id, z2=z2.id,
        store_a=store_a.id, store_b=store_b.id, store_c=store_c.id, store_d=store_d.id,
        emp_a=emp_a.id, emp_a2=emp_a2.id, emp_b=emp_b.id, emp_d=emp_d.id, emp_inactive=emp_inactive.id,
        hr=hr.id, hr2=hr2.id, asm_z1=asm_z1.id, asm_z2=asm_z2.id,
        sm_a=sm_a.id, sm_b=sm_b.id, no_role=no_role.id,
    )


def days(n: int):
    """Calendar date n days from today."""
    return today() + timedelta(days=n)


def iso(n: int) -> str:
    return days(n).isoformat()


def profile_headers(profile_id: int) -> dict:
    """Helper to create the caller header the host auth layer would set."""
    return {'X-Profile-Id': str(profile_id)}


def fresh_employee(employee_id: int) -> Employee:
    db.session.expire_all()
    return db.session.query(Employee).filter_by(id=employee_id).one()


def fresh_delegation(delegation_id: int) -> Delegation:
    db.session.expire_all()
    return db.session.query(Delegation).filter_by(id=delegation_id).one()


def fresh_transfer(transfer_id: int) -> Transfer:
    db.session.expire_all()
    return db.session.query(Transfer).filter_by(id=transfer_id).one()
