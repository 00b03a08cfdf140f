"""
Permission scope tests.

Verifies:
- Each role resolves to the expected company/zone/store scope
- Profiles without a usable role fail closed
- The create/approve/revoke/extend role tables
"""

from types import SimpleNamespace

import pytest

from staffing.roles import Role, parse_role, unhandled_role
from staffing.services import directory_service, scope_service
from staffing.services.scope_service import SCOPE_COMPANY, SCOPE_NONE, SCOPE_STORE, SCOPE_ZONE


def _scope(profile_id):
    return scope_service.resolve_scope(directory_service.get_profile(profile_id))


def _record(**kwargs):
    defaults = dict(
        from_store_id=None, from_zone_id=None, to_store_id=None, to_zone_id=None,
        delegated_by=None, initiated_by=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestRoleParsing:

    @pytest.mark.parametrize("value,expected", [
        ("HR", Role.HR),
        ("asm", Role.ASM),
        (" store_manager ", Role.STORE_MANAGER),
        (Role.HR, Role.HR),
        ("CASHIER", None),
        (None, None),
    ])
    def test_parse_role(self, value, expected):
        assert parse_role(value) is expected

    def test_unhandled_role_raises(self):
        with pytest.raises(ValueError):
            unhandled_role("INTERN")


class TestResolveScope:

    def test_hr_is_company_wide(self, directory):
        scope = _scope(directory.hr)
        assert scope.kind == SCOPE_COMPANY
        assert scope.covers_store(directory.store_d)
        assert scope.covers_zone(directory.z2)

    def test_asm_covers_zone_stores(self, directory):
        scope = _scope(directory.asm_z1)
        assert scope.kind == SCOPE_ZONE
        assert scope.allowed_store_ids == {directory.store_a, directory.store_b, directory.store_c}
        assert scope.allowed_zone_ids == {directory.z1}
        assert not scope.covers_store(directory.store_d)

    def test_store_manager_covers_own_store(self, directory):
        scope = _scope(directory.sm_a)
        assert scope.kind == SCOPE_STORE
        assert scope.allowed_store_ids == {directory.store_a}
        assert scope.allowed_zone_ids == {directory.z1}

    def test_missing_role_is_empty(self, directory):
        scope = _scope(directory.no_role)
        assert scope.kind == SCOPE_NONE
        assert scope.is_empty
        assert not scope.covers_store(directory.store_a)

    def test_none_profile_is_empty(self, directory):
        assert scope_service.resolve_scope(None).is_empty

    def test_inactive_profile_is_empty(self, directory):
        profile = directory_service.create_profile("Old HR", Role.HR, is_active=False)
        assert scope_service.resolve_scope(profile).is_empty

    def test_asm_without_zone_is_empty(self, directory):
        profile = directory_service.create_profile("Lost ASM", Role.ASM)
        assert scope_service.resolve_scope(profile).is_empty

    def test_store_manager_without_store_is_empty(self, directory):
        profile = directory_service.create_profile("Lost SM", Role.STORE_MANAGER)
        assert scope_service.resolve_scope(profile).is_empty


class TestCreatePermission:

    def _check(self, directory, profile_id, employee_id, store_id):
        employee = directory_service.get_employee(employee_id)
        store = directory_service.get_store(store_id)
        return scope_service.check_create_permission(_scope(profile_id), employee, store)

    def test_hr_any_to_any(self, directory):
        assert self._check(directory, directory.hr, directory.emp_d, directory.store_a) == (True, None)

    def test_asm_within_zone(self, directory):
        assert self._check(directory, directory.asm_z1, directory.emp_a, directory.store_b) == (True, None)

    def test_asm_employee_outside_zone(self, directory):
        assert self._check(directory, directory.asm_z1, directory.emp_d, directory.store_a) == (False, "ASM_OUT_OF_ZONE")

    def test_asm_destination_outside_zone(self, directory):
        assert self._check(directory, directory.asm_z1, directory.emp_a, directory.store_d) == (False, "ASM_OUT_OF_ZONE")

    def test_store_manager_own_employee_same_zone(self, directory):
        assert self._check(directory, directory.sm_a, directory.emp_a, directory.store_b) == (True, None)

    def test_store_manager_other_store_employee(self, directory):
        assert self._check(directory, directory.sm_a, directory.emp_b, directory.store_c) == (False, "NOT_YOUR_EMPLOYEE")

    def test_store_manager_cross_zone(self, directory):
        assert self._check(directory, directory.sm_a, directory.emp_a, directory.store_d) == (False, "CROSS_ZONE")

    def test_empty_scope_denied(self, directory):
        assert self._check(directory, directory.no_role, directory.emp_a, directory.store_b) == (
            False, "INSUFFICIENT_PERMISSIONS"
        )


class TestRecordPermissions:

    def test_approve_table(self, directory):
        transfer = _record(
            from_store_id=directory.store_a, from_zone_id=directory.z1,
            to_store_id=directory.store_b, to_zone_id=directory.z1,
        )
        assert scope_service.can_approve_transfer(_scope(directory.hr), transfer)
        assert scope_service.can_approve_transfer(_scope(directory.asm_z1), transfer)
        assert not scope_service.can_approve_transfer(_scope(directory.asm_z2), transfer)
        assert scope_service.can_approve_transfer(_scope(directory.sm_b), transfer)
        # Source-store manager does not approve inbound-only decisions
        assert not scope_service.can_approve_transfer(_scope(directory.sm_a), transfer)
        assert not scope_service.can_approve_transfer(_scope(directory.no_role), transfer)

    def test_revoke_table(self, directory):
        delegation = _record(
            from_store_id=directory.store_a, from_zone_id=directory.z1,
            to_store_id=directory.store_b, to_zone_id=directory.z1,
            delegated_by=directory.hr,
        )
        assert scope_service.can_revoke_delegation(_scope(directory.hr2), delegation)
        assert scope_service.can_revoke_delegation(_scope(directory.asm_z1), delegation)
        assert not scope_service.can_revoke_delegation(_scope(directory.asm_z2), delegation)
        assert scope_service.can_revoke_delegation(_scope(directory.sm_a), delegation)
        assert scope_service.can_revoke_delegation(_scope(directory.sm_b), delegation)
        assert not scope_service.can_revoke_delegation(_scope(directory.no_role), delegation)

    def test_revoke_by_original_delegator(self, directory):
        delegation = _record(
            from_store_id=directory.store_d, from_zone_id=directory.z2,
            to_store_id=directory.store_d, to_zone_id=directory.z2,
            delegated_by=directory.sm_a,
        )
        assert scope_service.can_revoke_delegation(_scope(directory.sm_a), delegation)

    def test_extend_table(self, directory):
        delegation = _record(
            from_store_id=directory.store_a, from_zone_id=directory.z1,
            to_store_id=directory.store_b, to_zone_id=directory.z1,
        )
        assert scope_service.can_extend_delegation(_scope(directory.hr), delegation)
        assert scope_service.can_extend_delegation(_scope(directory.asm_z1), delegation)
        assert not scope_service.can_extend_delegation(_scope(directory.asm_z2), delegation)
        assert not scope_service.can_extend_delegation(_scope(directory.sm_a), delegation)


class TestScopedListings:

    def test_store_manager_destinations_exclude_own_store(self, directory):
        profile = directory_service.get_profile(directory.sm_a)
        ids = {s.id for s in scope_service.available_destination_stores(profile)}
        assert ids == {directory.store_b, directory.store_c}

    def test_asm_destinations_are_zone_stores(self, directory):
        profile = directory_service.get_profile(directory.asm_z2)
        ids = {s.id for s in scope_service.available_destination_stores(profile)}
        assert ids == {directory.store_d}

    def test_available_employees_skip_inactive(self, directory):
        profile = directory_service.get_profile(directory.sm_a)
        ids = {e.id for e in scope_service.available_employees(profile)}
        assert ids == {directory.emp_a, directory.emp_a2}

    def test_capabilities(self, directory):
        caps = scope_service.capabilities(directory_service.get_profile(directory.sm_a))
        assert caps["can_create"] is True
        assert caps["can_extend"] is False
        assert caps["scope"] == SCOPE_STORE

        empty = scope_service.capabilities(directory_service.get_profile(directory.no_role))
        assert empty["can_create"] is False
        assert empty["scope"] == SCOPE_NONE
