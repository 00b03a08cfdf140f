"""
Rule pipeline tests.

Verifies:
- Evaluation stops at the first failing rule, in pipeline order
- Date boundaries (today accepted, limit accepted, limit + 1 rejected)
- Self-assignment and same-store are distinct messages
- Each failure maps to the right error type
"""

import pytest

from staffing.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from staffing.services import delegation_service, transfer_service
from staffing.services.rules import (
    CreateDelegationRequest,
    CreateTransferRequest,
    DELEGATION_RULES,
    PASS,
    RuleResult,
    coerce_id,
    run_rules,
)
from conftest import days, iso


def delegation_request(directory, **overrides):
    data = {
        "employee_id": directory.emp_a,
        "to_store_id": directory.store_b,
        "valid_from": iso(0),
        "valid_until": iso(5),
    }
    data.update(overrides)
    return CreateDelegationRequest.from_payload(data)


def transfer_request(directory, **overrides):
    data = {
        "employee_id": directory.emp_a,
        "to_store_id": directory.store_b,
        "transfer_date": iso(1),
    }
    data.update(overrides)
    return CreateTransferRequest.from_payload(data)


class TestPipelineMechanics:

    def test_stops_at_first_failure(self):
        calls = []

        def ok(ctx):
            calls.append("ok")
            return PASS

        def bad(ctx):
            calls.append("bad")
            return RuleResult(is_valid=False, error="first", error_code="validation")

        def never(ctx):
            calls.append("never")
            return RuleResult(is_valid=False, error="second", error_code="conflict")

        result = run_rules((ok, bad, never), ctx=None)
        assert result.error == "first"
        assert calls == ["ok", "bad"]

    def test_rule_order(self):
        names = [rule.__name__ for rule in DELEGATION_RULES]
        assert names == [
            "validate_delegation_basic_fields",
            "validate_permission",
            "validate_entity_eligibility",
            "validate_store_relationship",
            "validate_delegation_dates",
            "validate_delegation_conflicts",
        ]

    @pytest.mark.parametrize("value,expected", [
        (5, 5), ("7", 7), (" 8 ", 8), (0, None), (-1, None), ("abc", None), (None, None), (True, None), (1.5, None),
    ])
    def test_coerce_id(self, value, expected):
        assert coerce_id(value) == expected

    def test_basic_fields_win_over_permission(self, directory):
        # Both malformed and out of scope: the malformed date is reported
        req = delegation_request(directory, employee_id=directory.emp_d, valid_from="2026-02-30")
        with pytest.raises(ValidationError) as exc:
            delegation_service.create_delegation(req, directory.sm_a)
        assert "valid calendar dates" in exc.value.message

    def test_permission_wins_over_dates(self, directory):
        req = delegation_request(directory, employee_id=directory.emp_d, valid_from=iso(-3))
        with pytest.raises(PermissionDeniedError):
            delegation_service.create_delegation(req, directory.asm_z1)


class TestDelegationBasicFields:

    def test_missing_employee(self, directory):
        with pytest.raises(ValidationError, match="Employee is required"):
            delegation_service.create_delegation(delegation_request(directory, employee_id=None), directory.hr)

    def test_missing_dates(self, directory):
        with pytest.raises(ValidationError, match="Valid dates are required"):
            delegation_service.create_delegation(delegation_request(directory, valid_until=""), directory.hr)

    def test_unknown_employee(self, directory):
        with pytest.raises(NotFoundError, match="Employee not found"):
            delegation_service.create_delegation(delegation_request(directory, employee_id=999999), directory.hr)

    def test_unknown_store(self, directory):
        with pytest.raises(NotFoundError, match="Destination store not found"):
            delegation_service.create_delegation(delegation_request(directory, to_store_id=999999), directory.hr)

    def test_unknown_caller(self, directory):
        with pytest.raises(NotFoundError, match="Caller profile not found"):
            delegation_service.create_delegation(delegation_request(directory), 999999)

    @pytest.mark.parametrize(
        "value,expected",
        [(None, True), (True, True), (False, False), ("false", False), ("TRUE", True)],
    )
    def test_auto_return_flag(self, directory, value, expected):
        request = delegation_request(directory, auto_return=value)
        assert request.auto_return is expected
        delegation = delegation_service.create_delegation(request, directory.hr)
        assert delegation.auto_return is expected

    @pytest.mark.parametrize("value", ["no", "0", 1, []])
    def test_auto_return_must_be_boolean(self, directory, value):
        with pytest.raises(ValidationError, match="auto_return must be true or false"):
            delegation_service.create_delegation(delegation_request(directory, auto_return=value), directory.hr)


class TestStoreRelationship:

    def test_self_assignment_message(self, directory):
        req = delegation_request(directory, to_store_id=directory.store_a)
        with pytest.raises(ValidationError) as exc:
            delegation_service.create_delegation(req, directory.hr)
        assert exc.value.message == (
            "Cannot delegate employee to their current store. Employee is already assigned here."
        )

    def test_same_store_message_is_distinct(self, directory):
        req = delegation_request(directory, from_store_id=directory.store_b, to_store_id=directory.store_b)
        with pytest.raises(ValidationError) as exc:
            delegation_service.create_delegation(req, directory.hr)
        assert exc.value.message == "Cannot delegate to the same store"

    def test_transfer_self_assignment_message(self, directory):
        req = transfer_request(directory, to_store_id=directory.store_a)
        with pytest.raises(ValidationError, match="Cannot transfer employee to their current store"):
            transfer_service.create_transfer(req, directory.hr)

    def test_stale_source_store_is_conflict(self, directory):
        req = delegation_request(directory, from_store_id=directory.store_c)
        with pytest.raises(ConflictError) as exc:
            delegation_service.create_delegation(req, directory.hr)
        assert exc.value.message.endswith("No change was applied.")


class TestEntityEligibility:

    def test_inactive_employee(self, directory):
        req = delegation_request(directory, employee_id=directory.emp_inactive)
        with pytest.raises(ValidationError, match="Employee is not active"):
            delegation_service.create_delegation(req, directory.hr)


class TestDelegationDates:

    def test_today_is_accepted(self, directory):
        delegation = delegation_service.create_delegation(delegation_request(directory), directory.hr)
        assert delegation.valid_from == days(0)
        assert delegation.status == "active"

    def test_yesterday_is_rejected(self, directory):
        with pytest.raises(ValidationError, match="Start date cannot be in the past"):
            delegation_service.create_delegation(delegation_request(directory, valid_from=iso(-1)), directory.hr)

    def test_end_must_follow_start(self, directory):
        req = delegation_request(directory, valid_from=iso(2), valid_until=iso(2))
        with pytest.raises(ValidationError, match="End date must be after start date"):
            delegation_service.create_delegation(req, directory.hr)

    def test_max_duration_is_accepted(self, directory):
        req = delegation_request(directory, valid_until=iso(90))
        delegation = delegation_service.create_delegation(req, directory.hr)
        assert (delegation.valid_until - delegation.valid_from).days == 90

    def test_max_duration_plus_one_is_rejected(self, directory):
        req = delegation_request(directory, valid_until=iso(91))
        with pytest.raises(ValidationError, match="Delegation cannot exceed 90 days"):
            delegation_service.create_delegation(req, directory.hr)

    def test_limit_comes_from_app_config(self, app, directory):
        app.config["MAX_DELEGATION_DAYS"] = 10
        try:
            req = delegation_request(directory, valid_until=iso(11))
            with pytest.raises(ValidationError, match="Delegation cannot exceed 10 days"):
                delegation_service.create_delegation(req, directory.hr)
        finally:
            app.config["MAX_DELEGATION_DAYS"] = 90

    def test_future_start_is_pending(self, directory):
        req = delegation_request(directory, valid_from=iso(3), valid_until=iso(6))
        assert delegation_service.create_delegation(req, directory.hr).status == "pending"


class TestTransferDates:

    def test_today_is_accepted(self, directory):
        transfer = transfer_service.create_transfer(transfer_request(directory, transfer_date=iso(0)), directory.hr)
        assert transfer.transfer_date == days(0)
        assert transfer.status == "pending"

    def test_past_is_rejected(self, directory):
        with pytest.raises(ValidationError, match="Transfer date cannot be before today"):
            transfer_service.create_transfer(transfer_request(directory, transfer_date=iso(-1)), directory.hr)

    def test_horizon_boundary(self, directory):
        transfer_service.create_transfer(transfer_request(directory, transfer_date=iso(90)), directory.hr)
        with pytest.raises(ValidationError, match="maximum 90 days"):
            transfer_service.create_transfer(
                transfer_request(directory, employee_id=directory.emp_a2, transfer_date=iso(91)), directory.hr
            )

    def test_malformed_date(self, directory):
        with pytest.raises(ValidationError, match="valid calendar date"):
            transfer_service.create_transfer(transfer_request(directory, transfer_date="31/12/2026"), directory.hr)
