# Overview: Ordered, short-circuiting validation rules shared by delegation and transfer creation.

"""
Assignment Rule Pipeline

Rules run in a fixed order and evaluation STOPS at the first failure; its
message is what the caller sees. Rules are not aggregated.

ORDER (both workflows):
1. Basic fields (ids/dates present and well-formed, destination exists)
2. Permission (role table, see scope_service.check_create_permission)
3. Entity eligibility (active employee, stale from_store guard, own-store)
4. Store relationship (no self-assignment)
5. Date rules (delegation range / transfer horizon)
6. Temporal/state conflicts (overlaps, open transfers, open delegations)

Rules may stash parsed values on the context (dates, loaded rows) for the
rules after them. A rule that relies on an earlier rule's output may assume
that earlier rule passed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable

from flask import current_app

from staffing.config import Config, LIMIT_KEYS
from staffing.errors import ERRORS_BY_CODE, ValidationError
from staffing.messages import DELEGATION_MESSAGES, TRANSFER_MESSAGES, NO_CHANGE_SUFFIX
from staffing.models import Employee, Profile, Store
from staffing.services import conflict_service, directory_service, scope_service, status_service
from staffing.services.scope_service import Scope
from staffing.time_utils import parse_iso_date


KIND_DELEGATION = "delegation"
KIND_TRANSFER = "transfer"


@dataclass(frozen=True)
class RuleResult:
    is_valid: bool
    error: str | None = None
    error_code: str | None = None


PASS = RuleResult(is_valid=True)


def fail(message: str, error_code: str = "validation") -> RuleResult:
    if error_code == "conflict":
        message = message + NO_CHANGE_SUFFIX
    return RuleResult(is_valid=False, error=message, error_code=error_code)


@dataclass
class CreateDelegationRequest:
    employee_id: Any
    to_store_id: Any
    valid_from: Any
    valid_until: Any
    notes: str | None = None
    from_store_id: Any = None
    auto_return: bool | None = True

    @classmethod
    def from_payload(cls, data: dict | None) -> "CreateDelegationRequest":
        data = data or {}
        return cls(
            employee_id=data.get("employee_id"),
            to_store_id=data.get("to_store_id"),
            valid_from=data.get("valid_from"),
            valid_until=data.get("valid_until"),
            notes=data.get("notes"),
            from_store_id=data.get("from_store_id"),
            auto_return=coerce_flag(data.get("auto_return"), default=True),
        )


@dataclass
class CreateTransferRequest:
    employee_id: Any
    to_store_id: Any
    transfer_date: Any
    notes: str | None = None
    from_store_id: Any = None

    @classmethod
    def from_payload(cls, data: dict | None) -> "CreateTransferRequest":
        data = data or {}
        return cls(
            employee_id=data.get("employee_id"),
            to_store_id=data.get("to_store_id"),
            transfer_date=data.get("transfer_date"),
            notes=data.get("notes"),
            from_store_id=data.get("from_store_id"),
        )


@dataclass
class RuleContext:
    """
    Everything the rules see. Inputs are set by the caller; the
    employee/to_store/from_store_id/start/end fields are filled in by the
    basic-fields rule.
    """
    kind: str
    actor: Profile
    scope: Scope
    request: Any
    today: date
    limits: dict
    employee: Employee | None = None
    to_store: Store | None = None
    from_store_id: int | None = None
    start: date | None = None
    end: date | None = None
    extras: dict = field(default_factory=dict)

    @property
    def messages(self) -> dict:
        return DELEGATION_MESSAGES if self.kind == KIND_DELEGATION else TRANSFER_MESSAGES


Rule = Callable[[RuleContext], RuleResult]


def run_rules(rules, ctx: RuleContext) -> RuleResult:
    """Evaluate rules in order; return the first failure, else PASS."""
    for rule in rules:
        result = rule(ctx)
        if not result.is_valid:
            return result
    return PASS


def current_limits() -> dict:
    """Workflow limits from the app config, falling back to Config defaults."""
    config = current_app.config
    return {key: config.get(key, getattr(Config, key)) for key in LIMIT_KEYS}


def raise_for(result: RuleResult) -> None:
    """Raise the taxonomy error matching a failed RuleResult."""
    if result.is_valid:
        return
    error_cls = ERRORS_BY_CODE.get(result.error_code, ValidationError)
    raise error_cls(result.error)


def coerce_id(value) -> int | None:
    """Positive integer id, or None when missing/malformed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            parsed = int(stripped)
            return parsed if parsed > 0 else None
    return None


def coerce_flag(value, *, default: bool) -> bool | None:
    """JSON boolean or "true"/"false"; None when given but unrecognised."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def _parse_date_or_none(value) -> tuple[date | None, bool]:
    """(parsed, ok). ok is False when a value was given but is not a calendar date."""
    try:
        return parse_iso_date(value), True
    except (TypeError, ValueError):
        return None, False


# =============================================================================
# RULE 1: BASIC FIELDS
# =============================================================================

def _load_employee_and_store(ctx: RuleContext, employee_id: int, to_store_id: int) -> RuleResult:
    msgs = ctx.messages

    from_store_id = None
    if ctx.request.from_store_id is not None:
        from_store_id = coerce_id(ctx.request.from_store_id)
        if from_store_id is None:
            return fail(msgs["INVALID_STORE"])
        if from_store_id == to_store_id:
            return fail(msgs["SAME_STORE"])
    ctx.from_store_id = from_store_id

    employee = directory_service.get_employee(employee_id)
    if not employee:
        return fail(msgs["EMPLOYEE_NOT_FOUND"], "not_found")

    to_store = directory_service.get_store(to_store_id)
    if not to_store:
        return fail(msgs["STORE_NOT_FOUND"], "not_found")

    ctx.employee = employee
    ctx.to_store = to_store
    return PASS


def validate_delegation_basic_fields(ctx: RuleContext) -> RuleResult:
    msgs = DELEGATION_MESSAGES
    req = ctx.request

    employee_id = coerce_id(req.employee_id)
    if employee_id is None:
        return fail(msgs["INVALID_EMPLOYEE"])

    to_store_id = coerce_id(req.to_store_id)
    if to_store_id is None:
        return fail(msgs["INVALID_STORE"])

    if not req.valid_from or not req.valid_until:
        return fail(msgs["INVALID_DATES"])

    start, ok_start = _parse_date_or_none(req.valid_from)
    end, ok_end = _parse_date_or_none(req.valid_until)
    if not (ok_start and ok_end) or start is None or end is None:
        return fail(msgs["MALFORMED_DATE"])
    ctx.start, ctx.end = start, end

    if req.auto_return is None:
        return fail(msgs["INVALID_AUTO_RETURN"])

    return _load_employee_and_store(ctx, employee_id, to_store_id)


def validate_transfer_basic_fields(ctx: RuleContext) -> RuleResult:
    msgs = TRANSFER_MESSAGES
    req = ctx.request

    employee_id = coerce_id(req.employee_id)
    if employee_id is None:
        return fail(msgs["INVALID_EMPLOYEE"])

    to_store_id = coerce_id(req.to_store_id)
    if to_store_id is None:
        return fail(msgs["INVALID_STORE"])

    if not req.transfer_date:
        return fail(msgs["INVALID_TRANSFER_DATE"])

    transfer_date, ok = _parse_date_or_none(req.transfer_date)
    if not ok or transfer_date is None:
        return fail(msgs["MALFORMED_TRANSFER_DATE"])
    ctx.start = ctx.end = transfer_date

    return _load_employee_and_store(ctx, employee_id, to_store_id)


# =============================================================================
# RULE 2: PERMISSION
# =============================================================================

def validate_permission(ctx: RuleContext) -> RuleResult:
    allowed, reason_key = scope_service.check_create_permission(ctx.scope, ctx.employee, ctx.to_store)
    if allowed:
        return PASS
    return fail(ctx.messages[reason_key], "permission")


# =============================================================================
# RULE 3: ENTITY ELIGIBILITY
# =============================================================================

def validate_entity_eligibility(ctx: RuleContext) -> RuleResult:
    msgs = ctx.messages
    employee = ctx.employee

    if not employee.is_active:
        return fail(msgs["EMPLOYEE_NOT_ACTIVE"])

    if ctx.from_store_id is not None and ctx.from_store_id != employee.store_id:
        return fail(msgs["STALE_SOURCE_STORE"], "conflict")

    if ctx.scope.kind == scope_service.SCOPE_STORE and not ctx.scope.covers_store(employee.store_id):
        return fail(msgs["NOT_YOUR_EMPLOYEE"], "permission")

    return PASS


# =============================================================================
# RULE 4: STORE RELATIONSHIP
# =============================================================================

def validate_store_relationship(ctx: RuleContext) -> RuleResult:
    if ctx.to_store.id == ctx.employee.store_id:
        return fail(ctx.messages["SELF_ASSIGNMENT"])
    return PASS


# =============================================================================
# RULE 5: DATES
# =============================================================================

def validate_delegation_dates(ctx: RuleContext) -> RuleResult:
    msgs = DELEGATION_MESSAGES
    start, end = ctx.start, ctx.end

    # Today is allowed
    if start < ctx.today:
        return fail(msgs["PAST_DATE"])

    if end <= start:
        return fail(msgs["END_BEFORE_START"])

    duration = status_service.delegation_duration_days(start, end)
    max_days = ctx.limits["MAX_DELEGATION_DAYS"]
    min_days = ctx.limits["MIN_DELEGATION_DAYS"]
    if duration > max_days:
        return fail(msgs["TOO_LONG"].format(max_days=max_days))
    if duration < min_days:
        return fail(msgs["TOO_SHORT"].format(min_days=min_days))

    return PASS


def validate_transfer_date(ctx: RuleContext) -> RuleResult:
    msgs = TRANSFER_MESSAGES
    transfer_date = ctx.start

    if transfer_date < ctx.today:
        return fail(msgs["PAST_TRANSFER_DATE"])

    max_days = ctx.limits["MAX_TRANSFER_DAYS"]
    if transfer_date > ctx.today + timedelta(days=max_days):
        return fail(msgs["TRANSFER_DATE_TOO_FAR"].format(max_days=max_days))

    return PASS


# =============================================================================
# RULE 6: TEMPORAL / STATE CONFLICTS
# =============================================================================

def validate_delegation_conflicts(ctx: RuleContext) -> RuleResult:
    msgs = DELEGATION_MESSAGES
    employee_id = ctx.employee.id

    overlapping = conflict_service.find_overlapping_delegation(
        employee_id,
        ctx.start,
        ctx.end,
        ctx.today,
        exclude_id=ctx.extras.get("exclude_delegation_id"),
    )
    if overlapping:
        ctx.extras["conflicting_delegation_id"] = overlapping.id
        return fail(msgs["OVERLAPPING_DELEGATION"], "conflict")

    if conflict_service.find_open_transfer(employee_id):
        return fail(msgs["PENDING_TRANSFER"], "conflict")

    return PASS


def validate_transfer_conflicts(ctx: RuleContext) -> RuleResult:
    msgs = TRANSFER_MESSAGES
    employee_id = ctx.employee.id

    if conflict_service.find_open_transfer(employee_id):
        return fail(msgs["EMPLOYEE_HAS_PENDING_TRANSFER"], "conflict")

    if conflict_service.find_blocking_delegation_for_transfer(employee_id, ctx.today):
        return fail(msgs["EMPLOYEE_IS_DELEGATED"], "conflict")

    return PASS


DELEGATION_RULES: tuple[Rule, ...] = (
    validate_delegation_basic_fields,
    validate_permission,
    validate_entity_eligibility,
    validate_store_relationship,
    validate_delegation_dates,
    validate_delegation_conflicts,
)

TRANSFER_RULES: tuple[Rule, ...] = (
    validate_transfer_basic_fields,
    validate_permission,
    validate_entity_eligibility,
    validate_store_relationship,
    validate_transfer_date,
    validate_transfer_conflicts,
)
