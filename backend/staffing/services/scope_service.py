# Overview: Service-layer operations for permission scope; maps a caller profile to the stores/zones it may act on.

"""
Permission Scope Resolution

WHY: Every assignment action is bounded by the caller's place in the
hierarchy. HR acts company-wide, an ASM acts inside one zone, a store
manager acts on their own store (and may only send employees within that
store's zone).

DESIGN PRINCIPLES:
- Fail closed: a missing/unknown role, or a role missing the zone/store it
  needs, resolves to the EMPTY scope. The resolver never raises.
- Pure read: no writes, no caching across requests.
- Exhaustive: every decision branches over all Role members and ends in
  unhandled_role().
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import false, or_

from staffing.extensions import db
from staffing.models import Store, Employee, Profile
from staffing.roles import Role, parse_role, unhandled_role
from staffing.services import directory_service


SCOPE_COMPANY = "company"
SCOPE_ZONE = "zone"
SCOPE_STORE = "store"
SCOPE_NONE = "none"


@dataclass(frozen=True)
class Scope:
    kind: str
    role: Role | None = None
    profile_id: int | None = None
    allowed_store_ids: frozenset = field(default_factory=frozenset)
    allowed_zone_ids: frozenset = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return self.kind == SCOPE_NONE

    @property
    def is_company(self) -> bool:
        return self.kind == SCOPE_COMPANY

    def covers_store(self, store_id: int | None) -> bool:
        if self.is_empty or store_id is None:
            return False
        return self.is_company or store_id in self.allowed_store_ids

    def covers_zone(self, zone_id: int | None) -> bool:
        if self.is_empty or zone_id is None:
            return False
        return self.is_company or zone_id in self.allowed_zone_ids

    def to_dict(self) -> dict:
        return {
            "scope": self.kind,
            "role": self.role.value if self.role else None,
            "profile_id": self.profile_id,
            "allowed_store_ids": sorted(self.allowed_store_ids),
            "allowed_zone_ids": sorted(self.allowed_zone_ids),
        }


EMPTY_SCOPE = Scope(kind=SCOPE_NONE)


def resolve_scope(profile: Profile | None) -> Scope:
    """
    Compute the stores/zones a caller may act on.

    - HR -> company scope, unrestricted
    - ASM -> zone scope: profile.zone_id and every store in it
    - STORE_MANAGER -> store scope: profile.store_id; allowed zone is that
      store's zone (used to block cross-zone moves)
    - anything else -> EMPTY_SCOPE
    """
    if profile is None or not profile.is_active:
        return EMPTY_SCOPE

    role = parse_role(profile.role)
    if role is None:
        return EMPTY_SCOPE

    if role is Role.HR:
        return Scope(kind=SCOPE_COMPANY, role=role, profile_id=profile.id)

    if role is Role.ASM:
        if profile.zone_id is None or not directory_service.get_zone(profile.zone_id):
            return EMPTY_SCOPE
        return Scope(
            kind=SCOPE_ZONE,
            role=role,
            profile_id=profile.id,
            allowed_store_ids=frozenset(directory_service.get_zone_store_ids(profile.zone_id)),
            allowed_zone_ids=frozenset({profile.zone_id}),
        )

    if role is Role.STORE_MANAGER:
        store = directory_service.get_store(profile.store_id) if profile.store_id is not None else None
        if not store:
            return EMPTY_SCOPE
        return Scope(
            kind=SCOPE_STORE,
            role=role,
            profile_id=profile.id,
            allowed_store_ids=frozenset({store.id}),
            allowed_zone_ids=frozenset({store.zone_id}),
        )

    unhandled_role(role)


# =============================================================================
# ROLE TABLE: CREATE / APPROVE / REVOKE / EXTEND
# =============================================================================

def check_create_permission(scope: Scope, employee: Employee, to_store: Store) -> tuple[bool, str | None]:
    """
    Role table for creating a delegation or transfer.

    Returns (allowed, reason_key). reason_key names the message to show; the
    caller picks the delegation/transfer wording.

    - HR: any store -> any store
    - ASM: employee's zone AND destination zone are the caller's zone
    - STORE_MANAGER: employee is at the caller's store AND destination is in
      the employee's current zone
    """
    if scope.is_empty:
        return False, "INSUFFICIENT_PERMISSIONS"

    role = scope.role
    if role is Role.HR:
        return True, None

    if role is Role.ASM:
        if scope.covers_zone(employee.zone_id) and scope.covers_zone(to_store.zone_id):
            return True, None
        return False, "ASM_OUT_OF_ZONE"

    if role is Role.STORE_MANAGER:
        if not scope.covers_store(employee.store_id):
            return False, "NOT_YOUR_EMPLOYEE"
        if to_store.zone_id != employee.zone_id:
            return False, "CROSS_ZONE"
        return True, None

    unhandled_role(role)


def can_approve_transfer(scope: Scope, transfer) -> bool:
    """
    Approval/rejection scope (self-approval is checked separately).

    - HR: any transfer
    - ASM: transfer touches the caller's zone (source or destination)
    - STORE_MANAGER: transfer is INTO the caller's store
    """
    if scope.is_empty:
        return False

    role = scope.role
    if role is Role.HR:
        return True
    if role is Role.ASM:
        return scope.covers_zone(transfer.from_zone_id) or scope.covers_zone(transfer.to_zone_id)
    if role is Role.STORE_MANAGER:
        return scope.covers_store(transfer.to_store_id)

    unhandled_role(role)


def can_view_assignment(scope: Scope, record) -> bool:
    """A delegation or transfer is visible when either end is a store in scope."""
    return scope.covers_store(record.from_store_id) or scope.covers_store(record.to_store_id)


def visible_assignments(scope: Scope, rows: list) -> list:
    return [r for r in rows if can_view_assignment(scope, r)]


def filter_assignments_query(scope: Scope, query, model):
    """Restrict a Delegation or Transfer query to records with either end in scope."""
    if scope.is_company:
        return query
    if scope.is_empty:
        return query.filter(false())
    allowed = list(scope.allowed_store_ids)
    return query.filter(or_(model.from_store_id.in_(allowed), model.to_store_id.in_(allowed)))


def can_revoke_delegation(scope: Scope, delegation) -> bool:
    """
    Revocation scope: HR, the original delegator, or a manager of either end.

    - ASM: from- or to-zone is the caller's zone
    - STORE_MANAGER: from- or to-store is the caller's store
    """
    if scope.is_empty:
        return False
    if delegation.delegated_by == scope.profile_id:
        return True

    role = scope.role
    if role is Role.HR:
        return True
    if role is Role.ASM:
        return scope.covers_zone(delegation.from_zone_id) or scope.covers_zone(delegation.to_zone_id)
    if role is Role.STORE_MANAGER:
        return scope.covers_store(delegation.from_store_id) or scope.covers_store(delegation.to_store_id)

    unhandled_role(role)


def can_extend_delegation(scope: Scope, delegation) -> bool:
    """Only HR and ASMs (within the delegation's zones) may extend."""
    if scope.is_empty:
        return False

    role = scope.role
    if role is Role.HR:
        return True
    if role is Role.ASM:
        return scope.covers_zone(delegation.from_zone_id) or scope.covers_zone(delegation.to_zone_id)
    if role is Role.STORE_MANAGER:
        return False

    unhandled_role(role)


# =============================================================================
# SCOPED LISTINGS (selection helpers for callers building requests)
# =============================================================================

def available_destination_stores(profile: Profile | None) -> list[Store]:
    """
    Stores the caller may send employees to.

    - HR: all stores
    - ASM: stores in their zone
    - STORE_MANAGER: stores in their store's zone, excluding their own store
    """
    scope = resolve_scope(profile)
    if scope.is_empty:
        return []

    q = db.session.query(Store)
    role = scope.role
    if role is Role.HR:
        pass
    elif role is Role.ASM:
        q = q.filter(Store.zone_id.in_(scope.allowed_zone_ids))
    elif role is Role.STORE_MANAGER:
        q = q.filter(
            Store.zone_id.in_(scope.allowed_zone_ids),
            Store.id.notin_(scope.allowed_store_ids),
        )
    else:
        unhandled_role(role)

    return q.order_by(Store.name.asc()).all()


def available_employees(profile: Profile | None) -> list[Employee]:
    """Active employees the caller may delegate or transfer."""
    scope = resolve_scope(profile)
    if scope.is_empty:
        return []

    q = db.session.query(Employee).filter(Employee.is_active.is_(True))
    role = scope.role
    if role is Role.HR:
        pass
    elif role is Role.ASM:
        q = q.filter(Employee.zone_id.in_(scope.allowed_zone_ids))
    elif role is Role.STORE_MANAGER:
        q = q.filter(Employee.store_id.in_(scope.allowed_store_ids))
    else:
        unhandled_role(role)

    return q.order_by(Employee.full_name.asc()).all()


def capabilities(profile: Profile | None) -> dict:
    """Coarse capability flags for a caller (per-record checks still apply)."""
    scope = resolve_scope(profile)
    if scope.is_empty:
        return {
            "can_create": False,
            "can_approve": False,
            "can_revoke": False,
            "can_extend": False,
            **scope.to_dict(),
        }

    role = scope.role
    if role is Role.HR or role is Role.ASM:
        can_extend = True
    elif role is Role.STORE_MANAGER:
        can_extend = False
    else:
        unhandled_role(role)

    return {
        "can_create": True,
        "can_approve": True,
        "can_revoke": True,
        "can_extend": can_extend,
        **scope.to_dict(),
    }
