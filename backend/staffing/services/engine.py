# Overview: Inbound boundary of the assignment engine; turns domain errors into structured results.

"""
Every inbound call returns a ServiceResult instead of raising for rule or
guard failures. Only infrastructure failures (SQLAlchemy errors other than
the ones run_with_retry absorbs) propagate to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from staffing.errors import AssignmentError
from staffing.services import delegation_service, transfer_service
from staffing.services.rules import CreateDelegationRequest, CreateTransferRequest


@dataclass
class ServiceResult:
    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, exc: AssignmentError) -> "ServiceResult":
        return cls(success=False, error=exc.message, error_code=exc.error_code)

    def to_dict(self) -> dict:
        out = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
            out["error_code"] = self.error_code
        return out


def _call(func, serialize, *args, **kwargs) -> ServiceResult:
    try:
        record = func(*args, **kwargs)
    except AssignmentError as exc:
        return ServiceResult.failed(exc)
    return ServiceResult.ok(serialize(record))


def _delegation_request(request) -> CreateDelegationRequest:
    if isinstance(request, CreateDelegationRequest):
        return request
    return CreateDelegationRequest.from_payload(request)


def _transfer_request(request) -> CreateTransferRequest:
    if isinstance(request, CreateTransferRequest):
        return request
    return CreateTransferRequest.from_payload(request)


def create_delegation(request, actor_id, *, on=None) -> ServiceResult:
    return _call(
        delegation_service.create_delegation,
        lambda d: delegation_service.delegation_to_dict(d, on),
        _delegation_request(request),
        actor_id,
        on=on,
    )


def revoke_delegation(delegation_id, actor_id, *, on=None) -> ServiceResult:
    return _call(
        delegation_service.revoke_delegation,
        lambda d: delegation_service.delegation_to_dict(d, on),
        delegation_id,
        actor_id,
        on=on,
    )


def extend_delegation(delegation_id, new_valid_until, actor_id, *, on=None) -> ServiceResult:
    return _call(
        delegation_service.extend_delegation,
        lambda d: delegation_service.delegation_to_dict(d, on),
        delegation_id,
        new_valid_until,
        actor_id,
        on=on,
    )


def create_transfer(request, actor_id, *, on=None) -> ServiceResult:
    return _call(
        transfer_service.create_transfer,
        lambda t: transfer_service.transfer_to_dict(t, on),
        _transfer_request(request),
        actor_id,
        on=on,
    )


def approve_transfer(transfer_id, actor_id) -> ServiceResult:
    return _call(transfer_service.approve_transfer, transfer_service.transfer_to_dict, transfer_id, actor_id)


def reject_transfer(transfer_id, actor_id) -> ServiceResult:
    return _call(transfer_service.reject_transfer, transfer_service.transfer_to_dict, transfer_id, actor_id)


def cancel_transfer(transfer_id, actor_id) -> ServiceResult:
    return _call(transfer_service.cancel_transfer, transfer_service.transfer_to_dict, transfer_id, actor_id)


def complete_transfer(transfer_id, actor_id=None, *, on=None) -> ServiceResult:
    return _call(
        transfer_service.complete_transfer,
        lambda t: transfer_service.transfer_to_dict(t, on),
        transfer_id,
        actor_id,
        on=on,
    )
