# backend/staffing/routes/employees.py
"""
Employee read endpoints consumed by the timesheet grid.
"""
from flask import Blueprint, request, jsonify

from ..decorators import require_profile
from ..messages import DELEGATION_MESSAGES
from ..services import delegation_service, directory_service, event_service, scope_service
from ..time_utils import parse_iso_date, today
from . import caller_scope, no_scope_response, out_of_scope_response


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def _employee_not_found():
    return jsonify({
        "success": False,
        "error": DELEGATION_MESSAGES["EMPLOYEE_NOT_FOUND"],
        "error_code": "not_found",
    }), 404


@employees_bp.route("/<int:employee_id>/delegation-status", methods=["GET"])
@require_profile
def delegation_status(employee_id: int):
    """
    Delegation status of one employee.

    Query params:
        date: YYYY-MM-DD to check for timesheet restriction (default: today)
    """
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    employee = directory_service.get_employee(employee_id)
    if not employee:
        return _employee_not_found()

    try:
        check_date = parse_iso_date(request.args.get("date")) or today()
    except ValueError:
        return jsonify({
            "success": False,
            "error": DELEGATION_MESSAGES["MALFORMED_DATE"],
            "error_code": "validation",
        }), 400

    active = delegation_service.get_active_delegation(employee_id)
    if not scope.covers_store(employee.store_id) and not (
        active and scope_service.can_view_assignment(scope, active)
    ):
        return out_of_scope_response()

    return jsonify({
        "success": True,
        "data": {
            "employee_id": employee_id,
            "is_delegated": active is not None,
            "active_delegation": delegation_service.delegation_to_dict(active) if active else None,
            "date": check_date.isoformat(),
            "is_date_restricted": delegation_service.is_date_restricted_by_delegation(employee_id, check_date),
        },
    }), 200


@employees_bp.route("/<int:employee_id>/assignment-events", methods=["GET"])
@require_profile
def assignment_events(employee_id: int):
    """Assignment event trail for one employee, oldest first."""
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    employee = directory_service.get_employee(employee_id)
    if not employee:
        return _employee_not_found()

    events = event_service.list_events(employee_id=employee_id)
    if not scope.covers_store(employee.store_id):
        # Outside the home store only events touching a store in scope are shown
        events = [e for e in events if scope.covers_store(e.store_id)]
    return jsonify({"success": True, "data": [e.to_dict() for e in events]}), 200
