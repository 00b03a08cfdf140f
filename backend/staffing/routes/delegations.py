# backend/staffing/routes/delegations.py
"""
Delegation API routes.

Writes go through the engine boundary, so rule and guard failures come back
as structured results and are mapped to HTTP status by error_code.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_profile
from ..messages import DELEGATION_MESSAGES
from ..services import delegation_service, engine, scope_service
from ..services.rules import current_limits
from . import result_response, int_arg, caller_scope, no_scope_response, out_of_scope_response


delegations_bp = Blueprint("delegations", __name__, url_prefix="/api/delegations")


def _internal_error(action: str):
    db.session.rollback()
    current_app.logger.exception("Delegation %s failed", action)
    return jsonify({"success": False, "error": "Internal server error"}), 500


@delegations_bp.route("", methods=["POST"])
@require_profile
def create_delegation():
    """
    Create a delegation.

    Request body:
    {
        "employee_id": int,
        "to_store_id": int,
        "valid_from": "YYYY-MM-DD",
        "valid_until": "YYYY-MM-DD",
        "from_store_id": int (optional, guards against a stale view),
        "notes": str (optional)
    }

    Returns:
        201: Delegation created
        400: Rule failure
        403: Caller scope does not cover the employee or destination
        404: Employee or store not found
        409: Overlapping delegation or open transfer
    """
    data = request.get_json(silent=True) or {}
    try:
        result = engine.create_delegation(data, g.profile_id)
        return result_response(result, 201)
    except Exception:
        return _internal_error("create")


@delegations_bp.route("", methods=["GET"])
@require_profile
def list_delegations():
    """
    List delegations.

    Query params: employee_id, from_store_id, to_store_id, status (effective), valid_on
    """
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    try:
        rows = delegation_service.list_delegations(
            employee_id=int_arg("employee_id"),
            from_store_id=int_arg("from_store_id"),
            to_store_id=int_arg("to_store_id"),
            status=request.args.get("status"),
            valid_on=request.args.get("valid_on"),
            scope=scope,
        )
    except ValueError:
        return jsonify({"success": False, "error": DELEGATION_MESSAGES["MALFORMED_DATE"], "error_code": "validation"}), 400
    except Exception:
        return _internal_error("list")

    return jsonify({"success": True, "data": [delegation_service.delegation_to_dict(d) for d in rows]}), 200


@delegations_bp.route("/expiring-soon", methods=["GET"])
@require_profile
def expiring_soon():
    """In-effect delegations inside the expiry warning window, scoped to the caller."""
    try:
        rows = delegation_service.expiring_soon(g.profile)
    except Exception:
        return _internal_error("expiring-soon")
    return jsonify({"success": True, "data": [delegation_service.delegation_to_dict(d) for d in rows]}), 200


@delegations_bp.route("/options", methods=["GET"])
@require_profile
def delegation_options():
    """Destination stores, eligible employees, capability flags and form defaults for the caller."""
    try:
        stores = scope_service.available_destination_stores(g.profile)
        employees = scope_service.available_employees(g.profile)
        capabilities = scope_service.capabilities(g.profile)
        limits = current_limits()
    except Exception:
        return _internal_error("options")

    return jsonify({
        "success": True,
        "data": {
            "stores": [s.to_dict() for s in stores],
            "employees": [e.to_dict() for e in employees],
            "capabilities": capabilities,
            "defaults": {
                "delegation_days": limits["DEFAULT_DELEGATION_DAYS"],
                "transfer_days": limits["DEFAULT_TRANSFER_DAYS"],
                "max_delegation_days": limits["MAX_DELEGATION_DAYS"],
                "max_transfer_days": limits["MAX_TRANSFER_DAYS"],
            },
        },
    }), 200


@delegations_bp.route("/<int:delegation_id>", methods=["GET"])
@require_profile
def get_delegation(delegation_id: int):
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    delegation = delegation_service.get_delegation(delegation_id)
    if not delegation:
        return jsonify({
            "success": False,
            "error": DELEGATION_MESSAGES["DELEGATION_NOT_FOUND"],
            "error_code": "not_found",
        }), 404
    if not scope_service.can_view_assignment(scope, delegation):
        return out_of_scope_response()
    return jsonify({"success": True, "data": delegation_service.delegation_to_dict(delegation)}), 200


@delegations_bp.route("/<int:delegation_id>/revoke", methods=["POST"])
@require_profile
def revoke_delegation(delegation_id: int):
    """
    Revoke a pending/active delegation.

    Returns:
        200: Revoked
        400: Already ended
        403: Not allowed to revoke
        404: Delegation not found
    """
    try:
        result = engine.revoke_delegation(delegation_id, g.profile_id)
        return result_response(result)
    except Exception:
        return _internal_error("revoke")


@delegations_bp.route("/<int:delegation_id>/extend", methods=["POST"])
@require_profile
def extend_delegation(delegation_id: int):
    """
    Extend a delegation's end date.

    Request body:
    {
        "valid_until": "YYYY-MM-DD"
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        result = engine.extend_delegation(delegation_id, data.get("valid_until"), g.profile_id)
        return result_response(result)
    except Exception:
        return _internal_error("extend")
