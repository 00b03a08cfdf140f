# backend/staffing/routes/transfers.py
"""
Employee transfer API routes.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..decorators import require_profile
from ..messages import TRANSFER_MESSAGES
from ..services import engine, scope_service, transfer_service
from . import result_response, int_arg, caller_scope, no_scope_response, out_of_scope_response


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


def _internal_error(action: str):
    db.session.rollback()
    current_app.logger.exception("Transfer %s failed", action)
    return jsonify({"success": False, "error": "Internal server error"}), 500


@transfers_bp.route("", methods=["POST"])
@require_profile
def create_transfer():
    """
    Create a transfer (status: pending).

    Request body:
    {
        "employee_id": int,
        "to_store_id": int,
        "transfer_date": "YYYY-MM-DD",
        "from_store_id": int (optional),
        "notes": str (optional)
    }

    Returns:
        201: Transfer created
        400: Rule failure
        403: Forbidden
        404: Employee or store not found
        409: Open transfer or open delegation for the employee
    """
    data = request.get_json(silent=True) or {}
    try:
        result = engine.create_transfer(data, g.profile_id)
        return result_response(result, 201)
    except Exception:
        return _internal_error("create")


@transfers_bp.route("", methods=["GET"])
@require_profile
def list_transfers():
    """
    List transfers.

    Query params: employee_id, from_store_id, to_store_id, status,
    initiated_by, approved_by, date_from, date_to
    """
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    try:
        rows = transfer_service.list_transfers(
            employee_id=int_arg("employee_id"),
            from_store_id=int_arg("from_store_id"),
            to_store_id=int_arg("to_store_id"),
            status=request.args.get("status"),
            initiated_by=int_arg("initiated_by"),
            approved_by=int_arg("approved_by"),
            date_from=request.args.get("date_from"),
            date_to=request.args.get("date_to"),
            scope=scope,
        )
    except ValueError:
        return jsonify({
            "success": False,
            "error": TRANSFER_MESSAGES["MALFORMED_TRANSFER_DATE"],
            "error_code": "validation",
        }), 400
    except Exception:
        return _internal_error("list")

    return jsonify({"success": True, "data": [transfer_service.transfer_to_dict(t) for t in rows]}), 200


@transfers_bp.route("/due", methods=["GET"])
@require_profile
def due_transfers():
    """Approved transfers whose date has arrived (ready or overdue)."""
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    try:
        rows = transfer_service.due_transfers(scope=scope)
    except Exception:
        return _internal_error("due")
    return jsonify({"success": True, "data": [transfer_service.transfer_to_dict(t) for t in rows]}), 200


@transfers_bp.route("/<int:transfer_id>", methods=["GET"])
@require_profile
def get_transfer(transfer_id: int):
    scope = caller_scope()
    if scope.is_empty:
        return no_scope_response()

    transfer = transfer_service.get_transfer(transfer_id)
    if not transfer:
        return jsonify({
            "success": False,
            "error": TRANSFER_MESSAGES["TRANSFER_NOT_FOUND"],
            "error_code": "not_found",
        }), 404
    if not scope_service.can_view_assignment(scope, transfer):
        return out_of_scope_response()
    return jsonify({"success": True, "data": transfer_service.transfer_to_dict(transfer)}), 200


@transfers_bp.route("/<int:transfer_id>/approve", methods=["POST"])
@require_profile
def approve_transfer(transfer_id: int):
    """
    Approve a pending transfer.

    Returns:
        200: Approved
        400: Already processed
        403: Not allowed, or caller initiated the transfer
        404: Transfer not found
    """
    try:
        return result_response(engine.approve_transfer(transfer_id, g.profile_id))
    except Exception:
        return _internal_error("approve")


@transfers_bp.route("/<int:transfer_id>/reject", methods=["POST"])
@require_profile
def reject_transfer(transfer_id: int):
    try:
        return result_response(engine.reject_transfer(transfer_id, g.profile_id))
    except Exception:
        return _internal_error("reject")


@transfers_bp.route("/<int:transfer_id>/cancel", methods=["POST"])
@require_profile
def cancel_transfer(transfer_id: int):
    """Cancel a pending transfer (initiator only)."""
    try:
        return result_response(engine.cancel_transfer(transfer_id, g.profile_id))
    except Exception:
        return _internal_error("cancel")


@transfers_bp.route("/<int:transfer_id>/complete", methods=["POST"])
@require_profile
def complete_transfer(transfer_id: int):
    """
    Execute an approved transfer on or after its date.

    Returns:
        200: Completed; the employee now belongs to the destination store
        400: Not approved, or not yet due
        409: Employee moved away from the source store, or the write failed
    """
    try:
        return result_response(engine.complete_transfer(transfer_id, g.profile_id))
    except Exception:
        return _internal_error("complete")
