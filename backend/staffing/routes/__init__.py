# Overview: Shared helpers for API blueprints.

from flask import g, jsonify, request

from ..errors import AssignmentError
from ..messages import PROFILE_MESSAGES
from ..services import scope_service


STATUS_BY_ERROR_CODE = {
    "validation": 400,
    "permission": 403,
    "not_found": 404,
    "conflict": 409,
    "transaction": 409,
}


def result_response(result, success_status: int = 200):
    """Render a ServiceResult with the HTTP status matching its error_code."""
    if result.success:
        return jsonify(result.to_dict()), success_status
    return jsonify(result.to_dict()), STATUS_BY_ERROR_CODE.get(result.error_code, 400)


def error_response(exc: AssignmentError):
    body = {"success": False, "error": exc.message, "error_code": exc.error_code}
    return jsonify(body), STATUS_BY_ERROR_CODE.get(exc.error_code, 400)


def int_arg(name: str):
    """Optional integer query arg; malformed values are ignored."""
    return request.args.get(name, type=int)


def caller_scope():
    """Scope of the profile resolved by require_profile."""
    return scope_service.resolve_scope(g.profile)


def no_scope_response():
    body = {"success": False, "error": PROFILE_MESSAGES["NO_SCOPE"], "error_code": "permission"}
    return jsonify(body), 403


def out_of_scope_response():
    body = {"success": False, "error": PROFILE_MESSAGES["OUT_OF_SCOPE"], "error_code": "permission"}
    return jsonify(body), 403
