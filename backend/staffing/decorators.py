# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .messages import PROFILE_MESSAGES
from .services import directory_service
from .services.rules import coerce_id


PROFILE_HEADER = "X-Profile-Id"


def require_profile(f):
    """
    Resolve the calling profile and store it in Flask g.

    The host application's auth layer authenticates the user and forwards
    the profile id in the X-Profile-Id header. This decorator only maps that
    id to a Profile row:
    - g.profile: the caller's Profile
    - g.profile_id: its id

    Returns 401 if the header is missing or malformed, 404 if no profile
    has that id, 403 if the profile is inactive.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        profile_id = coerce_id(request.headers.get(PROFILE_HEADER))
        if profile_id is None:
            return jsonify({"success": False, "error": f"{PROFILE_HEADER} header required"}), 401

        profile = directory_service.get_profile(profile_id)
        if not profile:
            return jsonify({
                "success": False,
                "error": PROFILE_MESSAGES["PROFILE_NOT_FOUND"],
                "error_code": "not_found",
            }), 404

        if not profile.is_active:
            return jsonify({
                "success": False,
                "error": PROFILE_MESSAGES["PROFILE_INACTIVE"],
                "error_code": "permission",
            }), 403

        g.profile = profile
        g.profile_id = profile.id
        return f(*args, **kwargs)

    return decorated_function
