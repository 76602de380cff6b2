# Overview: Request identity and role decorators for API routes.

"""
Authentication happens upstream (the gateway that serves the front end).
It forwards the signed-in user as two headers, by default:

    X-User-Id:   positive integer user id
    X-User-Role: ADMIN | MANAGER | CASHIER

require_auth turns those into g.current_user; require_role gates a route
on the role. Header names come from USER_ID_HEADER / USER_ROLE_HEADER.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, jsonify, request

ADMIN = "ADMIN"
MANAGER = "MANAGER"
CASHIER = "CASHIER"

ROLES = frozenset({ADMIN, MANAGER, CASHIER})


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: str


def _identity_from_headers() -> CurrentUser | None:
    raw_id = request.headers.get(current_app.config["USER_ID_HEADER"], "").strip()
    raw_role = request.headers.get(current_app.config["USER_ROLE_HEADER"], "").strip().upper()

    if not raw_id.isdigit() or int(raw_id) <= 0:
        return None
    if raw_role not in ROLES:
        return None
    return CurrentUser(id=int(raw_id), role=raw_role)


def _is_authenticated() -> bool:
    return g.get("current_user") is not None


def require_auth(f):
    """
    Require an identified user.

    Sets g.current_user (CurrentUser). Returns 401 when the identity headers
    are missing or malformed.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = _identity_from_headers()
        if user is None:
            return jsonify({"message": "Authentication required"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require one of the given roles. Must be applied after @require_auth."""
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"message": "Authentication required"}), 401

            user = g.current_user
            if user.role not in allowed:
                current_app.logger.warning(
                    "Role %s denied %s %s (user_id=%s)", user.role, request.method, request.path, user.id
                )
                return jsonify({
                    "message": "Permission denied",
                    "required_roles": sorted(allowed),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
