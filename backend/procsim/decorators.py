# Overview: Request decorators for API routes (caller identity and authoring role).

from functools import wraps
from flask import request, g

from .services.records import RecordStore


def require_user(f):
    """
    Resolve the caller from the X-User-Id header.

    Authentication happens in the upstream gateway; this only loads the user.
    Sets g.current_user. Returns 401 when the header is missing, malformed
    or names an unknown user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get("X-User-Id", "").strip()
        if not raw.isdigit():
            return {"error": "unauthorized", "message": "X-User-Id header required", "details": {}}, 401

        user = RecordStore().get_user(int(raw))
        if user is None:
            return {"error": "unauthorized", "message": "Unknown user", "details": {}}, 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_author_role(f):
    """Only teachers and admins may author tasks and catalog data. Use after @require_user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None or not user.can_author:
            return {
                "error": "forbidden",
                "message": "Teacher or admin role required",
                "details": {"role": user.role if user is not None else None},
            }, 403
        return f(*args, **kwargs)

    return decorated_function
