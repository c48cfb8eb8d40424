"""Decorators guarding the admin actions."""

from functools import wraps

from flask import current_app, jsonify, session


def login_required(f=None, admin_required=False):
    """Reject the request if the session has no signed-in user.

    The session is populated by the external sign-in flow with ``user_id``
    and ``is_admin``.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if "user_id" not in session:
                return (
                    jsonify({"success": False, "message": "Login required.", "data": None}),
                    401,
                )
            if admin_required and not session.get("is_admin"):
                current_app.logger.warning(
                    f"User {session['user_id']} denied access to {func.__name__}"
                )
                return (
                    jsonify(
                        {
                            "success": False,
                            "message": "You are not authorized to perform this action.",
                            "data": None,
                        }
                    ),
                    403,
                )
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
