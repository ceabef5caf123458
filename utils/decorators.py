from functools import wraps

from flask import jsonify
from flask_login import current_user

from extensions import login_manager

ROLE_DENIED_MESSAGES = {
    "admin": "Admin access required",
    "teacher": "Only teachers can perform this action",
    "student": "Access denied. Student only.",
}


def role_required(*roles):
    """Allow the request only if the caller's stored role is one of ``roles``.

    ``current_user`` is re-read from the database for every request by the
    request loader, so a role change takes effect immediately instead of when
    the caller's token expires.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            # 1. Check if user is authenticated
            if not current_user.is_authenticated:
                return login_manager.unauthorized()

            # 2. Check the role currently stored for the user
            if current_user.role not in roles:
                message = ROLE_DENIED_MESSAGES.get(roles[0], "Access denied")
                return jsonify({"message": message}), 403

            return func(*args, **kwargs)
        return wrapper
    return decorator
