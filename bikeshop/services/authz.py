"""
Role checks for the JSON views.

ADMIN passes every STAFF check (see ``User.has_role``). Failures go through
the app's 401/403 JSON handlers.
"""
from functools import wraps

from flask import abort, request
from flask_login import current_user

from bikeshop.services.security import log_security_event


def roles_required(*roles):
    """Allow the view only to active users holding one of ``roles``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)

            if not current_user.is_active or not current_user.has_role(*roles):
                log_security_event(
                    'permission_denied',
                    user_id=current_user.id,
                    username=current_user.username,
                    details=f"{request.method} {request.path} needs {'/'.join(roles)}",
                )
                abort(403)

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    return roles_required('ADMIN')(f)
