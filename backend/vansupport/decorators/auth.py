from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from vansupport.services.policy import has_any_role


def require_login():
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_roles(*names):
    """Any-of role gate: the session must carry at least one of `names`."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_any_role(*names):
                abort(403, description='Forbidden: insufficient permissions')
            return fn(*args, **kwargs)
        return wrapper
    return outer
