# payments_portal/authentication/rbac.py

from enum import Enum
from functools import wraps

from flask import current_app, g, request

from payments_portal.errors import ForbiddenError, MissingCredentialError

# Access guard: bearer-token validation and exact-match role checks


class UserRole(Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"


def extract_bearer_token(header_value):
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None
    return parts[1]


def token_required(view=None, *, optional=False):
    """Validate the Authorization bearer token before running the view.

    The decoded identity is stored on ``g.current_user``. With
    ``optional=True`` a request without a token passes through with
    ``g.current_user`` set to None; a token that is present but invalid is
    still rejected.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            token = extract_bearer_token(request.headers.get('Authorization'))
            if token is None:
                if not optional:
                    raise MissingCredentialError()
                g.current_user = None
                return func(*args, **kwargs)
            token_manager = current_app.extensions['portal.tokens']
            g.current_user = token_manager.validate_token(token)
            return func(*args, **kwargs)
        return wrapper

    if view is not None:
        return decorator(view)
    return decorator


def require_role(role):
    # Strict equality: no role implies another
    role_value = role.value if isinstance(role, Enum) else str(role)

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_user = g.get('current_user')
            if not current_user:
                raise MissingCredentialError()
            if current_user['role'] != role_value:
                current_app.extensions['portal.audit'].access_denied(
                    request.path, current_user['role'], role_value, current_user['user_id']
                )
                raise ForbiddenError()
            return func(*args, **kwargs)
        return wrapper
    return decorator
