"""
Authentication Decorator

Resolves the acting user from HTTP Basic credentials and enforces the
permission a route requires.
"""

from functools import wraps

from flask import current_app, g, request

from ..config.settings import ShareableConfig
from ..domain.context import RequestContext
from ..domain.errors import ErrorCategory, create_error_response
from ..domain.users import Users


def _authenticate():
    users = current_app.container.resolve(Users)
    auth = request.authorization
    if auth is None or auth.type != "basic":
        return users.anonymous
    return users.authenticate(auth.username, auth.password)


def require_permission(*permissions: str):
    """
    Decorator to require one of the given permissions for a route.

    Unauthenticated or insufficiently privileged requests get HTTP 401
    with a Basic auth challenge. On success the request context is
    available as ``g.request_context``.

    Usage:
        @require_permission("upload", "publish")
        def get(self):
            ctx = g.request_context
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = _authenticate()

            if not user.has_permission(list(permissions)):
                current_app.logger.info(
                    f"Denied {request.method} {request.path} for user {user.username}"
                )
                body, status_code = create_error_response(
                    ErrorCategory.AUTHENTICATION_REQUIRED,
                    "Login required",
                    status_code=401,
                )
                return body, status_code, {"WWW-Authenticate": 'Basic realm="Shareable"'}

            config = current_app.container.resolve(ShareableConfig)
            g.request_context = RequestContext(
                user=user,
                params=request.values.to_dict(),
                debug=config.debug,
            )
            return f(*args, **kwargs)

        return decorated_function
    return decorator
