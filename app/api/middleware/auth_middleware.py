"""
Authentication Middleware
Resolves the current user from the access cookie or bearer token
"""

import logging
from functools import wraps
from flask import g

from app.core.exceptions import ForbiddenError
from app.services.auth.auth_service import auth_service
from app.utils.token_utils import get_token_from_request

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """Middleware for authentication - token handling only"""

    @staticmethod
    def authenticate():
        """
        Resolve the authenticated user for this request

        Returns:
            CurrentUser

        Raises:
            AuthError: If no valid token is present
        """
        token = get_token_from_request()
        current_user = auth_service.resolve_current_user(token)
        g.current_user = current_user
        return current_user

    @staticmethod
    def token_required_with_roles(allowed_roles=None):
        """
        Decorator for routes requiring authentication, optionally restricted to roles

        The resolved CurrentUser is passed to the view as its first argument.
        """
        def decorator(f):
            @wraps(f)
            def decorated_function(*args, **kwargs):
                current_user = AuthMiddleware.authenticate()

                if allowed_roles and current_user.role not in allowed_roles:
                    logger.warning(f"User {current_user.username} ({current_user.role.value}) denied access to {f.__name__}")
                    allowed = ', '.join(role.value for role in allowed_roles)
                    raise ForbiddenError(f"Access denied: requires one of {allowed}")

                return f(current_user, *args, **kwargs)

            return decorated_function
        return decorator

    @staticmethod
    def require_auth(f):
        """Decorator requiring any authenticated user"""
        return AuthMiddleware.token_required_with_roles(None)(f)


auth_middleware = AuthMiddleware()
