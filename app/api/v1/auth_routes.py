"""
Authentication Routes
Handles registration, login, logout and the current profile
"""

from flask import Blueprint, current_app, request
import logging

from app.services.auth.auth_service import auth_service
from app.api.middleware.auth_middleware import auth_middleware
from app.api.middleware.response_middleware import response_middleware
from app.security.rate_limiting import AUTH_LIMIT, limiter
from app.utils.token_utils import ACCESS_TOKEN_COOKIE

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


@auth_bp.route('/register', methods=['POST'])
@limiter.limit(AUTH_LIMIT)
def register():
    """Create a farmer or consumer account"""
    user = auth_service.register_user(request.get_json(silent=True))
    return response_middleware.create_success_response(user, "User registered successfully", 201)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(AUTH_LIMIT)
def login():
    """
    Login with username or email
    The token is returned in the body and as an HttpOnly cookie
    """
    result = auth_service.login(request.get_json(silent=True))

    response = response_middleware.create_success_response(result, "Login successful")
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        result['token'],
        max_age=current_app.config.get('TOKEN_EXPIRY_HOURS', 24) * 3600,
        httponly=True,
        secure=current_app.config.get('SESSION_COOKIE_SECURE', False),
        samesite='Lax'
    )
    return response


@auth_bp.route('/logout', methods=['POST'])
@auth_middleware.require_auth
def logout(current_user):
    response = response_middleware.create_success_response(None, "Logged out successfully")
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    logger.info(f"User logged out: {current_user.username}")
    return response


@auth_bp.route('/me', methods=['GET'])
@auth_middleware.require_auth
def get_profile(current_user):
    profile = auth_service.get_user_profile(current_user.id)
    return response_middleware.create_success_response(profile, "Profile retrieved")
