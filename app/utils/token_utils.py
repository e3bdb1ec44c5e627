import jwt
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from flask import current_app, request

from app.core.exceptions import AuthError

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_COOKIE = "access_token"

logger = logging.getLogger(__name__)


def _secret_key() -> str:
    secret = current_app.config.get('JWT_SECRET_KEY')
    if not secret:
        raise AuthError("JWT_SECRET_KEY not configured")
    return secret


def generate_token(user_id: str, user_role: str, username: str, expiry_hours: Optional[int] = None) -> str:
    """
    Generate JWT token for user

    Args:
        user_id: Database id of the user
        user_role: Role of the user (farmer, consumer, admin)
        username: Display name carried for logging

    Returns:
        JWT token string
    """
    if expiry_hours is None:
        expiry_hours = current_app.config.get('TOKEN_EXPIRY_HOURS', 24)

    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user_id),
        'role': user_role,
        'username': username,
        'exp': now + timedelta(hours=expiry_hours),
        'iat': now
    }

    token = jwt.encode(payload, _secret_key(), algorithm=JWT_ALGORITHM)
    logger.info(f"Token generated for user {user_id} with role {user_role}")
    return token


def verify_token(token: str) -> Dict[str, Any]:
    """Verify and decode JWT token"""
    try:
        return jwt.decode(token, _secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise AuthError("Invalid token")


def get_token_from_request() -> str:
    """Extract token from the access cookie or the Authorization header"""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token

    auth_header = request.headers.get('Authorization')
    if not auth_header:
        raise AuthError("Unauthorized request")

    parts = auth_header.split(' ')
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        raise AuthError("Invalid authorization header format")

    return parts[1]
