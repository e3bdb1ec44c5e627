# core/exceptions.py
from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code = 500
    error_type = 'internal_error'

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(MarketplaceError):
    status_code = 400
    error_type = 'validation_error'


class AssetUploadError(ValidationError):
    pass


class AuthError(MarketplaceError):
    status_code = 401
    error_type = 'auth_error'


class ForbiddenError(MarketplaceError):
    status_code = 403
    error_type = 'forbidden'


class NotFoundError(MarketplaceError):
    status_code = 404
    error_type = 'not_found'


class ConflictError(MarketplaceError):
    status_code = 409
    error_type = 'conflict'


class InternalError(MarketplaceError):
    status_code = 500
    error_type = 'internal_error'
