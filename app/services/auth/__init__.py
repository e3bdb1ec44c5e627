"""
Auth Services Module
"""

from .auth_service import auth_service

__all__ = [
    'auth_service'
]
