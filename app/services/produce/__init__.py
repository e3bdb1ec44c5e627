"""
Produce Services Module
"""

from .marketplace_service import marketplace_service
from .reconciliation_service import reconciliation_service

__all__ = [
    'marketplace_service',
    'reconciliation_service'
]
