"""
Transaction Services Module
"""

from .ledger_service import ledger_service

__all__ = [
    'ledger_service'
]
