"""
Configuration module
Centralized configuration for database and environment settings
"""

from .database import get_db_connection, close_db_connection, set_db_connection

__all__ = ['get_db_connection', 'close_db_connection', 'set_db_connection']
