"""
MongoDB connection handling
One shared client per process; tests install their own database handle
"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = 'farm_marketplace'

_state = {'db': None, 'client': None}


def _open_client(uri: str) -> MongoClient:
    client = MongoClient(
        uri,
        maxPoolSize=int(os.getenv('MONGODB_MAX_POOL_SIZE', 50)),
        minPoolSize=int(os.getenv('MONGODB_MIN_POOL_SIZE', 5)),
        serverSelectionTimeoutMS=int(os.getenv('MONGODB_TIMEOUT_MS', 30000)),
        tz_aware=True
    )
    # Verify the server is reachable before handing out the handle
    client.admin.command('ping')
    return client


def get_db_connection(connection_string: Optional[str] = None, db_name: Optional[str] = None) -> Database:
    """
    Shared database handle, connecting on first use

    Args:
        connection_string: MongoDB URI, defaults to MONGODB_URI
        db_name: Database name, defaults to DATABASE_NAME

    Raises:
        ValueError: No URI configured
        ConnectionFailure: The server could not be reached
    """
    if _state['db'] is not None:
        return _state['db']

    uri = connection_string or os.getenv('MONGODB_URI')
    if not uri:
        raise ValueError("MONGODB_URI environment variable not set")

    try:
        client = _open_client(uri)
    except ConnectionFailure as e:
        logger.error(f"Database connection failed: {e}")
        raise

    name = db_name or os.getenv('DATABASE_NAME', DEFAULT_DATABASE_NAME)
    _state['client'] = client
    _state['db'] = client[name]
    logger.info(f"Connected to database: {name}")
    return _state['db']


def set_db_connection(database: Optional[Database], client: Optional[MongoClient] = None):
    """Install an already-built database handle, or clear it with None"""
    _state['db'] = database
    _state['client'] = client


def close_db_connection():
    """Close the shared client on shutdown"""
    client = _state['client']
    _state['db'] = None
    _state['client'] = None
    if client is not None:
        client.close()
        logger.info("Database connection closed")
