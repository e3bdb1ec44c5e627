"""
Database Helper Utilities
Index management and health checks
Does not manage connections - only provides utilities for working with databases
"""

import logging
from typing import Dict

from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

PRODUCE_COLLECTION = 'produce_items'
TRANSACTION_COLLECTION = 'transactions'
USER_COLLECTION = 'users'
WALLET_COLLECTION = 'wallets'


def init_database_indexes(db=None):
    """
    Initialize database indexes
    Unique indexes are what make registration and ledger inserts idempotent,
    so this must run before the app serves writes

    Raises:
        Exception: If index creation fails
    """
    from app.config.database import get_db_connection

    db = db if db is not None else get_db_connection()

    try:
        logger.info(f"Creating indexes for '{PRODUCE_COLLECTION}' collection...")
        produce = db[PRODUCE_COLLECTION]
        produce.create_index("chain_id", unique=True)
        produce.create_index("name")
        produce.create_index("origin_farm")
        produce.create_index("original_farmer_name")
        produce.create_index([("is_available", ASCENDING), ("status", ASCENDING)])
        produce.create_index([("farmer_owner_id", ASCENDING), ("created_at", DESCENDING)])
        produce.create_index("price_sort_key")

        logger.info(f"Creating indexes for '{TRANSACTION_COLLECTION}' collection...")
        transactions = db[TRANSACTION_COLLECTION]
        transactions.create_index("blockchain_tx_hash", unique=True)
        transactions.create_index([("initiating_user_id", ASCENDING), ("created_at", DESCENDING)])
        transactions.create_index([("kind", ASCENDING), ("confirmation_state", ASCENDING)])
        transactions.create_index([("produce_chain_id", ASCENDING), ("kind", ASCENDING)])
        transactions.create_index("buyer_address")
        transactions.create_index("seller_address")

        logger.info(f"Creating indexes for '{USER_COLLECTION}' collection...")
        db[USER_COLLECTION].create_index("username", unique=True)
        db[USER_COLLECTION].create_index("email", unique=True)
        db[USER_COLLECTION].create_index("role")

        logger.info(f"Creating indexes for '{WALLET_COLLECTION}' collection...")
        db[WALLET_COLLECTION].create_index("user_id", unique=True)
        db[WALLET_COLLECTION].create_index("wallet_address", unique=True)
        db[WALLET_COLLECTION].create_index("is_connected")

        logger.info("Database indexes initialized successfully")

    except Exception as e:
        logger.error(f"Error initializing database indexes: {e}")
        raise


def check_database_health() -> Dict[str, str]:
    """
    Check database connection health with ping command

    Returns:
        Dict with status and optional error message
    """
    from app.config.database import get_db_connection

    try:
        db = get_db_connection()
        db.command('ping')
        return {'status': 'healthy', 'message': 'Database connected'}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {'status': 'unhealthy', 'error': str(e)}
