#services/wallet_service.py
"""
Wallet Linkage Service
Tracks which browser wallet each account last connected
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.config.database import get_db_connection
from app.core.exceptions import ConflictError, NotFoundError
from app.utils.currency_utils import normalize_wei
from app.utils.database_helpers import WALLET_COLLECTION
from app.utils.formatters import format_wallet_response
from app.validators.wallet_validator import WalletValidator

logger = logging.getLogger(__name__)


class WalletService:

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db_connection()

    @property
    def wallets(self):
        return self.db[WALLET_COLLECTION]

    def connect_wallet(self, user_id: ObjectId, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Link a wallet to the user, or refresh the existing link

        Args:
            user_id: Account linking the wallet
            data: wallet_address, network_id, network_name, optional balance

        Returns:
            Formatted wallet

        Raises:
            ConflictError: The address is already linked to another account
        """
        cleaned = WalletValidator.validate_connection(data)
        address = cleaned['wallet_address']

        if self.wallets.find_one({'wallet_address': address, 'user_id': {'$ne': user_id}}, {'_id': 1}):
            raise ConflictError("Wallet address is already connected to another account")

        now = datetime.now(timezone.utc)
        fields = {
            'wallet_address': address,
            'network_id': cleaned['network_id'],
            'network_name': cleaned['network_name'],
            'is_connected': True,
            'last_connected': now,
            'updated_at': now
        }
        if cleaned['balance'] is not None:
            fields['balance'] = cleaned['balance']

        on_insert = {'created_at': now}
        if cleaned['balance'] is None:
            on_insert['balance'] = '0'

        try:
            wallet = self.wallets.find_one_and_update(
                {'user_id': user_id},
                {'$set': fields, '$inc': {'connection_count': 1}, '$setOnInsert': on_insert},
                upsert=True,
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError("Wallet address is already connected to another account")

        logger.info(f"Wallet {address} connected for user {user_id}")
        return format_wallet_response(wallet)

    def disconnect_wallet(self, user_id: ObjectId) -> Dict[str, Any]:
        wallet = self.wallets.find_one_and_update(
            {'user_id': user_id},
            {'$set': {'is_connected': False, 'updated_at': datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER
        )
        if wallet is None:
            raise NotFoundError("No wallet linked to this account")

        logger.info(f"Wallet disconnected for user {user_id}")
        return format_wallet_response(wallet)

    def get_wallet_info(self, user_id: ObjectId) -> Dict[str, Any]:
        wallet = self.wallets.find_one({'user_id': user_id})
        if wallet is None:
            raise NotFoundError("No wallet linked to this account")
        return format_wallet_response(wallet)

    def update_balance(self, user_id: ObjectId, balance: Any) -> Dict[str, Any]:
        """Store the latest balance the browser read from the chain"""
        balance = normalize_wei(balance, 'balance')
        wallet = self.wallets.find_one_and_update(
            {'user_id': user_id},
            {'$set': {'balance': balance, 'updated_at': datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER
        )
        if wallet is None:
            raise NotFoundError("No wallet linked to this account")
        return format_wallet_response(wallet)


wallet_service = WalletService()
