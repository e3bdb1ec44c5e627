# services/transaction/ledger_service.py
"""
Transaction Ledger Service
Query surface over the mirrored blockchain transactions
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from app.config.database import get_db_connection
from app.core.exceptions import NotFoundError
from app.models.enums import ConfirmationState, TransactionKind
from app.utils.currency_utils import wei_to_ether
from app.utils.database_helpers import TRANSACTION_COLLECTION
from app.utils.formatters import format_transaction_response
from app.utils.pagination_utils import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Paginator
from app.utils.query_utils import TRANSACTION_SORT_FIELDS, build_sort_query, build_transaction_filter
from app.validators.produce_validator import parse_chain_id, parse_tx_hash
from app.validators.transaction_validator import TransactionValidator

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_DAYS = 30
MONTHLY_ACTIVITY_DAYS = 365


class LedgerService:

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db_connection()

    @property
    def transactions(self):
        return self.db[TRANSACTION_COLLECTION]

    def get_user_transactions(self, user_id: ObjectId, filters: Optional[Dict[str, Any]] = None,
                              sort_by: Optional[str] = None, sort_order: Optional[str] = None,
                              page: Any = 1, page_size: Any = DEFAULT_PAGE_SIZE,
                              max_page_size: int = MAX_PAGE_SIZE) -> Dict[str, Any]:
        """
        Paginated transactions initiated by a user

        Args:
            user_id: Initiating user
            filters: kind, state, date_from, date_to, min_amount, max_amount
            sort_by: created_at or amount

        Returns:
            Dict with formatted transactions and pagination metadata
        """
        query = build_transaction_filter(user_id, filters or {})
        sort = build_sort_query(sort_by, sort_order, TRANSACTION_SORT_FIELDS)
        paginator = Paginator(page, page_size, max_page_size=max_page_size)

        total = self.transactions.count_documents(query)
        cursor = paginator.apply_to_query(self.transactions.find(query).sort(sort))
        items = [format_transaction_response(doc) for doc in cursor]

        return paginator.create_response(items, total, items_key='transactions')

    def get_user_transaction_stats(self, user_id: ObjectId) -> Dict[str, Any]:
        """Counts and exact wei totals for a user's ledger entries"""
        now = datetime.now(timezone.utc)
        pipeline = [
            {'$match': {'initiating_user_id': user_id}},
            {'$facet': {
                'by_kind': [
                    {'$group': {
                        '_id': '$kind',
                        'count': {'$sum': 1},
                        'amounts': {'$push': '$amount_in_wei'},
                        'gas_fees': {'$push': '$gas_fee_in_wei'}
                    }}
                ],
                'recent': [
                    {'$match': {'created_at': {'$gte': now - timedelta(days=RECENT_ACTIVITY_DAYS)}}},
                    {'$count': 'count'}
                ],
                'monthly': [
                    {'$match': {'created_at': {'$gte': now - timedelta(days=MONTHLY_ACTIVITY_DAYS)}}},
                    {'$group': {
                        '_id': {'year': {'$year': '$created_at'}, 'month': {'$month': '$created_at'}},
                        'count': {'$sum': 1}
                    }},
                    {'$sort': {'_id.year': 1, '_id.month': 1}}
                ]
            }}
        ]

        results = list(self.transactions.aggregate(pipeline))
        facets = results[0] if results else {}

        by_kind = {kind.value: {'count': 0, 'total_amount_in_wei': '0', 'total_amount_in_eth': '0'}
                   for kind in TransactionKind}
        total_count = 0
        total_amount = 0
        total_gas = 0

        for group in facets.get('by_kind', []):
            amount = sum(int(a) for a in group.get('amounts', []) if a not in (None, ''))
            total_gas += sum(int(g) for g in group.get('gas_fees', []) if g not in (None, ''))
            by_kind[group['_id']] = {
                'count': group['count'],
                'total_amount_in_wei': str(amount),
                'total_amount_in_eth': wei_to_ether(amount),
            }
            total_count += group['count']
            total_amount += amount

        recent = facets.get('recent', [])
        monthly = [
            {'year': group['_id']['year'], 'month': group['_id']['month'], 'count': group['count']}
            for group in facets.get('monthly', [])
        ]
        monthly.sort(key=lambda m: (m['year'], m['month']))

        return {
            'by_kind': by_kind,
            'overall': {
                'total_transactions': total_count,
                'total_amount_in_wei': str(total_amount),
                'total_amount_in_eth': wei_to_ether(total_amount),
                'total_gas_fees_in_wei': str(total_gas),
                'total_gas_fees_in_eth': wei_to_ether(total_gas),
            },
            'recent_activity': {
                'days': RECENT_ACTIVITY_DAYS,
                'count': recent[0]['count'] if recent else 0,
            },
            'monthly_activity': monthly,
        }

    def get_transaction_by_hash(self, tx_hash: Any) -> Dict[str, Any]:
        tx_hash = parse_tx_hash(tx_hash)
        doc = self.transactions.find_one({'blockchain_tx_hash': tx_hash})
        if doc is None:
            raise NotFoundError("Transaction not found")
        return format_transaction_response(doc)

    def update_confirmation_state(self, tx_hash: Any, state: Any, block_number: Any = None) -> Dict[str, Any]:
        """
        Move a mirrored transaction between pending, confirmed and failed

        Args:
            tx_hash: Transaction hash
            state: New ConfirmationState value
            block_number: Block the transaction was mined in, when known

        Returns:
            Formatted transaction
        """
        tx_hash = parse_tx_hash(tx_hash)
        confirmation_state = ConfirmationState.parse(state)
        block = TransactionValidator.validate_block_number(block_number)

        update = {
            'confirmation_state': confirmation_state.value,
            'updated_at': datetime.now(timezone.utc)
        }
        if block is not None:
            update['block_number'] = block

        doc = self.transactions.find_one_and_update(
            {'blockchain_tx_hash': tx_hash},
            {'$set': update},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError("Transaction not found")

        logger.info(f"Transaction {tx_hash} marked {confirmation_state.value}")
        return format_transaction_response(doc)

    def get_produce_transactions(self, chain_id: Any) -> List[Dict[str, Any]]:
        """Ledger history of one produce item, oldest first"""
        chain_id = parse_chain_id(chain_id)
        cursor = self.transactions.find({'produce_chain_id': chain_id}).sort([('created_at', 1), ('_id', 1)])
        return [format_transaction_response(doc) for doc in cursor]


ledger_service = LedgerService()
