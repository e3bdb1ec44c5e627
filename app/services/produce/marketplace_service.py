# services/produce/marketplace_service.py
"""
Marketplace Query Service
Read paths over the produce mirror: browsing, statistics and suggestions.
Nothing here touches the chain.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from app.config.database import get_db_connection
from app.core.exceptions import NotFoundError, ValidationError
from app.models.enums import ProduceStatus
from app.utils.currency_utils import mean_wei, wei_to_ether
from app.utils.database_helpers import PRODUCE_COLLECTION
from app.utils.formatters import format_produce_response
from app.utils.pagination_utils import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Paginator
from app.utils.query_utils import PRODUCE_SORT_FIELDS, build_produce_filter, build_sort_query, contains_regex

logger = logging.getLogger(__name__)

MIN_SUGGESTION_LENGTH = 2

# (type, field, limit) in response order
SUGGESTION_GROUPS = (
    ('product', 'name', 5),
    ('farm', 'origin_farm', 5),
    ('farmer', 'original_farmer_name', 3),
)


def _mean_price_in_eth(prices: List[Any]) -> str:
    prices = [int(p) for p in prices if p not in (None, '')]
    return wei_to_ether(mean_wei(sum(prices), len(prices)))


class MarketplaceService:

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db_connection()

    @property
    def produce(self):
        return self.db[PRODUCE_COLLECTION]

    def list_produce(self, filters: Optional[Dict[str, Any]] = None, sort_by: Optional[str] = None,
                     sort_order: Optional[str] = None, page: Any = 1, page_size: Any = DEFAULT_PAGE_SIZE,
                     max_page_size: int = MAX_PAGE_SIZE) -> Dict[str, Any]:
        """
        Browse the marketplace

        Args:
            filters: search, status, min_price, max_price, location, farmer
            sort_by: created_at, price or popularity
            sort_order: asc or desc
            page: 1-based page number
            page_size: Items per page, capped at max_page_size

        Returns:
            Dict with formatted items and pagination metadata
        """
        filters = filters or {}
        query = build_produce_filter(filters)
        sort = build_sort_query(sort_by, sort_order, PRODUCE_SORT_FIELDS)
        paginator = Paginator(page, page_size, max_page_size=max_page_size)

        total = self.produce.count_documents(query)
        cursor = paginator.apply_to_query(self.produce.find(query).sort(sort))
        items = [format_produce_response(doc) for doc in cursor]

        response = paginator.create_response(items, total)
        response['filters'] = {k: v for k, v in filters.items() if v not in (None, '')}
        return response

    def get_marketplace_statistics(self, top_n: int = 5, recent_n: int = 5) -> Dict[str, Any]:
        """
        Marketplace-wide aggregates in a single aggregation round trip

        Prices are pushed as raw wei strings and averaged in Python so that
        the means stay exact for values beyond 64-bit range.
        """
        pipeline = [
            {'$facet': {
                'by_status': [
                    {'$group': {
                        '_id': '$status',
                        'count': {'$sum': 1},
                        'views': {'$sum': '$view_count'},
                        'prices': {'$push': '$price_in_wei'}
                    }}
                ],
                'by_farmer': [
                    {'$group': {
                        '_id': {'farmer': '$original_farmer_name', 'status': '$status'},
                        'count': {'$sum': 1}
                    }}
                ],
                'top_names': [
                    {'$group': {
                        '_id': '$name',
                        'count': {'$sum': 1},
                        'prices': {'$push': '$price_in_wei'}
                    }},
                    {'$sort': {'count': -1, '_id': 1}},
                    {'$limit': top_n}
                ],
                'recent': [
                    {'$sort': {'created_at': -1, '_id': 1}},
                    {'$limit': recent_n}
                ]
            }}
        ]

        results = list(self.produce.aggregate(pipeline))
        facets = results[0] if results else {}

        total = available = sold = views = 0
        all_prices: List[Any] = []
        for group in facets.get('by_status', []):
            total += group['count']
            views += group.get('views') or 0
            all_prices.extend(group.get('prices', []))
            if group['_id'] == ProduceStatus.SOLD.value:
                sold += group['count']
            else:
                available += group['count']

        farmers: Dict[str, Dict[str, int]] = {}
        for group in facets.get('by_farmer', []):
            name = group['_id'].get('farmer') or ''
            entry = farmers.setdefault(name, {'listings': 0, 'sold': 0})
            entry['listings'] += group['count']
            if group['_id'].get('status') == ProduceStatus.SOLD.value:
                entry['sold'] += group['count']

        farmer_stats = sorted(
            ({'farmer': name, **counts} for name, counts in farmers.items()),
            key=lambda f: (-f['listings'], f['farmer'])
        )

        return {
            'overview': {
                'total_listings': total,
                'available_listings': available,
                'sold_listings': sold,
                'total_views': views,
                'average_price_in_eth': _mean_price_in_eth(all_prices),
            },
            'farmers': {
                'distinct_farmers': len(farmers),
                'average_listings_per_farmer': round(total / len(farmers), 2) if farmers else 0,
                'by_farmer': farmer_stats,
            },
            'top_products': [
                {
                    'name': group['_id'],
                    'count': group['count'],
                    'average_price_in_eth': _mean_price_in_eth(group.get('prices', [])),
                }
                for group in facets.get('top_names', [])
            ],
            'recent_listings': [format_produce_response(doc) for doc in facets.get('recent', [])],
        }

    def get_search_suggestions(self, query: Optional[str]) -> List[Dict[str, Any]]:
        """
        Autocomplete suggestions for the marketplace search box

        Args:
            query: Raw search text

        Returns:
            List of {type, value, count}, products first, then farms, then farmers
        """
        term = (query or '').strip()
        if len(term) < MIN_SUGGESTION_LENGTH:
            return []

        suggestions = []
        for suggestion_type, field_name, limit in SUGGESTION_GROUPS:
            pipeline = [
                {'$match': {field_name: contains_regex(term)}},
                {'$group': {'_id': f'${field_name}', 'count': {'$sum': 1}}},
                {'$sort': {'count': -1, '_id': 1}},
                {'$limit': limit}
            ]
            for group in self.produce.aggregate(pipeline):
                suggestions.append({'type': suggestion_type, 'value': group['_id'], 'count': group['count']})

        return suggestions

    @staticmethod
    def _identifier_query(identifier: Any) -> Dict[str, Any]:
        text = str(identifier or '').strip()
        if re.fullmatch(r'\d+', text):
            return {'chain_id': int(text)}
        if ObjectId.is_valid(text):
            return {'_id': ObjectId(text)}
        raise ValidationError("Invalid produce identifier")

    def get_produce(self, identifier: Any, count_view: bool = True) -> Dict[str, Any]:
        """
        Fetch one listing by chain id or document id

        Args:
            identifier: Chain id (digits) or ObjectId string
            count_view: Increment view_count as part of the read

        Returns:
            Formatted produce dictionary
        """
        query = self._identifier_query(identifier)
        if count_view:
            doc = self.produce.find_one_and_update(
                query,
                {'$inc': {'view_count': 1}},
                return_document=ReturnDocument.AFTER
            )
        else:
            doc = self.produce.find_one(query)

        if doc is None:
            raise NotFoundError("Produce item not found")
        return format_produce_response(doc)

    def get_farmer_produce(self, owner_id: ObjectId) -> List[Dict[str, Any]]:
        """All listings registered by one farmer, newest first"""
        cursor = self.produce.find({'farmer_owner_id': owner_id}).sort([('created_at', -1), ('_id', 1)])
        return [format_produce_response(doc) for doc in cursor]


marketplace_service = MarketplaceService()
