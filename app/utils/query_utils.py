"""
Database Query Utilities
Pure functions for building MongoDB filters and sorts
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import ValidationError
from app.models.enums import ConfirmationState, ProduceStatus, TransactionKind
from app.utils.currency_utils import ether_range_to_wei_keys

PRODUCE_SORT_FIELDS = {
    'created_at': 'created_at',
    'price': 'price_sort_key',
    'popularity': 'view_count',
}

TRANSACTION_SORT_FIELDS = {
    'created_at': 'created_at',
    'amount': 'amount_sort_key',
}


def contains_regex(term: str) -> Dict[str, str]:
    """Case-insensitive literal substring match"""
    return {'$regex': re.escape(term), '$options': 'i'}


def build_produce_filter(filters: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build MongoDB filter query for marketplace listings

    Args:
        filters: search, status, min_price, max_price, location, farmer

    Returns:
        MongoDB query dictionary
    """
    query: Dict[str, Any] = {}

    search = (filters.get('search') or '').strip()
    if search:
        query['$or'] = [
            {'name': contains_regex(search)},
            {'origin_farm': contains_regex(search)},
            {'original_farmer_name': contains_regex(search)}
        ]

    status = filters.get('status')
    if status == 'available':
        query['is_available'] = True
        query['status'] = {'$ne': ProduceStatus.SOLD.value}
    elif status == 'sold':
        query['status'] = ProduceStatus.SOLD.value

    price_range = ether_range_to_wei_keys(filters.get('min_price'), filters.get('max_price'))
    if price_range:
        query['price_sort_key'] = price_range

    location = (filters.get('location') or '').strip()
    if location:
        query['origin_farm'] = contains_regex(location)

    farmer = (filters.get('farmer') or '').strip()
    if farmer:
        query['original_farmer_name'] = contains_regex(farmer)

    return query


def build_sort_query(sort_by: Optional[str], order: Optional[str], fields: Dict[str, str],
                     default: str = 'created_at') -> List[Tuple[str, int]]:
    """
    Build MongoDB sort list with a stable insertion-order tie-break

    Args:
        sort_by: Public sort key
        order: Sort order ('asc' or 'desc')
        fields: Mapping of public sort keys to document fields

    Returns:
        MongoDB sort list
    """
    sort_by = sort_by or default
    if sort_by not in fields:
        raise ValidationError(f"Invalid sort_by. Must be one of: {', '.join(fields)}")

    order = (order or 'desc').lower()
    if order not in ('asc', 'desc'):
        raise ValidationError("sort_order must be 'asc' or 'desc'")

    direction = 1 if order == 'asc' else -1
    return [(fields[sort_by], direction), ('_id', 1)]


def parse_iso_date(value: str, field_name: str) -> datetime:
    """Parse an ISO 8601 date, treating naive values as UTC"""
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (ValueError, AttributeError):
        raise ValidationError(f"{field_name} must be an ISO 8601 date")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_transaction_filter(user_id, filters: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build MongoDB filter for a user's mirrored transactions

    Args:
        user_id: ObjectId of the initiating user
        filters: kind, state, date_from, date_to, min_amount, max_amount

    Returns:
        MongoDB query dictionary
    """
    query: Dict[str, Any] = {'initiating_user_id': user_id}

    kind = filters.get('kind')
    if kind and kind != 'all':
        query['kind'] = TransactionKind.parse(kind).value

    state = filters.get('state')
    if state and state != 'all':
        query['confirmation_state'] = ConfirmationState.parse(state).value

    date_filter = {}
    if filters.get('date_from'):
        date_filter['$gte'] = parse_iso_date(filters['date_from'], 'date_from')
    if filters.get('date_to'):
        date_filter['$lte'] = parse_iso_date(filters['date_to'], 'date_to')
    if date_filter:
        query['created_at'] = date_filter

    amount_range = ether_range_to_wei_keys(filters.get('min_amount'), filters.get('max_amount'))
    if amount_range:
        query['amount_sort_key'] = amount_range

    return query
