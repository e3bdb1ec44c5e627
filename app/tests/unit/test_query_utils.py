# tests/unit/test_query_utils.py
from datetime import timezone

import pytest
from bson import ObjectId

from app.core.exceptions import ValidationError
from app.utils.currency_utils import wei_sort_key
from app.utils.pagination_utils import MAX_SKIP, Paginator, create_pagination_metadata, validate_pagination_params
from app.utils.query_utils import (
    PRODUCE_SORT_FIELDS, TRANSACTION_SORT_FIELDS, build_produce_filter, build_sort_query,
    build_transaction_filter, parse_iso_date
)


def test_search_is_escaped_and_spans_three_fields():
    query = build_produce_filter({'search': ' a.b '})
    assert query['$or'] == [
        {'name': {'$regex': r'a\.b', '$options': 'i'}},
        {'origin_farm': {'$regex': r'a\.b', '$options': 'i'}},
        {'original_farmer_name': {'$regex': r'a\.b', '$options': 'i'}},
    ]


def test_status_filter():
    assert build_produce_filter({'status': 'available'}) == {'is_available': True, 'status': {'$ne': 'Sold'}}
    assert build_produce_filter({'status': 'sold'}) == {'status': 'Sold'}
    assert build_produce_filter({'status': 'all'}) == {}


def test_price_filter_uses_padded_wei_keys():
    query = build_produce_filter({'min_price': '1', 'max_price': '1'})
    assert query['price_sort_key'] == {'$gte': wei_sort_key(10 ** 18), '$lte': wei_sort_key(10 ** 18)}


def test_malformed_price_filter_is_rejected():
    with pytest.raises(ValidationError):
        build_produce_filter({'min_price': 'cheap'})


def test_location_and_farmer_filters():
    query = build_produce_filter({'location': 'Acres', 'farmer': 'tom'})
    assert query['origin_farm'] == {'$regex': 'Acres', '$options': 'i'}
    assert query['original_farmer_name'] == {'$regex': 'tom', '$options': 'i'}


def test_sort_query_has_stable_tie_break():
    assert build_sort_query(None, None, PRODUCE_SORT_FIELDS) == [('created_at', -1), ('_id', 1)]
    assert build_sort_query('price', 'asc', PRODUCE_SORT_FIELDS) == [('price_sort_key', 1), ('_id', 1)]
    assert build_sort_query('popularity', 'DESC', PRODUCE_SORT_FIELDS) == [('view_count', -1), ('_id', 1)]
    assert build_sort_query('amount', 'asc', TRANSACTION_SORT_FIELDS) == [('amount_sort_key', 1), ('_id', 1)]


def test_sort_query_rejects_unknown_keys():
    with pytest.raises(ValidationError):
        build_sort_query('name', 'asc', PRODUCE_SORT_FIELDS)
    with pytest.raises(ValidationError):
        build_sort_query('price', 'sideways', PRODUCE_SORT_FIELDS)


def test_transaction_filter():
    user_id = ObjectId()
    query = build_transaction_filter(user_id, {
        'kind': 'sale',
        'state': 'all',
        'date_from': '2024-01-01',
        'min_amount': '0.5',
    })
    assert query['initiating_user_id'] == user_id
    assert query['kind'] == 'sale'
    assert 'confirmation_state' not in query
    assert query['created_at']['$gte'].tzinfo == timezone.utc
    assert query['amount_sort_key'] == {'$gte': wei_sort_key(5 * 10 ** 17)}


def test_transaction_filter_rejects_bad_values():
    with pytest.raises(ValidationError):
        build_transaction_filter(ObjectId(), {'kind': 'refund'})
    with pytest.raises(ValidationError):
        build_transaction_filter(ObjectId(), {'date_to': 'yesterday'})


def test_parse_iso_date_handles_zulu_suffix():
    parsed = parse_iso_date('2024-03-01T10:00:00Z', 'date_from')
    assert parsed.hour == 10
    assert parsed.utcoffset().total_seconds() == 0


def test_pagination_params_are_validated_and_bounded():
    assert validate_pagination_params('2', '5') == {'page': 2, 'page_size': 5, 'skip': 5}
    assert validate_pagination_params(1, 1000)['page_size'] == 100
    assert validate_pagination_params(None, None)['page_size'] == 12
    for page, page_size in ((0, 5), (1, 0), ('x', 5), (-3, 5)):
        with pytest.raises(ValidationError):
            validate_pagination_params(page, page_size)


def test_page_beyond_int64_skip_is_rejected():
    assert validate_pagination_params(MAX_SKIP // 100 + 1, 100)['skip'] == MAX_SKIP // 100 * 100
    with pytest.raises(ValidationError):
        validate_pagination_params('99999999999999999999999', '12')
    with pytest.raises(ValidationError):
        validate_pagination_params(MAX_SKIP // 100 + 2, 100)


def test_pagination_metadata():
    assert create_pagination_metadata(12, 2, 5) == {
        'page': 2,
        'page_size': 5,
        'total_items': 12,
        'total_pages': 3,
        'has_next': True,
        'has_prev': True,
    }
    empty = create_pagination_metadata(0, 1, 12)
    assert empty['total_pages'] == 0
    assert not empty['has_next']
    assert not empty['has_prev']


def test_paginator_response_shape():
    paginator = Paginator(3, 5)
    response = paginator.create_response(['a', 'b'], 12, items_key='transactions')
    assert response['transactions'] == ['a', 'b']
    assert response['pagination']['has_next'] is False
