# tests/integration/test_marketplace.py
from datetime import timedelta

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models.enums import ProduceStatus
from app.services.produce import marketplace_service
from app.utils.currency_utils import wei_to_ether

ONE_ETHER = 10 ** 18


def chain_ids(result):
    return [item['chain_id'] for item in result['items']]


# ===============================
# LISTING
# ===============================

def test_price_range_is_precision_safe(app_ctx, seed_produce):
    seed_produce(1, price_in_wei=ONE_ETHER)

    assert chain_ids(marketplace_service.list_produce({'min_price': '1', 'max_price': '1'})) == [1]
    assert chain_ids(marketplace_service.list_produce({'max_price': '0.5'})) == []
    assert chain_ids(marketplace_service.list_produce({'min_price': '0.999999999999999999999'})) == [1]
    assert chain_ids(marketplace_service.list_produce({'min_price': '1.000000000000000001'})) == []


def test_pagination(app_ctx, seed_produce):
    for chain_id in range(1, 13):
        seed_produce(chain_id)

    result = marketplace_service.list_produce(page=2, page_size=5)

    assert len(result['items']) == 5
    assert result['pagination'] == {
        'page': 2,
        'page_size': 5,
        'total_items': 12,
        'total_pages': 3,
        'has_next': True,
        'has_prev': True,
    }


def test_page_size_is_bounded(app_ctx, seed_produce):
    seed_produce(1)
    assert marketplace_service.list_produce(page_size=5000)['pagination']['page_size'] == 100
    with pytest.raises(ValidationError):
        marketplace_service.list_produce(page=0)


def test_search_matches_name_farm_or_farmer(app_ctx, farmer, other_farmer, seed_produce):
    seed_produce(1, owner=farmer, name='Cherry Tomato', origin_farm='Hill Side')
    seed_produce(2, owner=other_farmer, name='Kale', origin_farm='Tomato Valley')
    seed_produce(3, owner=other_farmer, name='Leek', origin_farm='River Bend')

    assert sorted(chain_ids(marketplace_service.list_produce({'search': 'TOMATO'}))) == [1, 2]
    assert chain_ids(marketplace_service.list_produce({'search': 'tom', 'location': 'hill'})) == [1]
    assert chain_ids(marketplace_service.list_produce({'farmer': 'jerry', 'location': 'river'})) == [3]


def test_search_treats_input_literally(app_ctx, seed_produce):
    seed_produce(1, name='Tomato')
    assert chain_ids(marketplace_service.list_produce({'search': 'Tom.*('})) == []


def test_status_filter(app_ctx, seed_produce):
    seed_produce(1)
    seed_produce(2, status=ProduceStatus.SOLD)
    seed_produce(3, status=ProduceStatus.READY_FOR_SALE)

    assert sorted(chain_ids(marketplace_service.list_produce({'status': 'available'}))) == [1, 3]
    assert chain_ids(marketplace_service.list_produce({'status': 'sold'})) == [2]
    assert len(marketplace_service.list_produce({'status': 'everything'})['items']) == 3


def test_sort_by_price_beyond_64_bits(app_ctx, seed_produce):
    seed_produce(1, price_in_wei=20 * 10 ** 21)
    seed_produce(2, price_in_wei=3 * ONE_ETHER)
    seed_produce(3, price_in_wei=2 ** 70)

    result = marketplace_service.list_produce(sort_by='price', sort_order='asc')

    assert chain_ids(result) == [2, 3, 1]
    assert result['items'][0]['price_in_eth'] == '3'


def test_equal_sort_keys_keep_insertion_order(app_ctx, seed_produce, base_time):
    for chain_id in (5, 3, 9):
        seed_produce(chain_id, created_at=base_time)
    seed_produce(1, created_at=base_time + timedelta(minutes=1))

    assert chain_ids(marketplace_service.list_produce()) == [1, 5, 3, 9]
    assert chain_ids(marketplace_service.list_produce(sort_order='asc')) == [5, 3, 9, 1]


def test_sort_by_popularity(app_ctx, seed_produce):
    seed_produce(1, view_count=3)
    seed_produce(2, view_count=10)
    seed_produce(3, view_count=0)

    assert chain_ids(marketplace_service.list_produce(sort_by='popularity')) == [2, 1, 3]


def test_invalid_sort_key(app_ctx):
    with pytest.raises(ValidationError):
        marketplace_service.list_produce(sort_by='name')


# ===============================
# STATISTICS
# ===============================

def test_statistics_on_empty_store(app_ctx):
    stats = marketplace_service.get_marketplace_statistics()

    assert stats['overview'] == {
        'total_listings': 0,
        'available_listings': 0,
        'sold_listings': 0,
        'total_views': 0,
        'average_price_in_eth': '0',
    }
    assert stats['farmers'] == {'distinct_farmers': 0, 'average_listings_per_farmer': 0, 'by_farmer': []}
    assert stats['top_products'] == []
    assert stats['recent_listings'] == []


def test_statistics(app_ctx, farmer, other_farmer, seed_produce, base_time):
    seed_produce(1, owner=farmer, name='Tomato', price_in_wei=ONE_ETHER, view_count=4, created_at=base_time)
    seed_produce(2, owner=farmer, name='Tomato', price_in_wei=2 * ONE_ETHER, status=ProduceStatus.SOLD,
                 created_at=base_time + timedelta(minutes=1))
    seed_produce(3, owner=other_farmer, name='Kale', price_in_wei=3 * ONE_ETHER, view_count=1,
                 created_at=base_time + timedelta(minutes=2))

    stats = marketplace_service.get_marketplace_statistics(top_n=1, recent_n=2)

    assert stats['overview'] == {
        'total_listings': 3,
        'available_listings': 2,
        'sold_listings': 1,
        'total_views': 5,
        'average_price_in_eth': '2',
    }
    assert stats['farmers']['distinct_farmers'] == 2
    assert stats['farmers']['average_listings_per_farmer'] == 1.5
    assert stats['farmers']['by_farmer'][0] == {'farmer': 'tom', 'listings': 2, 'sold': 1}
    assert stats['top_products'] == [{'name': 'Tomato', 'count': 2, 'average_price_in_eth': '1.5'}]
    assert [item['chain_id'] for item in stats['recent_listings']] == [3, 2]


def test_statistics_mean_price_is_exact(app_ctx, seed_produce):
    seed_produce(1, price_in_wei=2 ** 100)
    seed_produce(2, price_in_wei=2 ** 100 + 2)

    stats = marketplace_service.get_marketplace_statistics()

    assert stats['overview']['average_price_in_eth'] == wei_to_ether(2 ** 100 + 1)


# ===============================
# SUGGESTIONS
# ===============================

def test_short_queries_return_nothing(app_ctx, seed_produce):
    seed_produce(1, name='Tomato')
    assert marketplace_service.get_search_suggestions('T') == []
    assert marketplace_service.get_search_suggestions('  T  ') == []
    assert marketplace_service.get_search_suggestions(None) == []


def test_suggestions_are_grouped_and_ranked(app_ctx, farmer, seed_produce):
    seed_produce(1, owner=farmer, name='Tomato', origin_farm='Tomlin Farm')
    seed_produce(2, owner=farmer, name='Tomato', origin_farm='Acres')
    seed_produce(3, owner=farmer, name='Tomatillo', origin_farm='Acres')

    suggestions = marketplace_service.get_search_suggestions('Tom')

    assert suggestions == [
        {'type': 'product', 'value': 'Tomato', 'count': 2},
        {'type': 'product', 'value': 'Tomatillo', 'count': 1},
        {'type': 'farm', 'value': 'Tomlin Farm', 'count': 1},
        {'type': 'farmer', 'value': 'tom', 'count': 3},
    ]


def test_suggestion_ties_are_alphabetical_and_limited(app_ctx, seed_produce):
    for chain_id, name in enumerate(['Pear F', 'Pear B', 'Pear D', 'Pear A', 'Pear E', 'Pear C'], start=1):
        seed_produce(chain_id, name=name, origin_farm='Orchard')

    products = [s['value'] for s in marketplace_service.get_search_suggestions('pear') if s['type'] == 'product']
    assert products == ['Pear A', 'Pear B', 'Pear C', 'Pear D', 'Pear E']


# ===============================
# SINGLE LISTINGS
# ===============================

def test_get_produce_counts_views(app_ctx, seed_produce):
    doc = seed_produce(8)

    assert marketplace_service.get_produce(8)['view_count'] == 1
    assert marketplace_service.get_produce('8')['view_count'] == 2
    assert marketplace_service.get_produce(str(doc['_id']), count_view=False)['view_count'] == 2


def test_get_produce_errors(app_ctx):
    with pytest.raises(NotFoundError):
        marketplace_service.get_produce(404)
    with pytest.raises(ValidationError):
        marketplace_service.get_produce('tomato')


def test_farmer_produce_newest_first(app_ctx, farmer, other_farmer, seed_produce, base_time):
    seed_produce(1, owner=farmer, created_at=base_time)
    seed_produce(2, owner=farmer, created_at=base_time + timedelta(days=1))
    seed_produce(3, owner=other_farmer)

    assert [p['chain_id'] for p in marketplace_service.get_farmer_produce(farmer.id)] == [2, 1]
