# tests/integration/test_ledger.py
from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models.enums import ConfirmationState, TransactionKind
from app.models.transaction import TransactionRecord
from app.services.transaction import ledger_service
from app.utils.database_helpers import TRANSACTION_COLLECTION

ONE_ETHER = 10 ** 18


@pytest.fixture
def seed_transaction(db):
    """Insert a mirrored transaction directly into the store"""
    counter = {'next': 1}

    def seed(user, kind=TransactionKind.SALE, chain_id=1, amount_in_wei=ONE_ETHER, gas_fee_in_wei=None,
             created_at=None, state=ConfirmationState.CONFIRMED):
        tx_hash = f"0x{counter['next']:064x}"
        counter['next'] += 1
        record = TransactionRecord(
            blockchain_tx_hash=tx_hash,
            produce_chain_id=chain_id,
            kind=kind,
            initiating_user_id=user.id,
            amount_in_wei=str(amount_in_wei) if amount_in_wei is not None else None,
            gas_fee_in_wei=str(gas_fee_in_wei) if gas_fee_in_wei is not None else None,
            confirmation_state=state,
        )
        if created_at is not None:
            record.created_at = created_at
            record.updated_at = created_at
        doc = record.to_dict()
        db[TRANSACTION_COLLECTION].insert_one(doc)
        return doc
    return seed


def hashes(result):
    return [item['blockchain_tx_hash'] for item in result['transactions']]


# ===============================
# USER HISTORY
# ===============================

def test_user_transactions_exclude_other_users(app_ctx, consumer, farmer, seed_transaction):
    mine = seed_transaction(consumer)
    seed_transaction(farmer, kind=TransactionKind.REGISTRATION)

    result = ledger_service.get_user_transactions(consumer.id)

    assert hashes(result) == [mine['blockchain_tx_hash']]
    assert result['pagination']['total_items'] == 1


def test_user_transactions_filter_by_kind_and_amount(app_ctx, farmer, seed_transaction):
    cheap = seed_transaction(farmer, amount_in_wei=ONE_ETHER // 2)
    dear = seed_transaction(farmer, amount_in_wei=5 * ONE_ETHER)
    seed_transaction(farmer, kind=TransactionKind.PRICE_UPDATE, amount_in_wei=None)

    sales = ledger_service.get_user_transactions(farmer.id, {'kind': 'sale'}, sort_by='amount', sort_order='asc')
    assert hashes(sales) == [cheap['blockchain_tx_hash'], dear['blockchain_tx_hash']]

    above_one = ledger_service.get_user_transactions(farmer.id, {'min_amount': '1'})
    assert hashes(above_one) == [dear['blockchain_tx_hash']]


def test_user_transactions_filter_by_state_and_date(app_ctx, farmer, seed_transaction, base_time):
    seed_transaction(farmer, created_at=base_time - timedelta(days=10))
    pending = seed_transaction(farmer, created_at=base_time, state=ConfirmationState.PENDING)

    result = ledger_service.get_user_transactions(farmer.id, {
        'state': 'pending',
        'date_from': '2024-05-25',
    })
    assert hashes(result) == [pending['blockchain_tx_hash']]

    with pytest.raises(ValidationError):
        ledger_service.get_user_transactions(farmer.id, {'state': 'lost'})


def test_user_transactions_newest_first_and_paginated(app_ctx, farmer, seed_transaction, base_time):
    docs = [seed_transaction(farmer, created_at=base_time + timedelta(minutes=i)) for i in range(5)]

    first_page = ledger_service.get_user_transactions(farmer.id, page=1, page_size=2)
    last_page = ledger_service.get_user_transactions(farmer.id, page=3, page_size=2)

    assert hashes(first_page) == [docs[4]['blockchain_tx_hash'], docs[3]['blockchain_tx_hash']]
    assert hashes(last_page) == [docs[0]['blockchain_tx_hash']]
    assert first_page['pagination']['total_pages'] == 3
    assert last_page['pagination']['has_next'] is False


# ===============================
# STATISTICS
# ===============================

def test_stats_for_user_without_history(app_ctx, consumer):
    stats = ledger_service.get_user_transaction_stats(consumer.id)

    assert set(stats['by_kind']) == {kind.value for kind in TransactionKind}
    assert stats['by_kind']['sale'] == {'count': 0, 'total_amount_in_wei': '0', 'total_amount_in_eth': '0'}
    assert stats['overall']['total_transactions'] == 0
    assert stats['recent_activity'] == {'days': 30, 'count': 0}
    assert stats['monthly_activity'] == []


def test_stats_totals_are_exact(app_ctx, consumer, farmer, seed_transaction):
    now = datetime.now(timezone.utc)
    seed_transaction(consumer, amount_in_wei=2 ** 80, gas_fee_in_wei=21000, created_at=now - timedelta(days=1))
    seed_transaction(consumer, amount_in_wei=ONE_ETHER, gas_fee_in_wei=42000, created_at=now - timedelta(days=2))
    seed_transaction(consumer, kind=TransactionKind.STATUS_UPDATE, amount_in_wei=None,
                     created_at=now - timedelta(days=90))
    seed_transaction(farmer, amount_in_wei=7 * ONE_ETHER)

    stats = ledger_service.get_user_transaction_stats(consumer.id)

    assert stats['by_kind']['sale']['count'] == 2
    assert stats['by_kind']['sale']['total_amount_in_wei'] == str(2 ** 80 + ONE_ETHER)
    assert stats['by_kind']['status_update'] == {
        'count': 1, 'total_amount_in_wei': '0', 'total_amount_in_eth': '0'
    }
    assert stats['by_kind']['registration']['count'] == 0
    assert stats['overall']['total_transactions'] == 3
    assert stats['overall']['total_amount_in_wei'] == str(2 ** 80 + ONE_ETHER)
    assert stats['overall']['total_gas_fees_in_wei'] == '63000'
    assert stats['recent_activity']['count'] == 2


def test_stats_monthly_activity(app_ctx, consumer, seed_transaction):
    now = datetime.now(timezone.utc)
    older = now - timedelta(days=100)
    seed_transaction(consumer, created_at=older)
    seed_transaction(consumer, created_at=older)
    seed_transaction(consumer, created_at=now)
    seed_transaction(consumer, created_at=now - timedelta(days=500))

    monthly = ledger_service.get_user_transaction_stats(consumer.id)['monthly_activity']

    assert monthly == [
        {'year': older.year, 'month': older.month, 'count': 2},
        {'year': now.year, 'month': now.month, 'count': 1},
    ]


# ===============================
# SINGLE TRANSACTIONS
# ===============================

def test_get_transaction_by_hash(app_ctx, consumer, seed_transaction):
    doc = seed_transaction(consumer, gas_fee_in_wei=21000)

    found = ledger_service.get_transaction_by_hash(doc['blockchain_tx_hash'].upper().replace('0X', '0x'))

    assert found['id'] == str(doc['_id'])
    assert found['amount_in_eth'] == '1'
    assert found['gas_fee_in_wei'] == '21000'


def test_get_transaction_by_hash_errors(app_ctx):
    with pytest.raises(NotFoundError):
        ledger_service.get_transaction_by_hash('0xabc')
    with pytest.raises(ValidationError):
        ledger_service.get_transaction_by_hash('abc')


def test_update_confirmation_state(app_ctx, consumer, seed_transaction):
    doc = seed_transaction(consumer, state=ConfirmationState.PENDING)

    updated = ledger_service.update_confirmation_state(doc['blockchain_tx_hash'], 'failed', block_number='812')

    assert updated['confirmation_state'] == 'failed'
    assert updated['block_number'] == 812

    confirmed = ledger_service.update_confirmation_state(doc['blockchain_tx_hash'], 'confirmed')
    assert confirmed['confirmation_state'] == 'confirmed'
    assert confirmed['block_number'] == 812


def test_update_confirmation_state_errors(app_ctx, consumer, seed_transaction):
    doc = seed_transaction(consumer)

    with pytest.raises(ValidationError):
        ledger_service.update_confirmation_state(doc['blockchain_tx_hash'], 'mined')
    with pytest.raises(NotFoundError):
        ledger_service.update_confirmation_state('0xdead', 'confirmed')


def test_produce_history_is_oldest_first(app_ctx, farmer, consumer, seed_transaction, base_time):
    sale = seed_transaction(consumer, chain_id=4, created_at=base_time + timedelta(hours=1))
    registration = seed_transaction(farmer, kind=TransactionKind.REGISTRATION, chain_id=4, created_at=base_time)
    seed_transaction(farmer, chain_id=5)

    history = ledger_service.get_produce_transactions('4')

    assert [t['blockchain_tx_hash'] for t in history] == [
        registration['blockchain_tx_hash'],
        sale['blockchain_tx_hash'],
    ]
