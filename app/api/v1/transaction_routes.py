"""
Transaction Routes
Confirmation reports and the mirrored ledger
"""

import logging

from flask import Blueprint, current_app, request

from app.api.middleware.auth_middleware import auth_middleware
from app.api.middleware.response_middleware import response_middleware
from app.security.rate_limiting import WRITE_LIMIT, limiter
from app.services.produce import reconciliation_service
from app.services.transaction import ledger_service
from app.utils.formatters import format_transaction_response

transaction_bp = Blueprint('transactions', __name__)
logger = logging.getLogger(__name__)

LEDGER_FILTERS = ('kind', 'state', 'date_from', 'date_to', 'min_amount', 'max_amount')


@transaction_bp.route('/record', methods=['POST'])
@limiter.limit(WRITE_LIMIT)
@auth_middleware.require_auth
def record_transaction(current_user):
    """
    Record a confirmed chain transaction
    Replaying a hash returns the stored record with 200 instead of 201
    """
    transaction, created = reconciliation_service.record_transaction(
        current_user, request.get_json(silent=True)
    )
    if created:
        return response_middleware.create_success_response(
            format_transaction_response(transaction), "Transaction recorded successfully", 201
        )
    return response_middleware.create_success_response(
        format_transaction_response(transaction), "Transaction already recorded"
    )


@transaction_bp.route('/my-transactions', methods=['GET'])
@auth_middleware.require_auth
def get_my_transactions(current_user):
    filters = {key: request.args.get(key) for key in LEDGER_FILTERS}
    result = ledger_service.get_user_transactions(
        current_user.id,
        filters=filters,
        sort_by=request.args.get('sort_by'),
        sort_order=request.args.get('sort_order'),
        page=request.args.get('page', 1),
        page_size=request.args.get('page_size', current_app.config.get('DEFAULT_PAGE_SIZE', 12)),
        max_page_size=current_app.config.get('MAX_PAGE_SIZE', 100)
    )
    return response_middleware.create_success_response(result, "Transactions retrieved")


@transaction_bp.route('/my-stats', methods=['GET'])
@auth_middleware.require_auth
def get_my_stats(current_user):
    stats = ledger_service.get_user_transaction_stats(current_user.id)
    return response_middleware.create_success_response(stats, "Transaction statistics retrieved")


@transaction_bp.route('/hash/<tx_hash>', methods=['GET'])
@auth_middleware.require_auth
def get_transaction(current_user, tx_hash):
    transaction = ledger_service.get_transaction_by_hash(tx_hash)
    return response_middleware.create_success_response(transaction, "Transaction retrieved")


@transaction_bp.route('/hash/<tx_hash>/status', methods=['PATCH'])
@auth_middleware.require_auth
def update_transaction_status(current_user, tx_hash):
    data = request.get_json(silent=True) or {}
    transaction = ledger_service.update_confirmation_state(
        tx_hash, data.get('state'), data.get('block_number')
    )
    logger.info(f"Confirmation state of {tx_hash} reported by {current_user.username}")
    return response_middleware.create_success_response(transaction, "Transaction status updated")


@transaction_bp.route('/product/<chain_id>', methods=['GET'])
@auth_middleware.require_auth
def get_product_transactions(current_user, chain_id):
    transactions = ledger_service.get_produce_transactions(chain_id)
    return response_middleware.create_success_response(
        {'transactions': transactions, 'count': len(transactions)}, "Product transactions retrieved"
    )
