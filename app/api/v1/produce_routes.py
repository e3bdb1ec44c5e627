"""
Produce Routes
Marketplace browsing plus the farmer-side registration and repricing reports
"""

import io
import logging

from flask import Blueprint, current_app, request, send_file

from app.api.middleware.auth_middleware import auth_middleware
from app.api.middleware.response_middleware import response_middleware
from app.models.enums import UserRole
from app.security.rate_limiting import WRITE_LIMIT, limiter
from app.services.produce import marketplace_service, reconciliation_service
from app.services.qr_service import qr_service
from app.utils.formatters import format_produce_response

produce_bp = Blueprint('produce', __name__)
logger = logging.getLogger(__name__)

MARKETPLACE_FILTERS = ('search', 'status', 'min_price', 'max_price', 'location', 'farmer')


# ===============================
# PUBLIC MARKETPLACE
# ===============================

@produce_bp.route('/marketplace', methods=['GET'])
def get_marketplace():
    """Filtered, sorted and paginated listings"""
    filters = {key: request.args.get(key) for key in MARKETPLACE_FILTERS}

    result = marketplace_service.list_produce(
        filters=filters,
        sort_by=request.args.get('sort_by'),
        sort_order=request.args.get('sort_order'),
        page=request.args.get('page', 1),
        page_size=request.args.get('page_size', current_app.config.get('DEFAULT_PAGE_SIZE', 12)),
        max_page_size=current_app.config.get('MAX_PAGE_SIZE', 100)
    )
    return response_middleware.create_success_response(result, "Marketplace produce retrieved")


@produce_bp.route('/stats', methods=['GET'])
def get_marketplace_stats():
    stats = marketplace_service.get_marketplace_statistics()
    return response_middleware.create_success_response(stats, "Marketplace statistics retrieved")


@produce_bp.route('/suggestions', methods=['GET'])
def get_search_suggestions():
    suggestions = marketplace_service.get_search_suggestions(request.args.get('q', ''))
    return response_middleware.create_success_response(suggestions, "Suggestions retrieved")


@produce_bp.route('/qr/parse', methods=['GET'])
def parse_qr():
    """Decode a scanned QR string into the produce reference it carries"""
    payload = qr_service.parse_payload(request.args.get('data'))
    return response_middleware.create_success_response(payload, "QR code parsed")


@produce_bp.route('/<identifier>', methods=['GET'])
def get_produce(identifier):
    produce = marketplace_service.get_produce(identifier)
    return response_middleware.create_success_response(produce, "Produce retrieved")


@produce_bp.route('/<identifier>/qr.png', methods=['GET'])
def get_produce_qr(identifier):
    produce = marketplace_service.get_produce(identifier, count_view=False)
    text = produce.get('qr_payload_text') or qr_service.build_payload(produce)[0]
    return send_file(io.BytesIO(qr_service.render_png(text)), mimetype='image/png',
                     download_name=f"produce-{produce['chain_id']}.png")


# ===============================
# CHAIN CONFIRMATION REPORTS
# ===============================

@produce_bp.route('/register', methods=['POST'])
@limiter.limit(WRITE_LIMIT)
@auth_middleware.token_required_with_roles([UserRole.FARMER])
def register_produce(current_user):
    """
    Mirror a produce item already registered on-chain
    Expects multipart form data with an 'image' file
    """
    produce = reconciliation_service.register_produce(
        current_user,
        request.form.to_dict(),
        request.files.get('image')
    )
    return response_middleware.create_success_response(
        format_produce_response(produce), "Produce registered successfully", 201
    )


@produce_bp.route('/my-produce', methods=['GET'])
@auth_middleware.token_required_with_roles([UserRole.FARMER])
def get_my_produce(current_user):
    produce = marketplace_service.get_farmer_produce(current_user.id)
    return response_middleware.create_success_response(
        {'items': produce, 'count': len(produce)}, "Farmer produce retrieved"
    )


@produce_bp.route('/<chain_id>/status', methods=['PATCH'])
@auth_middleware.require_auth
def update_status(current_user, chain_id):
    data = request.get_json(silent=True) or {}
    produce = reconciliation_service.update_status(
        chain_id,
        data.get('status'),
        buyer_address=data.get('buyer_address'),
        sale_tx_hash=data.get('sale_tx_hash')
    )
    logger.info(f"Status report for produce {chain_id} from {current_user.username}")
    return response_middleware.create_success_response(
        format_produce_response(produce), "Produce status updated"
    )


@produce_bp.route('/<chain_id>/price', methods=['PATCH'])
@auth_middleware.token_required_with_roles([UserRole.FARMER])
def update_price(current_user, chain_id):
    data = request.get_json(silent=True) or {}
    produce = reconciliation_service.update_price(chain_id, data.get('price_in_wei'), current_user)
    return response_middleware.create_success_response(
        format_produce_response(produce), "Produce price updated"
    )


@produce_bp.route('/<chain_id>/purchase-eligibility', methods=['GET'])
@auth_middleware.require_auth
def check_purchase_eligibility(current_user, chain_id):
    result = reconciliation_service.validate_purchase_eligibility(chain_id, current_user)
    return response_middleware.create_success_response(result, "Purchase allowed")


@produce_bp.route('/<chain_id>', methods=['DELETE'])
@auth_middleware.token_required_with_roles([UserRole.FARMER, UserRole.ADMIN])
def delete_produce(current_user, chain_id):
    reconciliation_service.delete_produce(chain_id, current_user)
    return response_middleware.create_success_response(None, "Produce deleted")
