"""
Wallet Routes
"""

from flask import Blueprint, request

from app.api.middleware.auth_middleware import auth_middleware
from app.api.middleware.response_middleware import response_middleware
from app.services.wallet_service import wallet_service

wallet_bp = Blueprint('wallet', __name__)


@wallet_bp.route('/connect', methods=['POST'])
@auth_middleware.require_auth
def connect_wallet(current_user):
    wallet = wallet_service.connect_wallet(current_user.id, request.get_json(silent=True))
    return response_middleware.create_success_response(wallet, "Wallet connected successfully")


@wallet_bp.route('/disconnect', methods=['POST'])
@auth_middleware.require_auth
def disconnect_wallet(current_user):
    wallet = wallet_service.disconnect_wallet(current_user.id)
    return response_middleware.create_success_response(wallet, "Wallet disconnected")


@wallet_bp.route('/info', methods=['GET'])
@auth_middleware.require_auth
def get_wallet_info(current_user):
    wallet = wallet_service.get_wallet_info(current_user.id)
    return response_middleware.create_success_response(wallet, "Wallet info retrieved")


@wallet_bp.route('/balance', methods=['PATCH'])
@auth_middleware.require_auth
def update_balance(current_user):
    data = request.get_json(silent=True) or {}
    wallet = wallet_service.update_balance(current_user.id, data.get('balance'))
    return response_middleware.create_success_response(wallet, "Wallet balance updated")
