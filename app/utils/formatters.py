"""
Response Formatting Utilities
Pure functions for formatting documents for API responses
"""

from datetime import datetime
from typing import Any, Dict, Optional

from app.utils.currency_utils import wei_to_ether


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """ISO format for datetimes, None passthrough"""
    return value.isoformat() if value else None


def _str_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def format_produce_response(produce: Dict[str, Any]) -> Dict[str, Any]:
    """
    Format produce document for API response

    Args:
        produce: Raw produce document from database

    Returns:
        Formatted produce dictionary
    """
    if not produce:
        return {}

    return {
        "id": _str_id(produce.get("_id")),
        "chain_id": produce.get("chain_id"),
        "name": produce.get("name", ""),
        "origin_farm": produce.get("origin_farm", ""),
        "original_farmer_name": produce.get("original_farmer_name", ""),
        "current_seller_name": produce.get("current_seller_name", ""),
        "farmer_owner_id": _str_id(produce.get("farmer_owner_id")),
        "price_in_wei": produce.get("price_in_wei", "0"),
        "price_in_eth": wei_to_ether(produce.get("price_in_wei")),
        "status": produce.get("status"),
        "is_available": produce.get("is_available", False),
        "qr_payload_text": produce.get("qr_payload_text", ""),
        "qr_image_url": produce.get("qr_image_url"),
        "produce_image_url": produce.get("produce_image_url", ""),
        "registration_tx_hash": produce.get("registration_tx_hash", ""),
        "sale_tx_hash": produce.get("sale_tx_hash"),
        "last_buyer_address": produce.get("last_buyer_address"),
        "sold_at": format_datetime(produce.get("sold_at")),
        "price_updated_at": format_datetime(produce.get("price_updated_at")),
        "view_count": produce.get("view_count", 0),
        "created_at": format_datetime(produce.get("created_at")),
        "updated_at": format_datetime(produce.get("updated_at")),
    }


def format_transaction_response(transaction: Dict[str, Any]) -> Dict[str, Any]:
    """
    Format mirrored transaction document for API response

    Args:
        transaction: Raw transaction document from database

    Returns:
        Formatted transaction dictionary
    """
    if not transaction:
        return {}

    amount = transaction.get("amount_in_wei")
    gas_fee = transaction.get("gas_fee_in_wei")

    return {
        "id": _str_id(transaction.get("_id")),
        "blockchain_tx_hash": transaction.get("blockchain_tx_hash"),
        "produce_chain_id": transaction.get("produce_chain_id"),
        "kind": transaction.get("kind"),
        "initiating_user_id": _str_id(transaction.get("initiating_user_id")),
        "buyer_address": transaction.get("buyer_address"),
        "seller_address": transaction.get("seller_address"),
        "amount_in_wei": amount,
        "amount_in_eth": wei_to_ether(amount) if amount is not None else None,
        "gas_fee_in_wei": gas_fee,
        "gas_fee_in_eth": wei_to_ether(gas_fee) if gas_fee is not None else None,
        "product_name": transaction.get("product_name"),
        "product_status": transaction.get("product_status"),
        "confirmation_state": transaction.get("confirmation_state"),
        "block_number": transaction.get("block_number"),
        "network_id": transaction.get("network_id"),
        "created_at": format_datetime(transaction.get("created_at")),
        "updated_at": format_datetime(transaction.get("updated_at")),
    }


def format_user_response(user: Dict[str, Any]) -> Dict[str, Any]:
    """Format user document, never exposing the password hash"""
    if not user:
        return {}

    return {
        "id": _str_id(user.get("_id")),
        "username": user.get("username"),
        "email": user.get("email"),
        "full_name": user.get("full_name"),
        "role": user.get("role"),
        "created_at": format_datetime(user.get("created_at")),
        "last_login": format_datetime(user.get("last_login")),
    }


def format_wallet_response(wallet: Dict[str, Any]) -> Dict[str, Any]:
    """Format wallet document for API response"""
    if not wallet:
        return {}

    return {
        "id": _str_id(wallet.get("_id")),
        "user_id": _str_id(wallet.get("user_id")),
        "wallet_address": wallet.get("wallet_address"),
        "network_id": wallet.get("network_id"),
        "network_name": wallet.get("network_name"),
        "balance": wallet.get("balance", "0"),
        "balance_in_eth": wei_to_ether(wallet.get("balance")),
        "is_connected": wallet.get("is_connected", False),
        "last_connected": format_datetime(wallet.get("last_connected")),
        "connection_count": wallet.get("connection_count", 0),
    }
