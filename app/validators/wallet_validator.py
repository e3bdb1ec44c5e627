"""
Wallet Validation
"""

from typing import Any, Dict

from web3 import Web3

from app.core.exceptions import ValidationError
from app.utils.currency_utils import normalize_wei


def to_checksum_wallet(address: Any) -> str:
    """Validate an Ethereum address and return its checksummed form"""
    address = str(address or '').strip()
    if not Web3.is_address(address):
        raise ValidationError("Invalid Ethereum wallet address format")
    return Web3.to_checksum_address(address)


class WalletValidator:

    @staticmethod
    def validate_connection(data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a wallet connection report from the browser"""
        if not data or not data.get('wallet_address') or not data.get('network_id') or not data.get('network_name'):
            raise ValidationError("Wallet address, network ID, and network name are required")

        try:
            network_id = int(data['network_id'])
        except (TypeError, ValueError):
            raise ValidationError("network_id must be an integer")

        balance = data.get('balance')
        return {
            'wallet_address': to_checksum_wallet(data['wallet_address']),
            'network_id': network_id,
            'network_name': str(data['network_name']).strip(),
            'balance': normalize_wei(balance, 'balance') if balance not in (None, '') else None,
        }


wallet_validator = WalletValidator()
