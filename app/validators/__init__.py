"""
Validators module
Request-level validation that raises ValidationError with cleaned data on success
"""

from .auth_validator import AuthValidator, auth_validator
from .produce_validator import ProduceValidator, produce_validator, parse_chain_id, parse_tx_hash
from .transaction_validator import TransactionValidator, transaction_validator
from .wallet_validator import WalletValidator, wallet_validator, to_checksum_wallet

__all__ = [
    'AuthValidator', 'auth_validator',
    'ProduceValidator', 'produce_validator', 'parse_chain_id', 'parse_tx_hash',
    'TransactionValidator', 'transaction_validator',
    'WalletValidator', 'wallet_validator', 'to_checksum_wallet',
]
