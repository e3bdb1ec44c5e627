#validators/transaction_validator.py
"""
Transaction Report Validation
Validation for client-submitted confirmation reports
"""

from typing import Any, Dict, Optional

from app.core.exceptions import ValidationError
from app.models.enums import TransactionKind
from app.models.transaction import DEFAULT_NETWORK_ID
from app.utils.currency_utils import normalize_wei
from app.validators.produce_validator import parse_chain_id, parse_tx_hash


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a non-negative integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a non-negative integer")
    if number < 0:
        raise ValidationError(f"{field_name} must be a non-negative integer")
    return number


def _optional_text(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ''
    return text or None


class TransactionValidator:
    """Validator for mirrored ledger entries"""

    @staticmethod
    def validate_report(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a confirmation report

        Args:
            data: JSON body of the report

        Returns:
            Cleaned report fields
        """
        if not data:
            raise ValidationError("Request body is required")

        missing = [field for field in ('tx_hash', 'kind', 'chain_id') if data.get(field) in (None, '')]
        if missing:
            raise ValidationError("Required transaction details missing", details={'missing': missing})

        kind = TransactionKind.parse(data.get('kind'))

        amount = data.get('amount_in_wei')
        if amount in (None, ''):
            amount_in_wei = '0' if kind.carries_amount else None
        else:
            amount_in_wei = normalize_wei(amount, 'amount_in_wei')

        gas_fee = data.get('gas_fee_in_wei')
        gas_fee_in_wei = None if gas_fee in (None, '') else normalize_wei(gas_fee, 'gas_fee_in_wei')

        network_id = _optional_int(data.get('network_id'), 'network_id')

        return {
            'tx_hash': parse_tx_hash(data.get('tx_hash')),
            'kind': kind,
            'chain_id': parse_chain_id(data.get('chain_id')),
            'buyer_address': _optional_text(data.get('buyer_address')),
            'seller_address': _optional_text(data.get('seller_address')),
            'amount_in_wei': amount_in_wei,
            'gas_fee_in_wei': gas_fee_in_wei,
            'product_name': _optional_text(data.get('product_name')),
            'product_status': _optional_text(data.get('product_status')),
            'block_number': _optional_int(data.get('block_number'), 'block_number'),
            'network_id': network_id if network_id is not None else DEFAULT_NETWORK_ID,
        }

    @staticmethod
    def validate_block_number(value: Any) -> Optional[int]:
        return _optional_int(value, 'block_number')


transaction_validator = TransactionValidator()
