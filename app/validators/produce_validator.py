#validators/produce_validator.py
"""
Produce Validation
Request-level validation for produce registration and updates
"""

import re
from typing import Any, Dict

from app.core.exceptions import ValidationError
from app.utils.currency_utils import normalize_wei

TX_HASH_PATTERN = re.compile(r'^0x[0-9a-fA-F]+$')
MAX_NAME_LENGTH = 120


def parse_chain_id(value: Any) -> int:
    """
    Parse an on-chain produce id

    Raises:
        ValidationError: If the value is not a positive integer
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("chain_id must be a positive integer")
    if isinstance(value, int):
        chain_id = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise ValidationError("chain_id must be a positive integer")
        chain_id = int(text)
    if chain_id < 1:
        raise ValidationError("chain_id must be a positive integer")
    return chain_id


def parse_tx_hash(value: Any, field_name: str = 'tx_hash') -> str:
    """Normalize a transaction hash to lower case hex"""
    text = str(value or '').strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    if not TX_HASH_PATTERN.match(text):
        raise ValidationError(f"{field_name} must be a 0x-prefixed hex string")
    return text.lower()


class ProduceValidator:
    """Validator for produce-related operations"""

    @staticmethod
    def validate_registration(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate produce registration data

        Args:
            data: Form fields reported by the client after the on-chain registration

        Returns:
            Cleaned registration fields

        Raises:
            ValidationError: With every failing field listed in details
        """
        errors = []

        for field in ('name', 'origin_farm', 'price_in_wei'):
            if not str(data.get(field) or '').strip():
                errors.append(f"{field} is required")

        name = str(data.get('name') or '').strip()
        origin_farm = str(data.get('origin_farm') or '').strip()
        if len(name) > MAX_NAME_LENGTH:
            errors.append(f"name cannot exceed {MAX_NAME_LENGTH} characters")
        if len(origin_farm) > MAX_NAME_LENGTH:
            errors.append(f"origin_farm cannot exceed {MAX_NAME_LENGTH} characters")

        cleaned = {'name': name, 'origin_farm': origin_farm}

        for field, parser in (('chain_id', parse_chain_id), ('tx_hash', parse_tx_hash)):
            try:
                cleaned[field] = parser(data.get(field))
            except ValidationError as e:
                errors.append(e.message)

        if str(data.get('price_in_wei') or '').strip():
            try:
                cleaned['price_in_wei'] = normalize_wei(data.get('price_in_wei'))
            except ValidationError as e:
                errors.append(e.message)

        if errors:
            raise ValidationError("Validation failed", details={'errors': errors})

        return cleaned

    @staticmethod
    def validate_price(value: Any) -> str:
        """A listing price must be a positive wei amount"""
        price = normalize_wei(value)
        if int(price) == 0:
            raise ValidationError("Valid price is required")
        return price


produce_validator = ProduceValidator()
