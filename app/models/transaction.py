# models/transaction.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId

from app.models.enums import ConfirmationState, TransactionKind
from app.utils.currency_utils import wei_sort_key

DEFAULT_NETWORK_ID = 11155111  # Sepolia


@dataclass
class TransactionRecord:
    """Mirrored blockchain transaction, keyed by its hash"""
    _id: Optional[ObjectId] = None
    blockchain_tx_hash: str = ""
    produce_chain_id: int = 0
    kind: TransactionKind = TransactionKind.REGISTRATION
    initiating_user_id: Optional[ObjectId] = None

    buyer_address: Optional[str] = None
    seller_address: Optional[str] = None
    amount_in_wei: Optional[str] = None
    gas_fee_in_wei: Optional[str] = None

    # Snapshot of the produce at report time
    product_name: str = "Unknown Product"
    product_status: str = "Unknown"

    confirmation_state: ConfirmationState = ConfirmationState.CONFIRMED
    block_number: Optional[int] = None
    network_id: int = DEFAULT_NETWORK_ID

    created_at: Optional[datetime] = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for database storage"""
        doc = {
            "blockchain_tx_hash": self.blockchain_tx_hash,
            "produce_chain_id": self.produce_chain_id,
            "kind": self.kind.value,
            "initiating_user_id": self.initiating_user_id,
            "buyer_address": self.buyer_address,
            "seller_address": self.seller_address,
            "amount_in_wei": self.amount_in_wei,
            "amount_sort_key": wei_sort_key(self.amount_in_wei) if self.amount_in_wei is not None else None,
            "gas_fee_in_wei": self.gas_fee_in_wei,
            "product_name": self.product_name,
            "product_status": self.product_status,
            "confirmation_state": self.confirmation_state.value,
            "block_number": self.block_number,
            "network_id": self.network_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self._id is not None:
            doc["_id"] = self._id
        return doc
