# models/produce.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId

from app.models.enums import ProduceStatus
from app.utils.currency_utils import wei_sort_key


@dataclass
class ProduceRecord:
    """Off-chain mirror of a produce listing, keyed by its on-chain id"""
    _id: Optional[ObjectId] = None

    # On-chain identity
    chain_id: int = 0
    registration_tx_hash: str = ""

    # Listing details
    name: str = ""
    origin_farm: str = ""
    original_farmer_name: str = ""
    current_seller_name: str = ""
    farmer_owner_id: Optional[ObjectId] = None
    price_in_wei: str = "0"

    # Lifecycle
    status: ProduceStatus = ProduceStatus.HARVESTED
    is_available: bool = True

    # Off-chain assets
    qr_payload_text: str = ""
    qr_image_url: Optional[str] = None
    produce_image_url: str = ""

    # Sale
    sale_tx_hash: Optional[str] = None
    last_buyer_address: Optional[str] = None
    sold_at: Optional[datetime] = None
    price_updated_at: Optional[datetime] = None

    view_count: int = 0

    created_at: Optional[datetime] = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for database storage"""
        doc = {
            "chain_id": self.chain_id,
            "registration_tx_hash": self.registration_tx_hash,
            "name": self.name,
            "origin_farm": self.origin_farm,
            "original_farmer_name": self.original_farmer_name,
            "current_seller_name": self.current_seller_name,
            "farmer_owner_id": self.farmer_owner_id,
            "price_in_wei": self.price_in_wei,
            "price_sort_key": wei_sort_key(self.price_in_wei),
            "status": self.status.value,
            "is_available": self.status.is_available,
            "qr_payload_text": self.qr_payload_text,
            "qr_image_url": self.qr_image_url,
            "produce_image_url": self.produce_image_url,
            "sale_tx_hash": self.sale_tx_hash,
            "last_buyer_address": self.last_buyer_address,
            "sold_at": self.sold_at,
            "price_updated_at": self.price_updated_at,
            "view_count": self.view_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self._id is not None:
            doc["_id"] = self._id
        return doc

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> "ProduceRecord":
        """Build a record from a stored document"""
        return cls(
            _id=doc.get("_id"),
            chain_id=doc.get("chain_id", 0),
            registration_tx_hash=doc.get("registration_tx_hash", ""),
            name=doc.get("name", ""),
            origin_farm=doc.get("origin_farm", ""),
            original_farmer_name=doc.get("original_farmer_name", ""),
            current_seller_name=doc.get("current_seller_name", ""),
            farmer_owner_id=doc.get("farmer_owner_id"),
            price_in_wei=doc.get("price_in_wei", "0"),
            status=ProduceStatus.parse(doc.get("status", ProduceStatus.HARVESTED.value)),
            is_available=doc.get("is_available", True),
            qr_payload_text=doc.get("qr_payload_text", ""),
            qr_image_url=doc.get("qr_image_url"),
            produce_image_url=doc.get("produce_image_url", ""),
            sale_tx_hash=doc.get("sale_tx_hash"),
            last_buyer_address=doc.get("last_buyer_address"),
            sold_at=doc.get("sold_at"),
            price_updated_at=doc.get("price_updated_at"),
            view_count=doc.get("view_count", 0),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )
