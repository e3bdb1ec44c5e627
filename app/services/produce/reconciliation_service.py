# services/produce/reconciliation_service.py
"""
Chain Reconciliation Service
Applies client-reported on-chain confirmations to the off-chain mirror.

The chain is the source of truth and the mirror only catches up to it.
Every operation here is a single atomic write keyed by chain_id or
blockchain_tx_hash, and every insert is guarded by a unique index.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError
from werkzeug.datastructures import FileStorage

from app.config.database import get_db_connection
from app.core.exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError
from app.models.enums import ProduceStatus, TransactionKind, UserRole
from app.models.produce import ProduceRecord
from app.models.transaction import TransactionRecord
from app.models.user import CurrentUser
from app.services.asset_service import asset_service
from app.services.qr_service import qr_service
from app.utils.currency_utils import wei_sort_key
from app.utils.database_helpers import PRODUCE_COLLECTION, TRANSACTION_COLLECTION
from app.validators.produce_validator import ProduceValidator, parse_chain_id
from app.validators.transaction_validator import TransactionValidator

logger = logging.getLogger(__name__)

# Which roles may start an on-chain purchase. Must cover every UserRole.
PURCHASE_PERMISSIONS = {
    UserRole.FARMER: False,
    UserRole.CONSUMER: True,
    UserRole.ADMIN: False,
}


class ReconciliationService:

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db_connection()

    @property
    def produce(self):
        return self.db[PRODUCE_COLLECTION]

    @property
    def transactions(self):
        return self.db[TRANSACTION_COLLECTION]

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_produce(self, owner: CurrentUser, form: Dict[str, Any],
                         image_file: Optional[FileStorage]) -> Dict[str, Any]:
        """
        Create the mirror record for a produce item just registered on-chain

        Args:
            owner: Authenticated farmer reporting the registration
            form: name, origin_farm, price_in_wei, chain_id, tx_hash
            image_file: Uploaded produce image

        Returns:
            The stored produce document

        Raises:
            ValidationError: Missing fields or failed image upload
            ConflictError: A record with this chain_id already exists
        """
        if owner.role is not UserRole.FARMER:
            raise ForbiddenError("Only farmers can register produce")

        cleaned = ProduceValidator.validate_registration(form)
        chain_id = cleaned['chain_id']

        # Cheap replay check before the upload; the unique index is authoritative
        if self.produce.find_one({'chain_id': chain_id}, {'_id': 1}):
            raise ConflictError("Produce with this chain id already exists")

        image_url = asset_service.save_upload(image_file, folder='produce')

        record = ProduceRecord(
            chain_id=chain_id,
            registration_tx_hash=cleaned['tx_hash'],
            name=cleaned['name'],
            origin_farm=cleaned['origin_farm'],
            original_farmer_name=owner.username,
            current_seller_name=owner.username,
            farmer_owner_id=owner.id,
            price_in_wei=cleaned['price_in_wei'],
            status=ProduceStatus.HARVESTED,
            produce_image_url=image_url,
        )
        record.qr_payload_text, _ = qr_service.build_payload(record.to_dict())
        record.qr_image_url = qr_service.store_image(chain_id, record.qr_payload_text)

        doc = record.to_dict()
        try:
            self.produce.insert_one(doc)
        except DuplicateKeyError:
            logger.info(f"Duplicate registration report for produce {chain_id}")
            self._discard_assets(record)
            raise ConflictError("Produce with this chain id already exists")
        except PyMongoError:
            self._discard_assets(record)
            raise

        logger.info(f"Produce {chain_id} registered by {owner.username} (tx {record.registration_tx_hash})")
        return doc

    @staticmethod
    def _discard_assets(record: ProduceRecord):
        """Drop the files stored for a registration that was not persisted"""
        asset_service.discard(record.produce_image_url)
        asset_service.discard(record.qr_image_url)

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def record_transaction(self, user: CurrentUser, data: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """
        Mirror a confirmed chain transaction

        Args:
            user: Authenticated user reporting the confirmation
            data: Confirmation report

        Returns:
            Tuple of (transaction document, created). A replayed hash returns
            the original document with created=False.

        Raises:
            ValidationError: Malformed report
            NotFoundError: Non-registration report for an unknown chain id
        """
        report = TransactionValidator.validate_report(data)
        tx_hash = report['tx_hash']
        kind = report['kind']
        chain_id = report['chain_id']

        existing = self.transactions.find_one({'blockchain_tx_hash': tx_hash})
        if existing:
            logger.info(f"Transaction already recorded: {tx_hash}")
            self._catch_up_sale(existing)
            return existing, False

        produce = self.produce.find_one({'chain_id': chain_id})
        if produce is None and kind is not TransactionKind.REGISTRATION:
            raise NotFoundError(f"Produce {chain_id} not found")

        record = TransactionRecord(
            blockchain_tx_hash=tx_hash,
            produce_chain_id=chain_id,
            kind=kind,
            initiating_user_id=user.id,
            buyer_address=report['buyer_address'],
            seller_address=report['seller_address'],
            amount_in_wei=report['amount_in_wei'],
            gas_fee_in_wei=report['gas_fee_in_wei'],
            product_name=report['product_name'] or (produce or {}).get('name') or 'Unknown Product',
            product_status=report['product_status'] or (produce or {}).get('status') or 'Unknown',
            block_number=report['block_number'],
            network_id=report['network_id'],
        )

        doc = record.to_dict()
        try:
            self.transactions.insert_one(doc)
        except DuplicateKeyError:
            logger.info(f"Transaction {tx_hash} recorded concurrently")
            return self.transactions.find_one({'blockchain_tx_hash': tx_hash}), False

        logger.info(f"Transaction recorded: {tx_hash} ({kind.value}) for produce {chain_id}")

        if kind is TransactionKind.SALE:
            try:
                self._mark_sold(chain_id, report['buyer_address'], tx_hash)
                logger.info(f"Produce {chain_id} marked as sold to {report['buyer_address']}")
            except (PyMongoError, NotFoundError) as e:
                logger.error(f"Mirror update failed for sale {tx_hash} of produce {chain_id}: {e}")

        return doc, True

    def _catch_up_sale(self, transaction: Dict[str, Any]):
        """Re-apply a replayed sale whose first mirror update never landed"""
        if transaction.get('kind') != TransactionKind.SALE.value:
            return
        try:
            result = self.produce.update_one(
                {'chain_id': transaction['produce_chain_id'], 'status': {'$ne': ProduceStatus.SOLD.value}},
                {'$set': self._sold_fields(transaction.get('buyer_address'),
                                           transaction['blockchain_tx_hash'],
                                           stamp_sold_at=True)}
            )
            if result.modified_count:
                logger.warning(f"Produce {transaction['produce_chain_id']} caught up with sale "
                               f"{transaction['blockchain_tx_hash']}")
        except PyMongoError as e:
            logger.error(f"Mirror catch-up failed for sale {transaction['blockchain_tx_hash']}: {e}")

    # ------------------------------------------------------------------
    # Produce state
    # ------------------------------------------------------------------

    @staticmethod
    def _sold_fields(buyer_address: Optional[str], sale_tx_hash: Optional[str],
                     stamp_sold_at: bool) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        fields = {
            'status': ProduceStatus.SOLD.value,
            'is_available': False,
            'updated_at': now,
        }
        if stamp_sold_at:
            fields['sold_at'] = now
        if buyer_address:
            fields['last_buyer_address'] = buyer_address
        if sale_tx_hash:
            fields['sale_tx_hash'] = sale_tx_hash
        return fields

    def _mark_sold(self, chain_id: int, buyer_address: Optional[str],
                   sale_tx_hash: Optional[str]) -> Dict[str, Any]:
        """
        Transition a listing to Sold

        sold_at is stamped only on the first transition so replays keep the
        original sale time.
        """
        doc = self.produce.find_one_and_update(
            {'chain_id': chain_id, 'status': {'$ne': ProduceStatus.SOLD.value}},
            {'$set': self._sold_fields(buyer_address, sale_tx_hash, stamp_sold_at=True)},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            doc = self.produce.find_one_and_update(
                {'chain_id': chain_id},
                {'$set': self._sold_fields(buyer_address, sale_tx_hash, stamp_sold_at=False)},
                return_document=ReturnDocument.AFTER
            )
        if doc is None:
            raise NotFoundError(f"Produce {chain_id} not found")
        return doc

    def update_status(self, chain_id: Any, new_status: Any, buyer_address: Optional[str] = None,
                      sale_tx_hash: Optional[str] = None) -> Dict[str, Any]:
        """
        Set the lifecycle status of a listing

        Args:
            chain_id: On-chain produce id
            new_status: Target ProduceStatus value
            buyer_address: Buyer wallet, recorded when the status is Sold
            sale_tx_hash: Sale transaction, recorded when the status is Sold

        Returns:
            The updated produce document
        """
        chain_id = parse_chain_id(chain_id)
        status = ProduceStatus.parse(new_status)

        if status is ProduceStatus.SOLD:
            doc = self._mark_sold(chain_id, buyer_address, sale_tx_hash)
        else:
            doc = self.produce.find_one_and_update(
                {'chain_id': chain_id},
                {'$set': {
                    'status': status.value,
                    'is_available': status.is_available,
                    'updated_at': datetime.now(timezone.utc)
                }},
                return_document=ReturnDocument.AFTER
            )
            if doc is None:
                raise NotFoundError("Produce item not found")

        logger.info(f"Produce {chain_id} status set to {status.value}")
        return doc

    def update_price(self, chain_id: Any, new_price_in_wei: Any, owner: CurrentUser) -> Dict[str, Any]:
        """
        Reprice a listing owned by the caller

        Raises:
            NotFoundError: Unknown chain id
            ForbiddenError: Caller does not own the listing
            ConflictError: Listing already sold
        """
        chain_id = parse_chain_id(chain_id)
        price = ProduceValidator.validate_price(new_price_in_wei)
        now = datetime.now(timezone.utc)

        doc = self.produce.find_one_and_update(
            {
                'chain_id': chain_id,
                'farmer_owner_id': owner.id,
                'status': {'$ne': ProduceStatus.SOLD.value}
            },
            {'$set': {
                'price_in_wei': price,
                'price_sort_key': wei_sort_key(price),
                'price_updated_at': now,
                'updated_at': now
            }},
            return_document=ReturnDocument.AFTER
        )
        if doc is not None:
            logger.info(f"Produce {chain_id} repriced to {price} wei by {owner.username}")
            return doc

        existing = self.produce.find_one({'chain_id': chain_id})
        if existing is None:
            raise NotFoundError("Produce item not found")
        if existing.get('farmer_owner_id') != owner.id:
            logger.warning(f"User {owner.username} tried to reprice produce {chain_id} they do not own")
            raise ForbiddenError("You can only update the price of your own produce")
        if existing.get('status') == ProduceStatus.SOLD.value:
            raise ConflictError("Cannot update price of sold item")
        raise InternalError("Price update did not apply")

    def validate_purchase_eligibility(self, chain_id: Any, user: CurrentUser) -> Dict[str, Any]:
        """
        Read-only guard run before a client starts an on-chain purchase

        Returns:
            Eligibility summary with the price the client must send

        Raises:
            NotFoundError: Unknown chain id
            ForbiddenError: Self-purchase, non-consumer role, or unavailable item
        """
        chain_id = parse_chain_id(chain_id)
        doc = self.produce.find_one({'chain_id': chain_id})
        if doc is None:
            raise NotFoundError("Produce item not found")

        record = ProduceRecord.from_dict(doc)

        if record.farmer_owner_id == user.id:
            raise ForbiddenError("You cannot buy your own produce")

        if not PURCHASE_PERMISSIONS[user.role]:
            raise ForbiddenError("Only consumers can purchase produce")

        if not record.is_available or record.status is ProduceStatus.SOLD:
            raise ForbiddenError("This produce is no longer available")

        return {
            'eligible': True,
            'chain_id': record.chain_id,
            'price_in_wei': record.price_in_wei,
            'seller': record.current_seller_name,
        }

    def delete_produce(self, chain_id: Any, user: CurrentUser) -> None:
        """Remove a listing from the mirror; ledger entries are kept"""
        chain_id = parse_chain_id(chain_id)

        query = {'chain_id': chain_id}
        if user.role is not UserRole.ADMIN:
            query['farmer_owner_id'] = user.id

        result = self.produce.delete_one(query)
        if result.deleted_count:
            logger.info(f"Produce {chain_id} deleted by {user.username}")
            return

        if self.produce.find_one({'chain_id': chain_id}, {'_id': 1}) is None:
            raise NotFoundError("Produce item not found")
        raise ForbiddenError("You can only delete your own produce")


reconciliation_service = ReconciliationService()
