#services/qr_service.py
"""
QR Payload Service
Builds and parses the JSON payload encoded in produce QR codes
"""

import io
import json
import logging
import re
import time
from typing import Any, Dict, Optional, Tuple

import qrcode
from flask import current_app

from app.core.exceptions import AssetUploadError, ValidationError
from app.services.asset_service import asset_service

logger = logging.getLogger(__name__)

QR_TYPE = 'produce'
QR_VERSION = '1.0'


class QRService:

    def produce_url(self, chain_id: int) -> str:
        base_url = current_app.config.get('FRONTEND_URL', 'http://localhost:3000').rstrip('/')
        return f"{base_url}/HTML/customer.html?produce={chain_id}"

    def build_payload(self, produce: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """
        Build the QR payload for a produce record

        Args:
            produce: Mapping with chain_id, name, original_farmer_name, origin_farm

        Returns:
            Tuple of (JSON text to encode, payload dict)
        """
        payload = {
            'type': QR_TYPE,
            'id': produce['chain_id'],
            'name': produce.get('name'),
            'quantity': produce.get('quantity') or '1 unit',
            'farmer': produce.get('original_farmer_name'),
            'farm': produce.get('origin_farm'),
            'timestamp': int(time.time() * 1000),
            'version': QR_VERSION,
            'url': self.produce_url(produce['chain_id']),
        }
        return json.dumps(payload, separators=(',', ':')), payload

    def parse_payload(self, text: Optional[str]) -> Dict[str, Any]:
        """
        Parse a scanned QR string

        A bare numeric string is accepted as a legacy chain id.

        Raises:
            ValidationError: If the text is neither a produce payload nor a numeric id
        """
        text = (text or '').strip()
        if re.fullmatch(r'\d+', text):
            return {'type': QR_TYPE, 'id': int(text), 'legacy': True}

        try:
            data = json.loads(text)
        except ValueError:
            raise ValidationError("Unable to parse QR code data")

        if not isinstance(data, dict) or data.get('type') != QR_TYPE or not data.get('id'):
            raise ValidationError("Invalid QR code format")
        return data

    def render_png(self, text: str) -> bytes:
        img = qrcode.make(text, error_correction=qrcode.constants.ERROR_CORRECT_M, border=2)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    def store_image(self, chain_id: int, text: str) -> Optional[str]:
        """Render and store the QR image; the listing stays valid without it"""
        try:
            return asset_service.save_bytes(self.render_png(text), f"qr-produce-{chain_id}.png")
        except AssetUploadError as e:
            logger.warning(f"QR image for produce {chain_id} not stored: {e.message}")
            return None


qr_service = QRService()
