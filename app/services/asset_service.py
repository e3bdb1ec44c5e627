#services/asset_service.py
"""
Asset Storage Service
Stores uploaded images on local disk and hands back durable URLs
"""

import logging
import os
import uuid
from typing import Optional

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from app.core.exceptions import AssetUploadError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}


def allowed_file(filename: str) -> bool:
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


class AssetService:
    """Local-disk asset store rooted at UPLOAD_FOLDER"""

    def _target(self, folder: str, filename: str):
        safe_name = secure_filename(filename)
        if not safe_name or not allowed_file(safe_name):
            raise AssetUploadError(f"Unsupported image file '{filename}'")

        stored_name = f"{uuid.uuid4().hex}_{safe_name}"
        directory = os.path.join(current_app.config['UPLOAD_FOLDER'], folder)
        os.makedirs(directory, exist_ok=True)

        url = f"{current_app.config['ASSET_BASE_URL'].rstrip('/')}/{folder}/{stored_name}"
        return os.path.join(directory, stored_name), url

    def save_upload(self, file: FileStorage, folder: str = 'produce') -> str:
        """
        Persist an uploaded image

        Args:
            file: Multipart file from the request
            folder: Sub-folder under UPLOAD_FOLDER

        Returns:
            Public URL of the stored file

        Raises:
            AssetUploadError: If the file is missing, not an image, or cannot be written
        """
        if file is None or not file.filename:
            raise AssetUploadError("Produce image file is required")

        path, url = self._target(folder, file.filename)
        try:
            file.save(path)
        except OSError as e:
            logger.error(f"Image upload failed: {e}")
            raise AssetUploadError("Image upload failed")

        if os.path.getsize(path) == 0:
            os.remove(path)
            raise AssetUploadError("Uploaded image is empty")

        logger.info(f"Stored asset {url}")
        return url

    def save_bytes(self, data: bytes, filename: str, folder: str = 'qr-codes') -> str:
        """Persist generated image bytes and return the public URL"""
        path, url = self._target(folder, filename)
        try:
            with open(path, 'wb') as fh:
                fh.write(data)
        except OSError as e:
            logger.error(f"Asset write failed: {e}")
            raise AssetUploadError("Asset write failed")
        return url

    def discard(self, url: Optional[str]):
        """Remove a stored asset by its public URL; unknown URLs are ignored"""
        prefix = current_app.config['ASSET_BASE_URL'].rstrip('/') + '/'
        if not url or not url.startswith(prefix):
            return

        relative = url[len(prefix):]
        root = os.path.abspath(current_app.config['UPLOAD_FOLDER'])
        path = os.path.abspath(os.path.join(root, *relative.split('/')))
        if os.path.commonpath([root, path]) != root:
            return

        if os.path.isfile(path):
            os.remove(path)
            logger.info(f"Discarded asset {url}")


asset_service = AssetService()
