"""
Cloudinary image storage.
Maps (bucket, key) storage addresses onto Cloudinary public ids and delivery URLs.
"""
import asyncio
import logging
import posixpath
from typing import Optional

import cloudinary
import cloudinary.uploader
import cloudinary.utils

from catalog.config import settings
from catalog.errors import UploadError

logger = logging.getLogger(__name__)


def validate_cloudinary_config() -> bool:
    """
    Configure the Cloudinary SDK from settings.

    Returns:
        bool: True when all credentials are present
    """
    if not settings.has_cloudinary_config():
        return False
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )
    return True


def public_id_for(bucket: str, key: str) -> str:
    """
    Cloudinary public id for a storage key.

    The file extension is dropped: Cloudinary stores the format separately.
    Example: ("items", "items/abc-knife.jpg") -> "items/items/abc-knife"
    """
    root, _ext = posixpath.splitext(key)
    return f"{bucket}/{root}" if bucket else root


class CloudinaryStorage:
    """
    Storage backend that keeps item images on Cloudinary.
    Keys are what the database stores; URLs are derived on every read.
    """

    def __init__(self, cloud_name: Optional[str] = None):
        self.cloud_name = cloud_name if cloud_name is not None else settings.CLOUDINARY_CLOUD_NAME

    async def upload(self, bucket: str, key: str, content: bytes) -> str:
        """
        Upload image bytes under the given key.

        Returns:
            str: The key, unchanged

        Raises:
            UploadError: If Cloudinary is not configured or rejects the upload
        """
        if not validate_cloudinary_config():
            raise UploadError("Cloudinary credentials are not configured")

        public_id = public_id_for(bucket, key)
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                content,
                public_id=public_id,
                resource_type="image",
                overwrite=False,
            )
        except Exception as e:
            logger.error(f"Cloudinary upload failed for {key}: {str(e)}")
            raise UploadError(f"Upload failed for {key}: {str(e)}") from e

        logger.info(f"Uploaded {key} to Cloudinary as {result.get('public_id', public_id)}")
        return key

    def public_url(self, bucket: str, key: str) -> str:
        url, _options = cloudinary.utils.cloudinary_url(
            public_id_for(bucket, key),
            cloud_name=self.cloud_name,
            resource_type="image",
            secure=True,
        )
        return url
