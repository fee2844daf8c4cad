import logging
from typing import Optional

from app.core.settings import settings
from .base import MediaStorage
from .firebase_provider import FirebaseMediaStorage
from .local_provider import LocalMediaStorage

logger = logging.getLogger(__name__)

_storage_instance: Optional[MediaStorage] = None


def get_media_storage() -> MediaStorage:
    """
    Resolve the active upload adapter based on settings.

    Rules:
    - MEDIA_STORAGE_PROVIDER='firebase' AND FIREBASE_STORAGE_BUCKET set: Cloud Storage.
    - Otherwise: local media directory.
    """
    global _storage_instance
    if _storage_instance is not None:
        return _storage_instance

    provider_name = (settings.MEDIA_STORAGE_PROVIDER or "local").lower()

    if provider_name == "firebase":
        if settings.FIREBASE_STORAGE_BUCKET:
            _storage_instance = FirebaseMediaStorage(bucket_name=settings.FIREBASE_STORAGE_BUCKET)
            logger.info("Media storage initialized: firebase")
            return _storage_instance
        logger.warning("MEDIA_STORAGE_PROVIDER=firebase but FIREBASE_STORAGE_BUCKET is not set. Falling back to local storage.")

    _storage_instance = LocalMediaStorage(
        media_dir=settings.MEDIA_DIR,
        base_url=settings.BASE_PUBLIC_URL,
        url_path=settings.MEDIA_URL_PATH,
    )
    logger.info("Media storage initialized: local")
    return _storage_instance
