"""
Media storage - upload adapter for report photos and videos.

The report services depend only on MediaStorage.upload(), which takes a local
file handle and returns a durable URL.
"""

from app.services.media_storage.base import MediaFile, MediaStorage
from app.services.media_storage.firebase_provider import FirebaseMediaStorage
from app.services.media_storage.local_provider import LocalMediaStorage
from app.services.media_storage.resolver import get_media_storage

__all__ = [
    "MediaFile",
    "MediaStorage",
    "FirebaseMediaStorage",
    "LocalMediaStorage",
    "get_media_storage",
]
