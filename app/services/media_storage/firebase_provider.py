import logging

from app.config.firebase import get_storage_bucket
from .base import MediaFile, MediaStorage, unique_object_name

logger = logging.getLogger(__name__)


class FirebaseMediaStorage(MediaStorage):
    """
    Cloud Storage upload adapter (Firebase bucket).

    Objects are written under reports/<folder>/ and made publicly readable so
    the returned URL can be embedded in report documents directly.
    """

    name = "firebase"

    def __init__(self, bucket_name: str, prefix: str = "reports"):
        self.bucket_name = bucket_name
        self.prefix = prefix
        self._bucket = None

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = get_storage_bucket(self.bucket_name)
        return self._bucket

    def upload(self, media: MediaFile, folder: str) -> str:
        blob = self.bucket.blob(f"{self.prefix}/{folder}/{unique_object_name(media)}")
        media.file.seek(0)
        blob.upload_from_file(media.file, size=media.size, content_type=media.content_type)
        blob.make_public()
        logger.info(f"Uploaded {media.filename} to gs://{self.bucket_name}/{blob.name}")
        return blob.public_url
