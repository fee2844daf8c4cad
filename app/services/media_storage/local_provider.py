import logging
import os
import shutil

from .base import MediaFile, MediaStorage, unique_object_name

logger = logging.getLogger(__name__)


class LocalMediaStorage(MediaStorage):
    """
    Disk upload adapter.

    Files land in <media_dir>/<folder>/ and are served by the app itself
    under <base_url><url_path>/<folder>/<name>.
    """

    name = "local"

    def __init__(self, media_dir: str, base_url: str, url_path: str = "/media"):
        self.media_dir = media_dir
        self.base_url = base_url.rstrip("/")
        self.url_path = "/" + url_path.strip("/")

    def upload(self, media: MediaFile, folder: str) -> str:
        target_dir = os.path.join(self.media_dir, folder)
        os.makedirs(target_dir, exist_ok=True)

        object_name = unique_object_name(media)
        media.file.seek(0)
        with open(os.path.join(target_dir, object_name), "wb") as out:
            shutil.copyfileobj(media.file, out)

        logger.info(f"Stored {media.filename} at {target_dir}/{object_name}")
        return f"{self.base_url}{self.url_path}/{folder}/{object_name}"
