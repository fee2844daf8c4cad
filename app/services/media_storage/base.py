import mimetypes
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional


@dataclass
class MediaFile:
    """
    A file received with a report submission.

    `file` is a readable binary handle positioned at the start of the content.
    """
    filename: str
    content_type: Optional[str]
    size: int
    file: BinaryIO

    def extension(self) -> str:
        ext = os.path.splitext(self.filename or "")[1].lower()
        if not ext and self.content_type:
            ext = mimetypes.guess_extension(self.content_type) or ""
        return ext


class MediaStorage(ABC):
    """
    Abstract upload adapter.

    Contract:
    - Input: a MediaFile and a folder name ("photos" or "videos")
    - Output: durable URL of the stored object
    - Raises on failure; callers decide how to surface it.
    - No cleanup contract: objects already stored stay stored.
    """

    name: str = "base"

    @abstractmethod
    def upload(self, media: MediaFile, folder: str) -> str:
        raise NotImplementedError


def unique_object_name(media: MediaFile) -> str:
    return f"report_{uuid.uuid4().hex}{media.extension()}"
