"""
Local filesystem storage for sick-leave certificates.

Files live under `<base_dir>/<user_id>/<absence_id>/<uuid><ext>`; the
relative part is what gets recorded as `storage_path`.
"""
import logging
import os
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from absence_tracker.core.config import settings

logger = logging.getLogger(__name__)

EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def safe_extension(original_name: Optional[str]) -> str:
    """The client's file extension if it is plain alphanumeric, otherwise none."""
    extension = os.path.splitext(original_name or "")[1]
    return extension if EXTENSION_PATTERN.match(extension) else ""


@dataclass
class UploadedFile:
    """An incoming certificate, already read into memory."""
    original_name: str
    content: bytes
    mime_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class StoredFile:
    storage_path: str
    file_name: str


class LocalStorageService:
    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir).resolve()

    def save_file(self, file: UploadedFile, sub_dir: str) -> StoredFile:
        """Write the file durably and return where it went. Raises OSError on failure."""
        extension = safe_extension(file.original_name)
        file_name = f"{uuid.uuid4()}{extension}"
        target_dir = self.base_dir / sub_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        with open(target_dir / file_name, "wb") as fh:
            fh.write(file.content)
            fh.flush()
            os.fsync(fh.fileno())

        storage_path = f"{sub_dir}/{file_name}".replace("\\", "/")
        logger.info(f"Stored certificate {storage_path} ({file.size} bytes)")
        return StoredFile(storage_path=storage_path, file_name=file_name)

    def delete_file(self, storage_path: str):
        """Remove a stored file. A file that is already gone counts as deleted."""
        try:
            self.resolve(storage_path).unlink()
        except FileNotFoundError:
            logger.info(f"Certificate {storage_path} already absent from storage")

    def resolve(self, storage_path: str) -> Path:
        path = (self.base_dir / storage_path).resolve()
        if self.base_dir not in path.parents:
            raise ValueError(f"Storage path escapes the upload directory: {storage_path}")
        return path

    def exists(self, storage_path: str) -> bool:
        return self.resolve(storage_path).is_file()
