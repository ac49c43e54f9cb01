"""
Blob storage for company resource documents.

Files live under STORAGE_DIR/<bucket>/ and are addressed by a relative path
such as "<company_id>/<timestamp>_<file name>".
"""
import logging
import re
import time
from pathlib import Path
from typing import Iterable

from hub.config import STORAGE_DIR

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


class StorageError(Exception):
    """Upload, download or removal failed."""


def safe_file_name(file_name: str) -> str:
    """File name with path separators and unusual characters replaced."""
    name = Path(file_name or '').name
    name = _UNSAFE_CHARS.sub('_', name).strip('._')
    return name or 'file'


def object_path(owner_id: str, file_name: str) -> str:
    """Unique object path for an upload owned by a company."""
    return f"{owner_id}/{int(time.time() * 1000)}_{safe_file_name(file_name)}"


class BlobStorage:
    """Path-addressed file store rooted at one bucket directory."""

    def __init__(self, bucket: str, root: Path = None):
        self.root = (Path(root or STORAGE_DIR) / bucket).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise StorageError(f"Invalid storage path '{path}'")
        return target

    def upload(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        if target.exists():
            raise StorageError(f"'{path}' already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error("Upload of %s failed: %s", path, e)
            raise StorageError(f"Could not upload {path}: {e}") from e
        return path

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except OSError as e:
            logger.error("Download of %s failed: %s", path, e)
            raise StorageError(f"Could not download {path}: {e}") from e

    def remove(self, paths: Iterable[str]) -> int:
        """Remove objects; missing ones are skipped. Returns files removed."""
        removed = 0
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Removal of %s failed: %s", path, e)
                raise StorageError(f"Could not remove {path}: {e}") from e
        return removed
