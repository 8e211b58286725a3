"""Object storage for uploaded files, served through signed URLs."""

import os
from pathlib import Path, PurePosixPath

import structlog

from healthnet.config import settings
from healthnet.core.exceptions import BadRequestException, NotFoundException
from healthnet.core.security import create_storage_token, decode_storage_token

logger = structlog.get_logger(__name__)


class StorageService:
    """Stores binary objects under a root directory, keyed by relative path."""

    def __init__(self, root: str | Path | None = None):
        """Initialize storage rooted at the configured directory."""
        self.root = Path(root or settings.storage_root).resolve()

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise BadRequestException("Invalid storage path")
        return self.root.joinpath(*relative.parts)

    def upload(self, path: str, data: bytes, *, overwrite: bool = True) -> str:
        """
        Write an object.

        Args:
            path: Object path relative to the storage root
            data: Object content
            overwrite: Replace an existing object at the same path

        Returns:
            The stored path
        """
        target = self._resolve(path)
        if target.exists() and not overwrite:
            raise BadRequestException("Object already exists")

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.tmp")
        tmp.write_bytes(data)
        os.replace(tmp, target)

        logger.info("storage_object_written", path=path, size=len(data))
        return path

    def open_path(self, path: str) -> Path:
        """Return the filesystem location of an existing object."""
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundException("Object not found")
        return target

    def delete(self, path: str) -> bool:
        """Delete an object, returning False if it did not exist."""
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        logger.info("storage_object_deleted", path=path)
        return True

    def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        """
        Create a temporary URL for downloading an object.

        Args:
            path: Object path relative to the storage root
            ttl_seconds: How long the URL stays valid

        Returns:
            Absolute URL embedding a signed token
        """
        self.open_path(path)
        token = create_storage_token(path, ttl_seconds)
        base = settings.public_base_url.rstrip("/")
        return f"{base}{settings.api_v1_prefix}/storage/{token}"

    def resolve_signed_token(self, token: str) -> Path:
        """Map a signed token back to the object it grants access to."""
        path = decode_storage_token(token)
        if path is None:
            raise NotFoundException("Link expired or invalid")
        return self.open_path(path)
