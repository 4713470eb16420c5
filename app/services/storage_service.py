"""Blob storage for saved audio with expiring signed URLs.

Objects live in a bucket directory on local disk. Access goes through
signed URLs of the form::

    {PUBLIC_BASE_URL}/storage/v1/object/sign/{bucket}/{quoted path}?token=<jwt>

where the JWT names the object (``bucket/path``) and carries its expiry.
The storage path is always re-derivable from a URL this service issued.
"""

import re
import time
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, List
from urllib.parse import quote, unquote

from jose import JWTError, jwt

from app.config import settings
from app.errors import (
    AccessDeniedError,
    BlobNotFoundError,
    InvalidSignatureError,
    PayloadTooLargeError,
    StorageError,
)
from app.models import UploadResult
from app.services.audio_service import sanitize_filename

logger = logging.getLogger(__name__)

OWNER_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


def check_owner(owner_id: str, path: str) -> None:
    """Reject paths that do not live under ``owner_id``'s folder."""
    parts = path.split("/")
    if len(parts) < 2 or parts[0] != owner_id or any(p in ("", ".", "..") for p in parts):
        raise AccessDeniedError(detail=f"{owner_id} may not access {path}")


class StorageService:
    """Local bucket with upload, removal and signed URL issuing/verification."""

    def __init__(
        self,
        root: Optional[Path] = None,
        bucket: Optional[str] = None,
        secret: Optional[str] = None,
        base_url: Optional[str] = None,
        expires_in: Optional[int] = None,
    ):
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.root = Path(root or settings.STORAGE_DIR) / self.bucket
        self.secret = secret or settings.STORAGE_SIGNING_SECRET
        self.base_url = (base_url or settings.PUBLIC_BASE_URL).rstrip("/")
        self.expires_in = expires_in or settings.SIGNED_URL_EXPIRES_SECONDS
        self.root.mkdir(parents=True, exist_ok=True)
        self._url_pattern = re.compile(
            r"/storage/v1/object/(?:sign|public)/" + re.escape(self.bucket) + r"/([^?#]+)"
        )

    def _object_path(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise AccessDeniedError(detail=f"path escapes bucket: {path}")
        return target

    def upload(self, owner_id: str, data: bytes, name_hint: str) -> UploadResult:
        """Store ``data`` under a fresh ``{owner}/{timestamp}_{name}.wav`` path."""
        max_size = settings.MAX_AUDIO_SIZE_MB * 1024 * 1024
        if len(data) > max_size:
            raise PayloadTooLargeError(
                message=f"File too large. Max {settings.MAX_AUDIO_SIZE_MB}MB"
            )
        if not OWNER_PATTERN.match(owner_id):
            raise AccessDeniedError(detail=f"invalid owner id {owner_id!r}")

        timestamp = int(time.time() * 1000)
        path = f"{owner_id}/{timestamp}_{sanitize_filename(name_hint)}.wav"
        target = self._object_path(path)
        # Millisecond timestamps can collide under bursts
        while target.exists():
            timestamp += 1
            path = f"{owner_id}/{timestamp}_{sanitize_filename(name_hint)}.wav"
            target = self._object_path(path)

        logger.info(f"Uploading file to {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Upload failed for {path}: {e}")
            raise StorageError(message="Failed to upload audio", detail=str(e)) from e

        return UploadResult(path=path, signed_url=self.create_signed_url(path))

    def create_signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        """Issue a fresh signed URL for an existing object."""
        if not self._object_path(path).exists():
            raise BlobNotFoundError(detail=path)
        now = datetime.now(timezone.utc)
        payload = {
            "url": f"{self.bucket}/{path}",
            "iat": now,
            "exp": now + timedelta(seconds=expires_in or self.expires_in),
        }
        token = jwt.encode(payload, self.secret, algorithm="HS256")
        return (
            f"{self.base_url}/storage/v1/object/sign/{self.bucket}/"
            f"{quote(path)}?token={token}"
        )

    def verify_token(self, path: str, token: str) -> None:
        """Check that ``token`` was issued for ``path`` and has not expired."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=["HS256"])
        except JWTError as e:
            raise InvalidSignatureError(detail=str(e)) from e
        if payload.get("url") != f"{self.bucket}/{path}":
            raise InvalidSignatureError(detail="token issued for another object")

    def download(self, path: str) -> bytes:
        target = self._object_path(path)
        if not target.is_file():
            raise BlobNotFoundError(detail=path)
        return target.read_bytes()

    def remove(self, paths: List[str]) -> None:
        """Delete objects; missing objects are ignored."""
        for path in paths:
            target = self._object_path(path)
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(message="Failed to delete audio", detail=str(e)) from e
            logger.info(f"File {path} deleted successfully")

    def extract_file_path(self, url: str) -> Optional[str]:
        """Recover the storage path from a signed or public object URL."""
        match = self._url_pattern.search(url or "")
        if not match:
            return None
        return unquote(match.group(1))
