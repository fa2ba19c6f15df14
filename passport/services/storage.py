"""
Object storage for property photos and documents.

Two backends: Supabase Storage over its REST API, and a local directory for
development and tests. Object paths are `{property_id}/{uuid}{ext}` inside a bucket.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from jose import JWTError, jwt
import aiofiles
import httpx
import logging

from passport.config import settings
from passport.services.http_client import ExternalApiClient
from passport.utils.exceptions import ForbiddenError, NotFoundError, StorageError, UnauthorizedError

logger = logging.getLogger(__name__)


class StorageBackend:
    """Bucket/object store interface."""

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> None:
        raise NotImplementedError

    async def delete(self, bucket: str, path: str) -> None:
        raise NotImplementedError

    def public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    async def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        raise NotImplementedError


class SupabaseStorageBackend(StorageBackend):
    """Supabase Storage, authenticated with the service role key."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = settings.storage_url
        self.client = ExternalApiClient(
            provider="Supabase Storage",
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {settings.supabase_service_role_key}",
                "apikey": settings.supabase_service_role_key,
            },
            transport=transport,
        )

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> None:
        response = await self.client.request(
            "POST",
            f"/object/{bucket}/{path}",
            content=content,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        if response.status_code >= 400:
            logger.error(f"Upload to {bucket}/{path} failed: {response.status_code} {response.text}")
            raise StorageError(f"upload rejected with HTTP {response.status_code}")

    async def delete(self, bucket: str, path: str) -> None:
        response = await self.client.request("DELETE", f"/object/{bucket}/{path}")
        if response.status_code >= 400 and response.status_code != 404:
            raise StorageError(f"delete rejected with HTTP {response.status_code}")

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/object/public/{bucket}/{path}"

    async def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        response = await self.client.request(
            "POST", f"/object/sign/{bucket}/{path}", json={"expiresIn": expires_in}
        )
        if response.status_code >= 400:
            raise StorageError(f"signing rejected with HTTP {response.status_code}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise StorageError("signing response did not include a URL")
        return f"{self.base_url}{signed_path}"


class LocalStorageBackend(StorageBackend):
    """
    Buckets as directories under `upload_dir`, served by the app at `/storage`.

    The photos bucket is readable by anyone. Objects in any other bucket are
    only served against a signed URL, whose token is a short-lived JWT naming
    the bucket and object path.
    """

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.upload_dir)
        self.base_url = (base_url or settings.public_base_url).rstrip("/")

    def _path(self, bucket: str, path: str) -> Path:
        bucket_root = (self.root / bucket).resolve()
        target = (bucket_root / path).resolve()
        if self.root.resolve() not in bucket_root.parents or bucket_root not in target.parents:
            raise StorageError("object path escapes the storage root")
        return target

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> None:
        target = self._path(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            if target.exists():
                target.unlink()
            raise StorageError(f"failed to write object: {e}")

    async def delete(self, bucket: str, path: str) -> None:
        target = self._path(bucket, path)
        if target.exists():
            target.unlink()

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/{bucket}/{path}"

    async def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        expires = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        token = jwt.encode(
            {"bucket": bucket, "path": path, "exp": expires},
            settings.supabase_jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        return f"{self.public_url(bucket, path)}?token={token}"

    def verify_signed_token(self, bucket: str, path: str, token: Optional[str]) -> None:
        """
        Check a signed URL token against the object it is presented for.

        Raises:
            UnauthorizedError: If the token is missing, malformed, forged or expired
            ForbiddenError: If the token was issued for a different object
        """
        if not token:
            raise UnauthorizedError("Signed URL token required")

        try:
            claims = jwt.decode(token, settings.supabase_jwt_secret, algorithms=[settings.jwt_algorithm])
        except JWTError as e:
            logger.warning(f"Rejected signed URL for {bucket}/{path}: {e}")
            raise UnauthorizedError("Invalid or expired signed URL")

        if claims.get("bucket") != bucket or claims.get("path") != path:
            raise ForbiddenError("Signed URL does not match the requested object")

    def open_object(self, bucket: str, path: str, token: Optional[str] = None) -> Path:
        """
        Resolve a download to a file on disk.

        Args:
            bucket: Bucket named in the URL
            path: Object path inside the bucket
            token: Signed URL token, required outside the photos bucket

        Returns:
            Path of the stored object

        Raises:
            UnauthorizedError: If a private object is requested without a valid token
            ForbiddenError: If the token belongs to another object
            NotFoundError: If the bucket or object does not exist
        """
        if bucket not in (settings.photos_bucket, settings.documents_bucket):
            raise NotFoundError("Bucket", bucket)
        if bucket != settings.photos_bucket:
            self.verify_signed_token(bucket, path, token)

        try:
            target = self._path(bucket, path)
        except StorageError:
            raise NotFoundError("Object")
        if not target.is_file():
            raise NotFoundError("Object")
        return target


_backend: Optional[StorageBackend] = None


def get_storage_backend() -> StorageBackend:
    """Backend selected by STORAGE_BACKEND."""
    global _backend
    if _backend is None:
        if settings.storage_backend == "local":
            _backend = LocalStorageBackend()
        else:
            _backend = SupabaseStorageBackend()
    return _backend
