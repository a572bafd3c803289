from datetime import timedelta
from io import BytesIO
from typing import Iterable, List, Optional
from urllib.parse import quote, unquote

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import MinioException, S3Error
import structlog
import urllib3

from designcase_api.config import settings
from designcase_api.errors import StorageError
from designcase_api.metrics import storage_operations_total

logger = structlog.get_logger(__name__)

# The client raises ValueError for arguments it rejects before any request
STORAGE_FAILURES = (MinioException, urllib3.exceptions.HTTPError, ValueError)


def main_object_path(user_id: str, project_id: str, filename: str) -> str:
    return f"{user_id}/{project_id}/{filename}"


def thumbnail_object_path(user_id: str, project_id: str, filename: str) -> str:
    return f"{user_id}/{project_id}/thumbnails/{filename}"


class ObjectStorage:
    """Gateway to the bucket holding design files and thumbnails.

    Uploads never replace an existing object: object names are generated
    uniquely per upload, so an existing key means something went wrong.
    The check is best-effort, a stat followed by a put, so two writers racing
    on the same key could both pass it. Every client failure surfaces as
    StorageError.
    """

    def __init__(self, client: Minio, bucket_name: str, public_base_url: str,
                 cache_control: str = "max-age=3600"):
        self.client = client
        self.bucket_name = bucket_name
        self.public_base_url = public_base_url.rstrip("/")
        self.cache_control = cache_control
        self._bucket_ready = False

    @classmethod
    def from_settings(cls) -> "ObjectStorage":
        client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure
        )
        return cls(
            client,
            bucket_name=settings.minio_bucket_name,
            public_base_url=settings.storage_public_base_url,
            cache_control=settings.storage_cache_control,
        )

    def _ensure_bucket_sync(self):
        if self._bucket_ready:
            return
        if not self.client.bucket_exists(self.bucket_name):
            self.client.make_bucket(self.bucket_name)
            logger.info("Created bucket", bucket=self.bucket_name)
        self._bucket_ready = True

    async def ensure_bucket(self):
        """Ensure the bucket exists, create if not"""
        try:
            await run_in_threadpool(self._ensure_bucket_sync)
        except STORAGE_FAILURES as e:
            logger.error("Error preparing bucket", bucket=self.bucket_name, error=str(e))
            raise StorageError(f"Bucket unavailable: {e}") from e

    def _object_exists(self, path: str) -> bool:
        try:
            self.client.stat_object(self.bucket_name, path)
            return True
        except S3Error as e:
            if e.code in ("NoSuchKey", "NoSuchObject", "ResourceNotFound"):
                return False
            raise

    def _put_sync(self, path: str, data: bytes, content_type: str):
        self._ensure_bucket_sync()
        if self._object_exists(path):
            raise StorageError(f"Object already exists: {path}")
        self.client.put_object(
            self.bucket_name,
            path,
            BytesIO(data),
            len(data),
            content_type=content_type,
            metadata={"Cache-Control": self.cache_control},
        )

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``path`` and return the object location"""
        try:
            await run_in_threadpool(self._put_sync, path, data, content_type)
        except StorageError:
            storage_operations_total.labels(operation="put", status="conflict").inc()
            logger.error("Refusing to overwrite object", path=path)
            raise
        except STORAGE_FAILURES as e:
            storage_operations_total.labels(operation="put", status="error").inc()
            logger.error("Failed to store object", path=path, error=str(e))
            raise StorageError(str(e)) from e

        storage_operations_total.labels(operation="put", status="success").inc()
        logger.info("Object stored", path=path, size=len(data), content_type=content_type)
        return f"{self.bucket_name}/{path}"

    async def delete(self, path: str):
        await self.delete_many([path])

    def _delete_many_sync(self, paths: List[str]) -> List[str]:
        errors = self.client.remove_objects(
            self.bucket_name, [DeleteObject(path) for path in paths]
        )
        # remove_objects is lazy; iterating performs the deletion
        return [f"{error.name}: {error.message}" for error in errors]

    async def delete_many(self, paths: Iterable[str]):
        paths = [path for path in paths if path]
        if not paths:
            return
        try:
            failures = await run_in_threadpool(self._delete_many_sync, paths)
        except STORAGE_FAILURES as e:
            storage_operations_total.labels(operation="delete", status="error").inc()
            raise StorageError(f"Delete failed: {e}") from e

        if failures:
            storage_operations_total.labels(operation="delete", status="error").inc()
            raise StorageError(f"Delete failed: {'; '.join(failures)}")

        storage_operations_total.labels(operation="delete", status="success").inc()
        logger.info("Objects deleted", paths=paths)

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{self.bucket_name}/{quote(path)}"

    def path_from_url(self, url: str) -> Optional[str]:
        """Recover the object key from a URL built by ``public_url``"""
        prefix = f"{self.public_base_url}/{self.bucket_name}/"
        if not url or not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):].split("?", 1)[0]) or None

    async def signed_url(self, path: str, ttl_seconds: int = None) -> str:
        ttl = settings.signed_url_ttl_seconds if ttl_seconds is None else ttl_seconds
        try:
            return await run_in_threadpool(
                self.client.presigned_get_object,
                self.bucket_name,
                path,
                expires=timedelta(seconds=ttl),
            )
        except STORAGE_FAILURES as e:
            logger.error("Failed to generate signed URL", path=path, error=str(e))
            raise StorageError(f"Signed URL creation failed: {e}") from e


def get_storage(request: Request) -> ObjectStorage:
    """Dependency returning the process-wide storage gateway"""
    return request.app.state.storage
