"""Upload pipeline: validation, optimization, storage, thumbnailing, persistence.

Each upload runs as one linear sequence. Validation and ownership failures
happen before any storage call. A failed main-file upload aborts the request,
while optimization and thumbnail failures only reduce the output.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import time
import uuid

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from designcase_api import crud, models
from designcase_api.errors import (
    AuthorizationError, NoFileError, NotFoundError, StorageError, UpstreamError, ValidationError,
)
from designcase_api.image_processing import (
    ImageMetadata, OptimizationResult, generate_thumbnail, optimize_image,
)
from designcase_api.metrics import (
    degraded_operations_total, upload_duration_seconds, upload_file_size_bytes, uploads_total,
)
from designcase_api.storage import ObjectStorage, main_object_path, thumbnail_object_path
from designcase_api.validation import ValidatedFile, validate_upload

logger = structlog.get_logger(__name__)

THUMBNAIL_CONTENT_TYPE = "image/jpeg"


class UploadState(str, Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    OPTIMIZED = "OPTIMIZED"
    STORED_MAIN = "STORED_MAIN"
    THUMBNAILED = "THUMBNAILED"
    PERSISTED = "PERSISTED"
    COMPLETE = "COMPLETE"
    ABORTED = "ABORTED"


@dataclass
class UploadRequest:
    data: Optional[bytes]
    filename: Optional[str]
    user_id: str
    project_id: uuid.UUID
    content_type: Optional[str] = None


@dataclass
class UploadOutcome:
    design_file: models.DesignFile
    file_url: str
    thumbnail_url: str
    metadata: Optional[ImageMetadata]


class UploadService:
    def __init__(self, db: Session, storage: ObjectStorage):
        self.db = db
        self.storage = storage

    def _require_project(self, project_id: uuid.UUID, user_id: str) -> models.Project:
        project = crud.get_project_for_user(self.db, project_id, user_id)
        if project is None:
            raise NotFoundError("Project not found or unauthorized", code="PROJECT_NOT_FOUND")
        return project

    async def upload(self, request: UploadRequest) -> UploadOutcome:
        start_time = time.time()
        log = logger.bind(
            user_id=request.user_id,
            project_id=str(request.project_id),
            original_name=request.filename,
        )
        log.info("Upload received", state=UploadState.RECEIVED.value,
                 size=len(request.data or b""))

        try:
            outcome = await self._run(request, log)
        except ValidationError as e:
            uploads_total.labels(status="invalid").inc()
            log.info("Upload rejected", state=UploadState.ABORTED.value, code=e.code, reason=e.message)
            raise
        except NotFoundError as e:
            uploads_total.labels(status="not_found").inc()
            log.info("Upload rejected", state=UploadState.ABORTED.value, code=e.code)
            raise
        except Exception:
            uploads_total.labels(status="error").inc()
            raise
        finally:
            upload_duration_seconds.observe(time.time() - start_time)

        uploads_total.labels(status="success").inc()
        upload_file_size_bytes.observe(outcome.design_file.file_size)
        return outcome

    async def _run(self, request: UploadRequest, log) -> UploadOutcome:
        if not request.data:
            raise NoFileError("No file provided")

        project = self._require_project(request.project_id, request.user_id)

        validated = validate_upload(request.filename, len(request.data), request.content_type)
        log.info("Upload validated", state=UploadState.VALIDATED.value, content_type=validated.content_type)

        generated_name = f"{uuid.uuid4()}{validated.extension}"
        object_path = main_object_path(request.user_id, str(project.id), generated_name)

        optimization = await self._optimize(request.data, validated, log)

        try:
            await self.storage.put(object_path, optimization.data, validated.content_type)
        except StorageError as e:
            log.error("Main file upload failed", state=UploadState.ABORTED.value, path=object_path, error=e.message)
            raise UpstreamError(f"Storage upload failed: {e.message}", code="UPLOAD_ERROR") from e
        file_url = self.storage.public_url(object_path)
        log.info("Main file stored", state=UploadState.STORED_MAIN.value, path=object_path,
                 size=len(optimization.data))

        thumbnail_url, thumbnail_path = "", None
        if validated.is_raster and optimization.metadata is not None:
            thumbnail_url, thumbnail_path = await self._store_thumbnail(
                optimization.data, request.user_id, str(project.id), log
            )

        metadata = optimization.metadata
        try:
            design_file = crud.create_design_file(
                self.db,
                project_id=project.id,
                filename=generated_name,
                original_name=request.filename,
                file_type=metadata.format if metadata else validated.content_type,
                file_url=file_url,
                file_path=object_path,
                file_size=len(optimization.data),
                thumbnail_url=thumbnail_url,
                thumbnail_path=thumbnail_path,
                width=metadata.width if metadata else None,
                height=metadata.height if metadata else None,
            )
            crud.mark_project_uploaded(self.db, project, len(optimization.data), thumbnail_url)
        except SQLAlchemyError as e:
            self.db.rollback()
            # No compensating delete: the stored objects stay orphaned
            log.error("Failed to persist upload metadata", path=object_path,
                      thumbnail_path=thumbnail_path, error=str(e))
            raise UpstreamError("Failed to save file metadata", code="UPLOAD_ERROR") from e
        log.info("Upload persisted", state=UploadState.PERSISTED.value, design_file_id=str(design_file.id))

        log.info("Upload complete", state=UploadState.COMPLETE.value)
        return UploadOutcome(
            design_file=design_file,
            file_url=file_url,
            thumbnail_url=thumbnail_url,
            metadata=metadata,
        )

    async def _optimize(self, data: bytes, validated: ValidatedFile, log) -> OptimizationResult:
        if not validated.is_raster:
            return OptimizationResult(data=data)

        result = await run_in_threadpool(optimize_image, data, validated.extension)
        if result.degraded:
            degraded_operations_total.labels(step="optimize").inc()
            log.warning("Image optimization skipped, keeping original", reason=result.diagnostic)
        else:
            log.info("Image optimized", state=UploadState.OPTIMIZED.value,
                     original_size=len(data), stored_size=len(result.data))
        return result

    async def _store_thumbnail(self, data: bytes, user_id: str, project_id: str, log):
        result = await run_in_threadpool(generate_thumbnail, data)
        if result.degraded:
            degraded_operations_total.labels(step="thumbnail").inc()
            log.warning("Thumbnail generation failed (non-critical)", reason=result.diagnostic)
            return "", None

        path = thumbnail_object_path(user_id, project_id, f"{uuid.uuid4()}.jpg")
        try:
            await self.storage.put(path, result.data, THUMBNAIL_CONTENT_TYPE)
        except StorageError as e:
            degraded_operations_total.labels(step="thumbnail").inc()
            log.warning("Thumbnail upload failed (non-critical)", path=path, error=e.message)
            return "", None

        log.info("Thumbnail stored", state=UploadState.THUMBNAILED.value, path=path)
        return self.storage.public_url(path), path

    async def delete(self, user_id: str, design_file_id: uuid.UUID):
        design_file = crud.get_design_file(self.db, design_file_id)
        if design_file is None:
            raise NotFoundError("File not found", code="FILE_NOT_FOUND")

        if design_file.project.user_id != user_id:
            logger.warning("Delete refused for non-owner", design_file_id=str(design_file_id), user_id=user_id)
            raise AuthorizationError("Unauthorized")

        paths = [
            design_file.file_path or self.storage.path_from_url(design_file.file_url),
            design_file.thumbnail_path or self.storage.path_from_url(design_file.thumbnail_url),
        ]
        try:
            await self.storage.delete_many(path for path in paths if path)
        except StorageError as e:
            logger.warning("Storage delete failed, removing record anyway",
                           design_file_id=str(design_file_id), error=e.message)

        try:
            crud.delete_design_file(self.db, design_file)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to delete design file record", design_file_id=str(design_file_id), error=str(e))
            raise UpstreamError("Delete failed", code="DELETE_ERROR") from e

        logger.info("Design file deleted", design_file_id=str(design_file_id), deleted_by=user_id)

    def list_files(self, user_id: str, project_id: uuid.UUID) -> List[models.DesignFile]:
        self._require_project(project_id, user_id)
        try:
            return crud.list_design_files(self.db, project_id)
        except SQLAlchemyError as e:
            logger.error("Failed to list design files", project_id=str(project_id), error=str(e))
            raise UpstreamError("Failed to list files", code="LIST_ERROR") from e
