from typing import Optional
import uuid

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
import structlog

from designcase_api import schemas
from designcase_api.auth_client import get_current_user_id
from designcase_api.database import get_db
from designcase_api.errors import UploadServiceError, UpstreamError
from designcase_api.storage import ObjectStorage, get_storage
from designcase_api.uploads import UploadRequest, UploadService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Uploads"])

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse},
    401: {"model": schemas.ErrorResponse},
    403: {"model": schemas.ErrorResponse},
    404: {"model": schemas.ErrorResponse},
    413: {"model": schemas.ErrorResponse},
    415: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}


def get_upload_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage)
) -> UploadService:
    return UploadService(db, storage)


@router.post(
    "/projects/{project_id}/upload",
    response_model=schemas.UploadResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def upload_design_file(
    project_id: uuid.UUID,
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service)
):
    """Upload a design file with automatic optimization and thumbnailing"""
    try:
        data = await file.read() if file is not None else None
        outcome = await service.upload(UploadRequest(
            data=data,
            filename=file.filename if file is not None else None,
            user_id=user_id,
            project_id=project_id,
            content_type=file.content_type if file is not None else None,
        ))
    except UploadServiceError:
        raise
    except Exception as e:
        logger.error("Upload failed", project_id=str(project_id), error=str(e))
        raise UpstreamError("Upload failed", code="UPLOAD_ERROR") from e

    design_file = outcome.design_file
    metadata = outcome.metadata
    return schemas.UploadResponse(
        file=schemas.UploadedFile(
            id=design_file.id,
            filename=design_file.filename,
            original_name=design_file.original_name,
            file_size=design_file.file_size,
            width=design_file.width,
            height=design_file.height,
            status=design_file.status,
            created_at=design_file.created_at,
        ),
        urls=schemas.FileUrls(original=outcome.file_url, thumbnail=outcome.thumbnail_url),
        metadata=schemas.ImageMetadata(
            width=metadata.width if metadata else None,
            height=metadata.height if metadata else None,
            format=metadata.format if metadata else None,
        ),
    )


@router.delete("/{design_file_id}", response_model=schemas.DeleteResponse, responses=ERROR_RESPONSES)
async def delete_design_file(
    design_file_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service)
):
    try:
        await service.delete(user_id, design_file_id)
    except UploadServiceError:
        raise
    except Exception as e:
        logger.error("Delete failed", design_file_id=str(design_file_id), error=str(e))
        raise UpstreamError("Delete failed", code="DELETE_ERROR") from e

    return schemas.DeleteResponse(message="File deleted successfully")


@router.get("/projects/{project_id}", response_model=schemas.FileListResponse, responses=ERROR_RESPONSES)
async def list_design_files(
    project_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: UploadService = Depends(get_upload_service)
):
    """List a project's design files, newest first"""
    try:
        files = service.list_files(user_id, project_id)
    except UploadServiceError:
        raise
    except Exception as e:
        logger.error("List files failed", project_id=str(project_id), error=str(e))
        raise UpstreamError("Failed to list files", code="LIST_ERROR") from e

    return schemas.FileListResponse(
        files=[
            schemas.DesignFile(
                id=f.id,
                project_id=f.project_id,
                filename=f.filename,
                original_name=f.original_name,
                file_type=f.file_type,
                file_url=f.file_url,
                thumbnail_url=f.thumbnail_url or "",
                file_size=f.file_size,
                width=f.width,
                height=f.height,
                status=f.status,
                created_at=f.created_at,
            )
            for f in files
        ],
        count=len(files),
    )
