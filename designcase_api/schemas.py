from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from datetime import datetime
import uuid


class CamelModel(BaseModel):
    """Accepts snake_case field names, serializes with camelCase aliases"""
    model_config = ConfigDict(populate_by_name=True)


class UploadedFile(CamelModel):
    id: uuid.UUID
    filename: str
    original_name: str = Field(alias="originalName")
    file_size: int = Field(alias="fileSize")
    width: Optional[int] = None
    height: Optional[int] = None
    status: str
    created_at: datetime = Field(alias="createdAt")


class FileUrls(BaseModel):
    original: str
    thumbnail: str = ""


class ImageMetadata(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None


class UploadResponse(BaseModel):
    success: bool = True
    file: UploadedFile
    urls: FileUrls
    metadata: ImageMetadata


class DesignFile(CamelModel):
    id: uuid.UUID
    project_id: uuid.UUID = Field(alias="projectId")
    filename: str
    original_name: str = Field(alias="originalName")
    file_type: str = Field(alias="fileType")
    file_url: str = Field(alias="fileUrl")
    thumbnail_url: str = Field("", alias="thumbnailUrl")
    file_size: int = Field(alias="fileSize")
    width: Optional[int] = None
    height: Optional[int] = None
    status: str
    created_at: datetime = Field(alias="createdAt")


class FileListResponse(BaseModel):
    success: bool = True
    files: List[DesignFile]
    count: int


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[Any] = None


class HealthCheck(BaseModel):
    status: str
    timestamp: datetime
