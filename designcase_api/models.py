from sqlalchemy import Column, String, Integer, BigInteger, Boolean, DateTime, Text, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
import uuid

from designcase_api.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class ProjectStatus(str, enum.Enum):
    PENDING = "PENDING"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    ARCHIVED = "ARCHIVED"


class DesignFileStatus(str, enum.Enum):
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    ANALYZED = "ANALYZED"
    FAILED = "FAILED"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    slug = Column(String(255))
    source_type = Column(String(20), default="UPLOAD", nullable=False)
    status = Column(String(20), default=ProjectStatus.PENDING.value, nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    error_msg = Column(Text)
    thumbnail = Column(String(1000))
    file_size = Column(BigInteger)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    design_files = relationship("DesignFile", back_populates="project", cascade="all, delete-orphan")


class DesignFile(Base):
    __tablename__ = "design_files"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=False)
    file_url = Column(String(1000), nullable=False)
    file_path = Column(String(500))  # object key in the bucket
    thumbnail_url = Column(String(1000), default="", nullable=False)
    thumbnail_path = Column(String(500))
    file_size = Column(BigInteger, nullable=False)
    width = Column(Integer)
    height = Column(Integer)
    status = Column(String(20), default=DesignFileStatus.UPLOADED.value, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="design_files")


class Template(Base):
    __tablename__ = "templates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    thumbnail = Column(String(1000), nullable=False)
    demo_url = Column(String(1000))
    config = Column(JSON, default=dict)
    features = Column(JSON, default=list)
    is_premium = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
