from sqlalchemy.orm import Session
from typing import List, Optional
import uuid

from designcase_api import models


def create_project(db: Session, user_id: str, name: str, **fields) -> models.Project:
    db_project = models.Project(user_id=user_id, name=name, **fields)
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    return db_project


def get_project_for_user(db: Session, project_id: uuid.UUID, user_id: str) -> Optional[models.Project]:
    """Return the project only if it belongs to ``user_id``"""
    return (
        db.query(models.Project)
        .filter(models.Project.id == project_id, models.Project.user_id == user_id)
        .first()
    )


def mark_project_uploaded(db: Session, project: models.Project, file_size: int, thumbnail_url: str = ""):
    project.status = models.ProjectStatus.PROCESSING.value
    project.file_size = file_size
    # An empty thumbnail leaves the previous one in place
    if thumbnail_url:
        project.thumbnail = thumbnail_url
    db.commit()
    db.refresh(project)
    return project


def create_design_file(
    db: Session,
    project_id: uuid.UUID,
    filename: str,
    original_name: str,
    file_type: str,
    file_url: str,
    file_path: str,
    file_size: int,
    thumbnail_url: str = "",
    thumbnail_path: Optional[str] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> models.DesignFile:
    db_file = models.DesignFile(
        project_id=project_id,
        filename=filename,
        original_name=original_name,
        file_type=file_type,
        file_url=file_url,
        file_path=file_path,
        thumbnail_url=thumbnail_url,
        thumbnail_path=thumbnail_path,
        file_size=file_size,
        width=width,
        height=height,
        status=models.DesignFileStatus.UPLOADED.value,
    )
    db.add(db_file)
    db.commit()
    db.refresh(db_file)
    return db_file


def get_design_file(db: Session, design_file_id: uuid.UUID) -> Optional[models.DesignFile]:
    return db.query(models.DesignFile).filter(models.DesignFile.id == design_file_id).first()


def list_design_files(db: Session, project_id: uuid.UUID) -> List[models.DesignFile]:
    return (
        db.query(models.DesignFile)
        .filter(models.DesignFile.project_id == project_id)
        .order_by(models.DesignFile.created_at.desc())
        .all()
    )


def delete_design_file(db: Session, design_file: models.DesignFile):
    db.delete(design_file)
    db.commit()
    return design_file
