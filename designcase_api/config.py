from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    database_url: str = Field("sqlite:///./designcase.db")

    # Object storage (MinIO / any S3-compatible endpoint)
    minio_endpoint: str = Field("localhost:9000")
    minio_access_key: str = Field("minioadmin")
    minio_secret_key: str = Field("minioadmin")
    minio_secure: bool = Field(False)
    minio_bucket_name: str = Field("design-files")
    storage_public_base_url: str = Field("http://localhost:9000")
    storage_cache_control: str = Field("max-age=3600")
    signed_url_ttl_seconds: int = Field(3600)

    # Upload limits
    max_file_size: int = Field(50 * 1024 * 1024)  # 50MB

    # Image processing
    optimize_quality: int = Field(90)
    png_compression_level: int = Field(9)
    thumbnail_size: int = Field(400)
    thumbnail_quality: int = Field(80)

    # API Configuration
    api_title: str = "DesignCase Upload Service"
    api_description: str = "Design file upload, optimization and thumbnail service"
    api_version: str = "1.0.0"
    cors_origins: str = Field("http://localhost:3000")
    debug: bool = Field(False)

    # Logging
    log_level: str = Field("INFO")

    # Metrics
    metrics_enabled: bool = Field(True)

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"


settings = Settings()
