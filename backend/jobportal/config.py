from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote

from jobportal.services.document_delivery import DeliveryConfig
from jobportal.services.upload_validator import UploadPolicy


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    app_name: str = os.getenv("APP_NAME", "Job Portal")
    environment: str = os.getenv("ENV", "development")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./db/jobportal.db")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: list[str] = field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS",
            "http://localhost,http://localhost:5173,http://localhost:8000,http://127.0.0.1:8000",
        )
    )
    job_default_ttl_days: int = int(os.getenv("JOB_DEFAULT_TTL_DAYS", "30"))

    auth_secret: str = os.getenv("AUTH_SECRET", "job-portal-dev-secret")
    auth_token_ttl_seconds: int = int(os.getenv("AUTH_TOKEN_TTL_SECONDS", str(60 * 60 * 24 * 14)))

    storage_backend: str = os.getenv("STORAGE_BACKEND", "local")
    upload_dir: str = os.getenv("UPLOAD_DIR", "./uploads")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    storage_signing_secret: str = os.getenv("STORAGE_SIGNING_SECRET", "job-portal-storage-dev-secret")
    storage_private_documents: bool = _env_bool("STORAGE_PRIVATE_DOCUMENTS", "true")
    s3_bucket: str = os.getenv("S3_BUCKET", "")
    s3_region: str = os.getenv("S3_REGION", "")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "")
    s3_public_base_url: str = os.getenv("S3_PUBLIC_BASE_URL", "")

    max_document_size_mb: int = int(os.getenv("MAX_DOCUMENT_SIZE_MB", "10"))
    max_avatar_size_mb: int = int(os.getenv("MAX_AVATAR_SIZE_MB", "5"))
    signed_url_ttl_seconds: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "3600"))
    proxy_timeout_seconds: float = float(os.getenv("PROXY_TIMEOUT_SECONDS", "30"))
    proxy_chunk_size: int = int(os.getenv("PROXY_CHUNK_SIZE", str(64 * 1024)))

    def upload_policy(self) -> UploadPolicy:
        return UploadPolicy(
            document_max_bytes=self.max_document_size_mb * 1024 * 1024,
            avatar_max_bytes=self.max_avatar_size_mb * 1024 * 1024,
        )

    def delivery_config(self) -> DeliveryConfig:
        return DeliveryConfig(
            signed_url_ttl_seconds=self.signed_url_ttl_seconds,
            chunk_size=self.proxy_chunk_size,
        )

    def ensure_directories(self) -> None:
        if self.storage_backend == "local":
            Path(self.upload_dir).mkdir(parents=True, exist_ok=True)
        self._ensure_sqlite_directory()

    def _ensure_sqlite_directory(self) -> None:
        if not self.database_url.startswith("sqlite:///"):
            return
        raw_path = self.database_url.replace("sqlite:///", "", 1)
        if not raw_path or raw_path == ":memory:":
            return
        db_path = Path(unquote(raw_path))
        if not db_path.is_absolute():
            db_path = Path(".") / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)


settings = Settings()
