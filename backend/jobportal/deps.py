from __future__ import annotations

from functools import lru_cache

import httpx
from fastapi import Depends
from sqlalchemy.orm import Session

from jobportal.config import settings
from jobportal.database import get_db
from jobportal.services.applications import ApplicationService
from jobportal.services.document_delivery import DeliveryConfig, DocumentDelivery
from jobportal.services.object_storage import ObjectStorage, build_object_storage
from jobportal.services.upload_validator import UploadPolicy


_http_client: httpx.AsyncClient | None = None


@lru_cache
def get_object_storage() -> ObjectStorage:
    return build_object_storage(settings)


def get_upload_policy() -> UploadPolicy:
    return settings.upload_policy()


def get_delivery_config() -> DeliveryConfig:
    return settings.delivery_config()


def get_http_client() -> httpx.AsyncClient:
    # shared for the process so a streamed response can outlive the request handler
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=settings.proxy_timeout_seconds, follow_redirects=True)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def get_application_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    policy: UploadPolicy = Depends(get_upload_policy),
) -> ApplicationService:
    return ApplicationService(db, storage, policy, private_documents=settings.storage_private_documents)


def get_document_delivery(
    storage: ObjectStorage = Depends(get_object_storage),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    config: DeliveryConfig = Depends(get_delivery_config),
) -> DocumentDelivery:
    return DocumentDelivery(storage, http_client, config)
