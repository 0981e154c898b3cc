from __future__ import annotations

import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from jobportal.deps import get_object_storage
from jobportal.errors import Forbidden, NotFound
from jobportal.services.object_storage import LocalObjectStorage, ObjectNotFound, ObjectStorage


router = APIRouter()


@router.get("/{storage_id:path}")
def serve_object(
    storage_id: str,
    expires: int | None = None,
    signature: str | None = None,
    storage: ObjectStorage = Depends(get_object_storage),
) -> StreamingResponse:
    """Serve objects of the local backend, the way a CDN would for S3."""
    if not isinstance(storage, LocalObjectStorage):
        raise NotFound("Object not found")
    if storage.is_private(storage_id) and not storage.verify_signature(storage_id, expires, signature):
        raise Forbidden("A valid signed URL is required for this object")
    try:
        chunks = storage.get(storage_id)
    except ObjectNotFound as exc:
        raise NotFound("Object not found") from exc

    media_type = mimetypes.guess_type(storage_id)[0] or "application/octet-stream"
    return StreamingResponse(chunks, media_type=media_type)
