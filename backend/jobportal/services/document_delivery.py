from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from jobportal.errors import UpstreamUnavailable
from jobportal.services.object_storage import ObjectStorage, StorageError

if TYPE_CHECKING:
    from jobportal.models.application import ApplicationDocument


logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class DeliveryConfig:
    signed_url_ttl_seconds: int = 3600
    default_content_type: str = DEFAULT_CONTENT_TYPE
    chunk_size: int = 64 * 1024


@dataclass(frozen=True)
class DocumentMetadata:
    download_url: str
    retrieval_url: str
    filename: str | None
    size_bytes: int | None
    content_type: str


@dataclass(frozen=True)
class RedirectPlan:
    url: str
    headers: dict[str, str]
    signed: bool


@dataclass(frozen=True)
class ProxyStream:
    headers: dict[str, str]
    chunks: AsyncIterator[bytes]


def content_disposition(filename: str, download: bool) -> str:
    disposition = "attachment" if download else "inline"
    fallback = re.sub(r'[^A-Za-z0-9._ -]', "_", filename) or "document"
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


class DocumentDelivery:
    """Hands an authorized attachment to the caller.

    Three modes share the same descriptor: metadata (JSON with the storage
    URL), redirect (302 to a possibly signed URL) and proxy (bytes relayed
    chunk by chunk through this server). Authorization happens before any of
    these is called.
    """

    def __init__(self, storage: ObjectStorage, http_client: httpx.AsyncClient, config: DeliveryConfig) -> None:
        self.storage = storage
        self.http_client = http_client
        self.config = config

    def _content_type(self, document: ApplicationDocument) -> str:
        return document.content_type or self.config.default_content_type

    def _headers(self, document: ApplicationDocument, kind: str, download: bool) -> dict[str, str]:
        filename = document.original_filename or f"{kind}.pdf"
        return {
            "Content-Type": self._content_type(document),
            "Content-Disposition": content_disposition(filename, download),
        }

    def _resolve_url(self, document: ApplicationDocument) -> tuple[str, bool]:
        if not document.requires_signed_url:
            return document.retrieval_url, False
        try:
            url = self.storage.mint_signed_url(document.storage_id, self.config.signed_url_ttl_seconds)
        except StorageError:
            logger.exception(
                "Signed URL minting failed, using stored URL: storage_id=%s", document.storage_id
            )
            return document.retrieval_url, False
        return url, True

    def metadata(self, document: ApplicationDocument) -> DocumentMetadata:
        url, _ = self._resolve_url(document)
        return DocumentMetadata(
            download_url=url,
            retrieval_url=document.retrieval_url,
            filename=document.original_filename,
            size_bytes=document.size_bytes,
            content_type=self._content_type(document),
        )

    def redirect(self, document: ApplicationDocument, kind: str, download: bool) -> RedirectPlan:
        url, signed = self._resolve_url(document)
        return RedirectPlan(url=url, headers=self._headers(document, kind, download), signed=signed)

    async def proxy(self, document: ApplicationDocument, kind: str, download: bool) -> ProxyStream:
        url, _ = self._resolve_url(document)
        request = self.http_client.build_request("GET", url)
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.warning("Document fetch failed: storage_id=%s error=%s", document.storage_id, exc)
            raise UpstreamUnavailable("Document storage is unreachable") from exc

        if response.status_code != 200:
            await response.aclose()
            logger.warning(
                "Document fetch rejected: storage_id=%s status=%s", document.storage_id, response.status_code
            )
            raise UpstreamUnavailable(f"Document storage returned status {response.status_code}")

        return ProxyStream(headers=self._headers(document, kind, download), chunks=self._relay(response))

    async def _relay(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes(self.config.chunk_size):
                yield chunk
        except httpx.HTTPError:
            logger.warning("Document stream interrupted: url=%s", response.request.url)
            raise
        finally:
            # runs on completion and on client disconnect, aborting the upstream read
            await response.aclose()
