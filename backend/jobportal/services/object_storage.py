from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote, urlencode

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    from jobportal.config import Settings


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PRIVATE_PREFIX = "private"
PUBLIC_PREFIX = "public"


class StorageError(Exception):
    """The object store could not complete a call."""


class ObjectNotFound(StorageError):
    pass


@dataclass(frozen=True)
class StoredObject:
    storage_id: str
    retrieval_url: str
    requires_signed_url: bool


class ObjectStorage(Protocol):
    def put(
        self,
        data: bytes,
        *,
        folder: str,
        filename: str,
        content_type: str,
        private: bool,
    ) -> StoredObject: ...

    def get(self, storage_id: str) -> Iterator[bytes]: ...

    def delete(self, storage_id: str) -> None: ...

    def mint_signed_url(self, storage_id: str, ttl_seconds: int) -> str: ...


def _object_key(folder: str, filename: str, private: bool) -> str:
    suffix = Path(filename).suffix.lower()
    if not re.fullmatch(r"\.[a-z0-9]{1,8}", suffix):
        suffix = ""
    safe_folder = "/".join(re.sub(r"[^A-Za-z0-9_-]", "_", part) for part in folder.strip("/").split("/") if part)
    visibility = PRIVATE_PREFIX if private else PUBLIC_PREFIX
    return f"{visibility}/{safe_folder}/{uuid.uuid4().hex}{suffix}"


class LocalObjectStorage:
    """Stores objects on disk and serves them through the app's /storage route.

    Objects under the private/ prefix are only readable with an HMAC-signed URL.
    """

    def __init__(self, root: str | Path, base_url: str, signing_secret: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.signing_secret = signing_secret

    def _path(self, storage_id: str) -> Path:
        path = (self.root / storage_id).resolve()
        if self.root.resolve() not in path.parents:
            raise ObjectNotFound(storage_id)
        return path

    def _url(self, storage_id: str) -> str:
        return f"{self.base_url}/storage/{quote(storage_id)}"

    def put(self, data: bytes, *, folder: str, filename: str, content_type: str, private: bool) -> StoredObject:
        storage_id = _object_key(folder, filename, private)
        target = self._path(storage_id)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {storage_id}") from exc
        return StoredObject(storage_id=storage_id, retrieval_url=self._url(storage_id), requires_signed_url=private)

    def get(self, storage_id: str) -> Iterator[bytes]:
        path = self._path(storage_id)
        if not path.is_file():
            raise ObjectNotFound(storage_id)
        return self._read_chunks(path)

    @staticmethod
    def _read_chunks(path: Path) -> Iterator[bytes]:
        with path.open("rb") as handle:
            while chunk := handle.read(CHUNK_SIZE):
                yield chunk

    def delete(self, storage_id: str) -> None:
        path = self._path(storage_id)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise ObjectNotFound(storage_id) from exc
        except OSError as exc:
            raise StorageError(f"Could not delete {storage_id}") from exc

    def is_private(self, storage_id: str) -> bool:
        return storage_id.startswith(f"{PRIVATE_PREFIX}/")

    def _signature(self, storage_id: str, expires: int) -> str:
        payload = f"{storage_id}:{expires}".encode("utf-8")
        return hmac.new(self.signing_secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()

    def mint_signed_url(self, storage_id: str, ttl_seconds: int) -> str:
        expires = int(time.time()) + ttl_seconds
        query = urlencode({"expires": expires, "signature": self._signature(storage_id, expires)})
        return f"{self._url(storage_id)}?{query}"

    def verify_signature(self, storage_id: str, expires: int | None, signature: str | None) -> bool:
        if expires is None or not signature:
            return False
        if expires < int(time.time()):
            return False
        return hmac.compare_digest(self._signature(storage_id, expires), signature)


class S3ObjectStorage:
    def __init__(
        self,
        bucket: str,
        *,
        region: str = "",
        endpoint: str = "",
        access_key: str = "",
        secret_key: str = "",
        public_base_url: str = "",
        client=None,
    ) -> None:
        self.bucket = bucket
        if client is None:
            s3_kwargs = {}
            if endpoint:
                s3_kwargs["endpoint_url"] = endpoint
            if region:
                s3_kwargs["region_name"] = region
            client = boto3.client(
                "s3",
                aws_access_key_id=access_key or None,
                aws_secret_access_key=secret_key or None,
                config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
                **s3_kwargs,
            )
        self.client = client
        if public_base_url:
            self.public_base_url = public_base_url.rstrip("/")
        elif endpoint:
            self.public_base_url = f"{endpoint.rstrip('/')}/{bucket}"
        else:
            region_part = f".{region}" if region else ""
            self.public_base_url = f"https://{bucket}.s3{region_part}.amazonaws.com"

    def put(self, data: bytes, *, folder: str, filename: str, content_type: str, private: bool) -> StoredObject:
        key = _object_key(folder, filename, private)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={"original-name": quote(filename)},
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"S3 upload failed for {key}") from exc
        return StoredObject(
            storage_id=key,
            retrieval_url=f"{self.public_base_url}/{quote(key)}",
            requires_signed_url=private,
        )

    def get(self, storage_id: str) -> Iterator[bytes]:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=storage_id)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"NoSuchKey", "404"}:
                raise ObjectNotFound(storage_id) from exc
            raise StorageError(f"S3 download failed for {storage_id}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"S3 download failed for {storage_id}") from exc
        return self._iter_body(obj["Body"])

    @staticmethod
    def _iter_body(body) -> Iterator[bytes]:
        try:
            yield from body.iter_chunks(CHUNK_SIZE)
        finally:
            body.close()

    def delete(self, storage_id: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=storage_id)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"S3 delete failed for {storage_id}") from exc

    def mint_signed_url(self, storage_id: str, ttl_seconds: int) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": storage_id},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Could not sign URL for {storage_id}") from exc


def build_object_storage(settings: Settings) -> ObjectStorage:
    if settings.storage_backend == "s3":
        logger.info("Object storage: backend=s3 bucket=%s", settings.s3_bucket)
        return S3ObjectStorage(
            settings.s3_bucket,
            region=settings.s3_region,
            endpoint=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            public_base_url=settings.s3_public_base_url,
        )
    logger.info("Object storage: backend=local root=%s", settings.upload_dir)
    return LocalObjectStorage(settings.upload_dir, settings.public_base_url, settings.storage_signing_secret)
