"""Object store clients (local filesystem + S3-compatible).

The pipeline only needs four operations from a store: ``exists``, ``get``,
``put`` and ``list``. A missing key raises ``ObjectNotFoundError``; every
other failure is surfaced as ``TransferError`` and aborts the run. There is
no retry here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from binrelay.config import ReleaseConfig
from binrelay.errors import ObjectNotFoundError, TransferError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass(frozen=True)
class StoredObject:
    key: str
    size: int
    last_modified: datetime


@runtime_checkable
class ObjectStore(Protocol):
    """Blocking object store operations used by the release pipeline."""

    def exists(self, key: str) -> bool:
        ...

    def get(self, key: str) -> bytes:
        """Return the object's bytes. Raises ``ObjectNotFoundError`` if absent."""
        ...

    def put(self, key: str, data: bytes) -> None:
        ...

    def list(self, prefix: str) -> list[StoredObject]:
        """All objects whose key starts with *prefix*, sorted by key."""
        ...


class LocalObjectStore:
    """Filesystem-backed store: key ``a/b/c`` lives at ``{root}/a/b/c``.

    Used for rehearsing a release and in tests. Writes go through a
    temporary file and ``os.replace`` so readers never see partial objects.

    Parameters
    ----------
    root:
        Directory acting as the bucket root.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or ".." in parts:
            raise ValueError(f"Invalid object key: {key!r}")
        return self.root.joinpath(*parts)

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise ObjectNotFoundError(key)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise TransferError(f"Failed to read {key}: {exc}") from exc

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise TransferError(f"Failed to write {key}: {exc}") from exc
        logger.debug("Stored %s (%d bytes)", key, len(data))

    def delete(self, key: str) -> None:
        """Remove an object if present."""
        self._path(key).unlink(missing_ok=True)

    def list(self, prefix: str) -> list[StoredObject]:
        objects: list[StoredObject] = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.endswith(".tmp"):
                continue
            key = path.relative_to(self.root).as_posix()
            if not key.startswith(prefix):
                continue
            stat = path.stat()
            objects.append(
                StoredObject(
                    key=key,
                    size=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return sorted(objects, key=lambda obj: obj.key)


class S3ObjectStore:
    """S3-compatible store (AWS S3, Cloudflare R2) via boto3.

    Parameters
    ----------
    bucket:
        Bucket name.
    client:
        A boto3 S3 client. ``from_config`` builds one for an R2 endpoint.
    prefix:
        Optional key prefix inside the bucket; stripped again from listed keys.
    """

    def __init__(self, bucket: str, client: Any, prefix: str = "") -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self._client = client

    @classmethod
    def from_config(cls, config: ReleaseConfig) -> S3ObjectStore:
        client = boto3.client(
            "s3",
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
        )
        return cls(config.bucket_name, client)

    def _key(self, key: str) -> str:
        key = key.lstrip("/")
        if not self.prefix:
            return key
        return f"{self.prefix}/{key}"

    def _unkey(self, full_key: str) -> str:
        if not self.prefix:
            return full_key
        return full_key.removeprefix(f"{self.prefix}/")

    def exists(self, key: str) -> bool:
        full_key = self._key(key)
        try:
            self._client.head_object(Bucket=self.bucket, Key=full_key)
            return True
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return False
            raise TransferError(f"Failed to check s3://{self.bucket}/{full_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise TransferError(f"Failed to check s3://{self.bucket}/{full_key}: {exc}") from exc

    def get(self, key: str) -> bytes:
        full_key = self._key(key)
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=full_key)
            return response["Body"].read()
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(key) from exc
            raise TransferError(f"Failed to download s3://{self.bucket}/{full_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise TransferError(f"Failed to download s3://{self.bucket}/{full_key}: {exc}") from exc

    def put(self, key: str, data: bytes) -> None:
        full_key = self._key(key)
        try:
            self._client.put_object(Bucket=self.bucket, Key=full_key, Body=data)
        except (ClientError, BotoCoreError) as exc:
            raise TransferError(f"Failed to upload s3://{self.bucket}/{full_key}: {exc}") from exc
        logger.debug("Uploaded s3://%s/%s (%d bytes)", self.bucket, full_key, len(data))

    def list(self, prefix: str) -> list[StoredObject]:
        full_prefix = self._key(prefix)
        objects: list[StoredObject] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=full_prefix):
                for item in page.get("Contents", []):
                    objects.append(
                        StoredObject(
                            key=self._unkey(item["Key"]),
                            size=item.get("Size", 0),
                            last_modified=item["LastModified"],
                        )
                    )
        except (ClientError, BotoCoreError) as exc:
            raise TransferError(f"Failed to list s3://{self.bucket}/{full_prefix}: {exc}") from exc
        return sorted(objects, key=lambda obj: obj.key)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def build_object_store(config: ReleaseConfig) -> ObjectStore:
    """Build the store selected by ``config.store_backend``.

    Raises ``ConfigurationError`` if the backend's settings are incomplete.
    """
    config.require_store_settings()
    if config.store_backend == "local":
        logger.info("Using local object store at %s", config.local_store_path)
        return LocalObjectStore(config.local_store_path)
    logger.info("Using S3 object store s3://%s at %s", config.bucket_name, config.endpoint)
    return S3ObjectStore.from_config(config)
