from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import BinaryIO, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.errors import FileOperationError
from app.core.strings import generate_url

_LOG = logging.getLogger("app.storage")


class UploadedFile(Protocol):
    filename: str | None
    content_type: str | None
    file: BinaryIO


def _safe_file_name(file_name: str) -> str:
    raw = str(file_name or "").strip()
    if not raw:
        return "file.bin"
    stem, dot, extension = raw.rpartition(".")
    if not dot:
        stem, extension = raw, ""
    safe_stem = generate_url(stem) or "file"
    safe_extension = generate_url(extension)
    return f"{safe_stem}.{safe_extension}" if safe_extension else safe_stem


def build_object_key(prefix: str, file_name: str, field_hint: str | None = None) -> str:
    safe_name = _safe_file_name(file_name)
    if field_hint:
        safe_name = f"{generate_url(field_hint)}-{safe_name}"
    return f"{prefix.strip('/')}/{uuid.uuid4().hex}-{safe_name}"


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return exc.__class__.__name__


class FileStorage:
    def __init__(self):
        self.bucket = settings.S3_BUCKET
        self.client = boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
            region_name=settings.S3_REGION,
            use_ssl=settings.S3_USE_SSL,
        )
        self._bucket_checked = False

    def ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as exc:
            if _error_code(exc) not in {"404", "NoSuchBucket", "NotFound"}:
                raise
            kwargs: dict = {"Bucket": self.bucket}
            if settings.S3_REGION and settings.S3_REGION != "us-east-1":
                kwargs["CreateBucketConfiguration"] = {"LocationConstraint": settings.S3_REGION}
            try:
                self.client.create_bucket(**kwargs)
            except ClientError as create_exc:
                if _error_code(create_exc) not in {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}:
                    raise
        self._bucket_checked = True

    def save(self, file: UploadedFile, destination: str, field_hint: str | None = None) -> str:
        """Store an uploaded file under `destination` and return its key."""
        key = build_object_key(destination, file.filename or "", field_hint)
        try:
            self.ensure_bucket()
            file.file.seek(0)
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=file.file.read(),
                ContentType=file.content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError, OSError) as exc:
            _LOG.warning("file_save_failed key=%s code=%s", key, _error_code(exc))
            raise FileOperationError(f"Unable to save file \"{file.filename}\"") from exc
        _LOG.info("file_saved key=%s", key)
        return key

    def remove(self, key: str | None) -> None:
        if not key:
            return
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            _LOG.warning("file_remove_failed key=%s code=%s", key, _error_code(exc))
            raise FileOperationError(f"Unable to remove file \"{key}\"") from exc
        _LOG.info("file_removed key=%s", key)


@lru_cache(maxsize=1)
def get_file_storage() -> FileStorage:
    return FileStorage()
