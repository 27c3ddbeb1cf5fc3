"""Upload images to an S3-compatible bucket and hand back a public URL."""

from __future__ import annotations

import io
import json
import logging
import mimetypes
import os
import time
from pathlib import Path
from typing import Any, Optional

from minio import Minio
from minio.error import MinioException
from urllib3.exceptions import HTTPError as TransportError

from . import storage_cfg
from .errors import UploadError
from .logging_setup import log_kv

logger = logging.getLogger("tgcompose.uploads")

KEY_PREFIX = "images"


def _public_read_policy(bucket: str) -> str:
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{bucket}/*"],
                }
            ],
        }
    )


def object_key(filename: str, now: Optional[float] = None) -> str:
    """Return ``images/<epoch-ms>_<basename>`` for ``filename``."""

    stamp = int((time.time() if now is None else now) * 1000)
    base = os.path.basename(filename.replace("\\", "/")) or "upload"
    return f"{KEY_PREFIX}/{stamp}_{base}"


class ImageUploader:
    def __init__(self, client: Any, bucket: str, public_url: str) -> None:
        self._client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self._bucket_ready = False

    @classmethod
    def from_config(cls) -> Optional["ImageUploader"]:
        cfg = storage_cfg()
        if not cfg.enabled:
            logger.debug("storage endpoint not configured; uploads disabled")
            return None
        client = Minio(
            cfg.endpoint,
            access_key=cfg.access_key,
            secret_key=cfg.secret_key,
            secure=cfg.secure,
        )
        return cls(client, cfg.bucket, cfg.public_url)

    def ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        if not self._client.bucket_exists(bucket_name=self.bucket):
            self._client.make_bucket(bucket_name=self.bucket)
            self._client.set_bucket_policy(bucket_name=self.bucket, policy=_public_read_policy(self.bucket))
            logger.info("created bucket %s with public read access", self.bucket)
        self._bucket_ready = True

    def url_for(self, key: str) -> str:
        return f"{self.public_url}/{self.bucket}/{key}"

    def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        if not data:
            raise UploadError("Failed to upload image: file is empty")
        key = object_key(filename)
        ctype = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        try:
            self.ensure_bucket()
            self._client.put_object(
                bucket_name=self.bucket,
                object_name=key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=ctype,
            )
        except (MinioException, TransportError, OSError) as exc:
            logger.warning("upload of %s failed: %s", filename, exc)
            raise UploadError(f"Failed to upload image: {exc}") from exc
        url = self.url_for(key)
        log_kv(logger, logging.INFO, "image uploaded", key=key, size=len(data), content_type=ctype)
        return url

    def upload_file(self, path: os.PathLike | str) -> str:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise UploadError(f"Failed to read {path}: {exc}") from exc
        return self.upload(data, path.name)
