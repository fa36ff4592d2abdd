"""Uploaded file bytes, kept in Google Cloud Storage or a local directory."""

import logging
import time
from datetime import timedelta
from pathlib import Path

import requests
from google.cloud import storage

from errors import StorageError
from settings import get_bucket_name, get_local_storage_dir

logger = logging.getLogger(__name__)

SIGNED_URL_EXPIRATION = timedelta(minutes=15)
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def storage_path(project_id: str, kind: str, file_name: str) -> str:
    """``projects/<id>/<kind>/<epoch ms>_<name>``; kind is documents or templates."""
    return f"projects/{project_id}/{kind}/{int(time.time() * 1000)}_{file_name}"


class GCSFileStorage:
    """Objects moved through short-lived V4 signed URLs."""

    def __init__(self, bucket: storage.Bucket, timeout: float = 60):
        self.bucket = bucket
        self.timeout = timeout

    def _sign(self, path: str, **kwargs) -> str:
        blob = self.bucket.blob(path)
        try:
            return blob.generate_signed_url(
                version="v4", expiration=SIGNED_URL_EXPIRATION, **kwargs
            )
        except Exception as exc:
            # Credentials without a private key (user ADC) cannot sign.
            logger.exception("Error signing URL for %s", path)
            raise StorageError(f"Failed to sign a URL for {path}") from exc

    def generate_upload_url(self, path: str, content_type: str | None = None) -> str:
        return self._sign(path, method="PUT", content_type=content_type or DEFAULT_CONTENT_TYPE)

    def generate_download_url(self, path: str) -> str:
        return self._sign(path, method="GET")

    def upload(self, path: str, data: bytes, content_type: str | None = None):
        content_type = content_type or DEFAULT_CONTENT_TYPE
        url = self.generate_upload_url(path, content_type)
        try:
            res = requests.put(
                url, data=data, headers={"Content-Type": content_type}, timeout=self.timeout
            )
            res.raise_for_status()
        except requests.RequestException as exc:
            raise StorageError(f"Failed to upload {path}") from exc
        logger.info("Uploaded %d bytes to gs://%s/%s", len(data), self.bucket.name, path)

    def download(self, path: str) -> bytes:
        url = self.generate_download_url(path)
        try:
            res = requests.get(url, timeout=self.timeout)
            res.raise_for_status()
        except requests.RequestException as exc:
            raise StorageError(f"Failed to download {path}") from exc
        return res.content


class LocalFileStorage:
    """Files written under a local root directory, for development without GCS."""

    def __init__(self, root: str):
        self.root = Path(root)

    def upload(self, path: str, data: bytes, content_type: str | None = None):
        target = self.root / path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to upload {path}") from exc

    def download(self, path: str) -> bytes:
        try:
            return (self.root / path).read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to download {path}") from exc


def get_file_storage():
    """GCS when GCS_BUCKET_NAME is set, otherwise the local storage directory."""
    bucket_name = get_bucket_name()
    if bucket_name:
        return GCSFileStorage(storage.Client().bucket(bucket_name))
    logger.warning("GCS_BUCKET_NAME is not set; files are stored under %s", get_local_storage_dir())
    return LocalFileStorage(get_local_storage_dir())
