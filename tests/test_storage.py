from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import requests

import storage as file_store
from errors import StorageError
from storage import GCSFileStorage, LocalFileStorage, get_file_storage, storage_path


def test_storage_path_layout(monkeypatch):
    monkeypatch.setattr(file_store.time, "time", lambda: 1700000000.5)
    assert storage_path("p1", "documents", "spec.pdf") == "projects/p1/documents/1700000000500_spec.pdf"


def _bucket():
    bucket = MagicMock()
    bucket.name = "test-bucket"
    bucket.blob.return_value.generate_signed_url.return_value = "https://signed.example/obj"
    return bucket


def test_upload_url_is_v4_put_for_fifteen_minutes():
    bucket = _bucket()
    url = GCSFileStorage(bucket).generate_upload_url("projects/p1/documents/1_a.txt", "text/plain")

    assert url == "https://signed.example/obj"
    bucket.blob.assert_called_with("projects/p1/documents/1_a.txt")
    bucket.blob.return_value.generate_signed_url.assert_called_once_with(
        version="v4",
        expiration=timedelta(minutes=15),
        method="PUT",
        content_type="text/plain",
    )


def test_download_url_is_v4_get():
    bucket = _bucket()
    GCSFileStorage(bucket).generate_download_url("projects/p1/templates/1_t.xlsx")

    bucket.blob.return_value.generate_signed_url.assert_called_once_with(
        version="v4",
        expiration=timedelta(minutes=15),
        method="GET",
    )


def test_upload_puts_bytes_to_signed_url(monkeypatch):
    put = MagicMock()
    monkeypatch.setattr(file_store.requests, "put", put)

    GCSFileStorage(_bucket(), timeout=5).upload("path/a.txt", b"hello")

    put.assert_called_once_with(
        "https://signed.example/obj",
        data=b"hello",
        headers={"Content-Type": "application/octet-stream"},
        timeout=5,
    )
    put.return_value.raise_for_status.assert_called_once_with()


def test_download_gets_signed_url(monkeypatch):
    get = MagicMock()
    get.return_value.content = b"bytes"
    monkeypatch.setattr(file_store.requests, "get", get)

    assert GCSFileStorage(_bucket()).download("path/a.txt") == b"bytes"


def test_transfer_failure_raises_storage_error(monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(file_store.requests, "put", refuse)
    monkeypatch.setattr(file_store.requests, "get", refuse)
    gcs = GCSFileStorage(_bucket())

    with pytest.raises(StorageError) as info:
        gcs.upload("path/a.txt", b"x")
    assert isinstance(info.value.__cause__, requests.ConnectionError)
    with pytest.raises(StorageError):
        gcs.download("path/a.txt")


def test_http_error_raises_storage_error(monkeypatch):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("403 Forbidden")
    monkeypatch.setattr(file_store.requests, "put", MagicMock(return_value=response))

    with pytest.raises(StorageError):
        GCSFileStorage(_bucket()).upload("path/a.txt", b"x")


def test_signing_failure_raises_storage_error(monkeypatch):
    bucket = _bucket()
    bucket.blob.return_value.generate_signed_url.side_effect = AttributeError(
        "you need a private key to sign credentials"
    )
    put = MagicMock()
    monkeypatch.setattr(file_store.requests, "put", put)
    gcs = GCSFileStorage(bucket)

    with pytest.raises(StorageError) as info:
        gcs.upload("path/a.txt", b"x")
    assert isinstance(info.value.__cause__, AttributeError)
    put.assert_not_called()
    with pytest.raises(StorageError):
        gcs.download("path/a.txt")


def test_local_storage_round_trip(tmp_path):
    local = LocalFileStorage(str(tmp_path))
    local.upload("projects/p1/documents/1_a.txt", b"content")

    assert (tmp_path / "projects/p1/documents/1_a.txt").read_bytes() == b"content"
    assert local.download("projects/p1/documents/1_a.txt") == b"content"


def test_local_storage_missing_file(tmp_path):
    with pytest.raises(StorageError):
        LocalFileStorage(str(tmp_path)).download("nope.txt")


def test_get_file_storage_falls_back_to_local(monkeypatch, tmp_path):
    monkeypatch.delenv("GCS_BUCKET_NAME", raising=False)
    monkeypatch.setenv("LOCAL_STORAGE_DIR", str(tmp_path))

    file_storage = get_file_storage()
    assert isinstance(file_storage, LocalFileStorage)
    assert file_storage.root == tmp_path


def test_local_upload_failure_raises_storage_error(tmp_path):
    (tmp_path / "projects").write_bytes(b"a file where a directory should be")

    with pytest.raises(StorageError) as info:
        LocalFileStorage(str(tmp_path)).upload("projects/p1/documents/1_a.txt", b"content")
    assert isinstance(info.value.__cause__, OSError)
