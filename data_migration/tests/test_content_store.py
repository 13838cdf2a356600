"""
Tests for content-addressed storage backends.

HTTP access is tested against a patched requests session; no network
is used.
"""
import io

import pytest
import requests

from storage import (
    FileSystemBackend,
    HttpBackend,
    MemoryBackend,
    StorageKey,
    build_storage,
)
from storage.http_client import HttpClient, RetryConfig

DATA = b'{"document": "content"}'


def make_response(status_code, body=b""):
    response = requests.Response()
    response.status_code = status_code
    response.raw = io.BytesIO(body)
    return response


class TestStorageKey:
    """Test storage keys."""

    def test_for_bytes(self):
        key = StorageKey.for_bytes(b"hello")

        assert key.sha256 == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        assert str(key) == key.sha256

    def test_from_sha256_normalizes(self):
        digest = StorageKey.for_bytes(b"hello").sha256

        assert StorageKey.from_sha256("sha256:" + digest.upper()) == StorageKey(digest)

    @pytest.mark.parametrize("digest", ["", "abc", "z" * 64, None])
    def test_from_sha256_rejects_invalid(self, digest):
        with pytest.raises(ValueError):
            StorageKey.from_sha256(digest)


class TestMemoryBackend:

    def test_retrieve(self):
        backend = MemoryBackend()
        key = backend.add(DATA)

        assert b"".join(backend.retrieve(key)) == DATA
        assert backend.retrieve(StorageKey.for_bytes(b"other")) is None


class TestFileSystemBackend:
    """Test the sharded filesystem backend."""

    def test_retrieve(self, tmp_path):
        backend = FileSystemBackend(str(tmp_path))
        key = StorageKey.for_bytes(DATA)
        path = tmp_path / key.sha256[:2] / key.sha256[2:4] / key.sha256
        path.parent.mkdir(parents=True)
        path.write_bytes(DATA)

        assert backend.path_for(key) == path
        assert b"".join(backend.retrieve(key)) == DATA

    def test_missing(self, tmp_path):
        backend = FileSystemBackend(str(tmp_path))

        assert backend.retrieve(StorageKey.for_bytes(DATA)) is None


class TestHttpBackend:
    """Test the HTTP backend against a patched session."""

    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.setattr("time.sleep", lambda seconds: None)
        return HttpClient(
            name="test",
            retry_config=RetryConfig(max_retries=2, base_delay_seconds=0.0),
        )

    def test_retrieve(self, monkeypatch, client):
        requested = []

        def fake_request(self, method, url, **kwargs):
            requested.append((method, url, kwargs.get("stream")))
            return make_response(200, DATA)

        monkeypatch.setattr(requests.Session, "request", fake_request)
        backend = HttpBackend("http://blobs.example.com/", client=client)
        key = StorageKey.for_bytes(DATA)

        assert b"".join(backend.retrieve(key)) == DATA
        assert requested == [("GET", f"http://blobs.example.com/{key.sha256}", True)]

    def test_not_found(self, monkeypatch, client):
        monkeypatch.setattr(requests.Session, "request", lambda self, method, url, **kw: make_response(404))
        backend = HttpBackend("http://blobs.example.com", client=client)

        assert backend.retrieve(StorageKey.for_bytes(DATA)) is None

    def test_retries_server_errors(self, monkeypatch, client):
        responses = [make_response(503), make_response(200, DATA)]
        monkeypatch.setattr(requests.Session, "request", lambda self, method, url, **kw: responses.pop(0))
        backend = HttpBackend("http://blobs.example.com", client=client)

        assert b"".join(backend.retrieve(StorageKey.for_bytes(DATA))) == DATA
        assert responses == []

    def test_client_error_raises(self, monkeypatch, client):
        monkeypatch.setattr(requests.Session, "request", lambda self, method, url, **kw: make_response(403))
        backend = HttpBackend("http://blobs.example.com", client=client)

        with pytest.raises(requests.HTTPError):
            backend.retrieve(StorageKey.for_bytes(DATA))


class TestBuildStorage:
    """Test storage configuration."""

    def test_filesystem(self, tmp_path):
        backend = build_storage({"type": "filesystem", "root": str(tmp_path)})

        assert isinstance(backend, FileSystemBackend)

    def test_http(self):
        backend = build_storage({"type": "http", "base_url": "http://blobs.example.com", "max_retries": 1})

        assert isinstance(backend, HttpBackend)
        assert backend.client.retry_config.max_retries == 1

    @pytest.mark.parametrize("config", [
        {"type": "filesystem"},
        {"type": "http"},
        {"type": "s3", "bucket": "docs"},
    ])
    def test_invalid(self, config):
        with pytest.raises(ValueError):
            build_storage(config)
