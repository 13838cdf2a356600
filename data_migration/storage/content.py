"""
Read access to content-addressed document storage.

Documents are stored under the SHA-256 digest of their bytes. The
migration engine only ever reads: `retrieve` returns an iterator over the
stored bytes, or None if nothing is stored under that key.

Backends:
- FileSystemBackend: sharded directory tree on local disk
- HttpBackend: read-only blob endpoint served over HTTP
- MemoryBackend: in-process dictionary, for tests and embedding
"""
import hashlib
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from .http_client import HttpClient, RetryConfig

logger = logging.getLogger(__name__)

SHA256_PATTERN = re.compile(r"^[0-9a-f]{64}$")
READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StorageKey:
    """Key of a stored document: its lowercase hex SHA-256 digest."""
    sha256: str

    @classmethod
    def from_sha256(cls, digest: str) -> "StorageKey":
        """
        Build a key from a hex digest.

        Accepts an optional "sha256:" prefix and any letter case.

        Raises:
            ValueError: If the digest is not a SHA-256 hex string
        """
        value = (digest or "").strip().lower()
        if value.startswith("sha256:"):
            value = value[len("sha256:"):]
        if not SHA256_PATTERN.match(value):
            raise ValueError(f"Invalid SHA-256 digest: {digest!r}")
        return cls(sha256=value)

    @classmethod
    def for_bytes(cls, data: bytes) -> "StorageKey":
        return cls(sha256=hashlib.sha256(data).hexdigest())

    def __str__(self) -> str:
        return self.sha256


class StorageBackend(ABC):
    """Read side of a content-addressed document store."""

    @abstractmethod
    def retrieve(self, key: StorageKey) -> Optional[Iterator[bytes]]:
        """
        Open the document stored under a key.

        Args:
            key: Content key

        Returns:
            Iterator over the stored bytes, or None if the key is absent
        """


class FileSystemBackend(StorageBackend):
    """Documents stored as files under <root>/<aa>/<bb>/<sha256>."""

    def __init__(self, root: str):
        self.root = Path(root)

    def path_for(self, key: StorageKey) -> Path:
        digest = key.sha256
        return self.root / digest[0:2] / digest[2:4] / digest

    def retrieve(self, key: StorageKey) -> Optional[Iterator[bytes]]:
        path = self.path_for(key)
        if not path.is_file():
            return None
        handle = open(path, "rb")
        return self._iter_file(handle)

    @staticmethod
    def _iter_file(handle) -> Iterator[bytes]:
        with handle:
            while True:
                chunk = handle.read(READ_CHUNK_SIZE)
                if not chunk:
                    return
                yield chunk


class HttpBackend(StorageBackend):
    """Documents served by a blob endpoint at <base_url>/<sha256>."""

    def __init__(self, base_url: str, client: Optional[HttpClient] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or HttpClient(name="storage")

    def retrieve(self, key: StorageKey) -> Optional[Iterator[bytes]]:
        return self.client.get_stream(f"{self.base_url}/{key.sha256}")


class MemoryBackend(StorageBackend):
    """Documents held in a dictionary keyed by digest."""

    def __init__(self):
        self._documents: Dict[str, bytes] = {}

    def add(self, data: bytes) -> StorageKey:
        key = StorageKey.for_bytes(data)
        self._documents[key.sha256] = data
        return key

    def retrieve(self, key: StorageKey) -> Optional[Iterator[bytes]]:
        data = self._documents.get(key.sha256)
        if data is None:
            return None
        return iter([data])


def build_storage(config: Dict[str, Any]) -> StorageBackend:
    """
    Create a storage backend from the `storage` configuration section.

    Args:
        config: Mapping with `type` (filesystem | http) and its settings

    Returns:
        Configured backend

    Raises:
        ValueError: If the type is unknown or a required setting is missing
    """
    storage_type = config.get("type", "filesystem")

    if storage_type == "filesystem":
        root = config.get("root")
        if not root:
            raise ValueError("Missing required storage setting: storage.root")
        logger.info(f"Using filesystem storage at {root}")
        return FileSystemBackend(root)

    if storage_type == "http":
        base_url = config.get("base_url")
        if not base_url:
            raise ValueError("Missing required storage setting: storage.base_url")
        client = HttpClient(
            name="storage",
            retry_config=RetryConfig(
                max_retries=config.get("max_retries", 3),
                base_delay_seconds=config.get("retry_base_seconds", 1.0),
                max_delay_seconds=config.get("retry_max_seconds", 60.0),
                jitter_ratio=config.get("retry_jitter_ratio", 0.3),
                timeout_seconds=config.get("timeout_seconds", 30.0),
            ),
        )
        logger.info(f"Using HTTP storage at {base_url}")
        return HttpBackend(base_url, client=client)

    raise ValueError(f"Unknown storage type: {storage_type}")
