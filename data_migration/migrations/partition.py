"""
Hash-based work assignment for uncoordinated workers.

A worker configured with Partition(current, total) processes exactly the
rows whose key hashes to `current` modulo `total`. Running one worker per
value of `current` with the same `total` covers every row exactly once;
making sure all workers run is left to whoever starts them.

The hash is the first 8 bytes of the key's SHA-256 digest, read as a
big-endian unsigned integer, so it is identical across processes, hosts
and interpreter versions (unlike the built-in `hash()`, which is salted
per process).
"""
import hashlib
from dataclasses import dataclass
from typing import Any


def stable_hash(key: str) -> int:
    """Return a process-independent 64-bit hash of a key."""
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


@dataclass(frozen=True)
class Partition:
    """The slice of rows owned by one worker. The default owns everything."""
    current: int = 0
    total: int = 1

    def __post_init__(self):
        if self.total < 1:
            raise ValueError(f"Partition total must be at least 1, got {self.total}")
        if not 0 <= self.current < self.total:
            raise ValueError(
                f"Partition current must be in [0, {self.total}), got {self.current}"
            )

    def selects_key(self, key: str) -> bool:
        return stable_hash(key) % self.total == self.current

    def is_selected(self, record: Any) -> bool:
        """Check whether a row (anything with a `partition_key`) belongs to this worker."""
        return self.selects_key(record.partition_key)

    def __str__(self) -> str:
        return f"{self.current}/{self.total}"
