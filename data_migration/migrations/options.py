"""
Run options of data migrations.

Options come from the `options` section of the YAML configuration and
may be overridden by environment variables, which lets an orchestrator
start N identical workers that differ only in MIGRATION_DATA_CURRENT_RUNNER:

- MIGRATION_DATA_CURRENT_RUNNER: partition index of this worker
- MIGRATION_DATA_TOTAL_RUNNER: number of partitions
- MIGRATION_DATA_SKIP: comma separated names of migrations to skip
- MIGRATION_DATA_SKIP_ALL: skip every data migration ("true"/"1"/"yes")
"""
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

from storage.batch_writer import DEFAULT_CHUNK_SIZE
from .partition import Partition

ENV_CURRENT = "MIGRATION_DATA_CURRENT_RUNNER"
ENV_TOTAL = "MIGRATION_DATA_TOTAL_RUNNER"
ENV_SKIP = "MIGRATION_DATA_SKIP"
ENV_SKIP_ALL = "MIGRATION_DATA_SKIP_ALL"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _parse_names(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [name.strip() for name in value if name and name.strip()]


@dataclass(frozen=True)
class Options:
    """
    Options shared by every migration of one run.

    Attributes:
        current: Partition index of this worker
        total: Number of partitions
        skip: Names of migrations to skip (e.g. already applied)
        skip_all: Skip every data migration
        chunk_size: Rows per bulk insert statement
    """
    current: int = 0
    total: int = 1
    skip: List[str] = field(default_factory=list)
    skip_all: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        if self.skip_all and self.skip:
            raise ValueError("skip and skip_all are mutually exclusive")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        # validates current/total
        Partition(self.current, self.total)

    @property
    def partition(self) -> Partition:
        return Partition(self.current, self.total)

    def should_skip(self, name: str) -> bool:
        return self.skip_all or name in self.skip

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "Options":
        """
        Build options from a configuration mapping.

        Unknown keys are ignored; missing keys keep their defaults.
        """
        data = data or {}
        return cls(
            current=int(data.get("current", 0)),
            total=int(data.get("total", 1)),
            skip=_parse_names(data.get("skip")),
            skip_all=_parse_bool(data.get("skip_all", False)),
            chunk_size=int(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        )

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "Options":
        """
        Apply environment overrides on top of these options.

        Args:
            environ: Environment to read (defaults to os.environ)

        Returns:
            New Options with every variable that is set taking precedence
        """
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}

        if environ.get(ENV_CURRENT):
            overrides["current"] = int(environ[ENV_CURRENT])
        if environ.get(ENV_TOTAL):
            overrides["total"] = int(environ[ENV_TOTAL])
        # the environment replaces whichever skip setting the file had
        if environ.get(ENV_SKIP):
            overrides["skip"] = _parse_names(environ[ENV_SKIP])
            overrides["skip_all"] = False
        if environ.get(ENV_SKIP_ALL):
            overrides["skip_all"] = _parse_bool(environ[ENV_SKIP_ALL])
            overrides.setdefault("skip", [])

        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Options":
        """Build options from environment variables only."""
        return cls().with_env(environ)
