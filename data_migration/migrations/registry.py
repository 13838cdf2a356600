"""
Registry of the known data migrations.

The registry is built once at startup and passed to the runner; it is
read-only after construction. Registration order is the order in which
a run without explicit names applies migrations.
"""
from types import MappingProxyType
from typing import Iterable, Iterator, List, Sequence

from .base import Migration
from .errors import MigrationNotFound
from .m0002000_add_sbom_properties import AddSbomProperties
from .m0002010_add_advisory_scores import AddAdvisoryScores
from .m0002020_add_sbom_files import AddSbomFiles


class MigrationRegistry:
    """Name -> migration lookup, immutable once built."""

    def __init__(self, migrations: Iterable[Migration]):
        """
        Build the registry.

        Args:
            migrations: Migrations in application order

        Raises:
            ValueError: If a migration has no name or two share a name
        """
        table = {}
        for migration in migrations:
            if not migration.name:
                raise ValueError(f"Migration without a name: {migration!r}")
            if migration.name in table:
                raise ValueError(f"Duplicate data migration name: {migration.name}")
            table[migration.name] = migration
        self._migrations = MappingProxyType(table)

    def names(self) -> List[str]:
        return list(self._migrations)

    def get(self, name: str) -> Migration:
        try:
            return self._migrations[name]
        except KeyError:
            raise MigrationNotFound([name]) from None

    def resolve(self, names: Sequence[str]) -> List[Migration]:
        """
        Look up every requested name before anything runs.

        Args:
            names: Requested migration names, in execution order

        Returns:
            The migrations, in the requested order

        Raises:
            MigrationNotFound: Listing every unknown name
        """
        unknown = [name for name in names if name not in self._migrations]
        if unknown:
            raise MigrationNotFound(unknown)
        return [self._migrations[name] for name in names]

    def __contains__(self, name: str) -> bool:
        return name in self._migrations

    def __iter__(self) -> Iterator[Migration]:
        return iter(self._migrations.values())

    def __len__(self) -> int:
        return len(self._migrations)


def build_registry() -> MigrationRegistry:
    """Registry of every data migration shipped with the project."""
    return MigrationRegistry([
        AddSbomProperties(),
        AddAdvisoryScores(),
        AddSbomFiles(),
    ])
