"""
Errors raised while running data migrations.

Document resolution failures (see documents.errors) propagate unchanged;
everything else a migration can fail with is one of these.
"""
from typing import Iterable


class MigrationError(Exception):
    """Base class of data-migration failures."""


class MigrationNotFound(MigrationError):
    """One or more requested migration names are not registered."""

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(f"Unknown data migration(s): {', '.join(self.names)}")


class HandlerError(MigrationError):
    """A migration handler failed while processing a row."""


class DatabaseError(MigrationError):
    """A SQL statement failed while processing a row."""
