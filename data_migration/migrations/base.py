"""Base class of registered data migrations."""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .manager import SchemaDataManager


class Migration(ABC):
    """
    A named, reversible data migration.

    `up` and `down` receive a manager bound to the run's database, storage
    backend and options; they typically call `manager.process()` with a
    handler, or `manager.execute()` for set-based statements.
    """

    name: str = ""

    @abstractmethod
    def up(self, manager: "SchemaDataManager"):
        """Apply the migration."""

    @abstractmethod
    def down(self, manager: "SchemaDataManager"):
        """Revert the migration."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
