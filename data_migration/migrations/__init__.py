"""
Data migrations: re-process already stored documents.

Main exports:
- MigrationRunner / Direction: run named migrations up or down
- build_registry / MigrationRegistry: the known migrations
- SchemaDataManager: per-row driver handed to each migration
- AdvisoryHandler / SbomHandler: per-row logic interfaces
- Options / Partition: run options and work assignment
- MigrationError and its subclasses
"""
from .base import Migration
from .errors import DatabaseError, HandlerError, MigrationError, MigrationNotFound
from .handlers import AdvisoryHandler, DocumentHandler, SbomHandler
from .manager import SchemaDataManager
from .options import Options
from .partition import Partition, stable_hash
from .registry import MigrationRegistry, build_registry
from .runner import Direction, MigrationRunner

__all__ = [
    "Migration",
    "MigrationError",
    "MigrationNotFound",
    "HandlerError",
    "DatabaseError",
    "DocumentHandler",
    "AdvisoryHandler",
    "SbomHandler",
    "SchemaDataManager",
    "Options",
    "Partition",
    "stable_hash",
    "MigrationRegistry",
    "build_registry",
    "Direction",
    "MigrationRunner",
]
