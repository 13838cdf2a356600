#!/usr/bin/env python3
"""
Command line entry point for data migrations.

Re-processes stored advisories and SBOMs with the registered data
migrations:
1. Configuration: YAML file, then environment, then command line flags
2. Schema: make sure the document and derived tables exist
3. Run: execute the requested migrations in order, up or down
4. Reporting: print a summary and optionally save a Markdown report

Several workers can split one run by starting them with the same
`--total` and distinct `--current` values (or the MIGRATION_DATA_*
environment variables).

Usage:
    python run_data_migrations.py list
    python run_data_migrations.py run [NAME ...] [--config config.yaml]
        [--direction up|down] [--current N --total M] [--skip NAME ...]
"""
import sys
import yaml
import logging
import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from migrations import Direction, MigrationRunner, Options, build_registry
from observability import RunMetrics, RunReporter
from storage import Database, build_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "data_migration.duckdb"


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """
    Load the YAML configuration.

    Args:
        config_path: Path to YAML configuration file, or None for defaults

    Returns:
        Configuration mapping

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a mapping or a section is malformed
    """
    if config_path is None:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    for section in ["database", "storage", "options"]:
        if section in config and not isinstance(config[section], dict):
            raise ValueError(f"Config section '{section}' must be a mapping")

    if "database" in config and "path" not in config["database"]:
        raise ValueError("Missing required config key: database.path")

    return config


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Layer command line flags on top of the file configuration."""
    config = {
        "database": dict(config.get("database") or {}),
        "storage": dict(config.get("storage") or {}),
        "options": dict(config.get("options") or {}),
    }
    config["database"].setdefault("path", DEFAULT_DATABASE_PATH)

    if args.database:
        config["database"]["path"] = args.database
    if args.storage_root:
        config["storage"] = {"type": "filesystem", "root": args.storage_root}
    if args.storage_url:
        config["storage"] = {**config["storage"], "type": "http", "base_url": args.storage_url}

    return config


def build_options(config: Dict[str, Any], args: argparse.Namespace) -> Options:
    """
    Resolve run options: config file, then environment, then flags.

    Raises:
        ValueError: If the resulting options are invalid
    """
    options = Options.from_mapping(config.get("options")).with_env()

    overrides: Dict[str, Any] = {}
    if args.current is not None:
        overrides["current"] = args.current
    if args.total is not None:
        overrides["total"] = args.total
    if args.skip:
        overrides["skip"] = list(args.skip)
        overrides["skip_all"] = False
    if args.skip_all:
        overrides["skip_all"] = True
        overrides["skip"] = []

    return replace(options, **overrides)


def print_summary(metrics: RunMetrics):
    print("\n" + "=" * 60)
    print("Data Migration Summary")
    print("=" * 60)
    print(f"Run ID: {metrics.run_id}")
    print(f"Direction: {metrics.direction}")
    print(f"Partition: {metrics.partition_current}/{metrics.partition_total}")
    print(f"Errors: {metrics.errors}")
    print("\nMigrations:")
    for result in metrics.migrations.values():
        print(f"  {result.migration:40} {result.status:10} {result.documents_processed:6}")
    print("=" * 60)


def command_list(args: argparse.Namespace) -> int:
    for name in build_registry().names():
        print(name)
    return 0


def command_run(args: argparse.Namespace) -> int:
    config = apply_overrides(load_config(args.config), args)
    if not config["storage"]:
        raise ValueError("Missing required config key: storage (or --storage-root / --storage-url)")

    options = build_options(config, args)
    storage = build_storage(config["storage"])
    direction = Direction.DOWN if args.down else Direction(args.direction)
    names: Optional[List[str]] = args.names or None

    with Database(config["database"]["path"]) as db:
        db.initialize_schema()
        runner = MigrationRunner(build_registry(), db, storage, options, direction)
        try:
            runner.run(names)
        finally:
            if runner.metrics is not None:
                print_summary(runner.metrics)
                if args.report_dir:
                    reporter = RunReporter()
                    report = reporter.generate_report(runner.metrics)
                    report_path = reporter.save_report(report, Path(args.report_dir))
                    logger.info(f"Report: {report_path}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run data migrations over stored advisories and SBOMs"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List registered data migrations")
    list_parser.set_defaults(func=command_list)

    run_parser = subparsers.add_parser("run", help="Run data migrations")
    run_parser.set_defaults(func=command_run)
    run_parser.add_argument(
        "names",
        nargs="*",
        help="Migrations to run, in order (default: all registered)"
    )
    run_parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file"
    )
    run_parser.add_argument(
        "--direction",
        choices=[d.value for d in Direction],
        default=Direction.UP.value,
        help="Apply (up) or revert (down) the migrations (default: up)"
    )
    run_parser.add_argument(
        "--down",
        action="store_true",
        help="Shorthand for --direction down"
    )
    run_parser.add_argument("--database", help="Path to the DuckDB database")
    storage_group = run_parser.add_mutually_exclusive_group()
    storage_group.add_argument("--storage-root", help="Root of a filesystem storage backend")
    storage_group.add_argument("--storage-url", help="Base URL of an HTTP storage backend")
    run_parser.add_argument("--current", type=int, help="Partition index of this worker")
    run_parser.add_argument("--total", type=int, help="Number of partitions")
    skip_group = run_parser.add_mutually_exclusive_group()
    skip_group.add_argument("--skip", nargs="+", metavar="NAME", help="Migrations to skip")
    skip_group.add_argument("--skip-all", action="store_true", help="Skip every data migration")
    run_parser.add_argument("--report-dir", help="Directory to save a Markdown run report in")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        return args.func(args)
    except Exception as e:
        logger.error(f"Data migration failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
