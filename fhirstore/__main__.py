"""fhirstore CLI — inspect and edit a resource database.

Usage:
    python -m fhirstore init                      Create the schema if missing
    python -m fhirstore types                     List registered resource types
    python -m fhirstore insert [FILE]             Store a new resource (JSON, '-' = stdin)
    python -m fhirstore update [FILE]             Replace a stored resource
    python -m fhirstore select TYPE ID            Print a stored resource as JSON
    python -m fhirstore delete TYPE ID            Remove a stored resource
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

import structlog

from fhirstore.config.settings import StoreSettings, get_settings
from fhirstore.exceptions import CodecError, FhirStoreError
from fhirstore.factory import build_store
from fhirstore.schemas.resource import Resource
from fhirstore.storage.resource_store import ResourceStore
from fhirstore.utils.logging import configure_logging

logger = structlog.get_logger()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fhirstore",
        description="fhirstore — keyed storage for clinical resources",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite database (default: $FHIRSTORE_DATA_DIR/$FHIRSTORE_DB_NAME)",
    )
    parser.add_argument(
        "--registry",
        type=Path,
        default=None,
        help="YAML file declaring resource types (default: built-in types)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: $FHIRSTORE_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create the schema if missing")
    subparsers.add_parser("types", help="List registered resource types")

    for name, help_text in (
        ("insert", "Store a new resource"),
        ("update", "Replace a stored resource"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "file",
            nargs="?",
            default="-",
            help="JSON resource file ('-' reads stdin)",
        )

    for name, help_text in (
        ("select", "Print a stored resource"),
        ("delete", "Remove a stored resource"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("resource_type", help="Resource type, e.g. Patient")
        sub.add_argument("resource_id", help="Resource id")

    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> StoreSettings:
    settings = get_settings()
    if args.db is not None:
        settings = replace(settings, data_dir=args.db.parent, db_name=args.db.name)
    if args.registry is not None:
        settings = replace(settings, registry_path=args.registry)
    if args.log_level is not None:
        settings = replace(settings, log_level=args.log_level)
    return settings


def _read_resource(store: ResourceStore, source: str) -> Resource:
    """Parse a JSON resource, resolving its model from ``resourceType``."""
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError(f"Input is not valid UTF-8: {exc}") from exc
    try:
        raw = json.loads(text)
    except ValueError as exc:
        raise CodecError(f"Input is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict) or not isinstance(raw.get("resourceType"), str):
        raise CodecError("Input must be a JSON object with a 'resourceType' string")

    resource_type, model = store.registry.resolve(raw["resourceType"])
    return store.codec.decode(resource_type, text, model)


def _cmd_init(store: ResourceStore, _args: argparse.Namespace) -> int:
    created = store.ensure_schema()
    print(f"{'Created' if created else 'Schema already present in'} {store.db_path}")
    return 0


def _cmd_types(store: ResourceStore, _args: argparse.Namespace) -> int:
    for resource_type in store.registry.resource_types:
        print(resource_type)
    return 0


def _cmd_insert(store: ResourceStore, args: argparse.Namespace) -> int:
    resource = _read_resource(store, args.file)
    store.insert(resource)
    logger.info("Inserted", resource_type=resource.resource_type, resource_id=resource.id)
    return 0


def _cmd_update(store: ResourceStore, args: argparse.Namespace) -> int:
    resource = _read_resource(store, args.file)
    store.update(resource)
    logger.info("Updated", resource_type=resource.resource_type, resource_id=resource.id)
    return 0


def _cmd_select(store: ResourceStore, args: argparse.Namespace) -> int:
    resource = store.select(args.resource_type, args.resource_id)
    print(json.dumps(resource.to_body(), indent=2, ensure_ascii=False))
    return 0


def _cmd_delete(store: ResourceStore, args: argparse.Namespace) -> int:
    store.delete(args.resource_type, args.resource_id)
    logger.info("Deleted", resource_type=args.resource_type, resource_id=args.resource_id)
    return 0


_COMMANDS = {
    "init": _cmd_init,
    "types": _cmd_types,
    "insert": _cmd_insert,
    "update": _cmd_update,
    "select": _cmd_select,
    "delete": _cmd_delete,
}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(settings.log_level, json_output=settings.json_logs)

    handler = _COMMANDS[args.command]
    try:
        store = build_store(settings, init_schema=False)
        return handler(store, args)
    except FhirStoreError as exc:
        logger.error("Command failed", command=args.command, error=str(exc), error_type=type(exc).__name__)
        return 1
    except OSError as exc:
        logger.error("Cannot read input", command=args.command, error=str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
