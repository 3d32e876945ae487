"""Store factory — wires settings, registry and codec into a ResourceStore."""

from __future__ import annotations

import structlog

from fhirstore.codec.json_codec import JsonResourceCodec
from fhirstore.config.settings import StoreSettings, get_settings
from fhirstore.schemas.registry import ResourceTypeRegistry
from fhirstore.storage.resource_store import ResourceStore

logger = structlog.get_logger()


def build_registry(settings: StoreSettings) -> ResourceTypeRegistry:
    """Registry from the configured YAML file, or the built-in models."""
    if settings.registry_path is None:
        return ResourceTypeRegistry.builtin()
    return ResourceTypeRegistry.from_yaml(settings.registry_path)


def build_store(settings: StoreSettings | None = None, *, init_schema: bool = True) -> ResourceStore:
    """Build a ResourceStore from settings (environment if omitted).

    With ``init_schema`` the schema is created before returning, so a
    version mismatch fails here rather than on first use.
    """
    settings = settings or get_settings()
    registry = build_registry(settings)

    store = ResourceStore(
        settings.db_path,
        codec=JsonResourceCodec(),
        registry=registry,
        busy_timeout=settings.busy_timeout,
    )
    if init_schema:
        store.ensure_schema()

    logger.info(
        "Resource store ready",
        path=str(settings.db_path),
        resource_types=registry.resource_types,
    )
    return store
