"""Storage layer — SQLite persistence for resources.

One table, one row per (resource_type, resource_id), uniqueness enforced
by the engine.
"""

from fhirstore.storage.resource_store import ResourceStore
from fhirstore.storage.schema import SCHEMA_VERSION, ensure_schema

__all__ = [
    "ResourceStore",
    "SCHEMA_VERSION",
    "ensure_schema",
]
