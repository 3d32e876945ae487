"""ResourceStore — keyed storage of encoded resources in SQLite.

Each resource lives in one row of the ``resources`` table, keyed by
(resource_type, resource_id). Uniqueness is enforced by the table's
unique index: a duplicate insert is detected from the engine's
IntegrityError, never from a read-before-write check, so concurrent
inserters cannot race past each other.

Every operation opens its own connection and closes it before
returning, whether it succeeds or raises.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import TypeVar, overload

import structlog

from fhirstore.codec.base import ResourceCodec
from fhirstore.codec.json_codec import JsonResourceCodec
from fhirstore.exceptions import (
    InvalidArgumentError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    StorageFaultError,
)
from fhirstore.schemas.registry import ResourceShape, ResourceTypeRegistry
from fhirstore.schemas.resource import Resource
from fhirstore.storage.connection import DEFAULT_BUSY_TIMEOUT, sqlite_conn, validate_db_path
from fhirstore.storage.schema import (
    COL_RESOURCE,
    COL_RESOURCE_ID,
    COL_RESOURCE_TYPE,
    RESOURCES_TABLE,
    ensure_schema,
)

logger = structlog.get_logger()

R = TypeVar("R", bound=Resource)

_INSERT = (
    f"INSERT INTO {RESOURCES_TABLE} ({COL_RESOURCE_TYPE}, {COL_RESOURCE_ID}, {COL_RESOURCE}) "
    f"VALUES (?, ?, ?)"
)
_SELECT = (
    f"SELECT {COL_RESOURCE} FROM {RESOURCES_TABLE} "
    f"WHERE {COL_RESOURCE_TYPE} = ? AND {COL_RESOURCE_ID} = ?"
)
_UPDATE = (
    f"UPDATE {RESOURCES_TABLE} SET {COL_RESOURCE} = ? "
    f"WHERE {COL_RESOURCE_TYPE} = ? AND {COL_RESOURCE_ID} = ?"
)
_DELETE = (
    f"DELETE FROM {RESOURCES_TABLE} "
    f"WHERE {COL_RESOURCE_TYPE} = ? AND {COL_RESOURCE_ID} = ?"
)


class ResourceStore:
    """Durable, uniquely keyed store for resources.

    Thread-safe: callers on different threads each get their own
    connection; conflicting writes are serialized by SQLite.

    Args:
        db_path: SQLite database file. Must not be ``:memory:``.
        codec: Serializer for resource bodies (JSON by default).
        registry: Known resource kinds (built-in models by default).
        busy_timeout: Seconds to wait on a locked database.
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        codec: ResourceCodec | None = None,
        registry: ResourceTypeRegistry | None = None,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
    ) -> None:
        self._db_path = validate_db_path(db_path)
        self._codec = codec or JsonResourceCodec()
        self._registry = registry or ResourceTypeRegistry.builtin()
        self._busy_timeout = busy_timeout

        self._schema_lock = threading.Lock()
        self._schema_ready = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def registry(self) -> ResourceTypeRegistry:
        return self._registry

    @property
    def codec(self) -> ResourceCodec:
        return self._codec

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def ensure_schema(self) -> bool:
        """Create the table and unique index if they do not exist yet.

        Idempotent. Returns True if this call created the schema.

        Raises:
            UnsupportedOperationError: the database has another schema version.
            StorageFaultError: the engine failed.
        """
        with self._schema_lock:
            parent = self._db_path.parent
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Cannot create database directory", path=str(parent), error=str(exc))
                raise StorageFaultError(f"Cannot create {parent}: {exc}") from exc
            with sqlite_conn(self._db_path, busy_timeout=self._busy_timeout) as conn:
                created = ensure_schema(conn)
            self._schema_ready = True
            return created

    def _require_schema(self) -> None:
        if not self._schema_ready:
            self.ensure_schema()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, resource: Resource) -> None:
        """Store a new resource.

        Raises:
            ResourceAlreadyExistsError: a resource with the same key exists.
            InvalidArgumentError: unknown type or missing id.
            CodecError: the resource cannot be encoded.
            StorageFaultError: the engine failed.
        """
        resource_type, resource_id = self._key_of(resource)
        body = self._codec.encode(resource)
        self._require_schema()

        with sqlite_conn(self._db_path, busy_timeout=self._busy_timeout) as conn:
            try:
                with conn:
                    conn.execute(_INSERT, (resource_type, resource_id, body))
            except sqlite3.IntegrityError as exc:
                logger.debug(
                    "Duplicate resource rejected",
                    resource_type=resource_type,
                    resource_id=resource_id,
                )
                raise ResourceAlreadyExistsError(resource_type, resource_id) from exc
            except sqlite3.Error as exc:
                raise self._fault("insert", resource_type, resource_id, exc) from exc

        logger.debug("Resource stored", resource_type=resource_type, resource_id=resource_id)

    def update(self, resource: Resource) -> None:
        """Replace the body of an existing resource, keeping its identity.

        Raises:
            ResourceNotFoundError: no resource with this key is stored.
            InvalidArgumentError: unknown type or missing id.
            CodecError: the resource cannot be encoded.
            StorageFaultError: the engine failed or the key matched several rows.
        """
        resource_type, resource_id = self._key_of(resource)
        body = self._codec.encode(resource)
        self._require_schema()

        with sqlite_conn(self._db_path, busy_timeout=self._busy_timeout) as conn:
            try:
                with conn:
                    cursor = conn.execute(_UPDATE, (body, resource_type, resource_id))
                    self._check_rowcount(cursor.rowcount, resource_type, resource_id)
            except sqlite3.Error as exc:
                raise self._fault("update", resource_type, resource_id, exc) from exc

        logger.debug("Resource updated", resource_type=resource_type, resource_id=resource_id)

    def delete(self, shape: ResourceShape, resource_id: str) -> None:
        """Remove a stored resource.

        Raises:
            ResourceNotFoundError: no resource with this key is stored.
            InvalidArgumentError: unknown type or empty id.
            StorageFaultError: the engine failed or the key matched several rows.
        """
        resource_type, _ = self._registry.resolve(shape)
        _check_id(resource_type, resource_id)
        self._require_schema()

        with sqlite_conn(self._db_path, busy_timeout=self._busy_timeout) as conn:
            try:
                with conn:
                    cursor = conn.execute(_DELETE, (resource_type, resource_id))
                    self._check_rowcount(cursor.rowcount, resource_type, resource_id)
            except sqlite3.Error as exc:
                raise self._fault("delete", resource_type, resource_id, exc) from exc

        logger.debug("Resource deleted", resource_type=resource_type, resource_id=resource_id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @overload
    def select(self, shape: type[R], resource_id: str) -> R: ...

    @overload
    def select(self, shape: str, resource_id: str) -> Resource: ...

    def select(self, shape: ResourceShape, resource_id: str) -> Resource:
        """Load the resource stored under (type, id).

        ``shape`` is a type tag such as ``"Patient"`` or a registered model
        class; the body is decoded into the registered model.

        Raises:
            ResourceNotFoundError: no resource with this key is stored.
            InvalidArgumentError: unknown type or empty id.
            CodecError: the stored body cannot be decoded.
            StorageFaultError: the engine failed or the key matched several rows.
        """
        resource_type, model = self._registry.resolve(shape)
        _check_id(resource_type, resource_id)
        self._require_schema()

        with sqlite_conn(self._db_path, busy_timeout=self._busy_timeout) as conn:
            try:
                rows = conn.execute(_SELECT, (resource_type, resource_id)).fetchall()
            except sqlite3.Error as exc:
                raise self._fault("select", resource_type, resource_id, exc) from exc

        if not rows:
            raise ResourceNotFoundError(resource_type, resource_id)
        if len(rows) > 1:
            logger.error(
                "Unique key matched several rows",
                resource_type=resource_type,
                resource_id=resource_id,
                rows=len(rows),
            )
            raise StorageFaultError(
                f"Unexpected number of records for {resource_type}/{resource_id}: {len(rows)}"
            )

        return self._codec.decode(resource_type, rows[0][0], model)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _key_of(self, resource: Resource) -> tuple[str, str]:
        if not isinstance(resource, Resource):
            raise InvalidArgumentError(f"Expected a Resource, got {type(resource).__name__}")
        resource_type = self._registry.type_of(resource)
        _check_id(resource_type, resource.id)
        return resource_type, resource.id

    def _check_rowcount(self, rowcount: int, resource_type: str, resource_id: str) -> None:
        # Raising inside ``with conn`` rolls the statement back.
        if rowcount == 0:
            raise ResourceNotFoundError(resource_type, resource_id)
        if rowcount > 1:
            logger.error(
                "Unique key matched several rows",
                resource_type=resource_type,
                resource_id=resource_id,
                rows=rowcount,
            )
            raise StorageFaultError(
                f"Unexpected number of records for {resource_type}/{resource_id}: {rowcount}"
            )

    def _fault(
        self,
        operation: str,
        resource_type: str,
        resource_id: str,
        exc: sqlite3.Error,
    ) -> StorageFaultError:
        logger.error(
            "Storage operation failed",
            operation=operation,
            resource_type=resource_type,
            resource_id=resource_id,
            path=str(self._db_path),
            error=str(exc),
        )
        return StorageFaultError(f"{operation} {resource_type}/{resource_id} failed: {exc}")


def _check_id(resource_type: str, resource_id: object) -> None:
    if not isinstance(resource_id, str) or not resource_id.strip():
        raise InvalidArgumentError(f"{resource_type} resource id must be a non-empty string")
