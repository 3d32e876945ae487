"""On-disk schema for the resources table.

Layout (version 1):

    resources (
        _id            INTEGER PRIMARY KEY AUTOINCREMENT,  -- surrogate key
        resource_type  TEXT NOT NULL,
        resource_id    TEXT NOT NULL,
        resource       TEXT NOT NULL                        -- encoded body
    )
    UNIQUE INDEX resources_resource_type_resource_id
        ON resources (resource_type, resource_id)

The version is kept in ``PRAGMA user_version``. Upgrading from another
version is not implemented.
"""

from __future__ import annotations

import sqlite3

import structlog

from fhirstore.exceptions import StorageFaultError, UnsupportedOperationError

logger = structlog.get_logger()

SCHEMA_VERSION = 1

RESOURCES_TABLE = "resources"
COL_SURROGATE_KEY = "_id"
COL_RESOURCE_TYPE = "resource_type"
COL_RESOURCE_ID = "resource_id"
COL_RESOURCE = "resource"

UNIQUE_INDEX = "_".join((RESOURCES_TABLE, COL_RESOURCE_TYPE, COL_RESOURCE_ID))

CREATE_RESOURCES_TABLE = (
    f"CREATE TABLE IF NOT EXISTS {RESOURCES_TABLE} ("
    f"{COL_SURROGATE_KEY} INTEGER PRIMARY KEY AUTOINCREMENT, "
    f"{COL_RESOURCE_TYPE} TEXT NOT NULL, "
    f"{COL_RESOURCE_ID} TEXT NOT NULL, "
    f"{COL_RESOURCE} TEXT NOT NULL)"
)

CREATE_UNIQUE_INDEX = (
    f"CREATE UNIQUE INDEX IF NOT EXISTS {UNIQUE_INDEX} "
    f"ON {RESOURCES_TABLE} ({COL_RESOURCE_TYPE}, {COL_RESOURCE_ID})"
)


def get_schema_version(conn: sqlite3.Connection) -> int:
    return int(conn.execute("PRAGMA user_version").fetchone()[0])


def ensure_schema(conn: sqlite3.Connection) -> bool:
    """Create the resources table and unique index if absent.

    Returns True if the schema was created, False if it already existed.

    Raises:
        UnsupportedOperationError: the database carries another schema
            version; migrations are not implemented.
        StorageFaultError: the engine failed while creating the schema.
    """
    try:
        # Take the write lock up front so two initializers cannot both
        # see version 0 and race through the DDL.
        conn.execute("BEGIN IMMEDIATE")
        try:
            version = get_schema_version(conn)
            if version == SCHEMA_VERSION:
                conn.rollback()
                return False
            if version != 0:
                conn.rollback()
                raise UnsupportedOperationError(
                    f"Schema upgrade from version {version} to {SCHEMA_VERSION} is not implemented"
                )
            conn.execute(CREATE_RESOURCES_TABLE)
            conn.execute(CREATE_UNIQUE_INDEX)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
    except sqlite3.Error as exc:
        logger.error("Schema creation failed", error=str(exc))
        raise StorageFaultError(f"Cannot create schema: {exc}") from exc

    logger.info("Schema created", version=SCHEMA_VERSION, table=RESOURCES_TABLE)
    return True
