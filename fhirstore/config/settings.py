"""Centralized environment-based settings for fhirstore.

Reads configuration from environment variables with sensible defaults.

Usage:
    from fhirstore.config.settings import get_settings
    settings = get_settings()
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class StoreSettings:
    """Immutable store settings loaded from environment."""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "FHIRDB"
    busy_timeout: float = 30.0

    # Resource types (None = built-in models)
    registry_path: Optional[Path] = None

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


def get_settings() -> StoreSettings:
    """Load settings from environment variables.

    Environment variables (all optional):
        FHIRSTORE_LOG_LEVEL: Logging level (default: INFO)
        FHIRSTORE_JSON_LOGS: Render logs as JSON (default: true)
        FHIRSTORE_DATA_DIR: Storage directory (default: data)
        FHIRSTORE_DB_NAME: Database file name (default: FHIRDB)
        FHIRSTORE_BUSY_TIMEOUT: Seconds to wait on a locked database (default: 30)
        FHIRSTORE_REGISTRY_PATH: YAML file declaring resource types
    """
    def _bool(key: str, default: bool = False) -> bool:
        val = os.environ.get(key, "").lower()
        if val in ("1", "true", "yes"):
            return True
        if val in ("0", "false", "no"):
            return False
        return default

    registry_path = os.environ.get("FHIRSTORE_REGISTRY_PATH", "")

    return StoreSettings(
        log_level=os.environ.get("FHIRSTORE_LOG_LEVEL", "INFO").upper(),
        json_logs=_bool("FHIRSTORE_JSON_LOGS", True),
        data_dir=Path(os.environ.get("FHIRSTORE_DATA_DIR", "data")),
        db_name=os.environ.get("FHIRSTORE_DB_NAME", "FHIRDB"),
        busy_timeout=float(os.environ.get("FHIRSTORE_BUSY_TIMEOUT", "30")),
        registry_path=Path(registry_path) if registry_path else None,
    )
