"""fhirstore configuration — environment-driven settings."""

from fhirstore.config.settings import StoreSettings, get_settings

__all__ = [
    "StoreSettings",
    "get_settings",
]
