"""fhirstore utilities — logging setup."""

from fhirstore.utils.logging import configure_logging

__all__ = [
    "configure_logging",
]
