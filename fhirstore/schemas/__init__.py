"""fhirstore schemas — resource models and the type registry."""

from fhirstore.schemas.registry import ResourceShape, ResourceTypeRegistry
from fhirstore.schemas.resource import (
    BUILTIN_RESOURCE_MODELS,
    Encounter,
    HumanName,
    Observation,
    Patient,
    Practitioner,
    Quantity,
    Reference,
    Resource,
)

__all__ = [
    "BUILTIN_RESOURCE_MODELS",
    "Encounter",
    "HumanName",
    "Observation",
    "Patient",
    "Practitioner",
    "Quantity",
    "Reference",
    "Resource",
    "ResourceShape",
    "ResourceTypeRegistry",
]
