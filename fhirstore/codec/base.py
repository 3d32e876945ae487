"""ResourceCodec: the seam between resource models and stored bodies.

The store hands a codec a model to encode, and a stored body plus the
model to decode it into. It never parses bodies itself.
"""

from __future__ import annotations

from typing import Protocol, TypeVar

from fhirstore.schemas.resource import Resource

R = TypeVar("R", bound=Resource)


class ResourceCodec(Protocol):
    """Converts resources to and from their persisted text form.

    Implementations are pure: they hold no resource data between calls.
    """

    def encode(self, resource: Resource) -> str:
        """Serialize a resource. Raises CodecError on failure."""
        ...

    def decode(self, resource_type: str, body: str, shape: type[R]) -> R:
        """Parse ``body`` into ``shape``. Raises CodecError if malformed."""
        ...
