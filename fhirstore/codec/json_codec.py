"""JSON codec for resources.

Bodies are compact JSON objects with ``resourceType`` as the first
element, e.g. ``{"resourceType":"Patient","id":"123",...}``. Null
elements are omitted.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from fhirstore.codec.base import R, ResourceCodec
from fhirstore.exceptions import CodecError
from fhirstore.schemas.resource import Resource


class JsonResourceCodec(ResourceCodec):
    """Pydantic-backed JSON codec."""

    def __init__(self, *, sort_keys: bool = False) -> None:
        self._sort_keys = sort_keys

    def encode(self, resource: Resource) -> str:
        if not isinstance(resource, Resource):
            raise CodecError(f"Cannot encode {type(resource).__name__}: not a Resource")
        try:
            body = resource.to_body()
            return json.dumps(body, separators=(",", ":"), sort_keys=self._sort_keys, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise CodecError(
                f"Cannot encode {resource.resource_type} resource: {exc}",
                resource_type=resource.resource_type,
            ) from exc

    def decode(self, resource_type: str, body: str, shape: type[R]) -> R:
        try:
            raw = json.loads(body)
        except (TypeError, ValueError) as exc:
            raise CodecError(
                f"Stored {resource_type} body is not valid JSON: {exc}",
                resource_type=resource_type,
            ) from exc

        if not isinstance(raw, dict):
            raise CodecError(
                f"Stored {resource_type} body must be a JSON object, got {type(raw).__name__}",
                resource_type=resource_type,
            )

        declared = raw.get("resourceType", resource_type)
        if declared != resource_type:
            raise CodecError(
                f"Body declares resourceType {declared!r}, expected {resource_type!r}",
                resource_type=resource_type,
            )

        try:
            return shape.model_validate(raw)
        except ValidationError as exc:
            raise CodecError(
                f"Stored body does not match {shape.__name__}: {exc.error_count()} validation error(s)",
                resource_type=resource_type,
            ) from exc
