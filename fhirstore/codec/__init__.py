"""Codecs — text serialization of resources for storage."""

from fhirstore.codec.base import ResourceCodec
from fhirstore.codec.json_codec import JsonResourceCodec

__all__ = [
    "JsonResourceCodec",
    "ResourceCodec",
]
