"""ResourceTypeRegistry — explicit mapping between type tags and models.

The store never instantiates or introspects a class to learn its type
tag. Every kind it can persist is registered here up front, either from
the built-in models or from a YAML file of ``module:Class`` paths.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Iterable

import structlog
import yaml

from fhirstore.exceptions import InvalidArgumentError
from fhirstore.schemas.resource import BUILTIN_RESOURCE_MODELS, Resource

logger = structlog.get_logger()

ResourceShape = str | type[Resource]


class ResourceTypeRegistry:
    """Registry of storable resource kinds, keyed by type tag.

    Resolves either a tag or a registered model class to the
    (tag, model) pair the store and codec work with.
    """

    def __init__(self, models: Iterable[type[Resource]] = ()) -> None:
        self._by_type: dict[str, type[Resource]] = {}
        for model in models:
            self.register(model)

    def register(self, model: type[Resource], resource_type: str | None = None) -> None:
        """Register a model under its declared tag (or an explicit one)."""
        if not (isinstance(model, type) and issubclass(model, Resource)):
            raise InvalidArgumentError(f"Not a Resource model: {model!r}")
        tag = resource_type or model.resource_type
        if not tag:
            raise InvalidArgumentError(f"Model {model.__name__} declares no resource_type")
        if resource_type and model.resource_type and resource_type != model.resource_type:
            raise InvalidArgumentError(
                f"Model {model.__name__} declares {model.resource_type!r}, "
                f"cannot register as {resource_type!r}"
            )
        existing = self._by_type.get(tag)
        if existing is not None and existing is not model:
            raise InvalidArgumentError(
                f"Resource type {tag!r} already registered to {existing.__name__}"
            )
        self._by_type[tag] = model

    def resolve(self, shape: ResourceShape) -> tuple[str, type[Resource]]:
        """Resolve a type tag or model class to ``(tag, model)``.

        Raises:
            InvalidArgumentError: if the tag or class is not registered.
        """
        if isinstance(shape, str):
            model = self._by_type.get(shape)
            if model is None:
                raise InvalidArgumentError(f"Unknown resource type: {shape!r}")
            return shape, model

        if isinstance(shape, type):
            for tag, model in self._by_type.items():
                if model is shape:
                    return tag, model
            raise InvalidArgumentError(f"Cannot resolve resource type for {shape.__name__}")

        raise InvalidArgumentError(f"Cannot resolve resource type for {shape!r}")

    def type_of(self, resource: Resource) -> str:
        """Type tag of a resource instance, via its registered class."""
        tag, _ = self.resolve(type(resource))
        return tag

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._by_type

    @property
    def resource_types(self) -> list[str]:
        """All registered type tags, sorted."""
        return sorted(self._by_type)

    @classmethod
    def builtin(cls) -> "ResourceTypeRegistry":
        """Registry holding the models shipped in fhirstore.schemas."""
        return cls(BUILTIN_RESOURCE_MODELS)

    @classmethod
    def from_dict(cls, resource_types: dict[str, Any]) -> "ResourceTypeRegistry":
        """Create a registry from ``{tag: model_or_import_path}``.

        Import paths use the ``package.module:ClassName`` form.
        """
        registry = cls()
        for tag, target in resource_types.items():
            model = _import_model(target) if isinstance(target, str) else target
            registry.register(model, tag)
        return registry

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ResourceTypeRegistry":
        """Load a registry from a YAML file.

        Expected YAML structure:
            resource_types:
              Patient: fhirstore.schemas.resource:Patient
              Observation: fhirstore.schemas.resource:Observation

        A missing file yields the built-in registry.
        """
        path = Path(path)
        if not path.exists():
            logger.info("Registry file not found, using built-in types", path=str(path))
            return cls.builtin()

        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        types_raw = raw.get("resource_types", {})
        if not isinstance(types_raw, dict):
            raise InvalidArgumentError(f"'resource_types' must be a mapping in {path}")
        return cls.from_dict(types_raw)


def _import_model(target: str) -> type[Resource]:
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise InvalidArgumentError(f"Expected 'module:Class' import path, got {target!r}")
    try:
        module = importlib.import_module(module_name)
        model = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise InvalidArgumentError(f"Cannot import resource model {target!r}") from exc
    return model
