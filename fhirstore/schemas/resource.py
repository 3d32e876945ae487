"""Resource models — the structured objects the store persists.

Only the envelope matters to storage: every resource carries a type tag
(``resource_type``, fixed per class) and a logical ``id``. The body is
whatever the model serializes to. Concrete kinds below are deliberately
shallow; unknown elements are kept via ``extra="allow"`` so they survive
a store round trip.
"""

from datetime import date, datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Resource(BaseModel):
    """Base class for all storable resources.

    Subclasses set ``resource_type``. The serialized form always includes
    a ``resourceType`` element equal to that tag.
    """

    model_config = ConfigDict(extra="allow")

    resource_type: ClassVar[str] = ""

    id: Optional[str] = Field(default=None, description="Logical id, unique within the resource type")

    @model_validator(mode="before")
    @classmethod
    def check_resource_type(cls, data: Any) -> Any:
        """Accept and strip a matching ``resourceType`` element on input."""
        if isinstance(data, dict) and "resourceType" in data:
            data = dict(data)
            declared = data.pop("resourceType")
            if cls.resource_type and declared != cls.resource_type:
                raise ValueError(
                    f"resourceType {declared!r} does not match {cls.resource_type!r}"
                )
        return data

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("id must not be blank")
        return v

    def to_body(self) -> dict[str, Any]:
        """Serializable dict with ``resourceType`` first.

        Declared fields left at None are dropped; extra elements are kept
        as given, None included.
        """
        body: dict[str, Any] = {"resourceType": self.resource_type}
        body.update(_drop_unset_fields(self, self.model_dump(mode="json")))
        return body


class HumanName(BaseModel):
    model_config = ConfigDict(extra="allow")

    family: Optional[str] = None
    given: list[str] = Field(default_factory=list)
    text: Optional[str] = None


class Reference(BaseModel):
    """Pointer to another resource, e.g. ``Patient/123``."""

    model_config = ConfigDict(extra="allow")

    reference: Optional[str] = None
    display: Optional[str] = None


class Quantity(BaseModel):
    model_config = ConfigDict(extra="allow")

    value: Optional[float] = None
    unit: Optional[str] = None


class Patient(Resource):
    resource_type: ClassVar[str] = "Patient"

    active: Optional[bool] = None
    name: list[HumanName] = Field(default_factory=list)
    gender: Optional[str] = None
    birthDate: Optional[date] = None


class Practitioner(Resource):
    resource_type: ClassVar[str] = "Practitioner"

    active: Optional[bool] = None
    name: list[HumanName] = Field(default_factory=list)


class Encounter(Resource):
    resource_type: ClassVar[str] = "Encounter"

    status: str = Field(default="unknown", description="planned | in-progress | finished | ...")
    subject: Optional[Reference] = None
    participant: list[Reference] = Field(default_factory=list)


class Observation(Resource):
    resource_type: ClassVar[str] = "Observation"

    status: str = Field(default="final", description="registered | preliminary | final | amended")
    code: Optional[str] = None
    subject: Optional[Reference] = None
    effectiveDateTime: Optional[datetime] = None
    valueQuantity: Optional[Quantity] = None


BUILTIN_RESOURCE_MODELS: tuple[type[Resource], ...] = (
    Patient,
    Practitioner,
    Encounter,
    Observation,
)


def _drop_unset_fields(model: BaseModel, dumped: dict[str, Any]) -> dict[str, Any]:
    """Remove declared fields whose value is None, recursing into submodels."""
    for name in type(model).model_fields:
        value = getattr(model, name)
        if value is None:
            dumped.pop(name, None)
        elif isinstance(value, BaseModel):
            _drop_unset_fields(value, dumped[name])
        elif isinstance(value, list):
            for item, item_dumped in zip(value, dumped[name]):
                if isinstance(item, BaseModel):
                    _drop_unset_fields(item, item_dumped)
    return dumped
