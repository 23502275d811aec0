"""Pydantic models for pipeline config schemas and customizable field descriptors.

Input side mirrors the JSON schema a pydantic v2 pipeline config publishes
(``properties`` plus ``$defs``). Output side is a discriminated union with one
model per field kind, so only the enum variant carries ``enumValues`` and only
the numeric variants carry bounds and a step.
"""

import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

Bound = int | float


class SchemaProperty(BaseModel):
    """One entry of a config schema's property map. Unknown keys are ignored."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: str | list[str] | None = None
    default: Any = None
    description: str | None = None
    minimum: Bound | None = None
    maximum: Bound | None = None
    enum: list[Any] | None = None
    ref: str | None = Field(default=None, alias="$ref")


class SchemaDefinition(BaseModel):
    """Named schema fragment. Only its enumeration is ever inspected."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enum: list[Any] | None = None


class ConfigSchema(BaseModel):
    """A pipeline's config schema: ordered properties plus a definitions table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    properties: dict[str, SchemaProperty] = Field(default_factory=dict)
    defs: dict[str, SchemaDefinition] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("$defs", "definitions"),
        serialization_alias="$defs",
    )

    @classmethod
    def from_mapping(cls, data: Any) -> "ConfigSchema":
        """Parse a raw JSON mapping, dropping entries that fail validation.

        Never raises: anything that is not a mapping yields an empty schema.
        """
        if not isinstance(data, Mapping):
            return cls()

        properties = _parse_entries(data.get("properties"), SchemaProperty, "property")
        raw_defs = data.get("$defs")
        if raw_defs is None:
            raw_defs = data.get("definitions")
        defs = _parse_entries(raw_defs, SchemaDefinition, "definition")

        return cls(properties=properties, defs=defs)


def _parse_entries(raw: Any, model: type[BaseModel], kind: str) -> dict:
    if not isinstance(raw, Mapping):
        return {}

    entries = {}
    for name, value in raw.items():
        if not isinstance(name, str):
            continue
        try:
            entries[name] = model.model_validate(value)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed schema %s %r (%d validation errors)",
                kind, name, e.error_count(),
            )
    return entries


# -----------------------------------------------------------------------------
# Field descriptors
# -----------------------------------------------------------------------------

class _FieldBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    default: Any = None
    description: str | None = None


class BooleanField(_FieldBase):
    type: Literal["boolean"] = "boolean"


class IntegerField(_FieldBase):
    type: Literal["integer"] = "integer"
    minimum: Bound | None = None
    maximum: Bound | None = None
    step: Bound | None = None


class NumberField(_FieldBase):
    type: Literal["number"] = "number"
    minimum: Bound | None = None
    maximum: Bound | None = None
    step: Bound | None = None


class StringField(_FieldBase):
    type: Literal["string"] = "string"


class EnumField(_FieldBase):
    type: Literal["enum"] = "enum"
    enum_values: list[Any] = Field(alias="enumValues", min_length=1)


FieldDescriptor = Annotated[
    Union[BooleanField, IntegerField, NumberField, StringField, EnumField],
    Field(discriminator="type"),
]

NUMERIC_FIELDS = (IntegerField, NumberField)


# -----------------------------------------------------------------------------
# API payloads
# -----------------------------------------------------------------------------

class CustomFieldsRequest(BaseModel):
    config_schema: dict[str, Any] | None = None
    exclude_fields: list[str] = []


class CustomFieldsResponse(BaseModel):
    fields: dict[str, FieldDescriptor]
    excluded: list[str] = []


class FieldValidationRequest(BaseModel):
    config_schema: dict[str, Any] | None = None
    values: dict[str, Any] = {}
    exclude_fields: list[str] = []


class FieldValidationResponse(BaseModel):
    valid: bool
    errors: dict[str, str] = {}
