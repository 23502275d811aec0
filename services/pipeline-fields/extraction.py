"""Custom field extraction — exclusion filter, $ref resolution, classification, step.

Turns a pipeline config schema into render-ready field descriptors for every
parameter that has no dedicated control elsewhere in the app. Unsupported or
unresolvable properties are dropped, never reported as errors.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from models import (
    Bound,
    BooleanField,
    ConfigSchema,
    EnumField,
    FieldDescriptor,
    IntegerField,
    NumberField,
    SchemaDefinition,
    SchemaProperty,
    StringField,
)

logger = logging.getLogger(__name__)

# Fields with dedicated UI controls (never rendered generically)
HARDCODED_FIELDS: frozenset[str] = frozenset({
    "height", "width", "seed", "denoising_steps",
    "vae_type", "noise_scale", "noise_controller", "manage_cache",
    "kv_cache_attention_bias", "quantization", "ref_images",
    "vace_context_scale", "input_size", "ctrl_input", "images",
    "base_seed",  # alias for seed
})

INTEGER_STEP = 1
NUMBER_STEP = 0.1
FINE_NUMBER_STEP = 0.01


def build_exclusion_set(
    exclude_fields: Iterable[str] | None = None,
    hardcoded_fields: Iterable[str] = HARDCODED_FIELDS,
) -> frozenset[str]:
    """Union of the built-in reserved names and caller-supplied extras."""
    return frozenset(hardcoded_fields).union(exclude_fields or ())


def resolve_reference(
    name: str,
    prop: SchemaProperty,
    defs: Mapping[str, SchemaDefinition],
) -> EnumField | None:
    """Resolve a single-segment ``$ref`` to an enum field.

    Only the trailing path segment is used as the lookup key
    (``#/$defs/Sampler`` -> ``Sampler``). Returns None when there is no
    reference, the definition is missing, or it carries no enumeration.
    """
    if not prop.ref:
        return None

    def_name = prop.ref.rsplit("/", 1)[-1]
    definition = defs.get(def_name)
    if definition is None or not definition.enum:
        logger.debug("Reference %r for %r has no enum definition", prop.ref, name)
        return None

    return EnumField(
        name=name,
        default=prop.default,
        description=prop.description,
        enum_values=list(definition.enum),
    )


def classify_property(name: str, prop: SchemaProperty) -> FieldDescriptor | None:
    """Map the declared primitive type to a field kind. None = unsupported."""
    common: dict[str, Any] = {
        "name": name,
        "default": prop.default,
        "description": prop.description,
    }

    if prop.type == "boolean":
        return BooleanField(**common)
    if prop.type == "integer":
        return IntegerField(**common, minimum=prop.minimum, maximum=prop.maximum)
    if prop.type == "number":
        return NumberField(**common, minimum=prop.minimum, maximum=prop.maximum)
    if prop.type == "string":
        # Inline enum without $ref
        if prop.enum:
            return EnumField(**common, enum_values=list(prop.enum))
        return StringField(**common)

    # Arrays, objects, missing or composite types are not rendered
    return None


def derive_step(
    field_type: str,
    minimum: Bound | None = None,
    maximum: Bound | None = None,
) -> Bound | None:
    """Presentation step for numeric inputs; None for everything else."""
    if field_type == "integer":
        return INTEGER_STEP

    if field_type == "number":
        # Finer granularity for narrow ranges
        if minimum is not None and maximum is not None:
            try:
                if maximum - minimum < 1:
                    return FINE_NUMBER_STEP
            except OverflowError:
                # int bound too large for float arithmetic
                pass
        return NUMBER_STEP

    return None


def extract_custom_fields(
    config_schema: ConfigSchema | Mapping[str, Any] | None,
    exclude_fields: Iterable[str] | None = None,
    hardcoded_fields: Iterable[str] = HARDCODED_FIELDS,
) -> dict[str, FieldDescriptor]:
    """Extract custom field descriptors from a pipeline config schema.

    Accepts a parsed ``ConfigSchema`` or the raw JSON mapping. Output keeps
    the schema's declared property order. Never raises: a missing schema,
    unsupported types and unresolved references all degrade to omission.
    """
    if config_schema is None:
        return {}
    if not isinstance(config_schema, ConfigSchema):
        config_schema = ConfigSchema.from_mapping(config_schema)
    if not config_schema.properties:
        return {}

    excluded = build_exclusion_set(exclude_fields, hardcoded_fields)
    fields: dict[str, FieldDescriptor] = {}

    for name, prop in config_schema.properties.items():
        if name in excluded:
            logger.debug("Skipping %r: excluded", name)
            continue

        field = resolve_reference(name, prop, config_schema.defs)
        if field is None:
            field = classify_property(name, prop)
        if field is None:
            logger.debug("Skipping %r: unsupported type %r", name, prop.type)
            continue

        step = derive_step(
            field.type,
            getattr(field, "minimum", None),
            getattr(field, "maximum", None),
        )
        if step is not None:
            field = field.model_copy(update={"step": step})

        fields[name] = field

    logger.info(
        "Extracted %d custom fields from %d schema properties",
        len(fields), len(config_schema.properties),
    )
    return fields
