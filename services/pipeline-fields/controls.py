"""Control selection and value rules applied by consumers of field descriptors.

The UI owns the widgets; these helpers own the decisions it makes about them
(which control, which fallback value, which bound message) so every client
behaves the same way.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Literal

from models import (
    BooleanField,
    EnumField,
    FieldDescriptor,
    IntegerField,
    NUMERIC_FIELDS,
    NumberField,
    StringField,
)

logger = logging.getLogger(__name__)

ControlKind = Literal["toggle", "slider", "select", "text"]

SLIDER_DEFAULT_MIN = 0
SLIDER_DEFAULT_MAX = 100

# Leading numeric prefix, so "12px" reads as 12 and "1.5" as 1 for integers
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class ControlSpec:
    """What the UI should render for one field."""

    kind: ControlKind
    field_name: str
    minimum: float | None = None
    maximum: float | None = None
    step: float | None = None
    decimal_places: int | None = None
    options: tuple[str, ...] = ()


def control_for(field: FieldDescriptor) -> ControlSpec | None:
    """Pick the control for a descriptor; None for anything unrecognized."""
    if isinstance(field, BooleanField):
        return ControlSpec(kind="toggle", field_name=field.name)

    if isinstance(field, NUMERIC_FIELDS):
        is_integer = isinstance(field, IntegerField)
        fallback_step = 1 if is_integer else 0.1
        return ControlSpec(
            kind="slider",
            field_name=field.name,
            minimum=field.minimum if field.minimum is not None else SLIDER_DEFAULT_MIN,
            maximum=field.maximum if field.maximum is not None else SLIDER_DEFAULT_MAX,
            step=field.step if field.step is not None else fallback_step,
            decimal_places=0 if is_integer else 2,
        )

    if isinstance(field, EnumField):
        return ControlSpec(
            kind="select",
            field_name=field.name,
            options=tuple(str(v) for v in field.enum_values),
        )

    if isinstance(field, StringField):
        return ControlSpec(kind="text", field_name=field.name)

    logger.warning(
        "Unsupported field type %r for field %r",
        getattr(field, "type", None), getattr(field, "name", None),
    )
    return None


def current_value(field: FieldDescriptor, value: Any = None) -> Any:
    """Externally supplied value, else the schema default, else a per-type fallback."""
    if value is not None:
        return value
    if field.default is not None:
        return field.default

    if isinstance(field, BooleanField):
        return False
    if isinstance(field, NUMERIC_FIELDS):
        return 0
    if isinstance(field, EnumField):
        return field.enum_values[0]
    return ""


def parse_numeric_input(field: IntegerField | NumberField, text: str) -> int | float:
    """Parse typed slider input; unparseable text falls back to the default."""
    fallback = field.default if field.default is not None else 0
    if not isinstance(text, str):
        return fallback

    if isinstance(field, IntegerField):
        match = _INT_PREFIX.match(text)
        return int(match.group(1)) if match else fallback

    match = _FLOAT_PREFIX.match(text)
    if match is None:
        return fallback
    return float(match.group(1))


def validate_numeric(field: FieldDescriptor, value: Any) -> str | None:
    """Bound check for numeric fields. Returns the user-facing message or None."""
    if not isinstance(field, NUMERIC_FIELDS):
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "Must be a number"
    if isinstance(value, float) and math.isnan(value):
        return "Must be a number"

    if field.minimum is not None and value < field.minimum:
        return f"Must be at least {field.minimum}"
    if field.maximum is not None and value > field.maximum:
        return f"Must be at most {field.maximum}"
    return None


def validate_values(
    fields: dict[str, FieldDescriptor],
    values: dict[str, Any],
) -> dict[str, str]:
    """Bound-check every supplied value that targets a numeric field."""
    errors: dict[str, str] = {}
    for name, value in values.items():
        field = fields.get(name)
        if field is None:
            continue
        message = validate_numeric(field, value)
        if message is not None:
            errors[name] = message
    return errors
