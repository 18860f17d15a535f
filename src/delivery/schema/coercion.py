"""
Schema-driven coercion of raw entry field values.

Each field type maps to a coercer; the coercer for an Array field applies
the coercer of its item type to every element. The result is a plain Python
value: str/int/float/bool, an aware datetime, a Link, a list or a dict.
"""

from typing import Any, Callable, Dict, Optional

from ..core.dates import parse_date
from ..core.exceptions import FieldCoercionError
from ..core.models import Link
from ..core.resources import ContentTypeField, FieldType


Coercer = Callable[[Any, str], Any]


def _coerce_string(value: Any, field_id: str) -> str:
    if not isinstance(value, str):
        raise FieldCoercionError(field_id, value, "string")
    return value


def _coerce_integer(value: Any, field_id: str) -> int:
    if isinstance(value, bool):
        raise FieldCoercionError(field_id, value, FieldType.INTEGER.value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise FieldCoercionError(field_id, value, FieldType.INTEGER.value)


def _coerce_number(value: Any, field_id: str) -> Any:
    if isinstance(value, bool):
        raise FieldCoercionError(field_id, value, FieldType.NUMBER.value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            pass
    raise FieldCoercionError(field_id, value, FieldType.NUMBER.value)


def _coerce_boolean(value: Any, field_id: str) -> bool:
    if not isinstance(value, bool):
        raise FieldCoercionError(field_id, value, FieldType.BOOLEAN.value)
    return value


def _coerce_date(value: Any, field_id: str):
    try:
        return parse_date(value)
    except ValueError:
        raise FieldCoercionError(field_id, value, FieldType.DATE.value) from None


def _coerce_link(value: Any, field_id: str) -> Link:
    try:
        return Link.from_dict(value)
    except ValueError:
        raise FieldCoercionError(field_id, value, FieldType.LINK.value) from None


def _coerce_location(value: Any, field_id: str) -> Dict[str, Any]:
    if not isinstance(value, dict) or "lat" not in value or "lon" not in value:
        raise FieldCoercionError(field_id, value, FieldType.LOCATION.value)
    return value


def _passthrough(value: Any, field_id: str) -> Any:
    return value


COERCERS: Dict[str, Coercer] = {
    FieldType.SYMBOL.value: _coerce_string,
    FieldType.TEXT.value: _coerce_string,
    FieldType.INTEGER.value: _coerce_integer,
    FieldType.NUMBER.value: _coerce_number,
    FieldType.BOOLEAN.value: _coerce_boolean,
    FieldType.DATE.value: _coerce_date,
    FieldType.LINK.value: _coerce_link,
    FieldType.OBJECT.value: _passthrough,
    FieldType.LOCATION.value: _coerce_location,
}


def coerce_value(field: ContentTypeField, value: Any) -> Any:
    """
    Coerce one raw value according to its field definition.

    None stays None for every type.

    Args:
        field: Field definition from the owning content type
        value: Raw JSON value for a single locale

    Returns:
        The coerced value

    Raises:
        FieldCoercionError: If the value does not fit the declared type
    """
    if value is None:
        return None

    if field.type == FieldType.ARRAY.value:
        if not isinstance(value, list):
            raise FieldCoercionError(field.id, value, FieldType.ARRAY.value)
        item_coercer = _coercer_for(field.items_type, field.id)
        return [item_coercer(item, field.id) for item in value]

    return _coercer_for(field.type, field.id)(value, field.id)


def coerce_localized(field: ContentTypeField, values: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce every locale of a per-locale map."""
    if not isinstance(values, dict):
        raise FieldCoercionError(field.id, values, "per-locale map")
    return {locale: coerce_value(field, value) for locale, value in values.items()}


def _coercer_for(field_type: Optional[str], field_id: str) -> Coercer:
    try:
        return COERCERS[field_type]
    except KeyError:
        raise FieldCoercionError(field_id, None, f"known field type (got {field_type!r})") from None
