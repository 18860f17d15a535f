"""
Schema layer: content type registry, locale table and field coercion.
"""

from .locales import LocaleTable, value_without_table
from .registry import SchemaRegistry, parse_content_type, parse_field
from .coercion import coerce_localized, coerce_value

__all__ = [
    "LocaleTable",
    "value_without_table",
    "SchemaRegistry",
    "parse_content_type",
    "parse_field",
    "coerce_localized",
    "coerce_value",
]
