"""
Schema registry: content type parsing and lookup.

Content types are the source of truth for how an entry's raw fields are
coerced. They change rarely, so the registry keeps them for the lifetime
of the client that owns it.
"""

import logging
import threading
from typing import Any, Dict, Iterator, List, Optional

from ..core.exceptions import SchemaError
from ..core.models import RESOLVABLE_LINK_TYPES, SystemProperties
from ..core.resources import ContentType, ContentTypeField, FieldType


logger = logging.getLogger(__name__)

KNOWN_FIELD_TYPES = frozenset(t.value for t in FieldType)


def parse_field(raw: Dict[str, Any], content_type_id: str = "?") -> ContentTypeField:
    """
    Map one raw field definition to a ContentTypeField.

    Args:
        raw: Field definition from a content type payload
        content_type_id: Owning content type, used in error messages

    Returns:
        The parsed field

    Raises:
        SchemaError: If the definition is incomplete or uses an unknown type
    """
    if not isinstance(raw, dict) or not raw.get("id"):
        raise SchemaError(f"Content type '{content_type_id}' has a field without id: {raw!r}")

    field_id = raw["id"]
    field_type = raw.get("type")
    where = f"field '{field_id}' of content type '{content_type_id}'"

    if field_type not in KNOWN_FIELD_TYPES:
        raise SchemaError(f"Unknown type {field_type!r} for {where}")

    link_type = raw.get("linkType")
    if field_type == FieldType.LINK.value and not link_type:
        raise SchemaError(f"Link {where} has no linkType")

    items_type = None
    items_link_type = None
    if field_type == FieldType.ARRAY.value:
        items = raw.get("items") or {}
        items_type = items.get("type")
        if not items_type:
            raise SchemaError(f"Array {where} has no items.type")
        if items_type not in KNOWN_FIELD_TYPES or items_type == FieldType.ARRAY.value:
            raise SchemaError(f"Unsupported items.type {items_type!r} for {where}")
        if items_type == FieldType.LINK.value:
            items_link_type = items.get("linkType")
            if not items_link_type:
                raise SchemaError(f"Array of links {where} has no items.linkType")

    for declared in (link_type, items_link_type):
        if declared is not None and declared not in RESOLVABLE_LINK_TYPES:
            logger.warning(f"{where} links to unsupported type {declared!r}")

    return ContentTypeField(
        id=field_id,
        name=raw.get("name", field_id),
        type=field_type,
        link_type=link_type,
        items_type=items_type,
        items_link_type=items_link_type,
        required=bool(raw.get("required", False)),
        localized=bool(raw.get("localized", False)),
        disabled=bool(raw.get("disabled", False)),
        omitted=bool(raw.get("omitted", False)),
    )


def parse_content_type(raw: Dict[str, Any]) -> ContentType:
    """
    Build a ContentType from its raw payload.

    Raises:
        SchemaError: If the payload or any of its fields is malformed
    """
    sys = SystemProperties.from_dict(raw.get("sys"))
    fields_raw = raw.get("fields")
    if fields_raw is None:
        fields_raw = []
    if not isinstance(fields_raw, list):
        raise SchemaError(f"Content type '{sys.id}' has malformed fields: {fields_raw!r}")

    fields = [parse_field(f, sys.id) for f in fields_raw]

    seen = set()
    for f in fields:
        if f.id in seen:
            raise SchemaError(f"Content type '{sys.id}' defines field '{f.id}' twice")
        seen.add(f.id)

    return ContentType(
        sys=sys,
        name=raw.get("name", sys.id),
        fields=fields,
        description=raw.get("description"),
        display_field=raw.get("displayField"),
    )


class SchemaRegistry:
    """
    Thread-safe map of content type id to ContentType.

    The first registered instance for an id wins; later registrations of
    the same id return the existing instance.
    """

    def __init__(self):
        self._content_types: Dict[str, ContentType] = {}
        self._lock = threading.RLock()

    def has(self, content_type_id: str) -> bool:
        with self._lock:
            return content_type_id in self._content_types

    def get(self, content_type_id: str) -> Optional[ContentType]:
        with self._lock:
            return self._content_types.get(content_type_id)

    def add(self, content_type: ContentType) -> ContentType:
        """
        Register a content type.

        Returns:
            The canonical instance for the content type's id
        """
        with self._lock:
            existing = self._content_types.get(content_type.id)
            if existing is not None:
                return existing
            self._content_types[content_type.id] = content_type
            logger.debug(f"Registered content type: {content_type.id}")
            return content_type

    def field_for(self, content_type_id: str, field_id: str) -> Optional[ContentTypeField]:
        content_type = self.get(content_type_id)
        if content_type is None:
            return None
        return content_type.get_field(field_id)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._content_types)

    def clear(self) -> None:
        with self._lock:
            self._content_types.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._content_types)

    def __iter__(self) -> Iterator[ContentType]:
        with self._lock:
            return iter(list(self._content_types.values()))
