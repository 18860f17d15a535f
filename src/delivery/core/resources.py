"""
Typed resources built from delivery API payloads.

Every resource keeps its ``sys`` block and renders back to the API JSON
shape through ``to_dict``.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .canonical import canonicalize
from .dates import format_date_for_json
from .files import File
from .exceptions import UnresolvedLinkError
from .models import BuildDiagnostic, Link, ResourceType, SystemProperties

if TYPE_CHECKING:
    from ..builder.resolver import LinkResolver
    from ..schema.locales import LocaleTable


class FieldType(str, Enum):
    """Types a content type field can declare."""
    SYMBOL = "Symbol"
    TEXT = "Text"
    INTEGER = "Integer"
    NUMBER = "Number"
    DATE = "Date"
    BOOLEAN = "Boolean"
    LINK = "Link"
    ARRAY = "Array"
    OBJECT = "Object"
    LOCATION = "Location"


class Resource:
    """Base class of everything that carries a ``sys`` block."""

    def __init__(self, sys: SystemProperties):
        self.sys = sys

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def revision(self) -> Optional[int]:
        return self.sys.revision

    @property
    def created_at(self) -> Optional[datetime]:
        return self.sys.created_at

    @property
    def updated_at(self) -> Optional[datetime]:
        return self.sys.updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {"sys": self.sys.to_dict()}

    def to_json(self) -> str:
        """Canonical JSON string of ``to_dict()``."""
        return canonicalize(self.to_dict())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.sys.id!r}>"


class Space(Resource):
    """A space and its locale table."""

    def __init__(self, sys: SystemProperties, name: str, locales: "LocaleTable"):
        super().__init__(sys)
        self.name = name
        self.locales = locales

    @property
    def default_locale(self):
        return self.locales.default

    def get_locale(self, code: str):
        return self.locales.get(code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sys": self.sys.to_dict(),
            "name": self.name,
            "locales": self.locales.to_list(),
        }


@dataclass(frozen=True)
class ContentTypeField:
    """
    One field of a content type.

    ``items_type`` and ``items_link_type`` are only set for Array fields,
    ``link_type`` only for Link fields.
    """
    id: str
    name: str
    type: str
    link_type: Optional[str] = None
    items_type: Optional[str] = None
    items_link_type: Optional[str] = None
    required: bool = False
    localized: bool = False
    disabled: bool = False
    omitted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "localized": self.localized,
        }
        if self.link_type is not None:
            result["linkType"] = self.link_type
        if self.type == FieldType.ARRAY.value:
            result["items"] = {"type": self.items_type}
            if self.items_type == FieldType.LINK.value:
                result["items"]["linkType"] = self.items_link_type
        if self.disabled:
            result["disabled"] = True
        if self.omitted:
            result["omitted"] = True
        return result


class ContentType(Resource):
    """Schema of a family of entries."""

    def __init__(
        self,
        sys: SystemProperties,
        name: str,
        fields: List[ContentTypeField],
        description: Optional[str] = None,
        display_field: Optional[str] = None,
    ):
        super().__init__(sys)
        self.name = name
        self.fields = list(fields)
        self.description = description
        self.display_field = display_field
        self._fields_by_id = {f.id: f for f in self.fields}

    def get_field(self, field_id: str) -> Optional[ContentTypeField]:
        return self._fields_by_id.get(field_id)

    def has_field(self, field_id: str) -> bool:
        return field_id in self._fields_by_id

    @property
    def field_ids(self) -> List[str]:
        return [f.id for f in self.fields]

    def get_display_field(self) -> Optional[ContentTypeField]:
        if self.display_field is None:
            return None
        return self.get_field(self.display_field)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "sys": self.sys.to_dict(),
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.description is not None:
            result["description"] = self.description
        if self.display_field is not None:
            result["displayField"] = self.display_field
        return result


class LocalizedResource(Resource):
    """
    A resource whose values are kept per locale.

    ``space`` is None when the space could not be obtained while building;
    locale lookups then fall back to a direct map lookup.
    """

    def __init__(self, sys: SystemProperties, space: Optional[Space] = None):
        super().__init__(sys)
        self.space = space

    @property
    def locale(self) -> Optional[str]:
        """Locale of a single-locale resource; None for all-locale resources."""
        return self.sys.locale

    def _value_for(self, values: Optional[Dict[str, Any]], locale: Optional[str] = None) -> Any:
        from ..schema.locales import value_without_table

        if self.space is None:
            return value_without_table(values, locale, self.sys.locale)
        return self.space.locales.value_for(values, locale if locale is not None else self.sys.locale)

    def _localized_out(self, values: Dict[str, Any], serialize=lambda v: v) -> Any:
        """Render a per-locale map the way the resource was fetched."""
        if self.sys.locale is not None:
            return serialize(values.get(self.sys.locale))
        return {code: serialize(value) for code, value in values.items()}


class Asset(LocalizedResource):
    """A media file with localized title, description and file."""

    def __init__(
        self,
        sys: SystemProperties,
        title: Optional[Dict[str, str]] = None,
        description: Optional[Dict[str, str]] = None,
        file: Optional[Dict[str, File]] = None,
        space: Optional[Space] = None,
    ):
        super().__init__(sys, space)
        self.title = dict(title or {})
        self.description = dict(description or {})
        self.file = dict(file or {})

    def get_title(self, locale: Optional[str] = None) -> Optional[str]:
        return self._value_for(self.title, locale)

    def get_description(self, locale: Optional[str] = None) -> Optional[str]:
        return self._value_for(self.description, locale)

    def get_file(self, locale: Optional[str] = None) -> Optional[File]:
        return self._value_for(self.file, locale)

    def to_dict(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if self.title:
            fields["title"] = self._localized_out(self.title)
        if self.description:
            fields["description"] = self._localized_out(self.description)
        if self.file:
            fields["file"] = self._localized_out(self.file, lambda f: f.to_dict() if f else None)
        return {"sys": self.sys.to_dict(), "fields": fields}


_CAMEL_RE = re.compile(r"_([a-z0-9])")


def serialize_field_value(value: Any) -> Any:
    """Render a coerced field value back to its API JSON form."""
    if isinstance(value, datetime):
        return format_date_for_json(value)
    if isinstance(value, Link):
        return value.to_dict()
    if isinstance(value, list):
        return [serialize_field_value(item) for item in value]
    return value


class Entry(LocalizedResource):
    """
    A dynamically typed entry.

    Field values are coerced according to the entry's content type and kept
    per locale. Link values stay unresolved until read through ``get``,
    item access or attribute access:

        >>> entry.get("bestFriend")         # resolved Entry
        >>> entry["name"]                   # default locale
        >>> entry.get("name", locale="tlh") # with fallback
        >>> entry.best_friend               # snake_case maps to bestFriend
    """

    def __init__(
        self,
        sys: SystemProperties,
        content_type: ContentType,
        space: Optional[Space] = None,
        resolver: Optional["LinkResolver"] = None,
    ):
        super().__init__(sys, space)
        self.content_type = content_type
        self.fields: Dict[str, Dict[str, Any]] = {}
        self.diagnostics: List[BuildDiagnostic] = []
        self._resolver = resolver

    def has_field(self, field_id: str) -> bool:
        return field_id in self.fields or self.content_type.has_field(field_id)

    def get_raw(self, field_id: str, locale: Optional[str] = None) -> Any:
        """
        Field value without link resolution.

        Raises:
            KeyError: If the field is neither in the schema nor in the data
            UnknownLocaleError: If the locale is not part of the space
        """
        if not self.has_field(field_id):
            raise KeyError(field_id)
        return self._value_for(self.fields.get(field_id), locale)

    def get(self, field_id: str, locale: Optional[str] = None) -> Any:
        """
        Field value with links resolved to their target resources.

        Raises:
            KeyError: If the field is neither in the schema nor in the data
            UnknownLocaleError: If the locale is not part of the space
            UnsupportedLinkTypeError: If a link targets neither Asset nor Entry
        """
        value = self.get_raw(field_id, locale)
        return self._resolve(value)

    def _resolve(self, value: Any) -> Any:
        if isinstance(value, Link):
            return self._resolve_link(value)
        if isinstance(value, list):
            return [self._resolve_link(item) if isinstance(item, Link) else item for item in value]
        return value

    def _resolve_link(self, link: Link) -> Any:
        if self._resolver is None:
            raise UnresolvedLinkError(link)
        return self._resolver.resolve(link, self.sys.locale_scope)

    def __getitem__(self, field_id: str) -> Any:
        return self.get(field_id)

    def __contains__(self, field_id: object) -> bool:
        return isinstance(field_id, str) and self.has_field(field_id)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name in ("fields", "content_type", "sys", "space", "diagnostics"):
            raise AttributeError(name)
        for candidate in (name, _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)):
            if self.has_field(candidate):
                return self.get(candidate)
        raise AttributeError(f"Entry '{self.sys.id}' has no field '{name}'")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sys": self.sys.to_dict(),
            "fields": {
                field_id: self._localized_out(values, serialize_field_value)
                for field_id, values in self.fields.items()
            },
        }

    def __repr__(self) -> str:
        return f"<Entry id={self.sys.id!r} content_type={self.content_type.id!r}>"


class DeletedResource(Resource):
    """Tombstone of a deleted resource; only ``sys`` is known."""

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self.sys.deleted_at

    @property
    def space_id(self) -> Optional[str]:
        return self.sys.space_id


class DeletedEntry(DeletedResource):
    pass


class DeletedAsset(DeletedResource):
    pass


class DeletedContentType(DeletedResource):
    pass


DELETED_TYPES = {
    ResourceType.DELETED_ENTRY.value: DeletedEntry,
    ResourceType.DELETED_ASSET.value: DeletedAsset,
    ResourceType.DELETED_CONTENT_TYPE.value: DeletedContentType,
}
