"""
Core data models shared by every resource type.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .dates import format_date_for_json, parse_optional_date
from .exceptions import FieldCoercionError, SchemaError


class ResourceType(str, Enum):
    """Values of the ``sys.type`` discriminator."""
    ARRAY = "Array"
    SPACE = "Space"
    CONTENT_TYPE = "ContentType"
    ENTRY = "Entry"
    ASSET = "Asset"
    LINK = "Link"
    DELETED_ENTRY = "DeletedEntry"
    DELETED_ASSET = "DeletedAsset"
    DELETED_CONTENT_TYPE = "DeletedContentType"


class LinkType(str, Enum):
    """Link targets that can be resolved through the API."""
    ENTRY = "Entry"
    ASSET = "Asset"


RESOLVABLE_LINK_TYPES = frozenset(t.value for t in LinkType)

# Locale scope of resources fetched with all locales
ALL_LOCALES = "*"


def link_dict(link_type: str, resource_id: str) -> Dict[str, Any]:
    """Build the API representation of a link."""
    return {"sys": {"type": "Link", "linkType": link_type, "id": resource_id}}


@dataclass(frozen=True)
class Link:
    """
    An unresolved, typed reference to another resource.

    A link never owns its target; resolving it yields the shared instance
    from the build session.
    """
    id: str
    link_type: str

    @classmethod
    def from_dict(cls, data: Any) -> "Link":
        """
        Parse ``{"sys": {"type": "Link", "linkType": ..., "id": ...}}``.

        Raises:
            ValueError: If the value is not a link object
        """
        if not isinstance(data, dict) or not isinstance(data.get("sys"), dict):
            raise ValueError(f"Not a link object: {data!r}")
        sys = data["sys"]
        if sys.get("type") != "Link" or not sys.get("id") or not sys.get("linkType"):
            raise ValueError(f"Not a link object: {data!r}")
        return cls(id=sys["id"], link_type=sys["linkType"])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API representation."""
        return link_dict(self.link_type, self.id)


@dataclass(frozen=True)
class SystemProperties:
    """
    Metadata attached to every resource.

    References to the owning space and content type are kept as ids.
    """
    id: str
    type: str
    space_id: Optional[str] = None
    content_type_id: Optional[str] = None
    revision: Optional[int] = None
    locale: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SystemProperties":
        """
        Build system properties from a raw ``sys`` block.

        Raises:
            SchemaError: If id or type is missing
            FieldCoercionError: If a timestamp cannot be parsed
        """
        if not isinstance(data, dict):
            raise SchemaError(f"Expected a sys object, got {data!r}")
        if not data.get("type"):
            raise SchemaError("Resource has no sys.type")
        if not data.get("id"):
            raise SchemaError(f"Resource of type {data['type']} has no sys.id")

        dates = {}
        for key, attr in (("createdAt", "created_at"), ("updatedAt", "updated_at"), ("deletedAt", "deleted_at")):
            try:
                dates[attr] = parse_optional_date(data.get(key))
            except ValueError:
                raise FieldCoercionError(f"sys.{key}", data.get(key), "Date") from None

        return cls(
            id=data["id"],
            type=data["type"],
            space_id=_link_id(data.get("space")),
            content_type_id=_link_id(data.get("contentType")),
            revision=data.get("revision"),
            locale=data.get("locale"),
            **dates,
        )

    @property
    def locale_scope(self) -> str:
        """Locale the resource was fetched in, or ``*`` for all locales."""
        return self.locale or ALL_LOCALES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API representation, omitting unset values."""
        result: Dict[str, Any] = {"id": self.id, "type": self.type}
        if self.space_id is not None:
            result["space"] = link_dict("Space", self.space_id)
        if self.content_type_id is not None:
            result["contentType"] = link_dict("ContentType", self.content_type_id)
        if self.revision is not None:
            result["revision"] = self.revision
        if self.locale is not None:
            result["locale"] = self.locale
        if self.created_at is not None:
            result["createdAt"] = format_date_for_json(self.created_at)
        if self.updated_at is not None:
            result["updatedAt"] = format_date_for_json(self.updated_at)
        if self.deleted_at is not None:
            result["deletedAt"] = format_date_for_json(self.deleted_at)
        return result


def _link_id(value: Any) -> Optional[str]:
    if isinstance(value, dict) and isinstance(value.get("sys"), dict):
        return value["sys"].get("id")
    return None


@dataclass(frozen=True)
class Locale:
    """
    A locale of a space.

    Attributes:
        code: Locale code, e.g. 'en-US'
        name: Human readable name
        fallback_code: Code of the locale consulted when a value is missing
        default: Whether this is the space's default locale
    """
    code: str
    name: str
    fallback_code: Optional[str] = None
    default: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Locale":
        if not data.get("code"):
            raise SchemaError(f"Locale without code: {data!r}")
        return cls(
            code=data["code"],
            name=data.get("name", data["code"]),
            fallback_code=data.get("fallbackCode"),
            default=bool(data.get("default", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "default": self.default,
            "fallbackCode": self.fallback_code,
        }


class DiagnosticKind(str, Enum):
    """Kinds of non-fatal schema drift found while building entries."""
    UNKNOWN_FIELD = "unknown_field"
    MISSING_REQUIRED_FIELD = "missing_required_field"


@dataclass(frozen=True)
class BuildDiagnostic:
    """A non-fatal finding recorded while building a resource."""
    resource_id: str
    field_id: str
    kind: DiagnosticKind
    message: str


@dataclass
class ResourceArray:
    """
    Envelope for any list response.

    Attributes:
        items: Built resources in response order
        total: Total number of matching resources on the server
        skip: Offset of this page
        limit: Page size requested
    """
    items: List[Any]
    total: int = 0
    skip: int = 0
    limit: int = 0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Any:
        return self.items[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sys": {"type": ResourceType.ARRAY.value},
            "total": self.total,
            "skip": self.skip,
            "limit": self.limit,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class SyncResult:
    """
    Result of a sync pass, or of a single sync page.

    Exactly one of ``next_page_token`` (more pages of the same pass remain)
    or ``next_sync_token`` (the pass is complete) is set.
    """
    items: List[Any] = field(default_factory=list)
    next_page_token: Optional[str] = None
    next_sync_token: Optional[str] = None

    @property
    def is_done(self) -> bool:
        """True once the pass is complete and a resumable token is available."""
        return self.next_sync_token is not None

    @property
    def token(self) -> Optional[str]:
        """The token to continue with, whichever kind it is."""
        return self.next_sync_token or self.next_page_token

    @property
    def entries(self) -> List[Any]:
        return [i for i in self.items if i.sys.type == ResourceType.ENTRY.value]

    @property
    def assets(self) -> List[Any]:
        return [i for i in self.items if i.sys.type == ResourceType.ASSET.value]

    @property
    def deleted(self) -> List[Any]:
        return [i for i in self.items if i.sys.type.startswith("Deleted")]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)
