"""
Core types, exceptions and utilities for the delivery content model.
"""

from .exceptions import (
    DeliveryError, SchemaError, UnresolvedContentTypeError, FieldCoercionError,
    UnknownLocaleError, UnsupportedLinkTypeError, UnresolvedLinkError,
    UnsupportedOperationError, SpaceMismatchError, ConfigError, TransportError,
    ApiError, InvalidQueryError, AccessTokenInvalidError, NotFoundError,
    RateLimitExceededError,
)
from .models import (
    ResourceType, LinkType, Link, SystemProperties, Locale, ResourceArray,
    SyncResult, BuildDiagnostic, DiagnosticKind, ALL_LOCALES,
)
from .files import File, ImageFile, ImageOptions
from .resources import (
    Resource, Space, ContentType, ContentTypeField, FieldType, Asset, Entry,
    DeletedResource, DeletedEntry, DeletedAsset, DeletedContentType,
)
from .connector import Connector, ConnectorRequest, ConnectorResponse

__all__ = [
    "DeliveryError",
    "SchemaError",
    "UnresolvedContentTypeError",
    "FieldCoercionError",
    "UnknownLocaleError",
    "UnsupportedLinkTypeError",
    "UnresolvedLinkError",
    "UnsupportedOperationError",
    "SpaceMismatchError",
    "ConfigError",
    "TransportError",
    "ApiError",
    "InvalidQueryError",
    "AccessTokenInvalidError",
    "NotFoundError",
    "RateLimitExceededError",
    "ResourceType",
    "LinkType",
    "Link",
    "SystemProperties",
    "Locale",
    "ResourceArray",
    "SyncResult",
    "BuildDiagnostic",
    "DiagnosticKind",
    "ALL_LOCALES",
    "File",
    "ImageFile",
    "ImageOptions",
    "Resource",
    "Space",
    "ContentType",
    "ContentTypeField",
    "FieldType",
    "Asset",
    "Entry",
    "DeletedResource",
    "DeletedEntry",
    "DeletedAsset",
    "DeletedContentType",
    "Connector",
    "ConnectorRequest",
    "ConnectorResponse",
]
