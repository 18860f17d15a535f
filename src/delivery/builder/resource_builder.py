"""
Resource builder: raw delivery API JSON to typed resources.

The builder dispatches on ``sys.type``. Spaces, content types and assets go
to the client-lifetime part of the identity cache. Entries and assets are
also registered in a build session, where they are deduplicated within one
response and where links between them are later resolved.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..cache.identity import BuildSession, IdentityCache
from ..cache.metadata import CacheKeyGenerator, MetadataCache
from ..core.exceptions import FieldCoercionError, SchemaError, UnresolvedContentTypeError
from ..core.files import File
from ..core.models import (
    BuildDiagnostic, DiagnosticKind, ResourceArray, ResourceType, SystemProperties,
)
from ..core.resources import (
    DELETED_TYPES, Asset, ContentType, Entry, Resource, Space,
)
from ..schema.coercion import coerce_localized
from ..schema.locales import LocaleTable
from ..schema.registry import parse_content_type
from .resolver import LinkResolver


logger = logging.getLogger(__name__)

# Link types whose documents may appear in an Array's "includes"
INCLUDED_TYPES = (ResourceType.ENTRY.value, ResourceType.ASSET.value)


class ResourceBuilder:
    """
    Turns raw documents into Spaces, ContentTypes, Assets, Entries,
    deleted stubs and ResourceArrays.

    Example:
        >>> builder = ResourceBuilder(IdentityCache(), space_id="cfexampleapi")
        >>> builder.build(space_json)
        <Space id='cfexampleapi'>
    """

    def __init__(
        self,
        identity_cache: IdentityCache,
        space_id: Optional[str] = None,
        metadata_cache: Optional[MetadataCache] = None,
        fetcher=None,
    ):
        """
        Initialize the builder.

        Args:
            identity_cache: Cache holding the space and content type singletons
            space_id: Space the built resources belong to; taken from each
                document's ``sys.space`` when omitted
            metadata_cache: Read-through cache of raw space/content type JSON
            fetcher: ``DeliveryFetcher`` used for missing content types, the
                space and links not present in the response
        """
        self.identity_cache = identity_cache
        self.space_id = space_id
        self.metadata_cache = metadata_cache
        self.fetcher = fetcher
        self.last_diagnostics: List[BuildDiagnostic] = []

        self._handlers: Dict[str, Callable[[Dict[str, Any], BuildSession], Any]] = {
            ResourceType.ARRAY.value: self._build_array,
            ResourceType.SPACE.value: self._build_space,
            ResourceType.CONTENT_TYPE.value: self._build_content_type,
            ResourceType.ASSET.value: self._build_asset,
            ResourceType.ENTRY.value: self._build_entry,
        }
        for deleted_type in DELETED_TYPES:
            self._handlers[deleted_type] = self._build_deleted

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def new_session(self) -> BuildSession:
        """Create a build session with a link resolver bound to this builder."""
        session = self.identity_cache.new_session()
        session.resolver = LinkResolver(self, session)
        return session

    def build(
        self,
        raw: Dict[str, Any],
        session: Optional[BuildSession] = None,
    ) -> Union[Resource, ResourceArray]:
        """
        Build one raw document.

        Args:
            raw: Parsed JSON document with a ``sys.type`` discriminator
            session: Build session to build into; a fresh one when omitted

        Returns:
            The built resource, or a ResourceArray for ``Array`` documents

        Raises:
            SchemaError: If the document is malformed or of unknown type
            UnresolvedContentTypeError: If an entry's content type is unavailable
            FieldCoercionError: If a field value does not fit its declared type
        """
        session = self._ensure_session(session)
        try:
            return self._build(raw, session)
        finally:
            self.last_diagnostics = list(session.diagnostics)

    def build_batch(
        self,
        raws: Iterable[Dict[str, Any]],
        included: Optional[Union[Dict[str, List[Dict[str, Any]]], Iterable[Dict[str, Any]]]] = None,
        session: Optional[BuildSession] = None,
    ) -> List[Resource]:
        """
        Build several documents into one session.

        Args:
            raws: Documents to build, in order
            included: Side-table of documents available to link resolution,
                either an API ``includes`` object or a flat list
            session: Build session to build into; a fresh one when omitted

        Returns:
            Built resources in input order
        """
        session = self._ensure_session(session)
        self._add_included(included, session)
        try:
            return [self._build(raw, session) for raw in raws]
        finally:
            self.last_diagnostics = list(session.diagnostics)

    def load_content_type(self, content_type_id: str, entry_id: Optional[str] = None) -> ContentType:
        """
        Content type by id: identity cache, then metadata cache, then fetch.

        Raises:
            UnresolvedContentTypeError: If no source can provide it
        """
        cached = self.identity_cache.get_content_type(content_type_id)
        if cached is not None:
            return cached

        space_id = self.space_id
        if space_id and self.metadata_cache is not None:
            raw = self._read_metadata(CacheKeyGenerator.content_type_key(space_id, content_type_id))
            if raw is not None:
                return self._build_content_type(raw)

        if self.fetcher is None:
            raise UnresolvedContentTypeError(content_type_id, entry_id)

        logger.debug(f"Fetching content type {content_type_id}")
        raw = self.fetcher.get_by_id(content_type_id, ResourceType.CONTENT_TYPE.value)
        return self._build_content_type(raw)

    def load_space(self, space_id: Optional[str] = None) -> Optional[Space]:
        """
        The space: identity cache, then metadata cache, then fetch.

        Returns:
            The space, or None when no source can provide it
        """
        cached = self.identity_cache.get_space()
        if cached is not None:
            return cached

        space_id = self.space_id or space_id
        if space_id and self.metadata_cache is not None:
            raw = self._read_metadata(CacheKeyGenerator.space_key(space_id))
            if raw is not None:
                return self._build_space(raw)

        if self.fetcher is None or not space_id:
            return None

        logger.debug(f"Fetching space {space_id}")
        raw = self.fetcher.get_by_id(space_id, ResourceType.SPACE.value)
        return self._build_space(raw)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _ensure_session(self, session: Optional[BuildSession]) -> BuildSession:
        if session is None:
            return self.new_session()
        if session.resolver is None:
            session.resolver = LinkResolver(self, session)
        return session

    def _build(self, raw: Dict[str, Any], session: BuildSession) -> Any:
        if not isinstance(raw, dict):
            raise SchemaError(f"Expected a JSON object, got {type(raw).__name__}")
        sys_raw = raw.get("sys")
        resource_type = sys_raw.get("type") if isinstance(sys_raw, dict) else None
        if not resource_type:
            raise SchemaError("Document has no sys.type")

        handler = self._handlers.get(resource_type)
        if handler is None:
            raise SchemaError(f"Unknown resource type '{resource_type}'")
        return handler(raw, session)

    def _add_included(self, included: Any, session: BuildSession) -> None:
        if not included:
            return
        if isinstance(included, dict):
            for link_type in INCLUDED_TYPES:
                for doc in included.get(link_type) or []:
                    session.add_included(doc)
        else:
            for doc in included:
                session.add_included(doc)

    # ------------------------------------------------------------------
    # Per-type builders
    # ------------------------------------------------------------------

    def _build_array(self, raw: Dict[str, Any], session: BuildSession) -> ResourceArray:
        self._add_included(raw.get("includes"), session)
        items = [self._build(item, session) for item in raw.get("items") or []]
        return ResourceArray(
            items=items,
            total=raw.get("total", len(items)),
            skip=raw.get("skip", 0),
            limit=raw.get("limit", len(items)),
        )

    def _build_space(self, raw: Dict[str, Any], session: Optional[BuildSession] = None) -> Space:
        sys = SystemProperties.from_dict(raw.get("sys"))
        cached = self.identity_cache.get_space()
        if cached is not None and cached.id == sys.id:
            return cached

        space = Space(
            sys=sys,
            name=raw.get("name", sys.id),
            locales=LocaleTable.from_list(raw.get("locales") or []),
        )
        if cached is not None:
            logger.warning(f"Built space {sys.id} while space {cached.id} is cached; not registering it")
            return space
        return self.identity_cache.set_space(space)

    def _build_content_type(self, raw: Dict[str, Any], session: Optional[BuildSession] = None) -> ContentType:
        sys = SystemProperties.from_dict(raw.get("sys"))
        cached = self.identity_cache.get_content_type(sys.id)
        if cached is not None:
            return cached
        return self.identity_cache.add_content_type(parse_content_type(raw))

    def _build_asset(self, raw: Dict[str, Any], session: BuildSession) -> Asset:
        sys = SystemProperties.from_dict(raw.get("sys"))
        existing = session.get(sys.type, sys.id, sys.locale_scope)
        if existing is not None:
            return existing

        cached = self.identity_cache.get_asset(sys.id, sys.locale_scope)
        if cached is not None and cached.revision == sys.revision:
            return session.register(cached)

        fields = self._normalize_fields(raw.get("fields") or {}, sys)
        files = {
            locale: File.from_dict(value)
            for locale, value in (fields.get("file") or {}).items()
            if value is not None
        }
        asset = Asset(
            sys=sys,
            title=_present(fields.get("title")),
            description=_present(fields.get("description")),
            file=files,
            space=self.load_space(sys.space_id),
        )
        return session.register(self.identity_cache.add_asset(asset))

    def _build_entry(self, raw: Dict[str, Any], session: BuildSession) -> Entry:
        sys = SystemProperties.from_dict(raw.get("sys"))
        existing = session.get(sys.type, sys.id, sys.locale_scope)
        if existing is not None:
            return existing

        if not sys.content_type_id:
            raise SchemaError(f"Entry '{sys.id}' has no sys.contentType")

        content_type = self.load_content_type(sys.content_type_id, sys.id)
        space = self.load_space(sys.space_id)

        entry = Entry(sys, content_type, space, session.resolver)
        registered = session.register(entry)
        if registered is not entry:
            return registered

        try:
            self._populate_entry(entry, raw.get("fields") or {}, session)
        except Exception:
            session.unregister(entry)
            raise
        return entry

    def _build_deleted(self, raw: Dict[str, Any], session: BuildSession) -> Resource:
        sys = SystemProperties.from_dict(raw.get("sys"))
        return DELETED_TYPES[sys.type](sys)

    # ------------------------------------------------------------------
    # Entry fields
    # ------------------------------------------------------------------

    def _populate_entry(self, entry: Entry, raw_fields: Dict[str, Any], session: BuildSession) -> None:
        content_type = entry.content_type
        fields = self._normalize_fields(raw_fields, entry.sys)
        diagnostics: List[BuildDiagnostic] = []

        for field_id, values in fields.items():
            field_def = content_type.get_field(field_id)
            if field_def is None:
                diagnostics.append(BuildDiagnostic(
                    resource_id=entry.id,
                    field_id=field_id,
                    kind=DiagnosticKind.UNKNOWN_FIELD,
                    message=f"Field '{field_id}' is not part of content type '{content_type.id}'",
                ))
                entry.fields[field_id] = values
                continue
            if field_def.disabled:
                logger.debug(f"Dropping disabled field {field_id} of entry {entry.id}")
                continue
            entry.fields[field_id] = coerce_localized(field_def, values)

        for field_def in content_type.fields:
            if field_def.required and not (field_def.disabled or field_def.omitted) and field_def.id not in fields:
                diagnostics.append(BuildDiagnostic(
                    resource_id=entry.id,
                    field_id=field_def.id,
                    kind=DiagnosticKind.MISSING_REQUIRED_FIELD,
                    message=f"Required field '{field_def.id}' of content type '{content_type.id}' is missing",
                ))

        for diagnostic in diagnostics:
            logger.warning(f"Entry {entry.id}: {diagnostic.message}")
        entry.diagnostics = diagnostics
        session.diagnostics.extend(diagnostics)

    def _normalize_fields(self, raw_fields: Any, sys: SystemProperties) -> Dict[str, Dict[str, Any]]:
        """Return fields as per-locale maps, wrapping single-locale documents."""
        if not isinstance(raw_fields, dict):
            raise SchemaError(f"Resource '{sys.id}' has malformed fields: {raw_fields!r}")
        if sys.locale is not None:
            return {field_id: {sys.locale: value} for field_id, value in raw_fields.items()}

        for field_id, values in raw_fields.items():
            if not isinstance(values, dict):
                raise FieldCoercionError(field_id, values, "per-locale map")
        return raw_fields

    def _read_metadata(self, key: str) -> Optional[Dict[str, Any]]:
        text = self.metadata_cache.get(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable metadata cache entry {key}: {e}")
            return None


def _present(values: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop locales without a value."""
    return {locale: value for locale, value in (values or {}).items() if value is not None}
