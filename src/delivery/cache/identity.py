"""
Identity cache: one instance per resource.

The cache has two parts:
- client-lifetime instances (the space, every content type and every
  asset) owned by the client and cleared only explicitly
- build sessions, one per top-level request, mapping
  (link type, id, locale scope) to the entries and assets built for it,
  together with the response's "included" side-table

Entries are therefore deduplicated inside one response graph (which is
what lets circular links terminate) but not across unrelated requests,
unless the caller hands the same session to several builds. Assets are
shared across requests; a newer revision replaces the cached instance.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..core.models import ALL_LOCALES, BuildDiagnostic
from ..core.resources import Asset, ContentType, Space
from ..schema.registry import SchemaRegistry


logger = logging.getLogger(__name__)

ResourceKey = Tuple[str, str, str]


class BuildSession:
    """
    Arena of the entries and assets built for one top-level request.

    Attributes:
        identity_cache: The owning identity cache
        diagnostics: Schema-drift findings recorded while building
        resolver: Link resolver bound to this session (set by the builder)
    """

    def __init__(self, identity_cache: "IdentityCache"):
        self.identity_cache = identity_cache
        self.diagnostics: List[BuildDiagnostic] = []
        self.resolver = None
        self._resources: Dict[ResourceKey, Any] = {}
        self._included: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._lock = threading.RLock()

    @staticmethod
    def key(link_type: str, resource_id: str, scope: Optional[str]) -> ResourceKey:
        return (link_type, resource_id, scope or ALL_LOCALES)

    def get(self, link_type: str, resource_id: str, scope: Optional[str] = None) -> Any:
        """Exact lookup by (type, id, locale scope)."""
        with self._lock:
            return self._resources.get(self.key(link_type, resource_id, scope))

    def find(self, link_type: str, resource_id: str, scope: Optional[str] = None) -> Any:
        """
        Lookup that also accepts the all-locales instance.

        An all-locales resource holds every locale, so it can serve a request
        for any single locale.
        """
        with self._lock:
            found = self._resources.get(self.key(link_type, resource_id, scope))
            if found is None and scope not in (None, ALL_LOCALES):
                found = self._resources.get(self.key(link_type, resource_id, ALL_LOCALES))
            return found

    def register(self, resource: Any) -> Any:
        """
        Register a built resource.

        Returns:
            The instance already registered under the same key, or ``resource``
        """
        key = self.key(resource.sys.type, resource.sys.id, resource.sys.locale_scope)
        with self._lock:
            existing = self._resources.get(key)
            if existing is not None:
                return existing
            self._resources[key] = resource
            return resource

    def unregister(self, resource: Any) -> None:
        """Withdraw a registration, used when a build fails part way."""
        key = self.key(resource.sys.type, resource.sys.id, resource.sys.locale_scope)
        with self._lock:
            if self._resources.get(key) is resource:
                del self._resources[key]

    def add_included(self, raw: Dict[str, Any]) -> None:
        """Store a raw included document for on-demand building."""
        sys = raw.get("sys") or {}
        if not sys.get("type") or not sys.get("id"):
            logger.warning(f"Ignoring included document without sys.type/sys.id: {sys!r}")
            return
        with self._lock:
            self._included.setdefault((sys["type"], sys["id"]), raw)

    def get_included(self, link_type: str, resource_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._included.get((link_type, resource_id))

    @property
    def included_count(self) -> int:
        return len(self._included)

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._resources


class IdentityCache:
    """
    Per-client identity cache.

    Created when the client is constructed; never evicts on its own.
    Registration is guarded by a lock so that concurrent callers only ever
    observe fully built spaces, content types and assets.
    """

    def __init__(self):
        self.content_types = SchemaRegistry()
        self._space: Optional[Space] = None
        self._assets: Dict[Tuple[str, str], Asset] = {}
        self._lock = threading.RLock()

    def has_space(self) -> bool:
        with self._lock:
            return self._space is not None

    def get_space(self) -> Optional[Space]:
        with self._lock:
            return self._space

    def set_space(self, space: Space) -> Space:
        """
        Register the space singleton.

        Returns:
            The already registered space if there is one, else ``space``
        """
        with self._lock:
            if self._space is None:
                self._space = space
                logger.debug(f"Registered space: {space.id}")
            return self._space

    def has_content_type(self, content_type_id: str) -> bool:
        return self.content_types.has(content_type_id)

    def get_content_type(self, content_type_id: str) -> Optional[ContentType]:
        return self.content_types.get(content_type_id)

    def add_content_type(self, content_type: ContentType) -> ContentType:
        return self.content_types.add(content_type)

    def get_asset(self, asset_id: str, scope: Optional[str] = None) -> Optional[Asset]:
        """Exact lookup by id and locale scope."""
        with self._lock:
            return self._assets.get((asset_id, scope or ALL_LOCALES))

    def find_asset(self, asset_id: str, scope: Optional[str] = None) -> Optional[Asset]:
        """Lookup that also accepts the all-locales instance."""
        with self._lock:
            found = self._assets.get((asset_id, scope or ALL_LOCALES))
            if found is None and scope not in (None, ALL_LOCALES):
                found = self._assets.get((asset_id, ALL_LOCALES))
            return found

    def add_asset(self, asset: Asset) -> Asset:
        """
        Register an asset.

        Returns:
            The cached instance when it has the same revision as ``asset``,
            else ``asset``, which replaces any older cached instance
        """
        key = (asset.id, asset.sys.locale_scope)
        with self._lock:
            existing = self._assets.get(key)
            if existing is not None and existing.revision == asset.revision:
                return existing
            self._assets[key] = asset
            if existing is not None:
                logger.debug(f"Replaced asset {asset.id} revision {existing.revision} with {asset.revision}")
            return asset

    def new_session(self) -> BuildSession:
        return BuildSession(self)

    def clear(self) -> None:
        """Forget the space, every content type and every asset."""
        with self._lock:
            self._space = None
            self.content_types.clear()
            self._assets.clear()
        logger.debug("Identity cache cleared")

    def stats(self) -> Dict[str, Any]:
        """Summary of what is cached, handy for logging and tests."""
        with self._lock:
            return {
                "space": self._space.id if self._space else None,
                "content_types": sorted(self.content_types.ids()),
                "assets": sorted({asset_id for asset_id, _ in self._assets}),
            }
