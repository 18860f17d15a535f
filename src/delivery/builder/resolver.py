"""
Link resolution.

A ``LinkResolver`` is bound to one build session. Links are resolved on
first access only, in this order:

1. the session map (exact locale scope, then the all-locales instance)
2. for assets, the client-lifetime assets of the identity cache
3. the response's "included" side-table, built into the session on demand
4. the fetch collaborator, whose document is built into the same session
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..core.exceptions import UnresolvedLinkError, UnsupportedLinkTypeError
from ..core.models import ALL_LOCALES, RESOLVABLE_LINK_TYPES, Link, LinkType

if TYPE_CHECKING:
    from ..cache.identity import BuildSession
    from .resource_builder import ResourceBuilder


logger = logging.getLogger(__name__)


class LinkResolver:
    """
    Resolves links to the shared instances of their targets.

    Results are memoized per (link type, id, locale scope), so resolving the
    same link twice never fetches twice.
    """

    def __init__(self, builder: "ResourceBuilder", session: "BuildSession"):
        self.builder = builder
        self.session = session
        self._memo: Dict[Tuple[str, str, str], Any] = {}
        self._lock = threading.RLock()

    def resolve(self, link: Link, locale: Optional[str] = None) -> Any:
        """
        Resolve a link to its target resource.

        Args:
            link: The link to resolve
            locale: Locale scope to resolve in; all locales when omitted

        Returns:
            The Entry or Asset the link points to

        Raises:
            UnsupportedLinkTypeError: If the link targets neither Asset nor Entry
            UnresolvedLinkError: If the target is unknown and nothing can fetch it
            ApiError: If the fetch collaborator reports an error
        """
        if link.link_type not in RESOLVABLE_LINK_TYPES:
            raise UnsupportedLinkTypeError(link.link_type)

        scope = locale or ALL_LOCALES
        key = (link.link_type, link.id, scope)

        with self._lock:
            if key in self._memo:
                return self._memo[key]

            resource = self.session.find(link.link_type, link.id, scope)

            if resource is None and link.link_type == LinkType.ASSET.value:
                cached = self.session.identity_cache.find_asset(link.id, scope)
                if cached is not None:
                    resource = self.session.register(cached)

            if resource is None:
                raw = self.session.get_included(link.link_type, link.id)
                if raw is not None:
                    logger.debug(f"Building included {link.link_type} {link.id}")
                    resource = self.builder.build(raw, self.session)

            if resource is None:
                fetcher = self.builder.fetcher
                if fetcher is None:
                    raise UnresolvedLinkError(link)
                logger.debug(f"Fetching linked {link.link_type} {link.id} (locale={scope})")
                raw = fetcher.get_by_id(link.id, link.link_type, scope)
                resource = self.builder.build(raw, self.session)

            self._memo[key] = resource
            return resource

    def __len__(self) -> int:
        return len(self._memo)
