"""
Delivery API client.

The client wires together the fetch collaborator, the metadata cache, the
identity cache and the resource builder. It owns all caches; nothing is
shared between client instances.

Example:
    >>> client = Client("b4c0n73n7fu1", "cfexampleapi")
    >>> nyancat = client.get_entry("nyancat")
    >>> nyancat.name
    'Nyan Cat'
    >>> nyancat.best_friend.name
    'Happy Cat'
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .builder.resource_builder import ResourceBuilder
from .cache.identity import IdentityCache
from .cache.metadata import FileMetadataCache, InMemoryMetadataCache, MetadataCache, NullMetadataCache
from .config.config_loader import DeliveryConfig
from .connectors.delivery_api import DeliveryApiConnector
from .core.exceptions import ConfigError, SpaceMismatchError
from .core.models import Link, ResourceArray, ResourceType
from .core.resources import Asset, ContentType, Entry, Resource, Space
from .query import Query
from .sync.manager import SyncManager


logger = logging.getLogger(__name__)


class Client:
    """
    Read-only client of one space of the delivery (or preview) API.

    ``default_locale`` is applied to entry and asset requests that do not
    name a locale: None means the space's default locale, a code fetches
    that locale and ``"*"`` fetches all locales.
    """

    def __init__(
        self,
        access_token: str,
        space_id: str,
        preview: bool = False,
        default_locale: Optional[str] = None,
        base_url: Optional[str] = None,
        fetcher=None,
        metadata_cache: Optional[MetadataCache] = None,
        timeout: int = 30,
        max_retries: int = 3,
        rate_limit_delay: float = 0.0,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize the client.

        Args:
            access_token: Delivery or preview API token
            space_id: Id of the space
            preview: Whether to use the preview API
            default_locale: Locale applied when a request names none
            base_url: Overrides the API host
            fetcher: Fetch collaborator; a ``DeliveryApiConnector`` when omitted
            metadata_cache: Read-through cache of space and content type JSON
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            rate_limit_delay: Minimum seconds between requests
            user_agent: Custom User-Agent header
        """
        self.space_id = space_id
        self.preview = preview
        self.default_locale = default_locale

        self.fetcher = fetcher or DeliveryApiConnector(
            space_id=space_id,
            access_token=access_token,
            preview=preview,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            rate_limit_delay=rate_limit_delay,
            user_agent=user_agent,
        )
        self.metadata_cache = metadata_cache or NullMetadataCache()
        self.identity_cache = IdentityCache()
        self.builder = ResourceBuilder(
            self.identity_cache,
            space_id=space_id,
            metadata_cache=self.metadata_cache,
            fetcher=self.fetcher,
        )

        logger.debug(f"Client initialized for space {space_id} (preview={preview})")

    @classmethod
    def from_config(cls, config: DeliveryConfig, **kwargs: Any) -> "Client":
        """
        Build a client from configuration.

        Raises:
            ConfigError: If credentials are missing or the cache settings are invalid
        """
        config.require_credentials()
        client_config = config.get_client_config()
        transport = config.get_transport_config()
        space_id = client_config["space_id"]

        options: Dict[str, Any] = {
            "preview": bool(client_config.get("preview", False)),
            "default_locale": client_config.get("default_locale"),
            "base_url": client_config.get("base_url"),
            "timeout": transport.get("timeout", 30),
            "max_retries": transport.get("max_retries", 3),
            "rate_limit_delay": transport.get("rate_limit_delay", 0.0),
            "user_agent": transport.get("user_agent"),
            "metadata_cache": _metadata_cache_from_config(config.get_cache_config(), space_id),
        }
        options.update(kwargs)
        return cls(client_config["access_token"], space_id, **options)

    @property
    def is_preview(self) -> bool:
        return self.preview

    # ------------------------------------------------------------------
    # Space and content types
    # ------------------------------------------------------------------

    def get_space(self) -> Space:
        """The space, from the identity cache, the metadata cache or the API."""
        return self.builder.load_space(self.space_id)

    def get_content_type(self, content_type_id: str) -> ContentType:
        """A content type, from the identity cache, the metadata cache or the API."""
        return self.builder.load_content_type(content_type_id)

    def get_content_types(self, query: Optional[Query] = None) -> ResourceArray:
        params = (query or Query()).get_query_data()
        raw = self.fetcher.get_collection(ResourceType.CONTENT_TYPE.value, params)
        return self.builder.build(raw)

    # ------------------------------------------------------------------
    # Entries and assets
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: str, locale: Optional[str] = None) -> Entry:
        """
        Fetch one entry.

        Args:
            entry_id: Id of the entry
            locale: Locale to fetch; the client's default locale when omitted

        Raises:
            NotFoundError: If the entry does not exist
        """
        locale = locale if locale is not None else self.default_locale
        raw = self.fetcher.get_by_id(entry_id, ResourceType.ENTRY.value, locale)
        return self.builder.build(raw)

    def get_entries(self, query: Optional[Query] = None) -> ResourceArray:
        return self._get_collection(ResourceType.ENTRY.value, query)

    def get_asset(self, asset_id: str, locale: Optional[str] = None) -> Asset:
        """
        Fetch one asset.

        Args:
            asset_id: Id of the asset
            locale: Locale to fetch; the client's default locale when omitted
        """
        locale = locale if locale is not None else self.default_locale
        raw = self.fetcher.get_by_id(asset_id, ResourceType.ASSET.value, locale)
        return self.builder.build(raw)

    def get_assets(self, query: Optional[Query] = None) -> ResourceArray:
        return self._get_collection(ResourceType.ASSET.value, query)

    def _get_collection(self, resource_type: str, query: Optional[Query]) -> ResourceArray:
        params = (query or Query()).get_query_data()
        if "locale" not in params and self.default_locale is not None:
            params["locale"] = self.default_locale
        raw = self.fetcher.get_collection(resource_type, params)
        return self.builder.build(raw)

    def resolve_link(self, link: Link, locale: Optional[str] = None) -> Resource:
        """
        Resolve a link in a new build session.

        Assets already held by the identity cache are returned without a
        fetch; entries are always fetched, like ``get_entry``.

        Args:
            link: The link to resolve
            locale: Locale scope; the client's default locale when omitted

        Raises:
            UnsupportedLinkTypeError: If the link targets neither Entry nor Asset
        """
        locale = locale if locale is not None else self.default_locale
        return self.builder.new_session().resolver.resolve(link, locale)

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def revive_json(self, json_str: str) -> Any:
        """
        Rebuild a resource from JSON produced by ``to_json()`` or cached API output.

        Raises:
            SpaceMismatchError: If the document belongs to another space
            SchemaError: If the document is malformed
        """
        data = json.loads(json_str)
        self._check_space(data)
        return self.builder.build(data)

    def _check_space(self, data: Any) -> None:
        if not isinstance(data, dict):
            return
        sys = data.get("sys") or {}
        if sys.get("type") == ResourceType.ARRAY.value:
            for item in data.get("items") or []:
                self._check_space(item)
            return

        if sys.get("type") == ResourceType.SPACE.value:
            actual = sys.get("id")
        else:
            actual = ((sys.get("space") or {}).get("sys") or {}).get("id")
        if actual is not None and actual != self.space_id:
            raise SpaceMismatchError(self.space_id, actual)

    def get_synchronization_manager(self) -> SyncManager:
        """
        Manager for sync passes. With the preview API only initial passes
        are supported.
        """
        return SyncManager(self.fetcher, self.builder, preview=self.preview, space_id=self.space_id)

    def clear_instance_cache(self) -> None:
        """Forget the cached space and content types."""
        self.identity_cache.clear()

    def close(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _metadata_cache_from_config(cache_config: Dict[str, Any], space_id: str) -> MetadataCache:
    backend = cache_config.get("backend") or "none"
    if backend == "none":
        return NullMetadataCache()
    if backend == "memory":
        return InMemoryMetadataCache()
    if backend == "file":
        cache_dir = cache_config.get("dir")
        if not cache_dir:
            raise ConfigError("cache.dir is required for the file cache backend")
        return FileMetadataCache(Path(cache_dir), namespace=space_id)
    raise ConfigError(f"Unknown cache backend '{backend}'. Valid backends are none, memory, file.")
