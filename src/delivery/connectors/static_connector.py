"""
In-memory fetch collaborator.

Serves raw documents from a fixed dataset without any network access. It is
the collaborator used throughout the test-suite and is handy for offline
work against exported space content.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.exceptions import ApiError, NotFoundError
from ..core.models import ALL_LOCALES, ResourceType
from .base import DeliveryFetcher


logger = logging.getLogger(__name__)

# Key under which the first page of an initial sync is registered
INITIAL_SYNC = "initial"


class StaticConnector(DeliveryFetcher):
    """
    Deterministic fetch collaborator backed by dictionaries.

    Features:
    - Documents looked up by (sys.type, sys.id); the space by type alone
    - Single-locale projection of all-locale documents when a locale is asked for
    - Collections filtered by content type and id, with one level of includes
    - Sync pages registered per token
    - Error simulation for specific resource ids
    - Request history for assertions

    Example:
        >>> connector = StaticConnector([space_json, cat_json, nyancat_json])
        >>> connector.get_by_id("nyancat", "Entry")["sys"]["id"]
        'nyancat'
    """

    def __init__(
        self,
        documents: Optional[Iterable[Dict[str, Any]]] = None,
        sync_pages: Optional[Dict[str, Dict[str, Any]]] = None,
        error_resource_ids: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the static connector.

        Args:
            documents: Raw documents (space, content types, entries, assets)
            sync_pages: Sync pages keyed by the token that requests them;
                the initial page is keyed ``"initial"``
            error_resource_ids: Ids for which a 500 ApiError is raised
        """
        self._documents: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.sync_pages: Dict[str, Dict[str, Any]] = dict(sync_pages or {})
        self.error_resource_ids = set(error_resource_ids or [])
        self.request_history: List[Tuple[str, Dict[str, Any]]] = []

        for document in documents or []:
            self.add(document)

        logger.debug(f"StaticConnector initialized with {len(self._documents)} documents")

    def add(self, document: Dict[str, Any]) -> None:
        """Add or replace a raw document."""
        sys = document["sys"]
        self._documents[(sys["type"], sys["id"])] = document

    def add_sync_page(self, token: str, page: Dict[str, Any]) -> None:
        self.sync_pages[token] = page

    def get_by_id(
        self,
        resource_id: str,
        resource_type: str,
        locale: Optional[str] = None,
    ) -> Dict[str, Any]:
        self.request_history.append(
            ("get_by_id", {"id": resource_id, "type": resource_type, "locale": locale})
        )
        self._check_error(resource_id)

        document = self._lookup(resource_id, resource_type)
        if document is None:
            raise NotFoundError(
                f"NotFound: The resource could not be found. ({resource_type} {resource_id})",
                status_code=404,
            )
        logger.debug(f"Serving {resource_type} {resource_id}")
        return self._localize(document, locale)

    def get_collection(
        self,
        resource_type: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        params = dict(params or {})
        self.request_history.append(("get_collection", {"type": resource_type, **params}))

        items = [doc for (doc_type, _), doc in self._documents.items() if doc_type == resource_type]

        content_type = params.get("content_type")
        if content_type:
            items = [doc for doc in items if _content_type_id(doc) == content_type]
        if "sys.id" in params:
            items = [doc for doc in items if doc["sys"]["id"] == params["sys.id"]]
        if "sys.id[in]" in params:
            wanted = str(params["sys.id[in]"]).split(",")
            items = [doc for doc in items if doc["sys"]["id"] in wanted]

        total = len(items)
        skip = int(params.get("skip", 0))
        limit = int(params.get("limit", 100))
        items = items[skip:skip + limit]

        locale = params.get("locale")
        page_items = [self._localize(doc, locale) for doc in items]
        result: Dict[str, Any] = {
            "sys": {"type": ResourceType.ARRAY.value},
            "total": total,
            "skip": skip,
            "limit": limit,
            "items": page_items,
        }

        if int(params.get("include", 1)) > 0:
            includes = self._collect_includes(items, locale)
            if includes:
                result["includes"] = includes
        return result

    def get_sync(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.request_history.append(("get_sync", dict(params)))
        key = params.get("sync_token") or (INITIAL_SYNC if params.get("initial") else None)
        if key is None or key not in self.sync_pages:
            raise ApiError(
                f"BadRequest: Unknown sync token {key!r}",
                status_code=400,
            )
        return self.sync_pages[key]

    @property
    def fetch_count(self) -> int:
        """Number of single-resource fetches performed."""
        return sum(1 for name, _ in self.request_history if name == "get_by_id")

    def reset(self) -> None:
        """Reset the connector state (clear request history)."""
        self.request_history.clear()

    def _lookup(self, resource_id: str, resource_type: str) -> Optional[Dict[str, Any]]:
        if resource_type == ResourceType.SPACE.value:
            for (doc_type, _), doc in self._documents.items():
                if doc_type == resource_type:
                    return doc
            return None
        return self._documents.get((resource_type, resource_id))

    def _check_error(self, resource_id: str) -> None:
        if resource_id in self.error_resource_ids:
            logger.debug(f"Simulating error for resource: {resource_id}")
            raise ApiError(f"Simulated error for resource {resource_id}", status_code=500)

    def _localize(self, document: Dict[str, Any], locale: Optional[str]) -> Dict[str, Any]:
        """
        Project an all-locale document onto one locale.

        Only entries and assets are localized. No fallback is applied; locales
        without a value are left out, as the API does for unset fields.
        """
        doc_type = document["sys"]["type"]
        if (
            locale in (None, ALL_LOCALES)
            or doc_type not in (ResourceType.ENTRY.value, ResourceType.ASSET.value)
            or document["sys"].get("locale")
        ):
            return document

        localized = copy.deepcopy(document)
        localized["sys"]["locale"] = locale
        localized["fields"] = {
            field_id: values[locale]
            for field_id, values in (document.get("fields") or {}).items()
            if isinstance(values, dict) and locale in values
        }
        return localized

    def _collect_includes(
        self,
        items: List[Dict[str, Any]],
        locale: Optional[str],
    ) -> Dict[str, List[Dict[str, Any]]]:
        item_keys = {(doc["sys"]["type"], doc["sys"]["id"]) for doc in items}
        found: Dict[Tuple[str, str], Dict[str, Any]] = {}

        for doc in items:
            for link_type, link_id in _links_in(doc.get("fields") or {}):
                key = (link_type, link_id)
                if key in item_keys or key in found or key not in self._documents:
                    continue
                found[key] = self._localize(self._documents[key], locale)

        includes: Dict[str, List[Dict[str, Any]]] = {}
        for (link_type, _), doc in found.items():
            includes.setdefault(link_type, []).append(doc)
        return includes


def _content_type_id(document: Dict[str, Any]) -> Optional[str]:
    content_type = document["sys"].get("contentType") or {}
    return (content_type.get("sys") or {}).get("id")


def _links_in(value: Any):
    """Yield (link type, id) of every link object nested in a value."""
    if isinstance(value, dict):
        sys = value.get("sys")
        if isinstance(sys, dict) and sys.get("type") == "Link":
            yield sys.get("linkType"), sys.get("id")
            return
        for nested in value.values():
            yield from _links_in(nested)
    elif isinstance(value, list):
        for nested in value:
            yield from _links_in(nested)
