"""
Synchronization manager.

Drives the delta-sync protocol: an initial request (or a resumed one),
followed by continuation requests while the response carries a
``nextPageUrl``. A response carrying ``nextSyncUrl`` completes the pass and
provides the token for the next one.

State flow:
    INITIAL -> PAGING -> IDLE(token) -> PAGING (resumed) -> IDLE(token) ...
"""

import logging
import uuid
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import parse_qs, urlparse

from ..builder.resource_builder import ResourceBuilder
from ..core.exceptions import SchemaError, UnsupportedOperationError
from ..core.logging import CorrelationContext, log_with_context
from ..core.models import SyncResult
from .query import SyncQuery


logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """State of a synchronization manager."""
    INITIAL = "initial"
    PAGING = "paging"
    IDLE = "idle"


def extract_sync_token(url: str) -> str:
    """
    Pull the ``sync_token`` query parameter out of a continuation URL.

    Raises:
        SchemaError: If the URL carries no token
    """
    values = parse_qs(urlparse(url).query).get("sync_token")
    if not values or not values[0]:
        raise SchemaError(f"Continuation URL carries no sync_token: {url}")
    return values[0]


class SyncManager:
    """
    Runs sync passes against one space.

    Each page is built in a fresh build session; items are returned in
    response order without deduplication or interpretation. Any failure
    propagates and no partial result is returned, so the caller keeps its
    last valid token.

    Example:
        >>> manager = client.get_synchronization_manager()
        >>> result = manager.start_sync()
        >>> # ... later
        >>> delta = manager.resume_sync(result.next_sync_token)
    """

    def __init__(
        self,
        fetcher,
        builder: ResourceBuilder,
        preview: bool = False,
        space_id: Optional[str] = None,
    ):
        """
        Initialize the manager.

        Args:
            fetcher: ``DeliveryFetcher`` providing ``get_sync``
            builder: Builder used to build every page
            preview: Whether the client talks to the preview API
            space_id: Space id, used for log correlation
        """
        self.fetcher = fetcher
        self.builder = builder
        self.preview = preview
        self.space_id = space_id or builder.space_id
        self.state = SyncState.INITIAL
        self.token: Optional[str] = None

    def start_sync(self, query: Optional[SyncQuery] = None) -> SyncResult:
        """
        Run an initial sync pass to completion.

        Args:
            query: Filter of the pass; everything when omitted

        Returns:
            SyncResult with all items of the pass and the next sync token
        """
        return self._collect(self.iter_pages(query=query))

    def resume_sync(self, token: str) -> SyncResult:
        """
        Run a sync pass starting from a token of an earlier pass.

        The filter of the original pass is implied by the token and is not
        checked here.

        Raises:
            UnsupportedOperationError: For preview clients
        """
        return self._collect(self.iter_pages(token=token))

    def iter_pages(
        self,
        query: Optional[SyncQuery] = None,
        token: Optional[str] = None,
    ) -> Iterator[SyncResult]:
        """
        Yield one SyncResult per page of a pass.

        Exactly one of the yielded results, the last one, carries a
        ``next_sync_token``.

        Args:
            query: Filter of an initial pass
            token: Token to resume from (mutually exclusive with ``query``)

        Raises:
            ValueError: If both a query and a token are given
            UnsupportedOperationError: When resuming with a preview client
            SchemaError: If a page carries neither or both continuation URLs
        """
        if query is not None and token is not None:
            raise ValueError("Pass either a sync query or a sync token, not both")

        if token is not None:
            if self.preview:
                raise UnsupportedOperationError(
                    "The preview API does not support resuming a sync; start a new initial sync instead."
                )
            params: Dict[str, Any] = {"sync_token": token}
        else:
            params = (query or SyncQuery()).get_query_data()

        return self._pages(params, resumed=token is not None)

    def _pages(self, params: Dict[str, Any], resumed: bool) -> Iterator[SyncResult]:
        sync_id = uuid.uuid4().hex[:12]
        previous_state = self.state
        self.state = SyncState.PAGING
        page_number = 0

        try:
            while True:
                page_number += 1
                with CorrelationContext(space_id=self.space_id, sync_id=sync_id):
                    log_with_context(
                        logger, logging.DEBUG,
                        f"Requesting sync page ({'resumed' if resumed else 'initial'} pass)",
                        page=page_number,
                    )
                    raw = self.fetcher.get_sync(params)
                    result = self._build_page(raw)
                    log_with_context(
                        logger, logging.DEBUG,
                        f"Built sync page with {len(result)} items",
                        page=page_number,
                    )

                if result.is_done:
                    self.state = SyncState.IDLE
                    self.token = result.next_sync_token
                    log_with_context(
                        logger, logging.INFO,
                        f"Sync pass complete after {page_number} page(s)",
                        space_id=self.space_id, sync_id=sync_id,
                    )
                    yield result
                    return

                yield result
                params = {"sync_token": result.next_page_token}
        except BaseException:
            if self.state == SyncState.PAGING:
                self.state = previous_state
            raise

    def _build_page(self, raw: Dict[str, Any]) -> SyncResult:
        if not isinstance(raw, dict):
            raise SchemaError(f"Expected a sync page object, got {type(raw).__name__}")

        next_page_url = raw.get("nextPageUrl")
        next_sync_url = raw.get("nextSyncUrl")
        if bool(next_page_url) == bool(next_sync_url):
            raise SchemaError("Sync page must carry exactly one of nextPageUrl and nextSyncUrl")

        session = self.builder.new_session()
        items = self.builder.build_batch(raw.get("items") or [], session=session)

        return SyncResult(
            items=items,
            next_page_token=extract_sync_token(next_page_url) if next_page_url else None,
            next_sync_token=extract_sync_token(next_sync_url) if next_sync_url else None,
        )

    @staticmethod
    def _collect(pages: Iterator[SyncResult]) -> SyncResult:
        items: List[Any] = []
        last: Optional[SyncResult] = None
        for page in pages:
            items.extend(page.items)
            last = page
        return SyncResult(items=items, next_sync_token=last.next_sync_token if last else None)
