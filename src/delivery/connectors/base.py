"""
Fetch collaborator interface consumed by the builder, resolver and sync manager.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class DeliveryFetcher(ABC):
    """
    Abstract source of raw delivery API documents.

    Implementations return the parsed JSON exactly as the API shapes it and
    raise ``ApiError``/``TransportError`` on failure.
    """

    @abstractmethod
    def get_by_id(
        self,
        resource_id: str,
        resource_type: str,
        locale: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Fetch one resource.

        Args:
            resource_id: Id of the resource (ignored for the Space)
            resource_type: One of Space, ContentType, Entry, Asset
            locale: Locale code, ``*`` for all locales, or None for the API default

        Returns:
            Raw JSON document
        """
        pass

    @abstractmethod
    def get_collection(
        self,
        resource_type: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Fetch a list of resources.

        Args:
            resource_type: One of ContentType, Entry, Asset
            params: Flat query parameters

        Returns:
            Raw ``Array`` document
        """
        pass

    @abstractmethod
    def get_sync(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fetch one sync page.

        Args:
            params: ``initial=true`` plus filters, or ``sync_token=<token>``

        Returns:
            Raw sync page with ``items`` and ``nextPageUrl`` or ``nextSyncUrl``
        """
        pass

    def get_name(self) -> str:
        return type(self).__name__
