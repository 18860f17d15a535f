"""
Delivery API fetch collaborator.
"""

import logging
from typing import Any, Dict, Optional

from ..core.connector import Connector, ConnectorRequest, ConnectorResponse
from ..core.exceptions import (
    AccessTokenInvalidError, ApiError, InvalidQueryError, NotFoundError,
    RateLimitExceededError, TransportError,
)
from ..core.models import ResourceType
from .base import DeliveryFetcher
from .http import HttpConnector


logger = logging.getLogger(__name__)

DELIVERY_URL = "https://cdn.contentful.com/"
PREVIEW_URL = "https://preview.contentful.com/"
API_CONTENT_TYPE = "application/vnd.contentful.delivery.v1+json"

# Path of each resource type relative to the space URL
RESOURCE_PATHS = {
    ResourceType.SPACE.value: "",
    ResourceType.CONTENT_TYPE.value: "content_types",
    ResourceType.ENTRY.value: "entries",
    ResourceType.ASSET.value: "assets",
}

ERROR_CLASSES = {
    400: InvalidQueryError,
    401: AccessTokenInvalidError,
    404: NotFoundError,
    429: RateLimitExceededError,
}


class DeliveryApiConnector(DeliveryFetcher):
    """
    Fetches raw documents of one space from the delivery or preview API.

    The HTTP work is delegated to an ``HttpConnector``; this class only
    knows the URL layout and turns error responses into exceptions.
    """

    def __init__(
        self,
        space_id: str,
        access_token: str,
        preview: bool = False,
        base_url: Optional[str] = None,
        connector: Optional[Connector] = None,
        rate_limit_delay: float = 0.0,
        timeout: int = 30,
        max_retries: int = 3,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize the delivery API connector.

        Args:
            space_id: Id of the space to read from
            access_token: Delivery (or preview) API token
            preview: Whether to talk to the preview API
            base_url: Overrides the API host, e.g. for a proxy
            connector: Transport to use; an ``HttpConnector`` when omitted
            rate_limit_delay: Minimum seconds between requests
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            user_agent: Custom User-Agent header
        """
        self.space_id = space_id
        self.preview = preview
        host = base_url or (PREVIEW_URL if preview else DELIVERY_URL)
        self.base_url = f"{host.rstrip('/')}/spaces/{space_id}/"

        self.http = connector or HttpConnector(
            name="preview" if preview else "delivery",
            rate_limit_delay=rate_limit_delay,
            timeout=timeout,
            max_retries=max_retries,
            user_agent=user_agent,
        )
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": API_CONTENT_TYPE,
            "Content-Type": API_CONTENT_TYPE,
        }

    def get_by_id(
        self,
        resource_id: str,
        resource_type: str,
        locale: Optional[str] = None,
    ) -> Dict[str, Any]:
        path = _path_for(resource_type)
        if resource_type != ResourceType.SPACE.value:
            path = f"{path}/{resource_id}"
        params = {"locale": locale} if locale else None
        return self._request(path, params)

    def get_collection(
        self,
        resource_type: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if resource_type == ResourceType.SPACE.value:
            raise ValueError("The space is not a collection")
        return self._request(_path_for(resource_type), params)

    def get_sync(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("sync", params)

    def get_name(self) -> str:
        return self.http.get_name()

    def close(self) -> None:
        self.http.close()

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        uri = self.base_url + path
        request = ConnectorRequest(uri=uri, method="GET", headers=dict(self._headers), params=params)
        response = self.http.fetch(request)

        if response.status_code == 0:
            raise TransportError(response.error_message or f"No response from {uri}", uri=uri)
        if not response.ok:
            raise self._error_for(response)
        return response.payload

    def _error_for(self, response: ConnectorResponse) -> ApiError:
        headers = {k.lower(): v for k, v in (response.headers or {}).items()}
        payload = response.payload if isinstance(response.payload, dict) else {}
        request_id = headers.get("x-contentful-request-id") or payload.get("requestId")
        message = payload.get("message") or response.error_message or f"HTTP {response.status_code}"
        error_id = (payload.get("sys") or {}).get("id")
        if error_id:
            message = f"{error_id}: {message}"

        error_class = ERROR_CLASSES.get(response.status_code, ApiError)
        kwargs = {"status_code": response.status_code, "request_id": request_id, "payload": payload}
        if error_class is RateLimitExceededError:
            reset = headers.get("x-contentful-ratelimit-reset")
            kwargs["reset_seconds"] = int(reset) if reset and reset.isdigit() else None

        logger.warning(f"API error {response.status_code} (request {request_id}): {message}")
        return error_class(message, **kwargs)


def _path_for(resource_type: str) -> str:
    try:
        return RESOURCE_PATHS[resource_type]
    except KeyError:
        raise ValueError(f"Unsupported resource type '{resource_type}'") from None
