"""
Transport interface used by the delivery API collaborators.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ConnectorRequest:
    """
    Request to be sent by a connector.

    Attributes:
        uri: The URI to fetch
        method: HTTP method (only GET is used by the delivery API)
        headers: Optional request headers
        params: Optional query parameters
        metadata: Additional connector-specific metadata
    """
    uri: str
    method: str = "GET"
    headers: Optional[Dict[str, str]] = None
    params: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class ConnectorResponse:
    """
    Response from a connector.

    Attributes:
        status_code: HTTP status code (0 when no response was received)
        payload: Response payload as dict (parsed JSON)
        headers: Response headers
        duration_ms: Time taken for the request in milliseconds
        error_message: Error message if the request failed
    """
    status_code: int
    payload: Dict[str, Any]
    headers: Optional[Dict[str, str]] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300 and self.error_message is None


class Connector(ABC):
    """
    Abstract base class for transports.

    Connectors execute a single request and return a structured response;
    they never raise for HTTP error statuses.
    """

    @abstractmethod
    def fetch(self, request: ConnectorRequest) -> ConnectorResponse:
        """
        Execute a request.

        Args:
            request: The request to execute

        Returns:
            ConnectorResponse with the result
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return the connector name/identifier."""
        pass

    def close(self) -> None:
        """Release any resources held by the connector."""
        pass
