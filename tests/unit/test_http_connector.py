"""
Unit tests for the HTTP transport and the delivery API collaborator.

No network access: requests sessions and transports are mocked.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from delivery.connectors.delivery_api import DeliveryApiConnector
from delivery.connectors.http import HttpConnector
from delivery.core.connector import ConnectorRequest, ConnectorResponse
from delivery.core.exceptions import (
    AccessTokenInvalidError, ApiError, InvalidQueryError, NotFoundError,
    RateLimitExceededError, TransportError,
)


def http_response(status_code=200, payload=None, headers=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.headers = headers or {}
    response.url = "https://cdn.contentful.com/spaces/cfexampleapi/"
    response.text = ""
    return response


class TestHttpConnector:
    """Tests for HttpConnector."""

    def test_success(self):
        """Test a successful GET returns the parsed payload."""
        session = Mock()
        session.get.return_value = http_response(200, {"sys": {"type": "Space"}})
        connector = HttpConnector(session=session, default_headers={"Authorization": "Bearer x"})

        response = connector.fetch(ConnectorRequest(uri="https://example.com/", params={"locale": "tlh"}))

        assert response.ok
        assert response.payload == {"sys": {"type": "Space"}}
        kwargs = session.get.call_args.kwargs
        assert kwargs["params"] == {"locale": "tlh"}
        assert kwargs["headers"]["Authorization"] == "Bearer x"
        assert kwargs["headers"]["User-Agent"] == "DeliveryClient/0.1"

    def test_non_json_body(self):
        """Test non-JSON bodies are wrapped."""
        response = http_response(502)
        response.json.side_effect = ValueError("no json")
        response.text = "Bad gateway"
        response.headers = {"Content-Type": "text/html"}
        session = Mock()
        session.get.return_value = response

        result = HttpConnector(session=session, max_retries=1).fetch(ConnectorRequest(uri="https://example.com/"))

        assert result.status_code == 502
        assert result.payload == {"content_type": "text/html", "text": "Bad gateway"}

    @patch("delivery.connectors.http.http_connector.time.sleep")
    def test_retry_on_network_error(self, mock_sleep):
        """Test network errors are retried with backoff."""
        session = Mock()
        session.get.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            http_response(200, {"ok": True}),
        ]

        response = HttpConnector(session=session).fetch(ConnectorRequest(uri="https://example.com/"))

        assert response.status_code == 200
        assert session.get.call_count == 2
        mock_sleep.assert_called_once_with(1)

    @patch("delivery.connectors.http.http_connector.time.sleep")
    def test_all_retries_fail(self, mock_sleep):
        """Test exhausting retries yields a status 0 response."""
        session = Mock()
        session.get.side_effect = requests.exceptions.Timeout("slow")

        response = HttpConnector(session=session, max_retries=3).fetch(ConnectorRequest(uri="https://example.com/"))

        assert response.status_code == 0
        assert not response.ok
        assert "after 3 attempts" in response.error_message
        assert session.get.call_count == 3

    @patch("delivery.connectors.http.http_connector.time.sleep")
    def test_rate_limit_reset_header(self, mock_sleep):
        """Test 429 responses wait for the advertised reset."""
        session = Mock()
        session.get.side_effect = [
            http_response(429, {}, {"X-Contentful-RateLimit-Reset": "7"}),
            http_response(200, {"ok": True}),
        ]

        response = HttpConnector(session=session).fetch(ConnectorRequest(uri="https://example.com/"))

        assert response.status_code == 200
        mock_sleep.assert_called_once_with(7.0)

    def test_last_attempt_returns_error_status(self):
        """Test a retryable status on the last attempt is returned as is."""
        session = Mock()
        session.get.return_value = http_response(503, {"message": "down"})

        response = HttpConnector(session=session, max_retries=1).fetch(ConnectorRequest(uri="https://example.com/"))

        assert response.status_code == 503

    def test_only_get(self):
        """Test other methods are rejected."""
        with pytest.raises(ValueError, match="Unsupported HTTP method"):
            HttpConnector(session=Mock()).fetch(ConnectorRequest(uri="https://example.com/", method="POST"))


class TestDeliveryApiConnector:
    """Tests for DeliveryApiConnector."""

    def make(self, response=None, **kwargs):
        transport = Mock()
        transport.fetch.return_value = response or ConnectorResponse(status_code=200, payload={"sys": {}})
        return DeliveryApiConnector("cfexampleapi", "b4c0n73n7fu1", connector=transport, **kwargs), transport

    def sent(self, transport) -> ConnectorRequest:
        return transport.fetch.call_args.args[0]

    def test_entry_uri(self):
        """Test entries are fetched below the space URL."""
        api, transport = self.make()

        api.get_by_id("nyancat", "Entry", "tlh")

        request = self.sent(transport)
        assert request.uri == "https://cdn.contentful.com/spaces/cfexampleapi/entries/nyancat"
        assert request.params == {"locale": "tlh"}
        assert request.headers["Authorization"] == "Bearer b4c0n73n7fu1"
        assert request.headers["Accept"] == "application/vnd.contentful.delivery.v1+json"

    def test_space_uri(self):
        """Test the space is the space URL itself."""
        api, transport = self.make(preview=True)

        api.get_by_id("cfexampleapi", "Space")

        request = self.sent(transport)
        assert request.uri == "https://preview.contentful.com/spaces/cfexampleapi/"
        assert request.params is None

    def test_base_url_override(self):
        """Test a custom host replaces the default."""
        api, transport = self.make(base_url="http://localhost:8080/")

        api.get_collection("ContentType", {"limit": 5})

        request = self.sent(transport)
        assert request.uri == "http://localhost:8080/spaces/cfexampleapi/content_types"
        assert request.params == {"limit": 5}

    def test_sync_uri(self):
        """Test sync requests go to the sync endpoint."""
        api, transport = self.make()

        api.get_sync({"initial": "true"})

        assert self.sent(transport).uri == "https://cdn.contentful.com/spaces/cfexampleapi/sync"

    def test_invalid_resource_types(self):
        """Test unknown types and space collections are rejected."""
        api, _ = self.make()

        with pytest.raises(ValueError):
            api.get_by_id("x", "Locale")
        with pytest.raises(ValueError):
            api.get_collection("Space")

    @pytest.mark.parametrize("status,error_class", [
        (400, InvalidQueryError),
        (401, AccessTokenInvalidError),
        (404, NotFoundError),
        (500, ApiError),
    ])
    def test_error_mapping(self, status, error_class):
        """Test error statuses map to exception classes."""
        api, _ = self.make(ConnectorResponse(
            status_code=status,
            payload={"sys": {"type": "Error", "id": "SomeError"}, "message": "Something went wrong"},
            headers={"X-Contentful-Request-Id": "req-1"},
        ))

        with pytest.raises(error_class) as exc_info:
            api.get_by_id("nyancat", "Entry")

        assert type(exc_info.value) is error_class
        assert exc_info.value.status_code == status
        assert exc_info.value.request_id == "req-1"
        assert str(exc_info.value) == "SomeError: Something went wrong"

    def test_rate_limit_error(self):
        """Test the reset time is exposed on rate limit errors."""
        api, _ = self.make(ConnectorResponse(
            status_code=429,
            payload={"sys": {"type": "Error", "id": "RateLimitExceeded"}, "message": "Slow down"},
            headers={"X-Contentful-RateLimit-Reset": "12"},
        ))

        with pytest.raises(RateLimitExceededError) as exc_info:
            api.get_collection("Entry")

        assert exc_info.value.reset_seconds == 12

    def test_transport_error(self):
        """Test a missing response becomes a TransportError."""
        api, _ = self.make(ConnectorResponse(status_code=0, payload={}, error_message="Request failed after 3 attempts"))

        with pytest.raises(TransportError) as exc_info:
            api.get_by_id("nyancat", "Asset")

        assert exc_info.value.uri == "https://cdn.contentful.com/spaces/cfexampleapi/assets/nyancat"
