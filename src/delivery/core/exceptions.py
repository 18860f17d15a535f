"""
Custom exceptions for the delivery content model.
"""

from typing import Any, Iterable, Optional


class DeliveryError(Exception):
    """Base exception for all delivery module errors."""
    pass


class SchemaError(DeliveryError):
    """
    Malformed or incomplete resource definition.

    Raised when:
    - A ContentType field is missing its type, link type or item type
    - A Space has no default locale, several defaults, or a cyclic fallback chain
    - A raw document carries an unknown or missing ``sys.type``
    - A sync page carries neither (or both) of the continuation URLs
    """
    pass


class UnresolvedContentTypeError(DeliveryError):
    """An Entry references a ContentType that is not available and cannot be fetched."""

    def __init__(self, content_type_id: str, entry_id: Optional[str] = None):
        message = f"Content type '{content_type_id}' is not available"
        if entry_id:
            message += f" (required by entry '{entry_id}')"
        message += " and no fetch collaborator is configured."
        super().__init__(message)
        self.content_type_id = content_type_id
        self.entry_id = entry_id


class FieldCoercionError(DeliveryError):
    """A raw field value cannot be coerced to its declared type."""

    def __init__(self, field_id: str, value: Any, expected_type: Optional[str] = None):
        message = f"Cannot coerce value {value!r} of field '{field_id}'"
        if expected_type:
            message += f" to {expected_type}"
        super().__init__(message)
        self.field_id = field_id
        self.value = value
        self.expected_type = expected_type


class UnknownLocaleError(DeliveryError):
    """A locale code that is not part of the Space's locale table."""

    def __init__(self, locale: str, available: Iterable[str] = ()):
        available = list(available)
        super().__init__(
            f"Trying to use invalid locale {locale}. "
            f"Available locales are {', '.join(available)}."
        )
        self.locale = locale
        self.available = available


class UnsupportedLinkTypeError(DeliveryError):
    """A link whose type is neither Asset nor Entry."""

    def __init__(self, link_type: str):
        super().__init__(f"Trying to resolve link for unknown type '{link_type}'.")
        self.link_type = link_type


class UnresolvedLinkError(DeliveryError):
    """A link that is neither built, included, nor fetchable."""

    def __init__(self, link: Any):
        super().__init__(
            f"Cannot resolve link {link!r}: not built, not included in the "
            f"response and no fetch collaborator is configured."
        )
        self.link = link


class UnsupportedOperationError(DeliveryError):
    """
    Operation not available in the current mode.

    Raised when:
    - Resuming a sync pass with a preview client
    """
    pass


class SpaceMismatchError(DeliveryError):
    """A resource belongs to a different space than the one configured for the client."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Trying to build a resource of space '{actual}' with a client "
            f"configured for space '{expected}'."
        )
        self.expected = expected
        self.actual = actual


class ConfigError(DeliveryError):
    """
    Error in delivery configuration.

    Raised when:
    - Configuration file is missing or invalid
    - Required configuration values (space id, access token) are not set
    """
    pass


class TransportError(DeliveryError):
    """The transport failed to produce a response (network failure after retries)."""

    def __init__(self, message: str, uri: Optional[str] = None):
        super().__init__(message)
        self.uri = uri


class ApiError(DeliveryError):
    """
    The API answered with an error status.

    Attributes:
        status_code: HTTP status code of the response
        request_id: Value of the ``X-Contentful-Request-Id`` header, if any
        payload: Parsed error body
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
        payload: Optional[dict] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.request_id = request_id
        self.payload = payload or {}


class InvalidQueryError(ApiError):
    """The query could not be executed, e.g. unknown content type or field name."""
    pass


class AccessTokenInvalidError(ApiError):
    """The access token was rejected."""
    pass


class NotFoundError(ApiError):
    """The requested resource does not exist."""
    pass


class RateLimitExceededError(ApiError):
    """The API rate limit was hit."""

    def __init__(self, *args, reset_seconds: Optional[int] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.reset_seconds = reset_seconds
