"""
Structured queries for collection endpoints.

A ``Query`` collects filters, ordering and paging and renders them as the
flat parameter map the delivery API expects:

    >>> query = (Query()
    ...     .set_content_type("cat")
    ...     .where("fields.likes", "lasagna")
    ...     .where("sys.updatedAt", datetime(2013, 1, 1, tzinfo=timezone.utc), "lte")
    ...     .order_by("sys.createdAt", reverse=True)
    ...     .set_limit(10))
    >>> query.get_query_data()
    {'content_type': 'cat', 'fields.likes': 'lasagna',
     'sys.updatedAt[lte]': '2013-01-01T00:00:00Z', 'order': '-sys.createdAt', 'limit': 10}
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .core.dates import format_date_for_json


OPERATORS = frozenset({
    "ne", "all", "in", "nin", "exists", "lt", "lte", "gt", "gte", "match", "near", "within",
})

MIME_TYPE_GROUPS = frozenset({
    "attachment", "plaintext", "image", "audio", "video", "richtext",
    "presentation", "spreadsheet", "pdfdocument", "archive", "code", "markup",
})

MAX_LIMIT = 1000
MAX_INCLUDE = 10


class Query:
    """Builder of collection query parameters. Setters return the query for chaining."""

    def __init__(self):
        self._where: Dict[str, str] = {}
        self._order: List[str] = []
        self._content_type: Optional[str] = None
        self._limit: Optional[int] = None
        self._skip: Optional[int] = None
        self._include: Optional[int] = None
        self._locale: Optional[str] = None
        self._select: Optional[List[str]] = None
        self._mime_type_group: Optional[str] = None

    def where(self, field: str, value: Any, operator: Optional[str] = None) -> "Query":
        """
        Add a filter.

        Args:
            field: Field path, e.g. ``sys.id`` or ``fields.name``; ``query``
                performs a full-text search
            value: Filter value; datetimes are formatted as API timestamps
                and lists are joined with commas
            operator: One of ne, all, in, nin, exists, lt, lte, gt, gte,
                match, near, within

        Raises:
            ValueError: If the operator is unknown
        """
        if operator is not None and operator not in OPERATORS:
            raise ValueError(f"Unknown operator '{operator}'. Valid operators are {', '.join(sorted(OPERATORS))}.")
        key = f"{field}[{operator}]" if operator else field
        self._where[key] = _format_value(value)
        return self

    def set_content_type(self, content_type_id: Optional[str]) -> "Query":
        self._content_type = content_type_id
        return self

    def set_limit(self, limit: Optional[int]) -> "Query":
        if limit is not None and not 1 <= limit <= MAX_LIMIT:
            raise ValueError(f"Limit must be between 1 and {MAX_LIMIT}, got {limit}")
        self._limit = limit
        return self

    def set_skip(self, skip: Optional[int]) -> "Query":
        if skip is not None and skip < 0:
            raise ValueError(f"Skip must not be negative, got {skip}")
        self._skip = skip
        return self

    def set_include(self, include: Optional[int]) -> "Query":
        """Depth of linked resources returned in ``includes`` (0..10)."""
        if include is not None and not 0 <= include <= MAX_INCLUDE:
            raise ValueError(f"Include depth must be between 0 and {MAX_INCLUDE}, got {include}")
        self._include = include
        return self

    def set_locale(self, locale: Optional[str]) -> "Query":
        self._locale = locale
        return self

    def order_by(self, field: str, reverse: bool = False) -> "Query":
        self._order.append(f"-{field}" if reverse else field)
        return self

    def select(self, fields: Iterable[str]) -> "Query":
        self._select = list(fields)
        return self

    def set_mime_type_group(self, group: Optional[str]) -> "Query":
        if group is not None and group not in MIME_TYPE_GROUPS:
            raise ValueError(
                f"Unknown MIME type group '{group}'. Valid groups are {', '.join(sorted(MIME_TYPE_GROUPS))}."
            )
        self._mime_type_group = group
        return self

    @property
    def locale(self) -> Optional[str]:
        return self._locale

    def get_query_data(self) -> Dict[str, Any]:
        """Flat parameter map of everything set on the query."""
        data: Dict[str, Any] = {}
        if self._content_type is not None:
            data["content_type"] = self._content_type
        if self._mime_type_group is not None:
            data["mimetype_group"] = self._mime_type_group
        data.update(self._where)
        if self._order:
            data["order"] = ",".join(self._order)
        if self._select:
            data["select"] = ",".join(self._select)
        if self._limit is not None:
            data["limit"] = self._limit
        if self._skip is not None:
            data["skip"] = self._skip
        if self._include is not None:
            data["include"] = self._include
        if self._locale is not None:
            data["locale"] = self._locale
        return data


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return format_date_for_json(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return ",".join(_format_value(item) for item in value)
    return str(value)
