"""
Filter of an initial sync pass.
"""

from enum import Enum
from typing import Any, Dict, Optional


class SyncType(str, Enum):
    """Kinds of items an initial sync can be limited to."""
    ALL = "all"
    ASSET = "Asset"
    ENTRY = "Entry"
    DELETION = "Deletion"
    DELETED_ASSET = "DeletedAsset"
    DELETED_ENTRY = "DeletedEntry"


class SyncQuery:
    """
    Parameters of an initial sync request.

    Restricting to a content type only makes sense for entries, so setting
    one forces the type to ``Entry``.
    """

    def __init__(self, sync_type: str = SyncType.ALL.value, content_type: Optional[str] = None):
        self.type = SyncType.ALL.value
        self.content_type: Optional[str] = None
        self.set_type(sync_type)
        if content_type is not None:
            self.set_content_type(content_type)

    def set_type(self, sync_type: str) -> "SyncQuery":
        """
        Raises:
            ValueError: If the type is not a valid sync type
        """
        try:
            self.type = SyncType(sync_type).value
        except ValueError:
            valid = ", ".join(t.value for t in SyncType)
            raise ValueError(f"Unknown sync type '{sync_type}'. Valid types are {valid}.") from None
        if self.type != SyncType.ENTRY.value:
            self.content_type = None
        return self

    def set_content_type(self, content_type_id: Optional[str]) -> "SyncQuery":
        self.content_type = content_type_id
        if content_type_id is not None:
            self.type = SyncType.ENTRY.value
        return self

    def get_query_data(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"initial": "true", "type": self.type}
        if self.content_type is not None:
            data["content_type"] = self.content_type
        return data
