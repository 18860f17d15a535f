"""
Metadata cache collaborator.

The delivery core only ever reads from this cache; warming it (writing the
raw JSON of the space and its content types) is the responsibility of an
external collaborator.
"""

import hashlib
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional


logger = logging.getLogger(__name__)


class CacheKeyGenerator:
    """Logical keys under which space metadata is cached."""

    PREFIX = "delivery"

    @classmethod
    def space_key(cls, space_id: str) -> str:
        return f"{cls.PREFIX}.{space_id}.space"

    @classmethod
    def content_type_key(cls, space_id: str, content_type_id: str) -> str:
        return f"{cls.PREFIX}.{space_id}.content_type.{content_type_id}"


class MetadataCache(ABC):
    """
    Generic key to JSON-blob store.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Look up a cached JSON document.

        Returns:
            The raw JSON string, or None on a miss
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a raw JSON document."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every cached document."""
        pass


class NullMetadataCache(MetadataCache):
    """Cache that never hits."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        pass

    def clear(self) -> None:
        pass


class InMemoryMetadataCache(MetadataCache):
    """Dictionary-backed cache, mostly useful for tests and short-lived processes."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class FileMetadataCache(MetadataCache):
    """
    Stores each document as a JSON file.

    Files are organized by: {base_dir}/{namespace}/{key}.json
    """

    def __init__(self, base_dir: Path, namespace: str = "default", create_dirs: bool = True):
        """
        Initialize the file cache.

        Args:
            base_dir: Base directory for cached documents
            namespace: Sub-directory, typically the space id
            create_dirs: Whether to create directories automatically
        """
        self.base_dir = Path(base_dir)
        self.namespace = namespace
        self.dir_path = self.base_dir / self._sanitize_filename(namespace)

        if create_dirs:
            self.dir_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self.dir_path / f"{self._sanitize_filename(key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            logger.debug(f"Metadata cache miss: {key}")
            return None
        logger.debug(f"Metadata cache hit: {key}")
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.dir_path.mkdir(parents=True, exist_ok=True)
        self._path_for(key).write_text(value, encoding="utf-8")
        logger.debug(f"Wrote metadata cache entry: {key}")

    def clear(self) -> None:
        if not self.dir_path.exists():
            return
        removed = 0
        for path in self.dir_path.glob("*.json"):
            path.unlink()
            removed += 1
        logger.info(f"Cleared {removed} metadata cache entries from {self.dir_path}")

    def _sanitize_filename(self, name: str) -> str:
        """Sanitize a string for use in filenames."""
        safe = name.replace("/", "_").replace("\\", "_").replace(":", "_")
        if len(safe) > 150:
            # Keep truncated names distinct
            digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:8]
            safe = f"{safe[:141]}_{digest}"
        return safe


class CacheClearer:
    """Explicitly empties a metadata cache."""

    def __init__(self, cache: MetadataCache):
        self.cache = cache

    def clear(self) -> None:
        self.cache.clear()
