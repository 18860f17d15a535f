"""
Identity cache and metadata cache collaborators.
"""

from .identity import BuildSession, IdentityCache
from .metadata import (
    CacheClearer, CacheKeyGenerator, FileMetadataCache, InMemoryMetadataCache,
    MetadataCache, NullMetadataCache,
)

__all__ = [
    "BuildSession",
    "IdentityCache",
    "CacheClearer",
    "CacheKeyGenerator",
    "FileMetadataCache",
    "InMemoryMetadataCache",
    "MetadataCache",
    "NullMetadataCache",
]
