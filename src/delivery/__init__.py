"""
Delivery content model.

Client-side object model for a headless-CMS delivery API. Raw JSON payloads
are turned into a typed, locale-aware resource graph with lazily resolved
links, and a delta-sync manager pages through incremental changes.

Key components:
- core/: Resource types, exceptions, dates and logging utilities
- schema/: Content-type registry, locale table and field coercion
- cache/: Identity cache and the metadata cache collaborator
- builder/: Resource builder and link resolver
- sync/: Synchronization manager and sync filters
- connectors/: HTTP transport and delivery API fetch collaborators
- config/: Configuration management
"""

__version__ = "0.1.0"

from .client import Client
from .query import Query

__all__ = ["Client", "Query", "__version__"]
