"""
Resource builder and link resolver.
"""

from .resolver import LinkResolver
from .resource_builder import ResourceBuilder

__all__ = ["LinkResolver", "ResourceBuilder"]
