"""
Fetch collaborators and transports for the delivery API.
"""

from .base import DeliveryFetcher
from .delivery_api import DeliveryApiConnector
from .http import HttpConnector
from .static_connector import StaticConnector

__all__ = [
    "DeliveryFetcher",
    "DeliveryApiConnector",
    "HttpConnector",
    "StaticConnector",
]
