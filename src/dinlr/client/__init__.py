"""Dinlr API client.

Provides :class:`DinlrClient`, which combines an
:class:`HttpTransport` (``httpx``-based network I/O with retry), a
per-client :class:`~dinlr.cache.ResponseCache`, typed error mapping and one
accessor per API resource.

Example::

    from dinlr.client import DinlrClient

    with DinlrClient({"api_key": "...", "restaurant_id": "rest_1"}) as client:
        members = client.loyalty().members("prog_1")
        print(members.total_points())
"""

from dinlr.client.client import DinlrClient
from dinlr.client.resources import LoyaltyResource, Resource, RestaurantResource
from dinlr.client.transport import HttpTransport

__all__ = [
    "DinlrClient",
    "HttpTransport",
    "Resource",
    "RestaurantResource",
    "LoyaltyResource",
]
