"""Typed records and lazy record collections.

Modules:
    base: :class:`Record`, the pydantic base for API entities.
    collection: :class:`RecordCollection`, lazy materialization with cached
        projection, key indexes and aggregates.
    types: Concrete record types and their collections.
"""

from dinlr.records.base import Record
from dinlr.records.collection import MaterializedSlot, RawSlot, RecordCollection
from dinlr.records.types import (
    Category,
    CategoryCollection,
    Customer,
    CustomerCollection,
    Item,
    ItemCollection,
    Location,
    LocationCollection,
    LoyaltyMember,
    LoyaltyMemberCollection,
    Order,
    OrderCollection,
)

__all__ = [
    "Record",
    "RecordCollection",
    "RawSlot",
    "MaterializedSlot",
    "Category",
    "CategoryCollection",
    "Customer",
    "CustomerCollection",
    "Item",
    "ItemCollection",
    "Location",
    "LocationCollection",
    "LoyaltyMember",
    "LoyaltyMemberCollection",
    "Order",
    "OrderCollection",
]
