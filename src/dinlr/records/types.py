"""Concrete Dinlr record types and their collections.

Only the fields the client relies on are declared; every other field of the
API object is kept as an extra field on the record.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import Field

from dinlr.records.base import Record
from dinlr.records.collection import RecordCollection


class Location(Record):
    name: Optional[str] = None


class Category(Record):
    name: Optional[str] = None
    sort: Optional[int] = None


class Item(Record):
    name: Optional[str] = None
    category: Optional[str] = None


class Customer(Record):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Order(Record):
    location: Optional[str] = None
    total: Union[int, float] = 0


class LoyaltyMember(Record):
    """Membership of one customer in a loyalty program."""

    customer: str
    point: int = Field(default=0)


class LocationCollection(RecordCollection):
    record_class = Location


class CategoryCollection(RecordCollection):
    record_class = Category


class ItemCollection(RecordCollection):
    record_class = Item


class CustomerCollection(RecordCollection):
    record_class = Customer

    def find_by_email(self, email: str) -> Optional[Customer]:
        """Customer with exactly this email address, or ``None``."""
        return self.find_by_key("email", email)


class OrderCollection(RecordCollection):
    record_class = Order

    def total_amount(self) -> Union[int, float]:
        """Sum of the ``total`` field over all orders."""
        return self.aggregate("total")


class LoyaltyMemberCollection(RecordCollection):
    """Members of one loyalty program, with lookup by customer and point totals."""

    record_class = LoyaltyMember

    def find_by_customer(self, customer_id: str) -> Optional[LoyaltyMember]:
        """Member record for *customer_id*, building only that record."""
        return self.find_by_key("customer", customer_id)

    def total_points(self) -> int:
        """Points held across all members."""
        return int(self.aggregate("point"))
