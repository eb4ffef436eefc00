"""Lazy, cache-invalidating collections of API records.

A :class:`RecordCollection` wraps the raw objects of one list response and
only builds typed :class:`~dinlr.records.base.Record` instances when they
are accessed. Each storage slot is either a :class:`RawSlot` (not yet
materialized) or a :class:`MaterializedSlot`; a successful access swaps the
former for the latter, so a record is built at most once per slot.

Derived data is memoized and dropped together on every mutation
(:meth:`~RecordCollection.set_items`, :meth:`~RecordCollection.add`,
item assignment and deletion):

* the plain-value projection returned by :meth:`~RecordCollection.to_array`,
* per-field key indexes used by :meth:`~RecordCollection.find_by_key`,
* per-field totals returned by :meth:`~RecordCollection.aggregate`.

Indexes and totals are computed from raw values, never by materializing.

Missing positions read as ``None`` rather than raising. A materialization
failure propagates as :class:`~dinlr.exceptions.MaterializationError` and
leaves the slot raw, so the next access tries again.

Iteration works on a snapshot of the slots taken when the iterator starts;
mutating the collection during a loop does not change what that loop sees.
"""

from __future__ import annotations

import json
import math
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from dinlr.records.base import Record


@dataclass(frozen=True)
class RawSlot:
    """A stored API object that has not been turned into a record yet."""

    raw: Any


@dataclass(frozen=True)
class MaterializedSlot:
    """A stored, already built record.

    ``raw`` keeps the object the record was built from, if any, so derived
    views read the same values before and after materialization.
    """

    record: Record
    raw: Any = None


Slot = Union[RawSlot, MaterializedSlot]


class RecordCollection:
    """Sequence-like container that materializes records on demand.

    Subclasses set :attr:`record_class` to the record type they hold.

    Args:
        items: Raw API objects (dicts) and/or already built records.

    Example::

        members = LoyaltyMemberCollection(response["data"])
        len(members)                        # no records built
        members.first()                     # builds index 0 only
        members.find_by_customer("cus_2")   # builds the match only
        members.to_array()                  # builds the rest, cached
    """

    record_class: type[Record] = Record

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._slots: dict[int, Slot] = {}
        self._next_index = 0
        self._projection: Optional[list[dict[str, Any]]] = None
        self._key_indexes: dict[str, dict[Any, int]] = {}
        self._aggregates: dict[str, Union[int, float]] = {}
        self.set_items(items)

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def set_items(self, items: Iterable[Any]) -> RecordCollection:
        """Replace all contents, dropping every built record and cached view."""
        self._slots = {index: self._make_slot(item) for index, item in enumerate(items)}
        self._next_index = len(self._slots)
        self._invalidate()
        return self

    def add(self, item: Any) -> RecordCollection:
        """Append a raw object or a record at the next free index."""
        self._slots[self._next_index] = self._make_slot(item)
        self._next_index += 1
        self._invalidate()
        return self

    append = add

    def __setitem__(self, index: Optional[int], value: Any) -> None:
        if index is None:
            self.add(value)
            return
        self._check_index(index)
        self._slots[index] = self._make_slot(value)
        self._next_index = max(self._next_index, index + 1)
        self._invalidate()

    def __delitem__(self, index: int) -> None:
        self._slots.pop(index, None)
        self._invalidate()

    # ------------------------------------------------------------------ #
    # Access
    # ------------------------------------------------------------------ #

    def get(self, index: Any) -> Optional[Record]:
        """Return the record at *index*, building it on first access.

        Returns ``None`` when nothing is stored at *index*.

        Raises:
            MaterializationError: If the stored raw object is malformed.
        """
        if not _is_index(index):
            return None
        slot = self._slots.get(index)
        if slot is None:
            return None
        if isinstance(slot, MaterializedSlot):
            return slot.record
        record = self.record_class.from_raw(slot.raw)
        self._slots[index] = MaterializedSlot(record, slot.raw)
        return record

    def __getitem__(self, index: Any) -> Optional[Record]:
        return self.get(index)

    def first(self) -> Optional[Record]:
        """The record at index 0, or ``None``."""
        return self.get(0)

    def all(self) -> list[Record]:
        """Build every remaining record and return all of them in index order."""
        return [self.get(index) for index in self._indices()]

    def __contains__(self, index: Any) -> bool:
        """Whether something is stored at *index* (nothing is materialized)."""
        return _is_index(index) and index in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def count(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Record]:
        snapshot = [(index, self._slots[index]) for index in self._indices()]
        for index, slot in snapshot:
            if isinstance(slot, MaterializedSlot):
                yield slot.record
                continue
            record = self.record_class.from_raw(slot.raw)
            # Only memoize if the slot was not replaced while we were iterating.
            if self._slots.get(index) is slot:
                self._slots[index] = MaterializedSlot(record, slot.raw)
            yield record

    def is_materialized(self, index: int) -> bool:
        return isinstance(self._slots.get(index), MaterializedSlot)

    def materialized_count(self) -> int:
        """Number of slots whose record has already been built."""
        return sum(1 for slot in self._slots.values() if isinstance(slot, MaterializedSlot))

    # ------------------------------------------------------------------ #
    # Projection
    # ------------------------------------------------------------------ #

    def to_array(self) -> list[dict[str, Any]]:
        """Plain-dict projection of every record, cached until the next mutation.

        The returned list is the cached object itself; treat it as read-only.
        """
        if self._projection is None:
            self._projection = [self.get(index).to_dict() for index in self._indices()]
        return self._projection

    def to_json(self, **kwargs: Any) -> str:
        """Serialise :meth:`to_array` with :func:`json.dumps` (kwargs are passed through)."""
        return json.dumps(self.to_array(), **kwargs)

    # ------------------------------------------------------------------ #
    # Derived views
    # ------------------------------------------------------------------ #

    def find_by_key(self, field: str, value: Any) -> Optional[Record]:
        """Return the first record whose *field* equals *value*, or ``None``.

        The ``field -> index`` map is built once from raw values and reused
        until the collection changes; only the matched record is built.
        *value* is used as-is, so untrusted strings must be sanitised first
        (see :func:`dinlr.security.sanitize_identifier`).
        """
        index = self._key_indexes.get(field)
        if index is None:
            index = self._build_key_index(field)
            self._key_indexes[field] = index
        if not isinstance(value, Hashable):
            return None
        position = index.get(value)
        if position is None:
            return None
        return self.get(position)

    def aggregate(self, field: str) -> Union[int, float]:
        """Sum of the numeric *field* across all slots, memoized until the next mutation.

        Numeric strings such as ``"10"`` or ``"2.5"`` are added as numbers;
        missing and other non-numeric values count as 0.
        """
        if field not in self._aggregates:
            total: Union[int, float] = 0
            for slot in self._slots.values():
                number = _as_number(_slot_value(slot, field))
                if number is not None:
                    total += number
            self._aggregates[field] = total
        return self._aggregates[field]

    def where(self, field: str, value: Any) -> RecordCollection:
        """New collection with the slots whose raw *field* equals *value*.

        Matching is done on raw values, so nothing is materialized; already
        built records are carried over as they are.
        """
        matches = [
            slot for _, slot in self._ordered_slots() if _slot_value(slot, field) == value
        ]
        return self._from_slots(matches)

    def filter(self, predicate: Callable[[Record], bool]) -> RecordCollection:
        """New collection with the records for which *predicate* is true.

        Every record is built, since the predicate needs typed records.
        """
        return self._from_slots(MaterializedSlot(r) for r in self if predicate(r))

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _make_slot(self, item: Any) -> Slot:
        if isinstance(item, self.record_class):
            return MaterializedSlot(item)
        return RawSlot(item)

    def _invalidate(self) -> None:
        self._projection = None
        self._key_indexes = {}
        self._aggregates = {}

    def _indices(self) -> list[int]:
        return sorted(self._slots)

    def _ordered_slots(self) -> list[tuple[int, Slot]]:
        return [(index, self._slots[index]) for index in self._indices()]

    def _build_key_index(self, field: str) -> dict[Any, int]:
        index: dict[Any, int] = {}
        for position, slot in self._ordered_slots():
            value = _slot_value(slot, field)
            if value is None or not isinstance(value, Hashable):
                continue
            index.setdefault(value, position)
        return index

    def _from_slots(self, slots: Iterable[Slot]) -> RecordCollection:
        collection = type(self)()
        collection._slots = dict(enumerate(slots))
        collection._next_index = len(collection._slots)
        return collection

    @staticmethod
    def _check_index(index: Any) -> None:
        if not _is_index(index) or index < 0:
            raise TypeError(f"Collection indices must be non-negative integers, not {index!r}")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(count={len(self)}, "
            f"materialized={self.materialized_count()})"
        )


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _slot_value(slot: Slot, field: str) -> Any:
    """Read *field* from a slot without building a record.

    Raw values win over record attributes, so a slot answers the same way
    whether or not it has been materialized.
    """
    if isinstance(slot.raw, Mapping):
        return slot.raw.get(field)
    if isinstance(slot, MaterializedSlot):
        return slot.record.get(field)
    return None


def _as_number(value: Any) -> Union[int, float, None]:
    """*value* as an int or float, parsing numeric strings; ``None`` if not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str) or "_" in value:
        return None
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None
