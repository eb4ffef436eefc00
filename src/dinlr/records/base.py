"""Typed records built from raw API objects.

:class:`Record` is the pydantic base for every entity the Dinlr API
returns. Building one from a raw dict is the *materialization* step that
:class:`~dinlr.records.collection.RecordCollection` defers until a record
is actually accessed.

Unknown fields are kept (``extra="allow"``) so that a record always
round-trips to the same plain dict the API sent.
"""

from __future__ import annotations

from typing import Any, Mapping, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from dinlr.exceptions import MaterializationError


class Record(BaseModel):
    """Base class for Dinlr API records.

    Subclasses declare the fields they require; everything else in the raw
    object is preserved as an extra field.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: Union[str, int]

    @classmethod
    def from_raw(cls, raw: Any) -> Record:
        """Build a record from one raw API object.

        Raises:
            MaterializationError: If *raw* is not a mapping or is missing
                required fields / has values of the wrong type.
        """
        if not isinstance(raw, Mapping):
            raise MaterializationError(
                f"Cannot build {cls.__name__} from {type(raw).__name__}",
                raw=raw,
                record_type=cls.__name__,
            )
        try:
            return cls.model_validate(dict(raw))
        except PydanticValidationError as exc:
            raise MaterializationError(
                f"Malformed {cls.__name__} record: {exc.error_count()} validation error(s)",
                raw=raw,
                record_type=cls.__name__,
            ) from exc

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-shaped dict of this record's fields."""
        return self.model_dump(mode="json")

    def get(self, field: str, default: Any = None) -> Any:
        """Field value by name, including extra fields, or *default*.

        Only data fields are looked up, never model methods or attributes.
        """
        if field in type(self).model_fields:
            return getattr(self, field)
        return (self.__pydantic_extra__ or {}).get(field, default)
