"""Resource wrappers that turn API endpoints into records and collections.

Each accessor on :class:`~dinlr.client.client.DinlrClient` returns one of
these objects. They build the endpoint path, delegate the call to
:meth:`DinlrClient.request` (which handles caching and error mapping) and
wrap the ``data`` envelope of the response in a
:class:`~dinlr.records.RecordCollection` or a single
:class:`~dinlr.records.Record`.

All endpoints are scoped to the configured restaurant::

    <restaurant_id>/onlineorder/<path>[/<id>]

Identifiers are passed through :func:`~dinlr.security.sanitize_identifier`
before they become part of a URL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from dinlr.exceptions import ApiError, ConfigError
from dinlr.records import LoyaltyMemberCollection, Record, RecordCollection
from dinlr.security import sanitize_identifier

if TYPE_CHECKING:
    from dinlr.client.client import DinlrClient


class Resource:
    """Generic list / get / create / update wrapper for one API resource.

    Args:
        client: The owning client.
        path: Path segment after ``onlineorder/``, e.g. ``"locations"``.
        collection_class: Collection type returned by :meth:`list`; its
            ``record_class`` is used for single records.
    """

    def __init__(
        self,
        client: DinlrClient,
        path: str,
        collection_class: type[RecordCollection] = RecordCollection,
    ) -> None:
        self._client = client
        self.path = path
        self.collection_class = collection_class

    @property
    def record_class(self) -> type[Record]:
        return self.collection_class.record_class

    def list(self, **params: Any) -> RecordCollection:
        """Fetch the resource list. Keyword arguments become query parameters."""
        payload = self._client.request("GET", self._endpoint(), params or None)
        return self._collection(payload)

    def get(self, record_id: str) -> Record:
        """Fetch one record by id."""
        payload = self._client.request("GET", self._endpoint(record_id))
        return self.record_class.from_raw(_unwrap(payload))

    def create(self, data: dict[str, Any]) -> Record:
        payload = self._client.request("POST", self._endpoint(), data)
        return self.record_class.from_raw(_unwrap(payload))

    def update(self, record_id: str, data: dict[str, Any]) -> Record:
        payload = self._client.request("PUT", self._endpoint(record_id), data)
        return self.record_class.from_raw(_unwrap(payload))

    def _endpoint(self, *parts: str) -> str:
        restaurant_id = self._client.config.restaurant_id
        if not restaurant_id:
            raise ConfigError("restaurant_id is required for resource requests")
        segments = [sanitize_identifier(restaurant_id, "restaurant_id"), "onlineorder", self.path]
        segments.extend(sanitize_identifier(str(part), "id") for part in parts)
        return "/".join(segments)

    def _collection(
        self,
        payload: Any,
        collection_class: Optional[type[RecordCollection]] = None,
    ) -> RecordCollection:
        data = _unwrap(payload)
        if not isinstance(data, list):
            raise ApiError(f"Expected a list of {self.path}, got {type(data).__name__}")
        return (collection_class or self.collection_class)(data)


class RestaurantResource(Resource):
    """The restaurant itself; there is exactly one, so :meth:`get` takes no id."""

    def __init__(self, client: DinlrClient) -> None:
        super().__init__(client, "restaurant")

    def get(self, record_id: Optional[str] = None) -> Record:  # type: ignore[override]
        if record_id is not None:
            return super().get(record_id)
        payload = self._client.request("GET", self._endpoint())
        return self.record_class.from_raw(_unwrap(payload))


class LoyaltyResource(Resource):
    """Loyalty programs and their members."""

    def __init__(self, client: DinlrClient) -> None:
        super().__init__(client, "loyalty-programs")

    def members(self, program_id: str, **params: Any) -> LoyaltyMemberCollection:
        """Members of *program_id* as a :class:`~dinlr.records.LoyaltyMemberCollection`."""
        endpoint = self._endpoint(program_id, "members")
        payload = self._client.request("GET", endpoint, params or None)
        return self._collection(payload, LoyaltyMemberCollection)


def _unwrap(payload: Any) -> Any:
    """Strip the ``{"data": ...}`` envelope the API puts around results."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload
