"""Dinlr API client with response caching, error mapping and resource accessors.

:class:`DinlrClient` is the entry point of the SDK. It layers on top of
:class:`~dinlr.client.transport.HttpTransport`:

- **Response caching** -- GET requests consult the client's own
  :class:`~dinlr.cache.ResponseCache` first and populate it on success.
  Writes never read or fill the cache.
- **Error mapping** -- 4xx/5xx responses become
  :class:`~dinlr.exceptions.ApiError` subclasses carrying the status code
  and request context.
- **Diagnostics** -- request lines, cache hits and redacted responses are
  written through :func:`dinlr.output.debug`.
- **Resource accessors** -- one lazily created
  :class:`~dinlr.client.resources.Resource` per API resource.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from dinlr.cache import ResponseCache
from dinlr.client.resources import LoyaltyResource, Resource, RestaurantResource
from dinlr.client.transport import HttpTransport
from dinlr.exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    NotFoundError,
    ServerError,
)
from dinlr.models import ClientConfig
from dinlr.output import enable_debug, get_output
from dinlr.records import (
    CategoryCollection,
    CustomerCollection,
    ItemCollection,
    LocationCollection,
    OrderCollection,
)
from dinlr.security import redact_sensitive, sanitize_for_logging


class DinlrClient:
    """Client for one Dinlr restaurant.

    Args:
        config: A :class:`~dinlr.models.ClientConfig` or a plain dict with
            the same fields.
        transport: Transport to send requests with. Defaults to an
            :class:`HttpTransport` built from *config*.
        cache: Response cache to use. Defaults to a fresh
            :class:`ResponseCache` owned by this client.

    Raises:
        ConfigError: If *config* is neither a dict nor a ``ClientConfig``,
            or fails validation.

    Example::

        with DinlrClient({"api_key": "...", "restaurant_id": "rest_1"}) as client:
            for location in client.locations().list():
                print(location.name)
    """

    def __init__(
        self,
        config: Union[ClientConfig, dict[str, Any]],
        transport: Optional[HttpTransport] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        if isinstance(config, dict):
            try:
                config = ClientConfig.model_validate(config)
            except PydanticValidationError as exc:
                raise ConfigError(f"Invalid client configuration: {exc}") from exc
        if not isinstance(config, ClientConfig):
            raise ConfigError("Config must be a dict or ClientConfig instance")

        self._config = config
        self._transport = transport or HttpTransport(config)
        self._cache = cache if cache is not None else ResponseCache(config.cache)
        self._resources: dict[str, Resource] = {}

        if config.debug:
            enable_debug()

    def __enter__(self) -> DinlrClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def clear_cache(self) -> None:
        """Drop every cached response."""
        self._cache.clear()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded response body.

        GET responses are served from the cache when a fresh entry exists
        and stored in it after a successful call.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx after the transport's retries.
            ApiError: On any other error status, or a body that is not JSON.
            ConnectionError_: On network failures (from the transport).
        """
        method = method.upper()
        output = get_output()
        endpoint_id = f"{method} {endpoint}"
        is_read = method == "GET"

        if is_read:
            cached = self._cache.lookup(endpoint_id, params)
            if cached is not None:
                output.debug(f"Dinlr API cache hit: {sanitize_for_logging(endpoint)}")
                return cached

        output.debug(
            f"Dinlr API request: {sanitize_for_logging(method)} {sanitize_for_logging(endpoint)}"
        )

        status_code, body = self._transport.execute(method, endpoint, params)

        if status_code >= 400:
            raise self._map_error(status_code, body, method, endpoint)

        if not isinstance(body, (dict, list)):
            raise ApiError(
                "Invalid JSON in API response",
                status_code,
                {"endpoint": endpoint, "method": method, "response_data": body},
            )

        if output.is_verbose:
            output.debug(f"Dinlr API response: {json.dumps(redact_sensitive(body), default=str)}")

        if is_read:
            self._cache.store(endpoint_id, params, body)
        elif self._config.cache.clear_on_write:
            self._cache.clear()

        return body

    def _map_error(
        self,
        status_code: int,
        body: Any,
        method: str,
        endpoint: str,
    ) -> ApiError:
        """Build the typed exception for an error response."""
        message = "API error"
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or message
        context = {"endpoint": endpoint, "method": method, "response_data": body}

        if status_code in (401, 403):
            return AuthError(message, status_code, context)
        if status_code == 404:
            return NotFoundError(message, status_code, context)
        if status_code >= 500:
            return ServerError(message, status_code, context)
        return ApiError(message, status_code, context)

    # ------------------------------------------------------------------ #
    # Resource accessors
    # ------------------------------------------------------------------ #

    def _resource(self, key: str, factory: Any, *args: Any) -> Any:
        if key not in self._resources:
            self._resources[key] = factory(self, *args)
        return self._resources[key]

    def restaurant(self) -> RestaurantResource:
        return self._resource("restaurant", RestaurantResource)

    def locations(self) -> Resource:
        return self._resource("location", Resource, "locations", LocationCollection)

    def dining_options(self) -> Resource:
        return self._resource("dining_option", Resource, "dining-options")

    def payment_methods(self) -> Resource:
        return self._resource("payment_method", Resource, "payment-methods")

    def charges(self) -> Resource:
        return self._resource("charge", Resource, "charges")

    def items(self) -> Resource:
        return self._resource("item", Resource, "items", ItemCollection)

    def modifiers(self) -> Resource:
        return self._resource("modifier", Resource, "modifiers")

    def categories(self) -> Resource:
        return self._resource("category", Resource, "categories", CategoryCollection)

    def discounts(self) -> Resource:
        return self._resource("discount", Resource, "discounts")

    def promotions(self) -> Resource:
        return self._resource("promotion", Resource, "promotions")

    def vouchers(self) -> Resource:
        return self._resource("voucher", Resource, "vouchers")

    def menu(self) -> Resource:
        return self._resource("menu", Resource, "menu")

    def customers(self) -> Resource:
        return self._resource("customer", Resource, "customers", CustomerCollection)

    def customer_groups(self) -> Resource:
        return self._resource("customer_group", Resource, "customer-groups")

    def loyalty(self) -> LoyaltyResource:
        return self._resource("loyalty", LoyaltyResource)

    def store_credit(self) -> Resource:
        return self._resource("store_credit", Resource, "store-credit")

    def cart(self) -> Resource:
        return self._resource("cart", Resource, "cart")

    def orders(self) -> Resource:
        return self._resource("order", Resource, "orders", OrderCollection)

    def experiences(self) -> Resource:
        return self._resource("experience", Resource, "experiences")

    def table_sections(self) -> Resource:
        return self._resource("table_section", Resource, "table-sections")

    def reservations(self) -> Resource:
        return self._resource("reservation", Resource, "reservations")

    def materials(self) -> Resource:
        return self._resource("material", Resource, "materials")

    def floorplans(self) -> Resource:
        return self._resource("floorplan", Resource, "floorplans")

    # Names accepted by resource(); also used by the CLI.
    RESOURCE_NAMES = (
        "restaurant",
        "locations",
        "dining_options",
        "payment_methods",
        "charges",
        "items",
        "modifiers",
        "categories",
        "discounts",
        "promotions",
        "vouchers",
        "menu",
        "customers",
        "customer_groups",
        "loyalty",
        "store_credit",
        "cart",
        "orders",
        "experiences",
        "table_sections",
        "reservations",
        "materials",
        "floorplans",
    )

    def resource(self, name: str) -> Resource:
        """Look up a resource accessor by name (``"locations"``, ``"dining-options"``...).

        Raises:
            KeyError: If no resource has that name.
        """
        normalized = name.replace("-", "_")
        if normalized not in self.RESOURCE_NAMES:
            raise KeyError(name)
        return getattr(self, normalized)()
