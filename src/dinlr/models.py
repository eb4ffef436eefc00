"""Pydantic configuration models for the dinlr client.

These models are the single source of truth for client settings. They are
built from plain dicts, from the JSON config file loaded by
:func:`~dinlr.config.load_config`, or directly in code:

    :class:`RequestConfig` -- HTTP timeout, SSL verification and retries.
    :class:`CacheConfig` -- response cache switches and bounds.
    :class:`ClientConfig` -- everything a :class:`~dinlr.client.DinlrClient`
    needs to talk to one restaurant.

Record types returned by the API live in :mod:`dinlr.records`, not here.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_API_URL = "https://api.dinlr.com/v1"


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")


class CacheConfig(BaseModel):
    """In-memory response cache settings.

    The cache only ever holds GET results. ``max_entries`` bounds the store
    for long-lived clients; ``clear_on_write`` drops every cached read after
    a successful POST/PUT/PATCH/DELETE.
    """

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: float = Field(default=300, ge=0, description="Cache TTL in seconds")
    max_entries: int = Field(default=1024, ge=1, description="Maximum cached responses")
    clear_on_write: bool = Field(
        default=False, description="Clear the cache after a successful write request"
    )


class ClientConfig(BaseModel):
    """Connection settings for one Dinlr restaurant.

    Example::

        ClientConfig(
            api_key="sk_live_...",
            restaurant_id="rest_123",
            cache=CacheConfig(ttl_seconds=60),
        )
    """

    model_config = ConfigDict(extra="forbid")

    api_key: str = Field(description="Bearer token sent with every request")
    api_url: str = Field(default=DEFAULT_API_URL, description="API base URL")
    restaurant_id: Optional[str] = Field(
        default=None, description="Restaurant the resource endpoints are scoped to"
    )
    debug: bool = Field(default=False, description="Emit request/response diagnostics")
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("api_key")
    @classmethod
    def _api_key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("api_key must not be empty")
        return value.strip()

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
