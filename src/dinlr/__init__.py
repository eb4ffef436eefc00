"""dinlr -- Python client for the Dinlr restaurant point-of-sale API.

API list responses are wrapped in lazy :class:`~dinlr.records.RecordCollection`
objects that only build typed records when they are touched, and every
client keeps a short-lived in-memory cache of GET results so repeated reads
do not hit the network.

Typical use::

    from dinlr import DinlrClient

    client = DinlrClient({"api_key": "...", "restaurant_id": "rest_1"})
    locations = client.locations().list()
    print(len(locations), locations.first().name)

Modules:
    app: Typer CLI entry point (``dinlr``).
    client: HTTP transport, client and resource wrappers.
    cache: Per-client response cache.
    records: Record types and lazy collections.
    models: Pydantic configuration models.
    config: Config file / environment resolution.
    security: Input sanitisation and log redaction.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr output system with Rich support.
"""

__version__ = "0.1.0"

from dinlr.cache import ResponseCache  # noqa: E402
from dinlr.client import DinlrClient  # noqa: E402
from dinlr.models import CacheConfig, ClientConfig, RequestConfig  # noqa: E402
from dinlr.records import Record, RecordCollection  # noqa: E402

__all__ = [
    "__version__",
    "DinlrClient",
    "ResponseCache",
    "ClientConfig",
    "CacheConfig",
    "RequestConfig",
    "Record",
    "RecordCollection",
]
