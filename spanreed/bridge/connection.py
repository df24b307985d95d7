"""
The single long-lived Redis connection owned by the dispatch loop.
"""
from typing import Callable, Optional
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from spanreed.logger import Logger, get_logger
from spanreed.protocol.errors import TransportFault
from spanreed.utils.bridge_configs import ConnectionSettings

ClientFactory = Callable[[str], aioredis.Redis]
ErrorCallback = Callable[[TransportFault], None]


def redact_url(url: str) -> str:
    """Drop credentials from a redis URL before it reaches the logs."""
    parts = urlsplit(url)
    if parts.password is None and parts.username is None:
        return url
    netloc = parts.hostname or ""
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def default_client_factory(url: str) -> aioredis.Redis:
    return aioredis.from_url(url, health_check_interval=30)


class Connection:
    """
    Owns at most one live client. `ensure(settings)` is idempotent while the
    endpoint is unchanged; a different endpoint closes the old client, which
    is never reused afterwards.

    Transport failures are raised as TransportFault and also handed to
    `on_error` when one is registered.
    """

    def __init__(
            self,
            client_factory: Optional[ClientFactory] = None,
            logger: Optional[Logger] = None,
        ):
        self.client_factory = client_factory or default_client_factory
        self.logger = logger or get_logger(__name__)
        self.on_error: Optional[ErrorCallback] = None
        self._client: Optional[aioredis.Redis] = None
        self._url: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self._client is not None

    @property
    def url(self) -> Optional[str]:
        return self._url

    def _fault(self, message: str, report: bool = True) -> TransportFault:
        fault = TransportFault(message)
        if report and self.on_error is not None:
            self.on_error(fault)
        return fault

    async def ensure(self, settings: ConnectionSettings) -> aioredis.Redis:
        if self._client is not None and self._url == settings.queue_url:
            return self._client

        if self._client is not None:
            self.logger.info(f"Queue endpoint changed to {redact_url(settings.queue_url)}; reconnecting")
            await self.close()

        client = self.client_factory(settings.queue_url)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            await self._close_quietly(client)
            raise self._fault(f"could not connect to {redact_url(settings.queue_url)}: {e}") from e

        self._client = client
        self._url = settings.queue_url
        self.logger.info(f"Connected to queue @{redact_url(settings.queue_url)}")
        return client

    async def close(self):
        client, self._client, self._url = self._client, None, None
        if client is not None:
            await self._close_quietly(client)

    async def _close_quietly(self, client: aioredis.Redis):
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            self.logger.debug(f"Ignoring error while closing connection: {e}")

    # ==== QUEUE OPERATIONS ====

    def _require_client(self) -> aioredis.Redis:
        if self._client is None:
            raise self._fault("not connected")
        return self._client

    async def blpop(self, key: str, timeout: float) -> Optional[bytes]:
        """Pop one element from `key`, waiting up to `timeout` seconds. None on timeout."""
        client = self._require_client()
        try:
            item = await client.blpop([key], timeout=timeout)
        except (RedisError, OSError) as e:
            raise self._fault(f"pop from {key} failed: {e}") from e
        if item is None:
            return None
        _, value = item
        return value

    async def lpush(self, key: str, value: str, report: bool = True):
        client = self._require_client()
        try:
            await client.lpush(key, value)
        except (RedisError, OSError) as e:
            raise self._fault(f"push to {key} failed: {e}", report=report) from e
