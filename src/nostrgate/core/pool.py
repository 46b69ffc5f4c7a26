"""
Process-wide pool of relay connections keyed by URL.

One ``nostr_sdk.Client`` is kept per relay URL for the lifetime of the
process and reused by every request. Connection attempts are serialized per
URL with an ``asyncio.Lock`` and tracked through an explicit
[ConnectionState][nostrgate.core.pool.ConnectionState], so concurrent
requests that need the same relay share a single connect.

[query()][nostrgate.core.pool.RelayPool.query] never raises for upstream
failures: a refused connection, a timeout or an SDK error is logged and the
relay contributes ``None`` to the race.

Examples:
    ```python
    pool = RelayPool(RelayPoolConfig(connect_timeout=5.0))

    async with pool:
        record = await pool.query("wss://relay.damus.io", RecordFilter.by_id(event_id))
    ```

See Also:
    [race()][nostrgate.services.common.racer.race]: Fans one filter out to
        every relay of a set through this pool.
    [connect_relay()][nostrgate.utils.protocol.connect_relay]: Default
        connector.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, Field

from nostrgate.models.relay import Relay
from nostrgate.utils.protocol import connect_relay, fetch_record, shutdown_client

from .exceptions import ConnectivityError
from .logger import Logger


if TYPE_CHECKING:
    from nostrgate.models.filter import RecordFilter
    from nostrgate.models.record import Record


Connector = Callable[..., Awaitable[Any]]
Fetcher = Callable[..., Awaitable["Record | None"]]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RelayPoolConfig(BaseModel):
    """Timeouts and transport options for relay connections.

    Both timeouts bound a single relay. A race waits for its slowest member,
    so a request on a cache miss takes at most roughly
    ``connect_timeout + query_timeout``.

    See Also:
        [GatewayConfig][nostrgate.services.gateway.configs.GatewayConfig]:
            Embeds this model as ``relay``.
    """

    connect_timeout: float = Field(
        default=10.0, gt=0.0, le=120.0, description="Per-relay connect timeout (seconds)"
    )
    query_timeout: float = Field(
        default=10.0, gt=0.0, le=120.0, description="Per-relay query timeout (seconds)"
    )
    proxy_url: str | None = Field(
        default=None, description="SOCKS5 proxy for overlay relays (e.g. socks5://tor:9050)"
    )


class ConnectionState(StrEnum):
    """Connection state of one relay URL in the pool."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------


class RelayPool:
    """Connection-reusing relay query client.

    Args:
        config: Timeouts and proxy settings.
        connector: Coroutine ``(relay, *, proxy_url, timeout) -> client``.
            Defaults to [connect_relay()][nostrgate.utils.protocol.connect_relay].
        fetcher: Coroutine ``(client, record_filter, *, timeout) -> Record | None``.
            Defaults to [fetch_record()][nostrgate.utils.protocol.fetch_record].

    Note:
        A client whose query fails is dropped from the pool, so the next
        request for that URL reconnects.
    """

    def __init__(
        self,
        config: RelayPoolConfig | None = None,
        *,
        connector: Connector | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self._config = config or RelayPoolConfig()
        self._connector = connector or connect_relay
        self._fetcher = fetcher or fetch_record
        self._clients: dict[str, Any] = {}
        self._states: dict[str, ConnectionState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._logger = Logger("relay_pool")

    @property
    def config(self) -> RelayPoolConfig:
        return self._config

    def state(self, url: str) -> ConnectionState:
        """Return the connection state of *url* (``DISCONNECTED`` if unknown)."""
        return self._states.get(url, ConnectionState.DISCONNECTED)

    def __len__(self) -> int:
        return len(self._clients)

    async def ensure_connected(self, url: str) -> Any:
        """Return the pooled client for *url*, connecting it first if needed.

        Concurrent callers for the same URL wait on one lock; only the first
        one opens a connection and the rest reuse its client.

        Raises:
            ConnectivityError: If the URL is invalid or the relay cannot be
                reached (``RelayTimeoutError`` on timeout).
        """
        client = self._clients.get(url)
        if client is not None:
            return client

        lock = self._locks.setdefault(url, asyncio.Lock())
        async with lock:
            client = self._clients.get(url)
            if client is not None:
                return client

            try:
                relay = Relay(url)
            except (TypeError, ValueError) as e:
                raise ConnectivityError(f"Invalid relay URL {url!r}: {e}") from e

            self._states[url] = ConnectionState.CONNECTING
            try:
                client = await self._connector(
                    relay,
                    proxy_url=self._config.proxy_url,
                    timeout=self._config.connect_timeout,
                )
            except BaseException:
                self._states[url] = ConnectionState.DISCONNECTED
                raise

            self._clients[url] = client
            self._states[url] = ConnectionState.CONNECTED
            self._logger.info("relay_connected", relay=url)
            return client

    async def query(self, url: str, record_filter: RecordFilter) -> Record | None:
        """Run *record_filter* against the relay at *url*.

        Returns:
            The matching record, or ``None`` when the relay has no match or
            could not be reached or queried in time.
        """
        try:
            client = await self.ensure_connected(url)
        except (ConnectivityError, TimeoutError, OSError) as e:
            self._logger.warning("relay_connect_failed", relay=url, error=str(e))
            return None
        except Exception as e:  # nostr-sdk FFI error types
            self._logger.warning(
                "relay_connect_failed", relay=url, error=str(e), error_type=type(e).__name__
            )
            return None

        timeout = self._config.query_timeout
        try:
            # The SDK timeout stops waiting for EOSE; wait_for also bounds the FFI call itself.
            return await asyncio.wait_for(
                self._fetcher(client, record_filter, timeout=timeout), timeout=timeout + 1.0
            )
        except (ConnectivityError, TimeoutError, OSError) as e:
            self._logger.warning("relay_query_failed", relay=url, error=str(e) or type(e).__name__)
        except Exception as e:  # nostr-sdk FFI error types
            self._logger.warning(
                "relay_query_failed", relay=url, error=str(e), error_type=type(e).__name__
            )
        await self._discard(url)
        return None

    async def _discard(self, url: str) -> None:
        client = self._clients.pop(url, None)
        self._states[url] = ConnectionState.DISCONNECTED
        if client is not None:
            await shutdown_client(client)

    async def close(self) -> None:
        """Shut down every pooled client. Errors during shutdown are ignored."""
        urls = list(self._clients)
        for url in urls:
            await self._discard(url)
        if urls:
            self._logger.info("relay_pool_closed", relays=len(urls))

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
