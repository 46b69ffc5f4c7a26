"""Nostr protocol client operations for nostrgate.

Provides the client factory, relay connection, filter conversion and a
single-relay record fetch. These are the only functions in the code base that
touch ``nostr_sdk.Client``; everything above them works with
[Record][nostrgate.models.record.Record] and
[RecordFilter][nostrgate.models.filter.RecordFilter].

Attributes:
    create_client: Read-only client factory with optional SOCKS5 proxy.
    connect_relay: Connect one client to one relay within a timeout.
    is_client_connected: Check whether a client's relay socket is open.
    build_filter: Convert a RecordFilter into a ``nostr_sdk.Filter``.
    record_from_event: Convert a ``nostr_sdk.Event`` into a Record.
    fetch_record: Run one filter against one connected client.

Note:
    Overlay networks (Tor, I2P, Lokinet) use ``ConnectionMode.PROXY`` with a
    SOCKS5 proxy. Overlay relay hints are skipped when no proxy is
    configured.

See Also:
    [RelayPool][nostrgate.core.pool.RelayPool]: Owns one connected client per
        relay URL and calls these functions.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from datetime import timedelta
from ipaddress import AddressValueError, IPv4Address, IPv6Address
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from nostr_sdk import (
    Alphabet,
    Client,
    ClientBuilder,
    ClientOptions,
    Connection,
    ConnectionMode,
    ConnectionTarget,
    EventId,
    Filter,
    Kind,
    PublicKey,
    RelayUrl,
    SingleLetterTag,
)

from nostrgate.core.exceptions import ConnectivityError, RelayTimeoutError
from nostrgate.models.record import Record


if TYPE_CHECKING:
    from nostr_sdk import Event as NostrEvent

    from nostrgate.models.filter import RecordFilter
    from nostrgate.models.relay import Relay


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


async def _resolve_proxy_host(host: str) -> str:
    """Return *host* as a numeric IP; nostr-sdk does not resolve proxy hostnames."""
    bare_host = host.strip("[]")
    try:
        IPv4Address(bare_host)
        return bare_host
    except (AddressValueError, ValueError):
        pass
    try:
        IPv6Address(bare_host)
        return bare_host
    except (AddressValueError, ValueError):
        return await asyncio.to_thread(socket.gethostbyname, host)


async def create_client(proxy_url: str | None = None) -> Client:
    """Create a read-only Nostr client.

    Args:
        proxy_url: SOCKS5 proxy URL for overlay networks
            (e.g. ``socks5://tor:9050``).

    Returns:
        Configured ``Client`` (call ``add_relay()`` before use).
    """
    builder = ClientBuilder()

    if proxy_url is not None:
        parsed = urlparse(proxy_url)
        proxy_host = await _resolve_proxy_host(parsed.hostname or "127.0.0.1")
        proxy_port = parsed.port or 9050

        proxy_mode = ConnectionMode.PROXY(proxy_host, proxy_port)
        conn = Connection().mode(proxy_mode).target(ConnectionTarget.ONION)
        builder = builder.opts(ClientOptions().connection(conn))

    return builder.build()


async def connect_relay(
    relay: Relay,
    *,
    proxy_url: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> Client:
    """Open a client connected to a single relay.

    Args:
        relay: [Relay][nostrgate.models.relay.Relay] to connect to.
        proxy_url: SOCKS5 proxy URL (required for overlay networks).
        timeout: Connection timeout in seconds.

    Returns:
        A connected ``Client`` with exactly one relay.

    Raises:
        ConnectivityError: If the relay refuses the connection, or an
            overlay relay is requested without a proxy.
        RelayTimeoutError: If the connection is not established in time.
    """
    relay_url = RelayUrl.parse(relay.url)

    if relay.is_overlay:
        if proxy_url is None:
            raise ConnectivityError(f"proxy_url required for {relay.network} relay: {relay.url}")

        client = await create_client(proxy_url)
        await client.add_relay(relay_url)
        await client.connect()
        await client.wait_for_connection(timedelta(seconds=timeout))

        if not await is_client_connected(client, relay.url):
            await shutdown_client(client)
            raise RelayTimeoutError(f"Connection timeout: {relay.url}")
        return client

    logger.debug("relay_connecting relay=%s", relay.url)

    client = await create_client()
    await client.add_relay(relay_url)
    output = await client.try_connect(timedelta(seconds=timeout))

    if relay_url in output.success:
        logger.debug("relay_connected relay=%s", relay.url)
        return client

    await shutdown_client(client)
    error_message = output.failed.get(relay_url, "Unknown error")
    if "timeout" in str(error_message).lower():
        raise RelayTimeoutError(f"Connection timeout: {relay.url} ({error_message})")
    raise ConnectivityError(f"Connection failed: {relay.url} ({error_message})")


async def is_client_connected(client: Client, url: str) -> bool:
    """Return True if *client*'s socket to *url* is currently open."""
    try:
        relay_obj = await client.relay(RelayUrl.parse(url))
        return bool(relay_obj.is_connected())
    except Exception:  # nostr-sdk raises its own error type for unknown relays
        return False


async def shutdown_client(client: Client) -> None:
    """Shut a client down, ignoring FFI errors raised during cleanup."""
    with contextlib.suppress(Exception):
        await client.shutdown()


def build_filter(record_filter: RecordFilter) -> Filter:
    """Convert a [RecordFilter][nostrgate.models.filter.RecordFilter] to ``nostr_sdk.Filter``."""
    f = Filter()
    if record_filter.ids:
        f = f.ids([EventId.parse(i) for i in record_filter.ids])
    if record_filter.authors:
        f = f.authors([PublicKey.parse(a) for a in record_filter.authors])
    if record_filter.kinds:
        f = f.kinds([Kind(k) for k in record_filter.kinds])
    if record_filter.d_tags:
        d_tag = SingleLetterTag.lowercase(Alphabet.D)
        for value in record_filter.d_tags:
            f = f.custom_tag(d_tag, value)
    if record_filter.limit is not None:
        f = f.limit(record_filter.limit)
    return f


def record_from_event(event: NostrEvent) -> Record:
    """Convert a ``nostr_sdk.Event`` into a [Record][nostrgate.models.record.Record].

    Raises:
        ValueError: If the event fails record validation (e.g. a malformed id).
    """
    return Record(
        id=event.id().to_hex(),
        pubkey=event.author().to_hex(),
        kind=event.kind().as_u16(),
        created_at=event.created_at().as_secs(),
        content=event.content(),
        tags=tuple(tuple(tag.as_vec()) for tag in event.tags().to_vec()),
        sig=str(event.signature()),
    )


async def fetch_record(
    client: Client,
    record_filter: RecordFilter,
    *,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> Record | None:
    """Fetch the best record matching *record_filter* from a connected client.

    When a relay returns several matches (an addressable coordinate with old
    versions still stored), the newest one is taken. Events that fail
    conversion are skipped.

    Returns:
        The newest matching [Record][nostrgate.models.record.Record], or
        ``None`` when the relay has no match before end-of-stored-events.
    """
    events = await client.fetch_events(build_filter(record_filter), timedelta(seconds=timeout))
    best: Record | None = None
    for evt in events.to_vec():
        try:
            record = record_from_event(evt)
        except (TypeError, ValueError) as e:
            logger.debug("event_skipped error=%s", e)
            continue
        if best is None or record.created_at > best.created_at:
            best = record
    return best
