"""
Relay URLs as they reach the gateway: configured defaults and pointer hints.

Hints are embedded by whoever encoded the pointer, so they are untrusted. A
[Relay][nostrgate.models.relay.Relay] is only built for a URL that parses as
``ws``/``wss``, names a public host or an overlay-network host, and carries no
query or fragment. Anything else raises, and
[normalize_relay_urls()][nostrgate.models.relay.normalize_relay_urls] turns
those failures into dropped hints.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from ipaddress import ip_address
from typing import ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from .constants import NetworkType


logger = logging.getLogger(__name__)

_REPEATED_SLASHES = re.compile(r"/{2,}")

_URL_VALIDATOR = (
    Validator()
    .require_presence_of("scheme", "host")
    .allow_schemes("ws", "wss")
    .check_validity_of("scheme", "host", "port", "path")
)


def _classify_host(host: str) -> NetworkType:
    """Return the network a lowercase, bracket-free host belongs to."""
    for suffix, network in Relay.OVERLAY_SUFFIXES.items():
        if host.endswith(suffix):
            return network
    if host in ("localhost", "localhost.localdomain"):
        return NetworkType.LOCAL

    try:
        ip = ip_address(host)
    except ValueError:
        pass
    else:
        return NetworkType.CLEARNET if ip.is_global else NetworkType.LOCAL

    labels = host.split(".")
    if len(labels) < 2 or not all(lb and lb[0] != "-" and lb[-1] != "-" for lb in labels):
        return NetworkType.UNKNOWN
    return NetworkType.CLEARNET


@dataclass(frozen=True, slots=True)
class Relay:
    """A validated, normalized relay URL.

    Clearnet relays always get ``wss://``. Tor, I2P and Lokinet relays get
    ``ws://`` because the overlay already encrypts the stream. The default
    port for the scheme and trailing slashes are dropped from ``url``.

    Examples:
        ```python
        Relay("ws://nos.lol:443/").url        # 'wss://nos.lol'
        Relay("wss://abc.onion").url          # 'ws://abc.onion'
        Relay("wss://127.0.0.1")              # ValueError
        ```

    Raises:
        TypeError: If ``raw_url`` is not a string.
        ValueError: If the URL is malformed or points at a local address.
    """

    raw_url: str = field(repr=False)

    url: str = field(init=False)
    network: NetworkType = field(init=False)
    scheme: str = field(init=False)
    host: str = field(init=False)
    port: int | None = field(init=False)
    path: str | None = field(init=False)

    OVERLAY_SUFFIXES: ClassVar[dict[str, NetworkType]] = {
        ".onion": NetworkType.TOR,
        ".i2p": NetworkType.I2P,
        ".loki": NetworkType.LOKI,
    }

    def __post_init__(self) -> None:
        if not isinstance(self.raw_url, str):
            raise TypeError(f"raw_url must be a str, got {type(self.raw_url).__name__}")
        if "\x00" in self.raw_url:
            raise ValueError("Relay URL contains null bytes")

        uri = uri_reference(self.raw_url.strip()).normalize()
        try:
            _URL_VALIDATOR.validate(uri)
        except UnpermittedComponentError:
            raise ValueError(f"Relay URL must use ws or wss: {self.raw_url!r}") from None
        except ValidationError as e:
            raise ValueError(f"Invalid relay URL {self.raw_url!r}: {e}") from None
        if uri.query:
            raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
        if uri.fragment:
            raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

        host = uri.host.strip("[]").lower()
        network = _classify_host(host)
        if network == NetworkType.LOCAL:
            raise ValueError(f"Local addresses not allowed: {host}")
        if network == NetworkType.UNKNOWN:
            raise ValueError(f"Invalid host: '{host}'")

        scheme = "wss" if network == NetworkType.CLEARNET else "ws"
        port = int(uri.port) if uri.port else None
        if port == (443 if scheme == "wss" else 80):
            port = None
        path = _REPEATED_SLASHES.sub("/", uri.path or "").rstrip("/") or None

        netloc = f"[{host}]" if ":" in host else host
        if port is not None:
            netloc = f"{netloc}:{port}"

        object.__setattr__(self, "url", f"{scheme}://{netloc}{path or ''}")
        object.__setattr__(self, "network", network)
        object.__setattr__(self, "scheme", scheme)
        object.__setattr__(self, "host", host)
        object.__setattr__(self, "port", port)
        object.__setattr__(self, "path", path)

    @property
    def is_overlay(self) -> bool:
        """Whether the relay is only reachable through a SOCKS5 proxy."""
        return self.network in self.OVERLAY_SUFFIXES.values()


def normalize_relay_urls(urls: Iterable[str]) -> tuple[str, ...]:
    """Return the normalized form of every valid URL in *urls*, without duplicates.

    The first occurrence of a URL decides its position. Invalid URLs are
    logged and skipped.
    """
    seen: dict[str, None] = {}
    for raw in urls:
        try:
            relay = Relay(raw)
        except (TypeError, ValueError) as e:
            logger.warning("relay_url_rejected url=%r error=%s", raw, e)
            continue
        seen.setdefault(relay.url, None)
    return tuple(seen)
