"""Shared constants for the models layer.

See Also:
    [nostrgate.models.relay][]: Uses [NetworkType][nostrgate.models.constants.NetworkType]
        to classify relay hint URLs.
    [nostrgate.services.gateway][]: Uses [PageKind][nostrgate.models.constants.PageKind]
        to decide between serving and redirecting.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class NetworkType(StrEnum):
    """Network type enum for relay classification.

    Attributes:
        CLEARNET: Public internet relay using ``wss://`` (TLS required).
        TOR: Tor hidden service identified by a ``.onion`` hostname.
        I2P: I2P eepsite identified by a ``.i2p`` hostname.
        LOKI: Lokinet service identified by a ``.loki`` hostname.
        LOCAL: Private or reserved IP address (rejected during validation).
        UNKNOWN: Hostname that could not be classified (rejected during validation).
    """

    CLEARNET = "clearnet"
    TOR = "tor"
    I2P = "i2p"
    LOKI = "loki"
    LOCAL = "local"
    UNKNOWN = "unknown"


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging and metrics labels."""

    GATEWAY = "gateway"


class PageKind(IntEnum):
    """Event kinds of the static-site page scheme.

    Attributes:
        ROOT: Kind 30051 -- addressable site root. Its ``e`` tags form the
            routing table from HTTP path to page record.
        PAGE: Kind 10051 -- single page. Declared only; pages are served by
            id regardless of kind.
        CHUNKED_PAGE: Kind 10052 -- page split across several records.
            Declared only; chunk reassembly is not implemented.
    """

    ROOT = 30_051
    PAGE = 10_051
    CHUNKED_PAGE = 10_052


EVENT_KIND_MAX = 65_535
