"""nostrgate exception hierarchy.

Typed exceptions for the error categories the gateway distinguishes. Relay
failures are caught per endpoint and never abort a race; pointer failures
are translated into "not found" results by the resolver; anything else is
left to propagate to the HTTP boundary.

Exception hierarchy:

```text
NostrGateError (base -- never raised directly)
├── ConfigurationError       -- config validation, missing keys, bad YAML
├── ConnectivityError        -- relay unreachable, network failures
│   └── RelayTimeoutError    -- connection or query timed out
└── ProtocolError            -- NIP parsing/validation failures
    └── PointerError         -- NIP-19 / hex pointer could not be decoded
```

See Also:
    [RelayPool][nostrgate.core.pool.RelayPool]: Raises
        [ConnectivityError][nostrgate.core.exceptions.ConnectivityError]
        from ``ensure_connected()`` and swallows it inside ``query()``.
    [decode_pointer()][nostrgate.nips.nip19.decode_pointer]: Raises
        [PointerError][nostrgate.core.exceptions.PointerError].
    [Resolver][nostrgate.services.common.resolver.Resolver]: Turns
        [PointerError][nostrgate.core.exceptions.PointerError] into a
        not-found resolution.
"""

from __future__ import annotations


class NostrGateError(Exception):
    """Base exception for all nostrgate errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(NostrGateError):
    """Invalid or missing configuration (YAML, CLI flags).

    See Also:
        [load_yaml()][nostrgate.core.yaml.load_yaml]: YAML loading function
            that may trigger configuration errors.
    """


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(NostrGateError):
    """Base for all relay/network connectivity errors.

    See Also:
        [RelayTimeoutError][nostrgate.core.exceptions.RelayTimeoutError]:
            Connection or query timed out.
    """


class RelayTimeoutError(ConnectivityError):
    """Connection or query against a relay timed out."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(NostrGateError):
    """NIP parsing, validation, or compliance failure."""


class PointerError(ProtocolError):
    """A pointer string is neither a 64-char hex id nor a decodable NIP-19 entity.

    See Also:
        [decode_pointer()][nostrgate.nips.nip19.decode_pointer]: The codec
            that raises this error.
    """
