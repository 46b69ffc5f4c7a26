r"""nostrgate -- HTTP gateway for static sites hosted on Nostr relays.

A site is a signed kind-30051 root record whose ``["e", id, relay, path]``
tags map request paths to sub-records. The gateway reads the pointer from
the request's subdomain, races the lookup across relays, caches the result
for the lifetime of the process and serves the decoded content.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Gateway, resolver, relay race
             /   |   \
          core  nips  utils    Relay pool, cache, NIP-19, nostr-sdk client
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses. Zero I/O, depends only on stdlib and
        rfc3986.
    core: Relay pool, record cache, base service, exceptions, logging,
        metrics.
    nips: NIP-19 pointer decoding and encoding.
    utils: nostr-sdk client construction and single-relay queries.
    services: The HTTP gateway and the pointer resolver.

Note:
    Top-level imports (``from nostrgate import Gateway``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("nostrgate")

__all__ = [
    "BaseService",
    "ConfigT",
    "Gateway",
    "GatewayConfig",
    "Logger",
    "PageKind",
    "Pointer",
    "Record",
    "RecordCache",
    "RecordFilter",
    "Relay",
    "RelayPool",
    "Resolver",
    "decode_pointer",
    "encode_event_pointer",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("nostrgate.core", "BaseService"),
    "ConfigT": ("nostrgate.core", "ConfigT"),
    "Logger": ("nostrgate.core", "Logger"),
    "RecordCache": ("nostrgate.core", "RecordCache"),
    "RelayPool": ("nostrgate.core", "RelayPool"),
    "PageKind": ("nostrgate.models", "PageKind"),
    "Pointer": ("nostrgate.models", "Pointer"),
    "Record": ("nostrgate.models", "Record"),
    "RecordFilter": ("nostrgate.models", "RecordFilter"),
    "Relay": ("nostrgate.models", "Relay"),
    "decode_pointer": ("nostrgate.nips", "decode_pointer"),
    "encode_event_pointer": ("nostrgate.nips", "encode_event_pointer"),
    "Gateway": ("nostrgate.services", "Gateway"),
    "GatewayConfig": ("nostrgate.services", "GatewayConfig"),
    "Resolver": ("nostrgate.services", "Resolver"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'nostrgate' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
