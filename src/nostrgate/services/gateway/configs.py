"""Gateway service configuration models.

See Also:
    [Gateway][nostrgate.services.gateway.Gateway]: The service class that
        consumes these configurations.
    [BaseServiceConfig][nostrgate.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, ``max_consecutive_failures``,
        and ``metrics`` fields.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from nostrgate.core.base_service import BaseServiceConfig
from nostrgate.core.pool import RelayPoolConfig
from nostrgate.models.relay import normalize_relay_urls


DEFAULT_POINTER = "ec79a4691d70c3587ce378dbe28c10eb1e926904a903dce97d3d76d887f9b9b6"

DEFAULT_RELAYS = [
    "wss://relay.damus.io",
    "wss://nostr-pub.wellorder.net",
    "wss://e.nos.lol",
]

DEFAULT_RENDERER_URL = "https://nostrapp.link/#"


class GatewayConfig(BaseServiceConfig):
    """Configuration for the gateway service.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
        default_pointer: Pointer served when the host has no subdomain.
        default_relays: Relay set for pointers without relay hints.
        subdomain_offset: Number of trailing host labels that form the base
            domain (``2`` for ``example.com``, ``1`` for ``localhost``).
        renderer_url: Prefix of the redirect target for records that are
            not site roots; the ``nevent`` string is appended.
        expose_errors: Put the traceback in 500 response bodies.
        relay: Per-relay timeouts and proxy settings.
    """

    host: str = Field(default="0.0.0.0", min_length=1, description="HTTP bind address")  # noqa: S104
    port: int = Field(default=3000, ge=1, le=65535, description="HTTP port")
    default_pointer: str = Field(default=DEFAULT_POINTER, min_length=1)
    default_relays: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS))
    subdomain_offset: int = Field(default=2, ge=0, le=10)
    renderer_url: str = Field(default=DEFAULT_RENDERER_URL, min_length=1)
    expose_errors: bool = Field(default=True, description="Traceback in 500 bodies")
    relay: RelayPoolConfig = Field(default_factory=RelayPoolConfig)

    @field_validator("default_pointer")
    @classmethod
    def _strip_default_pointer(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "default_pointer must not be blank"
            raise ValueError(msg)
        return v

    @field_validator("default_relays")
    @classmethod
    def _normalize_default_relays(cls, v: list[str]) -> list[str]:
        relays = list(normalize_relay_urls(v))
        if not relays:
            msg = "default_relays must contain at least one valid relay URL"
            raise ValueError(msg)
        return relays

    @field_validator("renderer_url")
    @classmethod
    def _validate_renderer_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = f"renderer_url must be an http(s) URL, got {v!r}"
            raise ValueError(msg)
        return v
