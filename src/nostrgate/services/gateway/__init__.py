"""HTTP gateway serving Nostr-hosted static sites.

See Also:
    [Gateway][nostrgate.services.gateway.service.Gateway]: The service class.
    [GatewayConfig][nostrgate.services.gateway.configs.GatewayConfig]: Service
        configuration.
"""

from .configs import GatewayConfig
from .service import Gateway


__all__ = ["Gateway", "GatewayConfig"]
