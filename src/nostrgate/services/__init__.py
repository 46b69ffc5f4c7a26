"""Gateway service plus shared resolution infrastructure.

Services are the top layer of the diamond DAG, depending on
[nostrgate.core][nostrgate.core], [nostrgate.nips][nostrgate.nips],
[nostrgate.utils][nostrgate.utils], and [nostrgate.models][nostrgate.models].
Each service extends [BaseService][nostrgate.core.base_service.BaseService]
and implements ``async def run()`` for one cycle of work.

```text
HTTP request -> Gateway -> Resolver -> race() -> RelayPool -> relays
```

Attributes:
    Gateway: HTTP server mapping subdomain pointers and paths to Nostr
        records.
    common: [Resolver][nostrgate.services.common.resolver.Resolver] and
        [race()][nostrgate.services.common.racer.race], independent of HTTP.

Examples:
    ```python
    from nostrgate.services import Gateway

    gateway = Gateway.from_yaml("config/services/gateway.yaml")
    async with gateway:
        await gateway.run_forever()
    ```
"""

from .common import NotFoundReason, Resolution, Resolver, race
from .gateway import Gateway, GatewayConfig


__all__ = [
    "Gateway",
    "GatewayConfig",
    "NotFoundReason",
    "Resolution",
    "Resolver",
    "race",
]
