"""Core layer providing the foundation for nostrgate services.

Depends on ``nostrgate.models`` and ``nostrgate.utils.protocol`` and is
depended upon by ``nostrgate.services``. The exception module is the one
exception to the layering: it has no imports and may be used from any layer.

Attributes:
    RelayPool: One pooled ``nostr_sdk.Client`` per relay URL with
        deduplicated connects and failure-tolerant queries.
        See [RelayPool][nostrgate.core.pool.RelayPool].
    RecordCache: Append-only ``by_id`` and ``by_pointer`` record maps.
        See [RecordCache][nostrgate.core.cache.RecordCache].
    BaseService: Abstract generic base class with lifecycle management
        ([run()][nostrgate.core.base_service.BaseService.run] /
        [run_forever()][nostrgate.core.base_service.BaseService.run_forever] /
        shutdown), factory methods
        ([from_yaml()][nostrgate.core.base_service.BaseService.from_yaml],
        [from_dict()][nostrgate.core.base_service.BaseService.from_dict]),
        and Prometheus metrics integration.
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][nostrgate.core.logger.Logger].
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
        See [MetricsServer][nostrgate.core.metrics.MetricsServer].
    YAML: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][nostrgate.core.yaml.load_yaml].

Examples:
    ```python
    from nostrgate.core import RecordCache, RelayPool, RelayPoolConfig

    async with RelayPool(RelayPoolConfig(query_timeout=5.0)) as pool:
        record = await pool.query("wss://nos.lol", record_filter)
    ```
"""

from .base_service import (
    BaseService,
    BaseServiceConfig,
    ConfigT,
)
from .cache import CacheStats, RecordCache
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    REQUEST_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .pool import ConnectionState, RelayPool, RelayPoolConfig
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "REQUEST_DURATION_SECONDS",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "BaseService",
    "BaseServiceConfig",
    "CacheStats",
    "ConfigT",
    "ConnectionState",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "RecordCache",
    "RelayPool",
    "RelayPoolConfig",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
