"""
Prometheus collectors and the scrape endpoint.

The collectors are process-wide. Services never create their own: they write
through [set_gauge()][nostrgate.core.base_service.BaseService.set_gauge] and
[inc_counter()][nostrgate.core.base_service.BaseService.inc_counter], which
label the shared ``SERVICE_GAUGE`` / ``SERVICE_COUNTER`` with the service
name. The gateway additionally observes ``REQUEST_DURATION_SECONDS`` per
status class; on a cache miss that duration contains the whole relay race.

The scrape endpoint is a separate aiohttp application on its own port, since
every path on the gateway port belongs to a hosted site.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Where the scrape endpoint listens; nothing is served unless ``enabled``."""

    enabled: bool = Field(default=False)
    port: int = Field(default=8000, ge=1024, le=65535)
    host: str = Field(default="127.0.0.1")
    path: str = Field(default="/metrics")


SERVICE_INFO = Info("service", "Name of the running service")

# e.g. {service="gateway", name="cache_records_by_pointer"}
SERVICE_GAUGE = Gauge(
    "service_gauge", "Point-in-time service values", ["service", "name"]
)

# e.g. {service="gateway", name="requests_4xx"}
SERVICE_COUNTER = Counter(
    "service_counter", "Cumulative service totals", ["service", "name"]
)

CYCLE_DURATION_SECONDS = Histogram(
    "cycle_duration_seconds",
    "Time spent in one run() cycle",
    ["service"],
    buckets=(0.01, 0.1, 0.5, 1, 5, 10, 30, 60),
)

REQUEST_DURATION_SECONDS = Histogram(
    "gateway_request_duration_seconds",
    "Gateway request latency, relay races included",
    ["status"],
    buckets=(0.005, 0.025, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)


class MetricsServer:
    """aiohttp server answering Prometheus scrapes on ``config.path``."""

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind and start serving; does nothing when metrics are disabled.

        Raises:
            OSError: If the address cannot be bound.
        """
        if not self._config.enabled:
            return
        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        try:
            await web.TCPSite(runner, self._config.host, self._config.port).start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner

    async def stop(self) -> None:
        """Release the socket. Idempotent."""
        runner, self._runner = self._runner, None
        if runner is not None:
            await runner.cleanup()

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Start a [MetricsServer][nostrgate.core.metrics.MetricsServer]; the caller stops it."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
