"""HTTP gateway serving Nostr-hosted static sites via FastAPI.

Every request, whatever its method and path, goes through one handler:

1. The pointer is taken from the first subdomain label of the ``Host``
   header (the configured default pointer when there is none).
2. The [Resolver][nostrgate.services.common.resolver.Resolver] turns it into
   a record, from the cache or from a relay race.
3. A record that is not a site root (kind ``30051``) is redirected to the
   companion renderer.
4. For a site root, ``/`` serves the root itself and every other path is
   looked up in its ``["e", id, relay-hint, path]`` tags.

The HTTP server runs as a background ``asyncio.Task`` alongside the standard
``run_forever()`` cycle. Each ``run()`` cycle logs request statistics and
cache sizes and updates Prometheus metrics.

See Also:
    [mapper][nostrgate.services.gateway.mapper]: Pure request/response
        helpers used by the handler.
    [BaseService][nostrgate.core.base_service.BaseService]: Abstract base
        class providing lifecycle and metrics.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
import traceback
from collections import Counter
from typing import TYPE_CHECKING, Any, ClassVar

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from nostrgate.core.base_service import BaseService
from nostrgate.core.cache import RecordCache
from nostrgate.core.metrics import REQUEST_DURATION_SECONDS
from nostrgate.core.pool import RelayPool
from nostrgate.models.constants import PageKind, ServiceName
from nostrgate.models.pointer import is_hex_pointer
from nostrgate.services.common.resolver import NotFoundReason, Resolver

from .configs import GatewayConfig
from .mapper import extract_pointer, find_route, redirect_url, render_record, request_path


if TYPE_CHECKING:
    from types import TracebackType

_HTTP_ERROR_THRESHOLD = 400

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class Gateway(BaseService[GatewayConfig]):
    """HTTP gateway resolving subdomain pointers to Nostr records.

    Lifecycle:
        1. ``__aenter__``: build the FastAPI app, start uvicorn.
        2. ``run()``: log statistics and update Prometheus metrics.
        3. ``__aexit__``: cancel the HTTP server task (in-flight requests are
           not drained) and close relay connections.

    Args:
        config: Gateway configuration.
        pool: Relay query client; a
            [RelayPool][nostrgate.core.pool.RelayPool] built from
            ``config.relay`` by default.
        cache: Record cache; a fresh
            [RecordCache][nostrgate.core.cache.RecordCache] by default.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.GATEWAY
    CONFIG_CLASS: ClassVar[type[GatewayConfig]] = GatewayConfig

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        pool: RelayPool | None = None,
        cache: RecordCache | None = None,
    ) -> None:
        super().__init__(config)
        self._pool = pool if pool is not None else RelayPool(self._config.relay)
        self._cache = cache if cache is not None else RecordCache()
        self._resolver = Resolver(self._pool, self._cache, self._config.default_relays)
        self._server_task: asyncio.Task[None] | None = None
        self._status_counts: Counter[str] = Counter()

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    async def __aenter__(self) -> Gateway:
        await super().__aenter__()

        app = self._build_app()
        self._server_task = asyncio.create_task(self._run_server(app))
        self._logger.info(
            "http_server_started",
            host=self._config.host,
            port=self._config.port,
            default_relays=len(self._config.default_relays),
        )
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        if self._server_task is not None:
            self._server_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._server_task
            self._server_task = None
        self._logger.info("http_server_stopped")
        await self._pool.close()
        await super().__aexit__(_exc_type, _exc_val, _exc_tb)

    async def run(self) -> None:
        """Log request and cache stats and update Prometheus metrics."""
        if self._server_task is not None and self._server_task.done():
            exc = self._server_task.exception() if not self._server_task.cancelled() else None
            self._logger.error("http_server_crashed", error=str(exc) if exc else "cancelled")
            raise RuntimeError("HTTP server task has stopped unexpectedly") from exc

        counts = dict(self._status_counts)
        self._status_counts.clear()

        stats = self._cache.stats
        self._logger.info(
            "cycle_stats",
            requests_total=sum(counts.values()),
            **{f"requests_{k}": v for k, v in sorted(counts.items())},
            cache_records_by_id=self._cache.id_size,
            cache_records_by_pointer=self._cache.pointer_size,
            relays_connected=len(self._pool),
        )
        for status_class, count in counts.items():
            self.inc_counter(f"requests_{status_class}", count)
        self.set_gauge("cache_records_by_id", self._cache.id_size)
        self.set_gauge("cache_records_by_pointer", self._cache.pointer_size)
        self.set_gauge("cache_pointer_hits", stats.pointer_hits)
        self.set_gauge("cache_id_hits", stats.id_hits)
        self.set_gauge("relays_connected", len(self._pool))

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _build_app(self) -> FastAPI:
        """Construct the FastAPI application with a single catch-all route."""
        # Every path belongs to the hosted site, including /docs
        app = FastAPI(title="nostrgate", docs_url=None, redoc_url=None, openapi_url=None)

        @app.middleware("http")
        async def log_requests(request: Request, call_next: Any) -> Response:
            start = time.monotonic()
            try:
                response: Response = await call_next(request)
            except Exception as exc:  # HTTP request error boundary
                self._logger.error(
                    "unhandled_error",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    host=request.headers.get("host", ""),
                    path=request.url.path,
                )
                response = self._error_response()
            duration = time.monotonic() - start
            status_class = f"{response.status_code // 100}xx"
            self._status_counts[status_class] += 1
            if self._config.metrics.enabled:
                REQUEST_DURATION_SECONDS.labels(status=status_class).observe(duration)

            log = (
                self._logger.warning
                if response.status_code >= _HTTP_ERROR_THRESHOLD
                else self._logger.info
            )
            log(
                "request_completed",
                method=request.method,
                host=request.headers.get("host", ""),
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(duration * 1000, 1),
            )
            return response

        @app.api_route("/{path:path}", methods=_ALL_METHODS)
        async def serve(request: Request) -> Response:
            return await self._handle(request)

        return app

    def _error_response(self) -> Response:
        if self._config.expose_errors:
            return PlainTextResponse(traceback.format_exc(), status_code=500)
        return PlainTextResponse("Internal Server Error", status_code=500)

    async def _handle(self, request: Request) -> Response:
        """Map one request to a record response, redirect or 404."""
        pointer = extract_pointer(
            request.headers.get("host", ""),
            self._config.subdomain_offset,
            self._config.default_pointer,
        )
        resolution = await self._resolver.resolve(pointer)
        root = resolution.record
        if root is None:
            return self._not_found(
                f"{pointer} could not be resolved ({resolution.reason})", resolution.reason
            )

        if root.kind != PageKind.ROOT:
            location = redirect_url(self._config.renderer_url, root.id, resolution.relays)
            return RedirectResponse(location, status_code=302)

        path = request_path(request)
        if path == "/":
            return render_record(root)

        route = find_route(root, path)
        if route is None:
            return self._not_found(f"{path} does not exist on {root.id}", NotFoundReason.NO_ROUTE)

        sub_id = route[1]
        record = (
            await self._resolver.fetch_by_id(sub_id, resolution.relays)
            if is_hex_pointer(sub_id)
            else None
        )
        if record is None:
            return self._not_found(
                f"{sub_id} for {path} was not found", NotFoundReason.MISSING_SUBRECORD
            )
        return render_record(record)

    def _not_found(self, body: str, reason: NotFoundReason | None) -> Response:
        self._logger.debug("not_found", reason=reason, detail=body)
        return PlainTextResponse(body, status_code=404)

    async def _run_server(self, app: FastAPI) -> None:
        """Run uvicorn as an asyncio server."""
        config = uvicorn.Config(
            app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False,
            proxy_headers=True,
        )
        server = uvicorn.Server(config)
        await server.serve()
