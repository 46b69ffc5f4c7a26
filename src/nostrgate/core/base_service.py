"""
Lifecycle shared by nostrgate services.

A service is configured from YAML, entered as an async context manager and
then driven by [run_forever()][nostrgate.core.base_service.BaseService.run_forever],
which calls ``run()`` once per ``interval`` until shutdown is requested or too
many cycles fail in a row. For the gateway the HTTP server lives outside that
loop: it is started in ``__aenter__``, and ``run()`` only reports statistics.

Per-service Prometheus series go through the shared ``SERVICE_GAUGE`` and
``SERVICE_COUNTER`` collectors, labelled with ``SERVICE_NAME``.

See Also:
    [Gateway][nostrgate.services.gateway.Gateway]: The one concrete service.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from nostrgate.models.constants import ServiceName

from .logger import Logger
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
)
from .yaml import load_yaml


class BaseServiceConfig(BaseModel):
    """Cycle and metrics settings every service config inherits."""

    interval: float = Field(default=60.0, ge=1.0, description="Seconds between cycles")
    max_consecutive_failures: int = Field(
        default=5, ge=0, description="Failed cycles in a row before stopping (0 = never stop)"
    )
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Base class for nostrgate services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][nostrgate.core.base_service.BaseService.run].
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT | None = None) -> None:
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def is_running(self) -> bool:
        return not self._shutdown_event.is_set()

    @abstractmethod
    async def run(self) -> None:
        """One cycle of periodic work."""

    def request_shutdown(self) -> None:
        """Stop the cycle loop at the next opportunity. Safe from a signal handler."""
        self._shutdown_event.set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Sleep up to *timeout* seconds; return ``True`` if shutdown was requested."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    # -------------------------------------------------------------------------
    # Cycle loop
    # -------------------------------------------------------------------------

    async def _run_cycle(self) -> BaseException | None:
        """Run one cycle and record its outcome; return the error, if any."""
        started = time.monotonic()
        try:
            await self.run()
        except Exception as e:  # cycle error boundary
            self.inc_counter("cycles_failed")
            self.inc_counter(f"errors_{type(e).__name__}")
            return e

        self.inc_counter("cycles_success")
        self.set_gauge("last_cycle_timestamp", time.time())
        if self._config.metrics.enabled:
            CYCLE_DURATION_SECONDS.labels(service=self.SERVICE_NAME).observe(
                time.monotonic() - started
            )
        return None

    async def run_forever(self) -> None:
        """Call ``run()`` every ``interval`` seconds until stopped.

        The loop ends when shutdown is requested or after
        ``max_consecutive_failures`` failed cycles in a row. Cancellation is
        never counted as a failure.
        """
        interval = self._config.interval
        limit = self._config.max_consecutive_failures
        if self._config.metrics.enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})
        self._logger.info("run_forever_started", interval=interval, failure_limit=limit)

        failures = 0
        while self.is_running:
            error = await self._run_cycle()
            failures = 0 if error is None else failures + 1
            self.set_gauge("consecutive_failures", failures)

            if error is not None:
                self._logger.error(
                    "run_cycle_error",
                    error=str(error),
                    error_type=type(error).__name__,
                    consecutive_failures=failures,
                )
                if limit and failures >= limit:
                    self._logger.critical(
                        "max_consecutive_failures_reached", failures=failures, limit=limit
                    )
                    break

            if await self.wait(interval):
                break

        self._logger.info("run_forever_stopped")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Self:
        """Build the service from a YAML file (see [load_yaml()][nostrgate.core.yaml.load_yaml])."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Build the service from a mapping validated by ``CONFIG_CLASS``.

        Raises:
            pydantic.ValidationError: If *data* does not validate.
        """
        config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        return cls(config=config, **kwargs)

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        if self._config.metrics.enabled:
            SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        if self._config.metrics.enabled:
            SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
