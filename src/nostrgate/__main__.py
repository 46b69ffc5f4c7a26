"""Command-line entry point: ``nostrgate <service> [--config PATH] [--log-level LEVEL] [--once]``.

Continuous mode serves until SIGINT/SIGTERM, with the Prometheus endpoint
running when ``metrics.enabled`` is set. ``--once`` enters the service, runs
a single cycle and exits, which for the gateway means: bind, report
statistics, shut down.

Examples:
    ```bash
    nostrgate gateway
    nostrgate gateway --log-level DEBUG
    python -m nostrgate gateway --config config/services/gateway.yaml
    ```
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import ValidationError

from nostrgate.core import start_metrics_server
from nostrgate.core.base_service import BaseService
from nostrgate.core.exceptions import ConfigurationError
from nostrgate.core.logger import Logger, StructuredFormatter
from nostrgate.core.yaml import load_yaml
from nostrgate.models.constants import ServiceName
from nostrgate.services.gateway import Gateway


CONFIG_BASE = Path("config")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ServiceEntry(NamedTuple):
    """A runnable service and the config file it reads by default."""

    cls: type[BaseService[Any]]
    config_path: Path


SERVICE_REGISTRY: dict[str, ServiceEntry] = {
    ServiceName.GATEWAY: ServiceEntry(Gateway, CONFIG_BASE / "services" / "gateway.yaml"),
}

logger = Logger("cli")


def _stop_on_signals(service: BaseService[Any]) -> None:
    def on_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        service.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, on_signal, sig)


async def _serve(service: BaseService[Any]) -> None:
    metrics = service.config.metrics
    metrics_server = await start_metrics_server(metrics)
    if metrics_server.is_running:
        logger.info("metrics_server_started", host=metrics.host, port=metrics.port)

    _stop_on_signals(service)
    try:
        async with service:
            await service.run_forever()
    finally:
        await metrics_server.stop()


async def run_service(
    service_name: str,
    service_class: type[BaseService[Any]],
    service_dict: dict[str, Any],
    *,
    once: bool,
) -> int:
    """Build *service_class* from *service_dict* and run it.

    Returns:
        Process exit code: ``0`` on a clean stop, ``1`` when the service
        raised.

    Raises:
        pydantic.ValidationError: If *service_dict* is not a valid config.
    """
    service = service_class.from_dict(service_dict) if service_dict else service_class()

    try:
        if once:
            async with service:
                await service.run()
        else:
            await _serve(service)
    except Exception as e:  # CLI error boundary
        logger.error(f"{service_name}_failed", error=str(e), error_type=type(e).__name__)
        return 1

    logger.info(f"{service_name}_completed" if once else f"{service_name}_stopped")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="nostrgate", description="Run a nostrgate service")
    parser.add_argument("service", choices=list(SERVICE_REGISTRY), help="service to run")
    parser.add_argument(
        "--config", type=Path, help="config file (default: config/services/<service>.yaml)"
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="INFO")
    parser.add_argument("--once", action="store_true", help="run a single cycle and exit")
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Send all logging to stderr through ``StructuredFormatter`` at *level*."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Read *path*, or return ``{}`` (built-in defaults) when it does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(str(path))


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    entry = SERVICE_REGISTRY[args.service]
    config_path = args.config or entry.config_path

    try:
        return await run_service(
            service_name=args.service,
            service_class=entry.cls,
            service_dict=_load_yaml_dict(config_path),
            once=args.once,
        )
    except (ConfigurationError, ValidationError) as e:
        logger.error("config_invalid", path=str(config_path), error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
