"""Restate FastAPI application.

Main entry point for the device gateway. Compiles the device inventory
into a route table at startup and serves it over HTTP.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from pythonjsonlogger import jsonlogger

from restate import __version__
from restate.config import GatewayConfig, load_inventory
from restate.core.errors import ConfigError
from restate.core.routes import RouteTable
from restate.devices import DeviceRegistry, default_registry
from restate.routers import devices, health

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("restate.access")


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structured JSON logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    formatter = jsonlogger.JsonFormatter(  # type: ignore[attr-defined]
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing.formatter, jsonlogger.JsonFormatter):  # type: ignore[attr-defined]
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # uvicorn's own access log duplicates restate.access
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def build_route_table(config: GatewayConfig, registry: DeviceRegistry | None = None) -> RouteTable:
    """Load the inventory and compile every adapter's routes.

    Args:
        config: Gateway configuration (provides the inventory path)
        registry: Adapter registry (defaults to the built-in adapters)

    Returns:
        Compiled RouteTable

    Raises:
        ConfigError: If the inventory is invalid or no routes were compiled
    """
    inventory = load_inventory(config.config_path)
    registry = registry or default_registry()
    table = registry.compile(inventory.records(), api_version=inventory.api_version)
    logger.info(f"Compiled {len(table)} routes from {len(registry)} device adapters")
    return table


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager.

    Compiles the route table unless one was supplied to create_app().

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    config: GatewayConfig = app.state.config
    setup_logging(config.log_level)

    logger.info("Restate starting up")

    if app.state.route_table is None:
        try:
            app.state.route_table = build_route_table(config)
        except ConfigError as e:
            logger.error(f"Failed to start server: {e}")
            raise

    for path in app.state.route_table.paths:
        logger.debug(f"Serving route {path}")

    yield

    logger.info("Restate shutting down")


async def access_log(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log one combined-format line per request."""
    response = await call_next(request)

    client_ip = request.headers.get("x-forwarded-for")
    if not client_ip:
        client_ip = request.client.host if request.client else "-"
    target = request.url.path + (f"?{request.url.query}" if request.url.query else "")
    protocol = f"HTTP/{request.scope.get('http_version', '1.1')}"
    referer = request.headers.get("referer") or "-"
    user_agent = request.headers.get("user-agent") or "-"

    access_logger.info(
        f'{client_ip} - "{request.method} {target} {protocol}" {response.status_code} "{referer}" "{user_agent}"'
    )
    return response


def create_app(
    route_table: RouteTable | None = None,
    config: GatewayConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        route_table: Precompiled routes. When None the inventory named by
            the configuration is compiled during startup.
        config: Gateway configuration (defaults to environment)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Restate",
        description="Declarative HTTP gateway for home automation devices",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config or GatewayConfig.from_env()
    app.state.route_table = route_table

    app.middleware("http")(access_log)

    # Health first: the device router matches every remaining path
    app.include_router(health.router)
    app.include_router(devices.router)

    return app


app = create_app()
