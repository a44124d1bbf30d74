"""Core gateway types shared by every device adapter.

Provides the error taxonomy and the immutable route table that adapters
compile at startup and the HTTP layer serves.
"""

from restate.core.errors import (
    ConfigError,
    GatewayError,
    ProtocolError,
    RequestValidationError,
    TransportError,
)
from restate.core.routes import (
    ApiIndex,
    CommandAction,
    DeviceDiscovery,
    Route,
    RouteHandler,
    RouteTable,
    TypeAggregate,
)

__all__ = [
    "GatewayError",
    "ConfigError",
    "RequestValidationError",
    "TransportError",
    "ProtocolError",
    "Route",
    "RouteHandler",
    "RouteTable",
    "CommandAction",
    "DeviceDiscovery",
    "TypeAggregate",
    "ApiIndex",
]
