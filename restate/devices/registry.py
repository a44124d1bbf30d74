"""Registry of device adapters.

Each adapter contributes a route compiler: a callable that receives the
inventory records and returns a RouteTable for its device type. The
registry runs every compiler, merges their tables under the API version
prefix and adds an index route listing the top level names.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from restate.core.errors import ConfigError, DuplicateRouteError, NoRoutesConfigured
from restate.core.routes import ApiIndex, Route, RouteTable

logger = logging.getLogger(__name__)

RouteCompiler = Callable[[Sequence[Mapping[str, Any]]], RouteTable]


class DeviceRegistry:
    """Registry of device adapter route compilers.

    A failing adapter never prevents the others from contributing routes.

    Example:
        >>> registry = DeviceRegistry()
        >>> registry.register("tvcom", tvcom.compile_routes)
        >>> table = registry.compile(records, api_version="v1")
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._compilers: dict[str, RouteCompiler] = {}

    def register(self, device_type: str, compiler: RouteCompiler) -> None:
        """Register a route compiler for a device type.

        Args:
            device_type: Inventory ``type`` handled by the adapter
            compiler: Route compiler for that type
        """
        if device_type in self._compilers:
            logger.warning(f"Device adapter '{device_type}' already registered, overwriting")

        self._compilers[device_type] = compiler
        logger.debug(f"Registered device adapter: {device_type}")

    def unregister(self, device_type: str) -> bool:
        """Unregister a device adapter.

        Returns:
            True if the adapter was removed, False if not found
        """
        if device_type in self._compilers:
            del self._compilers[device_type]
            return True
        return False

    def list_adapters(self) -> list[str]:
        return list(self._compilers.keys())

    def is_registered(self, device_type: str) -> bool:
        return device_type in self._compilers

    def __len__(self) -> int:
        return len(self._compilers)

    def compile(self, records: Sequence[Mapping[str, Any]], api_version: str) -> RouteTable:
        """Compile the full route table.

        Args:
            records: Inventory device records ({type, config})
            api_version: Path prefix for every route (e.g. 'v1')

        Returns:
            Merged RouteTable under /{api_version}, including the index routes

        Raises:
            NoRoutesConfigured: If no adapter contributed a route
        """
        table = RouteTable()

        for device_type, compiler in self._compilers.items():
            try:
                routes = compiler(records)
            except ConfigError as e:
                logger.error(f"Device adapter '{device_type}' contributed no routes: {e}")
                continue

            try:
                table = table + routes
            except DuplicateRouteError as e:
                logger.error(f"Device adapter '{device_type}' skipped: {e}")
                continue

            logger.info(f"Device adapter '{device_type}' contributed {len(routes)} routes")

        if len(table) == 0:
            raise NoRoutesConfigured("No routes returned from parsed config")

        index = ApiIndex(names=tuple(table.top_level_names()))
        return table.prefixed(api_version) + RouteTable(
            [
                Route(path=f"/{api_version}", handler=index),
                Route(path=f"/{api_version}/", handler=index),
            ]
        )


def default_registry() -> DeviceRegistry:
    """Registry with every built-in adapter registered."""
    from restate.devices import tvcom

    registry = DeviceRegistry()
    tvcom.register(registry)
    return registry
