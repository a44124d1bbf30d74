"""Route table and route handler variants.

A RouteTable is compiled once at startup and never mutated. Each Route
pairs a path with one RouteHandler variant; the HTTP layer dispatches on
the variant type in a single place (see restate.routers.devices).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from restate.core.errors import DuplicateRouteError

if TYPE_CHECKING:
    from restate.devices.tvcom.device import TvcomDevice
    from restate.devices.tvcom.opcodes import OpcodeDefinition


@dataclass(frozen=True)
class CommandAction:
    """Run one command on one device."""

    device: TvcomDevice
    opcode: OpcodeDefinition


@dataclass(frozen=True)
class DeviceDiscovery:
    """List the command names a device accepts."""

    device: TvcomDevice


@dataclass(frozen=True)
class TypeAggregate:
    """List the configured device names of one adapter type."""

    devices: tuple[TvcomDevice, ...]

    @property
    def device_names(self) -> list[str]:
        return sorted(device.name for device in self.devices)


@dataclass(frozen=True)
class ApiIndex:
    """List the top level names below the API version prefix."""

    names: tuple[str, ...]


RouteHandler = Union[CommandAction, DeviceDiscovery, TypeAggregate, ApiIndex]


@dataclass(frozen=True)
class Route:
    """A single path bound to a handler."""

    path: str
    handler: RouteHandler

    def with_prefix(self, prefix: str) -> Route:
        """Return a copy of this route with its path under prefix.

        Args:
            prefix: Path segment without slashes (e.g. 'tvcom')
        """
        return Route(path=f"/{prefix}{self.path}", handler=self.handler)


class RouteTable:
    """Ordered, immutable collection of routes with unique paths.

    Raises:
        DuplicateRouteError: If two routes share a path
    """

    def __init__(self, routes: Iterable[Route] = ()) -> None:
        self._routes: tuple[Route, ...] = tuple(routes)
        self._by_path: dict[str, Route] = {}
        for route in self._routes:
            if route.path in self._by_path:
                raise DuplicateRouteError(route.path)
            self._by_path[route.path] = route

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def __add__(self, other: RouteTable) -> RouteTable:
        return RouteTable((*self._routes, *other._routes))

    def __repr__(self) -> str:
        return f"<RouteTable(routes={len(self._routes)})>"

    @property
    def paths(self) -> list[str]:
        return [route.path for route in self._routes]

    def get(self, path: str) -> Route | None:
        return self._by_path.get(path)

    def prefixed(self, prefix: str) -> RouteTable:
        """Return a new table with every path moved under /{prefix}."""
        return RouteTable(route.with_prefix(prefix) for route in self._routes)

    def top_level_names(self) -> list[str]:
        """Names of the first path segment of every route, sorted.

        Returns:
            Unique, non-empty first segments (e.g. ['test1', 'tvcom'])
        """
        names = {route.path.split("/")[1] for route in self._routes}
        names.discard("")
        return sorted(names)
