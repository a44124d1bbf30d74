"""Route compilation for tvcom devices.

Topology for a single configured device:

    /{device}               command names
    /{device}/
    /{device}/{command}     one route per opcode

With two or more devices every path moves under ``/tvcom`` and two
aggregate routes listing the device names are added:

    /tvcom                  device names
    /tvcom/
    /tvcom/{device}/...

Adding a second device therefore changes every previously valid path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from restate.core.errors import DeviceRejected, DuplicateDeviceName, NoDevicesConfigured
from restate.core.routes import CommandAction, DeviceDiscovery, Route, RouteTable, TypeAggregate
from restate.devices.tvcom.device import TvcomDevice, bind
from restate.devices.tvcom.opcodes import OpcodeDefinition, load_opcodes
from restate.devices.tvcom.transport import DeviceTransport

logger = logging.getLogger(__name__)

DEVICE_TYPE = "tvcom"


def compile_routes(
    records: Iterable[Mapping[str, Any]],
    opcodes: tuple[OpcodeDefinition, ...] | None = None,
    transport: DeviceTransport | None = None,
) -> RouteTable:
    """Compile the tvcom route table from inventory records.

    Args:
        records: Inventory records ({type, config}); other types are ignored
        opcodes: Opcode table. Loaded from the bundled document when None.
        transport: Transport override for every bound device

    Returns:
        RouteTable for all valid tvcom devices

    Raises:
        ConfigError: If the opcode table cannot be loaded
        NoDevicesConfigured: If no record produced a device
        DuplicateDeviceName: If two devices share a name
    """
    if opcodes is None:
        opcodes = load_opcodes()

    devices = bind_devices(records, opcodes, transport)

    routes: list[Route] = []
    for device in devices:
        routes.extend(device_routes(device))

    if len(devices) == 1:
        return RouteTable(routes)

    aggregate = TypeAggregate(devices=tuple(devices))
    return RouteTable(routes).prefixed(DEVICE_TYPE) + RouteTable(
        [
            Route(path=f"/{DEVICE_TYPE}", handler=aggregate),
            Route(path=f"/{DEVICE_TYPE}/", handler=aggregate),
        ]
    )


def bind_devices(
    records: Iterable[Mapping[str, Any]],
    opcodes: tuple[OpcodeDefinition, ...],
    transport: DeviceTransport | None = None,
) -> list[TvcomDevice]:
    """Bind every tvcom record, skipping the ones that are rejected.

    Returns:
        Devices in encounter order

    Raises:
        NoDevicesConfigured: If no record produced a device
        DuplicateDeviceName: If two devices share a name
    """
    devices: list[TvcomDevice] = []
    seen: set[str] = set()

    for index, record in enumerate(records):
        if record.get("type") != DEVICE_TYPE:
            continue

        try:
            device = bind(record.get("config"), opcodes, transport)
        except DeviceRejected as e:
            logger.warning(f"Skipping {DEVICE_TYPE} device #{index}: {e}")
            continue

        if device.name in seen:
            raise DuplicateDeviceName(device.name, DEVICE_TYPE)
        seen.add(device.name)

        devices.append(device)
        logger.info(f'Found device "{device.name}"')

    if not devices:
        raise NoDevicesConfigured(f"No {DEVICE_TYPE} devices found in config")

    return devices


def device_routes(device: TvcomDevice) -> list[Route]:
    """Routes for one device: one per opcode plus the discovery pair."""
    routes = [
        Route(path=f"/{device.name}/{opcode.name}", handler=CommandAction(device=device, opcode=opcode))
        for opcode in device.opcodes
    ]
    discovery = DeviceDiscovery(device=device)
    routes.append(Route(path=f"/{device.name}", handler=discovery))
    routes.append(Route(path=f"/{device.name}/", handler=discovery))
    return routes
