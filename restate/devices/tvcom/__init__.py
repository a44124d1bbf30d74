"""tvcom device adapter.

Drives LG-style RS-232 displays through a serial-to-websocket bridge.

Usage:
    >>> from restate.devices import DeviceRegistry
    >>> from restate.devices import tvcom
    >>>
    >>> registry = DeviceRegistry()
    >>> tvcom.register(registry)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from restate.devices.tvcom.compiler import DEVICE_TYPE, compile_routes
from restate.devices.tvcom.device import TvcomDevice, TvcomDeviceConfig, bind
from restate.devices.tvcom.opcodes import OpcodeDefinition, load_opcodes
from restate.devices.tvcom.transport import DeviceTransport, WebSocketTransport

if TYPE_CHECKING:
    from restate.devices.registry import DeviceRegistry


def register(registry: DeviceRegistry) -> None:
    """Register the tvcom adapter with a registry."""
    registry.register(DEVICE_TYPE, compile_routes)


__all__ = [
    "DEVICE_TYPE",
    "DeviceTransport",
    "OpcodeDefinition",
    "TvcomDevice",
    "TvcomDeviceConfig",
    "WebSocketTransport",
    "bind",
    "compile_routes",
    "load_opcodes",
    "register",
]
