"""Device adapters and the registry that compiles their routes."""

from restate.devices.registry import DeviceRegistry, RouteCompiler, default_registry

__all__ = [
    "DeviceRegistry",
    "RouteCompiler",
    "default_registry",
]
