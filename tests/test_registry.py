"""Tests for the device adapter registry."""

from __future__ import annotations

import logging
from functools import partial

import pytest

from restate.core.errors import NoDevicesConfigured, NoRoutesConfigured
from restate.core.routes import ApiIndex, DeviceDiscovery, Route, RouteTable
from restate.devices import DeviceRegistry, default_registry
from restate.devices.tvcom import compile_routes


def _failing_compiler(records):
    raise NoDevicesConfigured("No wol devices found in config")


def _static_compiler(*paths: str):
    def compiler(records) -> RouteTable:
        return RouteTable(Route(path=path, handler=ApiIndex(names=())) for path in paths)

    return compiler


@pytest.fixture
def registry(opcodes, transport) -> DeviceRegistry:
    """Registry with the tvcom adapter bound to the emulated display."""
    registry = DeviceRegistry()
    registry.register("tvcom", partial(compile_routes, opcodes=opcodes, transport=transport))
    return registry


class TestRegistration:
    """Tests for adapter registration."""

    def test_register_and_list(self) -> None:
        """Test registering adapters."""
        registry = DeviceRegistry()
        registry.register("tvcom", compile_routes)
        registry.register("wol", _failing_compiler)

        assert registry.list_adapters() == ["tvcom", "wol"]
        assert registry.is_registered("tvcom")
        assert len(registry) == 2

    def test_unregister(self) -> None:
        """Test removing an adapter."""
        registry = DeviceRegistry()
        registry.register("tvcom", compile_routes)

        assert registry.unregister("tvcom") is True
        assert registry.unregister("tvcom") is False
        assert not registry.is_registered("tvcom")

    def test_default_registry(self) -> None:
        """Test that the built-in adapters are registered."""
        assert default_registry().list_adapters() == ["tvcom"]


class TestCompile:
    """Tests for DeviceRegistry.compile()."""

    def test_prefixes_api_version(self, registry, records) -> None:
        """Test that every route moves under the API version."""
        table = registry.compile([records.tvcom("test1")], api_version="v1")

        assert "/v1/test1/power" in table
        assert "/test1/power" not in table
        assert all(path.startswith("/v1") for path in table.paths)

    def test_route_count(self, registry, records, opcodes) -> None:
        """Test that the index pair is added to the adapter routes."""
        table = registry.compile([records.tvcom("test1"), records.tvcom("test2")], api_version="v1")
        assert len(table) == 2 * (len(opcodes) + 2) + 2 + 2

    def test_index_routes(self, registry, records) -> None:
        """Test that /v1 lists the top level names."""
        table = registry.compile([records.tvcom("test1")], api_version="v1")
        index = table.get("/v1").handler

        assert isinstance(index, ApiIndex)
        assert index.names == ("test1",)
        assert table.get("/v1/").handler is index

    def test_index_lists_type_for_multiple_devices(self, registry, records) -> None:
        table = registry.compile([records.tvcom("test1"), records.tvcom("test2")], api_version="v2")
        assert table.get("/v2").handler.names == ("tvcom",)

    def test_failing_adapter_does_not_affect_siblings(self, registry, records, caplog) -> None:
        """Test that an adapter without devices is skipped."""
        registry.register("wol", _failing_compiler)

        with caplog.at_level(logging.ERROR, logger="restate.devices.registry"):
            table = registry.compile([records.tvcom("test1")], api_version="v1")

        assert isinstance(table.get("/v1/test1").handler, DeviceDiscovery)
        assert "Device adapter 'wol' contributed no routes" in caplog.text

    def test_conflicting_adapter_skipped(self, registry, records) -> None:
        """Test that an adapter colliding with earlier routes is skipped."""
        registry.register("clash", _static_compiler("/test1", "/other"))

        table = registry.compile([records.tvcom("test1")], api_version="v1")

        assert isinstance(table.get("/v1/test1").handler, DeviceDiscovery)
        assert "/v1/other" not in table

    def test_zero_devices_everywhere(self, registry) -> None:
        """Test that compile fails when no adapter contributed a route."""
        registry.register("wol", _failing_compiler)

        with pytest.raises(NoRoutesConfigured):
            registry.compile([], api_version="v1")
