"""Tests for application assembly."""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from restate.config import GatewayConfig
from restate.core.errors import InventoryError, NoRoutesConfigured
from restate.core.routes import RouteTable
from restate.main import build_route_table, create_app


class TestBuildRouteTable:
    """Tests for build_route_table()."""

    def test_normal_config(self, testdata, opcodes) -> None:
        """Test that two devices and a foreign record compile under /v1."""
        config = GatewayConfig(config_path=str(testdata / "inventory" / "normal_config.yaml"))

        table = build_route_table(config)

        assert len(table) == 2 * (len(opcodes) + 2) + 2 + 2
        assert "/v1/tvcom/test1/power" in table
        assert "/v1/tvcom/test2/power" in table

    def test_single_device(self, testdata, opcodes) -> None:
        config = GatewayConfig(config_path=str(testdata / "inventory" / "single_device_config.yaml"))

        table = build_route_table(config)

        assert len(table) == len(opcodes) + 2 + 2
        assert "/v1/test1/power" in table

    @pytest.mark.parametrize("document", ["empty_config.yaml", "missing_config_parameter.yaml"])
    def test_no_routes(self, testdata, document: str) -> None:
        """Test that an inventory without usable devices fails."""
        config = GatewayConfig(config_path=str(testdata / "inventory" / document))

        with pytest.raises(NoRoutesConfigured):
            build_route_table(config)

    def test_invalid_inventory(self, testdata) -> None:
        config = GatewayConfig(config_path=str(testdata / "inventory" / "invalid_config.yaml"))

        with pytest.raises(InventoryError):
            build_route_table(config)


class TestApplication:
    """Tests for the FastAPI application."""

    def test_startup_compiles_inventory(self, testdata) -> None:
        """Test that the lifespan mounts the configured routes."""
        config = GatewayConfig(config_path=str(testdata / "inventory" / "single_device_config.yaml"))
        app = create_app(config=config)

        with TestClient(app) as client:
            response = client.get("/v1/test1/power")
            index = client.get("/v1/")

        assert response.json() == {"message": "OK", "data": ["off", "on", "status"]}
        assert index.json() == {"message": "OK", "data": ["test1"]}

    def test_startup_fails_without_routes(self, testdata) -> None:
        """Test that the server refuses to start with nothing to serve."""
        config = GatewayConfig(config_path=str(testdata / "inventory" / "empty_config.yaml"))
        app = create_app(config=config)

        with pytest.raises(NoRoutesConfigured):
            with TestClient(app):
                pass

    def test_health(self, single_client: TestClient) -> None:
        response = single_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_ready(self, single_client: TestClient, single_device_table) -> None:
        """Test that readiness reports the mounted routes."""
        response = single_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "routes": len(single_device_table)}

    def test_not_ready_without_routes(self, client_for) -> None:
        response = client_for(RouteTable()).get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "no_routes"

    def test_access_log(self, single_client: TestClient, caplog) -> None:
        """Test that each request produces one combined log line."""
        with caplog.at_level(logging.INFO, logger="restate.access"):
            single_client.get("/test1/power?x=1", headers={"User-Agent": "pytest", "Referer": "http://home"})

        lines = [r.getMessage() for r in caplog.records if r.name == "restate.access"]
        assert len(lines) == 1
        assert '"GET /test1/power?x=1 HTTP/1.1" 200 "http://home" "pytest"' in lines[0]
