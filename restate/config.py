"""Gateway configuration.

Process settings come from environment variables; the device inventory is
a YAML file whose path is given by RESTATECONFIG:

    apiVersion: v1
    devices:
      - type: tvcom
        config:
          name: livingroom
          host: 192.168.1.161
          timeoutMs: 1000
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from restate.core.errors import InventoryError

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GatewayConfig(BaseModel):
    """Process level settings.

    Attributes:
        config_path: Inventory YAML file
        log_level: Logging level name
        host: Interface the HTTP server binds to
        port: Port the HTTP server listens on
    """

    config_path: str | None = Field(default=None, description="Inventory YAML file (RESTATECONFIG)")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls) -> GatewayConfig:
        """Create configuration from environment variables.

        Reads:
        - RESTATECONFIG: Inventory file path
        - LOG_LEVEL: Logging level (default: 'INFO')
        - RESTATE_HOST: Bind address (default: '0.0.0.0')
        - RESTATE_PORT: Port (default: 8080)
        """
        return cls(
            config_path=os.getenv("RESTATECONFIG") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            host=os.getenv("RESTATE_HOST", "0.0.0.0"),
            port=int(os.getenv("RESTATE_PORT", "8080")),
        )


class DeviceRecord(BaseModel):
    """One inventory entry; ``config`` is validated by the adapter."""

    type: str = Field(default="", description="Adapter type (e.g. 'tvcom')")
    config: Any = Field(default=None, description="Adapter specific fields")


class InventoryConfig(BaseModel):
    """Parsed inventory file."""

    api_version: str = Field(default="v1", alias="apiVersion", min_length=1)
    devices: list[DeviceRecord] = Field(default_factory=list)

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        v = v.strip("/")
        if not v or "/" in v:
            raise ValueError("apiVersion must be a single path segment")
        return v

    def records(self) -> list[dict[str, Any]]:
        """Device records as plain mappings for the route compilers."""
        return [device.model_dump() for device in self.devices]


def load_inventory(path: Path | str | None) -> InventoryConfig:
    """Load and validate the inventory file.

    Args:
        path: Inventory YAML file

    Returns:
        Parsed InventoryConfig

    Raises:
        InventoryError: If the file is missing, unreadable or invalid
    """
    if not path:
        raise InventoryError("No inventory configured (RESTATECONFIG is not set)")

    path = Path(path)
    logger.info(f"Loading inventory from: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise InventoryError(f"Could not read config path (RESTATECONFIG={path}): {e}") from e
    except yaml.YAMLError as e:
        raise InventoryError(f"Could not parse config path (RESTATECONFIG={path}): {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InventoryError(f"Config at {path} must be a mapping, got {type(data).__name__}")

    try:
        inventory = InventoryConfig.model_validate(data)
    except ValidationError as e:
        raise InventoryError(f"Invalid config at {path}: {e}") from e

    logger.info(f"Loaded inventory: apiVersion={inventory.api_version}, {len(inventory.devices)} devices")
    return inventory
