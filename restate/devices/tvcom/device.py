"""tvcom device instances.

A TvcomDevice binds one inventory record (name, host, timeout) to the
shared opcode table. Instances are created once at startup and never
change afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from websockets.exceptions import InvalidURI
from websockets.uri import parse_uri

from restate.core.errors import DeviceRejected, InvalidParameterError, ProtocolError, TransportError
from restate.devices.tvcom.codec import decode_response, encode_frame
from restate.devices.tvcom.opcodes import OpcodeDefinition, command_names
from restate.devices.tvcom.transport import DeviceTransport, WebSocketTransport

logger = logging.getLogger(__name__)

STATUS_DATA_NAME = "status"
DEFAULT_TIMEOUT_MS = 1000


def websocket_endpoint(host: str) -> str:
    """Bridge URL for a host: ``ws://{host}`` unless host already has a scheme."""
    if "://" in host:
        return host
    return f"ws://{host}"


class TvcomDeviceConfig(BaseModel):
    """Device-specific fields of a tvcom inventory record.

    Examples:
        >>> TvcomDeviceConfig.model_validate(
        ...     {"name": "livingroom", "host": "192.168.1.161", "timeoutMs": 500}
        ... )
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(..., description="Device name, used as a path segment")
    host: str = Field(..., description="Bridge address (host[:port]) or full ws:// URL")
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        alias="timeoutMs",
        ge=0,
        description="Read deadline for a device reply in milliseconds",
    )

    @field_validator("name", "host")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("host")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Reject hosts that do not form a websocket URI (e.g. port out of range)."""
        endpoint = websocket_endpoint(v)
        try:
            parse_uri(endpoint)
        except InvalidURI as e:
            raise ValueError(f"not a websocket address: {endpoint}") from e
        except ValueError as e:
            raise ValueError(f"not a websocket address: {endpoint}: {e}") from e
        return v


@dataclass(frozen=True)
class TvcomDevice:
    """One configured tvcom device.

    Attributes:
        name: Device name
        host: Bridge address
        timeout_ms: Read deadline in milliseconds
        opcodes: Shared opcode table
        transport: Transport used for every exchange
    """

    name: str
    host: str
    timeout_ms: int
    opcodes: tuple[OpcodeDefinition, ...]
    transport: DeviceTransport = field(default_factory=WebSocketTransport, compare=False, repr=False)
    command_names: tuple[str, ...] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "command_names", command_names(self.opcodes))

    @property
    def endpoint(self) -> str:
        return websocket_endpoint(self.host)

    @property
    def timeout(self) -> float:
        """Read deadline in seconds."""
        return self.timeout_ms / 1000

    async def execute(self, opcode: OpcodeDefinition, data_name: str) -> str | None:
        """Send one command to the device.

        Args:
            opcode: Command to run
            data_name: Value name from the opcode's vocabulary (e.g. 'on')

        Returns:
            The data name reported by the device for 'status' requests,
            None for actuation commands

        Raises:
            InvalidParameterError: If data_name is not in the vocabulary
            TransportError: If the exchange fails
            ProtocolError: If the reply is not a valid frame
        """
        data_code = opcode.data_code(data_name)
        if data_code is None:
            raise InvalidParameterError("code", data_name, device=self.name)

        try:
            frame = encode_frame(opcode.code, data_code)
            raw = await self.transport.exchange(self.endpoint, frame, self.timeout)
            _, reported = decode_response(raw, opcode)
        except (TransportError, ProtocolError) as e:
            e.device = self.name
            raise

        logger.debug(f"Device '{self.name}' {opcode.name}={data_name} -> {reported}")

        if data_name == STATUS_DATA_NAME:
            return reported
        return None


def bind(
    record: Mapping[str, Any] | None,
    opcodes: tuple[OpcodeDefinition, ...],
    transport: DeviceTransport | None = None,
) -> TvcomDevice:
    """Create a device from the ``config`` mapping of an inventory record.

    Args:
        record: Device-specific configuration (name, host, timeoutMs)
        opcodes: Shared opcode table
        transport: Transport override (defaults to WebSocketTransport)

    Returns:
        Bound TvcomDevice

    Raises:
        DeviceRejected: If the record is missing fields or fails validation
    """
    if not isinstance(record, Mapping):
        raise DeviceRejected(f"Device config must be a mapping, got {type(record).__name__}")

    try:
        config = TvcomDeviceConfig.model_validate(dict(record))
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise DeviceRejected(
            f"Unable to load device due to missing or invalid parameters: {fields}",
            device=str(record.get("name") or "") or None,
        ) from e

    return TvcomDevice(
        name=config.name,
        host=config.host,
        timeout_ms=config.timeout_ms,
        opcodes=opcodes,
        transport=transport or WebSocketTransport(),
    )
