"""Gateway error taxonomy.

Every error raised by the gateway derives from GatewayError, which carries
the HTTP status code and the message that may be shown to a client. The
four families map onto how an error is handled:

- ConfigError: raised while compiling routes at startup
- RequestValidationError: client mistakes, always 4xx
- TransportError: device connection failures, always 500
- ProtocolError: frames that do not match the wire format, always 500
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base exception for gateway errors."""

    status_code: int = 500
    public_message: str = "Internal Server Error"

    def __init__(self, message: str, device: str | None = None) -> None:
        """Initialize gateway error.

        Args:
            message: Error description (for logs)
            device: Device name the error relates to (optional)
        """
        self.device = device
        super().__init__(f"[{device}] {message}" if device else message)


# Configuration errors


class ConfigError(GatewayError):
    """Raised when a route set cannot be built from configuration."""

    pass


class OpcodeDocumentNotFound(ConfigError):
    """Raised when the opcode definition document does not exist."""

    pass


class OpcodeDocumentParseError(ConfigError):
    """Raised when the opcode definition document is malformed."""

    pass


class NoCommandsDefined(ConfigError):
    """Raised when the opcode definition document defines no commands."""

    pass


class DeviceRejected(ConfigError):
    """Raised when a single device config record cannot be bound."""

    pass


class NoDevicesConfigured(ConfigError):
    """Raised when no valid device of a type is configured."""

    pass


class DuplicateDeviceName(ConfigError):
    """Raised when two config records of one type share a name."""

    def __init__(self, name: str, device_type: str) -> None:
        """Initialize duplicate device name error.

        Args:
            name: The device name that appears more than once
            device_type: Adapter type the records belong to
        """
        self.name = name
        self.device_type = device_type
        super().__init__(f"Device name '{name}' is configured more than once for type '{device_type}'")


class DuplicateRouteError(ConfigError):
    """Raised when two routes resolve to the same path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Route path '{path}' is defined more than once")


class InventoryError(ConfigError):
    """Raised when the device inventory file cannot be read or parsed."""

    pass


class NoRoutesConfigured(ConfigError):
    """Raised when no adapter contributed any route."""

    pass


# Request validation errors


class RequestValidationError(GatewayError):
    """Raised when a client request cannot be processed as sent."""

    status_code = 400
    public_message = "Bad Request"


class MethodNotAllowedError(RequestValidationError):
    """Raised when a route does not accept the request method."""

    status_code = 405
    public_message = "Method Not Allowed"


class MalformedBodyError(RequestValidationError):
    """Raised when a JSON request body cannot be decoded."""

    public_message = "Malformed Or Empty JSON Body"


class MalformedQueryError(RequestValidationError):
    """Raised when a query string cannot be decoded."""

    public_message = "Malformed or empty query string"


class InvalidParameterError(RequestValidationError):
    """Raised when a request parameter has no matching value."""

    def __init__(self, parameter: str, value: str | None = None, device: str | None = None) -> None:
        """Initialize invalid parameter error.

        Args:
            parameter: Name of the offending parameter
            value: Value the client sent (optional)
            device: Device name (optional)
        """
        self.parameter = parameter
        self.value = value
        self.public_message = f"Invalid Parameter: {parameter}"
        super().__init__(f"Invalid value {value!r} for parameter '{parameter}'", device)


# Transport errors


class TransportError(GatewayError):
    """Raised when a device exchange fails at the connection level."""

    def __init__(self, message: str, endpoint: str | None = None, device: str | None = None) -> None:
        self.endpoint = endpoint
        if endpoint:
            message = f"{message} ({endpoint})"
        super().__init__(message, device)


class ConnectFailed(TransportError):
    """Raised when the device endpoint cannot be reached."""

    pass


class WriteFailed(TransportError):
    """Raised when the request frame cannot be sent."""

    pass


class TransportTimeout(TransportError):
    """Raised when no reply arrives before the read deadline."""

    pass


class ReadFailed(TransportError):
    """Raised when the connection fails while waiting for the reply."""

    pass


# Protocol errors


class ProtocolError(GatewayError):
    """Raised when a frame does not match the device wire format."""

    pass


class MalformedFrame(ProtocolError):
    """Raised when an encoded request frame has the wrong size."""

    def __init__(self, frame: bytes, expected: int) -> None:
        self.frame = frame
        self.expected = expected
        super().__init__(f"Constructed frame {frame!r} is {len(frame)} bytes, expected {expected}")


class UnexpectedResponse(ProtocolError):
    """Raised when a response frame has the wrong shape or status.

    The raw bytes are kept for diagnostics.
    """

    def __init__(self, raw: bytes, reason: str, device: str | None = None) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"Unexpected response {raw!r}: {reason}", device)


class UnknownDataCode(ProtocolError):
    """Raised when a response carries a data code the opcode does not map."""

    def __init__(self, data_code: str, command: str, device: str | None = None) -> None:
        self.data_code = data_code
        self.command = command
        super().__init__(f"Data code '{data_code}' is not defined for command '{command}'", device)
