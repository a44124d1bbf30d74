"""Wire frame encoding and decoding for the tvcom serial protocol.

Request frames are 9 bytes: ``"{command} 00 {data}\\r"`` (e.g. ``b"ka 00 01\\r"``).
Response frames are 10 bytes: ``"{c} {set} {status}{data}x"`` where ``c`` is
the second character of the command code, ``status`` is ``OK`` or ``NG``
(e.g. ``b"a 00 OK01x"``). Offsets are fixed by the protocol; anything that
does not match them byte for byte is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass

from restate.core.errors import MalformedFrame, UnexpectedResponse, UnknownDataCode
from restate.devices.tvcom.opcodes import OpcodeDefinition

SET_ID = "00"
REQUEST_FRAME_LENGTH = 9
RESPONSE_FRAME_LENGTH = 10
STATUS_OK = b"OK"

COMMAND_OFFSET = slice(0, 1)
SET_ID_OFFSET = slice(2, 4)
STATUS_OFFSET = slice(5, 7)
DATA_OFFSET = slice(7, 9)


@dataclass(frozen=True)
class ResponseFrame:
    """A well-formed response frame split into its fields."""

    command: str
    set_id: str
    status: str
    data_code: str
    raw: bytes


def encode_frame(command_code: str, data_code: str) -> bytes:
    """Build a request frame.

    Args:
        command_code: Two character command code (e.g. 'ka')
        data_code: Two character data code (e.g. '01')

    Returns:
        The 9 byte frame

    Raises:
        MalformedFrame: If the frame is not exactly 9 bytes
    """
    frame = f"{command_code} {SET_ID} {data_code}\r".encode("utf-8")
    if len(frame) != REQUEST_FRAME_LENGTH:
        raise MalformedFrame(frame, REQUEST_FRAME_LENGTH)
    return frame


def decode_frame(raw: bytes) -> ResponseFrame:
    """Split a response frame into its fields.

    Args:
        raw: Bytes received from the device

    Returns:
        ResponseFrame for a 10 byte frame with an OK status

    Raises:
        UnexpectedResponse: For any other length or status
    """
    if len(raw) != RESPONSE_FRAME_LENGTH:
        raise UnexpectedResponse(raw, f"expected {RESPONSE_FRAME_LENGTH} bytes, got {len(raw)}")

    if raw[STATUS_OFFSET] != STATUS_OK:
        raise UnexpectedResponse(raw, f"status {raw[STATUS_OFFSET]!r} is not {STATUS_OK!r}")

    try:
        return ResponseFrame(
            command=raw[COMMAND_OFFSET].decode("ascii"),
            set_id=raw[SET_ID_OFFSET].decode("ascii"),
            status=raw[STATUS_OFFSET].decode("ascii"),
            data_code=raw[DATA_OFFSET].decode("ascii"),
            raw=raw,
        )
    except UnicodeDecodeError as e:
        raise UnexpectedResponse(raw, "frame is not ASCII") from e


def decode_response(raw: bytes, opcode: OpcodeDefinition) -> tuple[ResponseFrame, str]:
    """Decode a response frame and resolve its data code for an opcode.

    Returns:
        Tuple of the decoded frame and the data name it carries

    Raises:
        UnexpectedResponse: If the frame is not well-formed
        UnknownDataCode: If the opcode does not define the returned data code
    """
    frame = decode_frame(raw)
    name = opcode.data_name(frame.data_code)
    if name is None:
        raise UnknownDataCode(frame.data_code, opcode.name)
    return frame, name
