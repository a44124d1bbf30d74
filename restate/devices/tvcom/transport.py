"""Websocket transport to the serial bridge in front of a tvcom device.

Each exchange opens its own connection, writes one frame, waits for one
reply and closes the connection again. A failed exchange aborts the
connection instead, so a silent bridge costs at most one read deadline.
Nothing is pooled or retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from restate.core.errors import ConnectFailed, ReadFailed, TransportTimeout, WriteFailed

logger = logging.getLogger(__name__)


@runtime_checkable
class DeviceTransport(Protocol):
    """Protocol for request/response transports.

    Any object with a matching ``exchange`` coroutine can be bound to a
    device, which keeps handlers testable without a network.
    """

    async def exchange(self, endpoint: str, frame: bytes, timeout: float) -> bytes:
        """Send one frame and return the single reply.

        Args:
            endpoint: Device address (e.g. 'ws://192.168.1.161')
            frame: Encoded request frame
            timeout: Read deadline in seconds, armed once the frame is sent

        Returns:
            Raw reply bytes

        Raises:
            TransportError: If the exchange fails for any reason
        """
        ...


class WebSocketTransport:
    """Transport sending frames as websocket text messages.

    Example:
        >>> transport = WebSocketTransport()
        >>> reply = await transport.exchange("ws://192.168.1.161", b"ka 00 ff\\r", 1.0)
    """

    async def exchange(self, endpoint: str, frame: bytes, timeout: float) -> bytes:
        try:
            websocket = await connect(
                endpoint,
                open_timeout=timeout,
                close_timeout=timeout,
                ping_interval=None,
            )
        except (OSError, ValueError, WebSocketException) as e:
            # TimeoutError from open_timeout is an OSError; urllib reports a bad port as ValueError
            raise ConnectFailed(f"Could not connect: {e}", endpoint=endpoint) from e

        try:
            try:
                await websocket.send(frame.decode("utf-8"))
            except ConnectionClosed as e:
                raise WriteFailed(f"Connection closed while writing: {e}", endpoint=endpoint) from e

            try:
                reply = await asyncio.wait_for(websocket.recv(), timeout)
            except TimeoutError as e:
                raise TransportTimeout(f"No reply within {timeout:.3f}s", endpoint=endpoint) from e
            except ConnectionClosed as e:
                raise ReadFailed(f"Connection closed while reading: {e}", endpoint=endpoint) from e
        except BaseException:
            # failed exchanges drop the connection without a closing handshake
            websocket.transport.abort()
            raise

        await websocket.close()

        if isinstance(reply, str):
            reply = reply.encode("utf-8")

        logger.debug(f"Exchanged {frame!r} -> {reply!r} with {endpoint}")
        return reply
