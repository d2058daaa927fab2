"""UDP service that applies one image operation per datagram."""

from __future__ import annotations

import asyncio
import logging
import os
import struct
from pathlib import Path
from typing import Any, Optional, Union

from cbsim import imaging
from cbsim.operations import apply_operation, operation_from_code

logger = logging.getLogger(__name__)

UDP_PORT = 8081
MAX_SIZE = 65507  # largest UDP payload
DEFAULT_ANGLE = 45.0
OUTPUT_NAME = "udp_processed.jpg"
RESPONSE = b"Image processed successfully"

_HEADER = struct.Struct(">I")

PathLike = Union[str, "os.PathLike[str]"]


def parse_packet(data: bytes) -> tuple[int, bytes]:
    """Split a datagram into its big-endian 32-bit operation code and image bytes."""
    if len(data) < _HEADER.size:
        raise ValueError("packet shorter than the operation header")
    (code,) = _HEADER.unpack_from(data)
    return code, bytes(data[_HEADER.size:])


def handle_packet(data: bytes, output_dir: PathLike = "output") -> bytes:
    """Process one datagram, save the result as JPEG and return the reply bytes.

    Unknown operation codes leave the image unchanged. Raises ValueError for a
    short packet or undecodable image and OSError if the result cannot be saved.
    """
    code, image_data = parse_packet(data)
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    src = imaging.decode_image(image_data)
    processed = apply_operation(src, operation_from_code(code), DEFAULT_ANGLE)
    (directory / OUTPUT_NAME).write_bytes(imaging.encode_to_jpeg(processed))
    return RESPONSE


class ImageProcessingProtocol(asyncio.DatagramProtocol):
    """Handles each datagram in a worker thread and acknowledges success."""

    def __init__(self, output_dir: PathLike = "output") -> None:
        self.output_dir = Path(output_dir)
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: Any) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr: Any) -> None:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, handle_packet, bytes(data), self.output_dir)
        future.add_done_callback(lambda done: self._reply(done, addr))

    def _reply(self, future: "asyncio.Future[bytes]", addr: Any) -> None:
        if future.cancelled():
            return
        try:
            response = future.result()
        except (ValueError, OSError) as exc:
            logger.error("Error processing packet from %s: %s", addr, exc)
            return
        if self.transport is not None and not self.transport.is_closing():
            self.transport.sendto(response, addr)


async def serve(
    host: str = "0.0.0.0",
    port: int = UDP_PORT,
    output_dir: PathLike = "output",
) -> None:
    """Listen for image datagrams on ``host:port`` until cancelled."""
    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(
        lambda: ImageProcessingProtocol(output_dir),
        local_addr=(host, port),
    )
    logger.info("UDP server listening on %s:%d", host, port)
    try:
        await loop.create_future()
    finally:
        transport.close()