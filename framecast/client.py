"""Frame client: pull a frame from the server and stream it into the panel."""

from __future__ import annotations

import argparse
import logging
import socket
import time
from dataclasses import dataclass

from framecast.devconfig import DevConfig, InputPin, OutputPin
from framecast.epd import EPD_HEIGHT, EPD_WIDTH, Epd13in3e

logger = logging.getLogger(__name__)

ACK = b"OK"
CHUNK_SIZE = 1024
PANEL_BYTES = EPD_WIDTH * EPD_HEIGHT // 4
FRAME_BYTES = 2 * PANEL_BYTES
DEFAULT_SERVER = "192.168.8.8"
DEFAULT_PORT = 4000
SETTLE_SECONDS = 5.0


@dataclass(frozen=True)
class ClientSettings:
    """Where to fetch the frame from and how many bytes make up a frame."""

    host: str = DEFAULT_SERVER
    port: int = DEFAULT_PORT
    total: int = FRAME_BYTES
    timeout: float | None = None

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.total <= 0:
            raise ValueError(f"frame size must be positive, got {self.total}")


def _send_ack(sock) -> bool:
    try:
        sock.sendall(ACK)
    except OSError as exc:
        logger.error("Failed to send acknowledgement: %s", exc)
        return False
    return True


def receive_image(epd, sock, total: int = FRAME_BYTES) -> int:
    """Read frame data from sock into the panel, acknowledging every chunk.

    The first PANEL_BYTES go to the left controller, the rest to the right one.
    Reading stops once exactly ``total`` bytes have arrived, the peer closes,
    or the connection fails. Returns the number of bytes received.
    """
    bytes_read = 0
    on_left = True
    epd.cs_all(True)
    epd.set_left_panel()
    logger.info("Limit set to %d bytes", PANEL_BYTES)

    _send_ack(sock)

    while True:
        try:
            chunk = sock.recv(CHUNK_SIZE)
        except OSError as exc:
            logger.error("Failed to read data: %s", exc)
            break
        if not chunk:
            logger.info("Server closed the connection")
            break
        if not _send_ack(sock):
            break

        remaining = PANEL_BYTES - bytes_read
        if on_left and len(chunk) > remaining:
            logger.info("Left panel image received, switching to right panel")
            epd.send_data_bytes(chunk[:remaining])
            epd.set_right_panel()
            epd.send_data_bytes(chunk[remaining:])
            on_left = False
        elif on_left and len(chunk) == remaining:
            logger.info("Exact fit for left panel received")
            epd.send_data_bytes(chunk)
            epd.set_right_panel()
            on_left = False
        else:
            epd.send_data_bytes(chunk)
        bytes_read += len(chunk)
        logger.debug("Total image data received: %d bytes", bytes_read)

        if bytes_read == total:
            break

    return bytes_read


def fetch_frame(epd, settings: ClientSettings) -> int:
    """Initialise the panel, download one frame into it and refresh; return bytes received."""
    logger.info("Initializing e-paper display")
    epd.init()

    logger.info("Opening connection to server %s:%d", settings.host, settings.port)
    with socket.create_connection(
        (settings.host, settings.port), timeout=settings.timeout
    ) as sock:
        received = receive_image(epd, sock, settings.total)
    logger.info("Total image data received: %d bytes", received)

    epd.cs_all(True)
    epd.turn_on_display()
    return received


def _simulated_board() -> DevConfig:
    return DevConfig(
        sck=OutputPin(),
        mosi=OutputPin(),
        cs_m=OutputPin(True),
        cs_s=OutputPin(True),
        rst=OutputPin(),
        dc=OutputPin(),
        busy=InputPin(),
        pwr=OutputPin(True),
    )


def main(argv=None) -> int:
    """Fetch one frame from the server into a panel driven through a simulated pin set."""
    parser = argparse.ArgumentParser(description="Fetch a frame for the e-paper panel.")
    parser.add_argument("--host", default=DEFAULT_SERVER)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--total", type=int, default=FRAME_BYTES)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--settle", type=float, default=SETTLE_SECONDS)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        settings = ClientSettings(
            host=args.host, port=args.port, total=args.total, timeout=args.timeout
        )
    except ValueError as exc:
        parser.error(str(exc))

    epd = Epd13in3e(_simulated_board())
    try:
        fetch_frame(epd, settings)
    except OSError as exc:
        logger.error("Could not fetch frame from %s:%d: %s", settings.host, settings.port, exc)
        return 1

    logger.info("Waiting %.1f seconds for display to settle", args.settle)
    time.sleep(max(args.settle, 0.0))
    return 0