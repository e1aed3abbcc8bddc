"""HTTP upload service and raw TCP feed for the picture frame."""

from __future__ import annotations

import argparse
import asyncio
import functools
import io
import logging
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from aiohttp import web
from PIL import Image

from framecast.processing import (
    dither_with_palette,
    prepare_image_for_sending,
    split_into_left_right,
)

logger = logging.getLogger(__name__)

WIDTH = 1200
HEIGHT = 1600
CHUNK_SIZE = 1024
LINGER_SECONDS = 1.0
MAX_UPLOAD_BYTES = 64 * 1024 * 1024

PALETTE = (
    (0, 0, 0),
    (255, 255, 255),
    (255, 255, 0),
    (255, 0, 0),
    (0, 0, 255),
    (0, 255, 0),
)


def pack_nibbles(values: bytes) -> bytes:
    """Pack pixel codes two per byte, the first in the low nibble."""
    values = bytes(values)
    packed = bytearray(
        (low | (high << 4)) & 0xFF for low, high in zip(values[0::2], values[1::2])
    )
    if len(values) % 2:
        packed.append(values[-1])
    return bytes(packed)


@dataclass
class CurrentImage:
    """Packed left and right panel data of the frame being shown."""

    left: bytes = b""
    right: bytes = b""


def _pack_image(image: Image.Image) -> tuple[bytes, bytes]:
    raw = image.convert("RGB").tobytes()
    codes = prepare_image_for_sending(raw, WIDTH, HEIGHT)
    left, right = split_into_left_right(codes, WIDTH, HEIGHT)
    return pack_nibbles(left), pack_nibbles(right)


class AppData:
    """Shared state between the HTTP service and the frame feed."""

    def __init__(self) -> None:
        self.current_image = CurrentImage()
        self._lock = asyncio.Lock()

    async def insert_image(self, image: Image.Image) -> None:
        """Convert a dithered frame-sized image and make it current."""
        left, right = await asyncio.to_thread(_pack_image, image)
        async with self._lock:
            self.current_image = CurrentImage(left=left, right=right)

    async def get_image(self) -> tuple[bytes, bytes]:
        """Return the packed left and right panel data."""
        async with self._lock:
            return self.current_image.left, self.current_image.right


APP_DATA_KEY = web.AppKey("app_data", AppData)
OUTPUT_KEY = web.AppKey("output_path", Path)


async def send_chunks(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter, data: bytes
) -> int:
    """Send data in chunks, waiting for an acknowledgement after each; return bytes sent."""
    sent = 0
    for start in range(0, len(data), CHUNK_SIZE):
        chunk = data[start:start + CHUNK_SIZE]
        try:
            writer.write(chunk)
            await writer.drain()
        except (ConnectionError, OSError) as exc:
            logger.error("Failed to send data: %s", exc)
            return sent
        sent += len(chunk)
        await reader.read(CHUNK_SIZE)
    return sent


async def handle_frame_client(
    app_data: AppData, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> int:
    """Stream the current frame to one connected display; return bytes sent."""
    peer = writer.get_extra_info("peername")
    logger.info("New connection from %s", peer)
    try:
        left, right = await app_data.get_image()
        await reader.read(CHUNK_SIZE)

        white = b"\xff" * len(right)
        sent = 0
        logger.info("Sending left data [%d bytes]", len(left))
        sent += await send_chunks(reader, writer, left[:len(left) // 2])
        sent += await send_chunks(reader, writer, white[:len(left) // 2])
        logger.info("Sending right data [%d bytes]", len(right))
        sent += await send_chunks(reader, writer, right[:len(right) // 2])
        sent += await send_chunks(reader, writer, white[:len(right) // 2])

        await asyncio.sleep(LINGER_SECONDS)
        logger.info("Sent %d bytes to %s", sent, peer)
        return sent
    finally:
        writer.close()
        with suppress(ConnectionError, OSError):
            await writer.wait_closed()


async def start_frame_server(app_data: AppData, host: str, port: int) -> asyncio.Server:
    """Start the TCP feed that displays connect to."""
    logger.info("Starting frame server on %s:%d", host, port)
    return await asyncio.start_server(
        functools.partial(handle_frame_client, app_data), host, port
    )


def _load_saved_frame(path: Path) -> bytes:
    with Image.open(path) as image:
        raw = image.convert("RGBA").tobytes()
    logger.info("Image data length: %d", len(raw))
    codes = prepare_image_for_sending(raw, WIDTH, HEIGHT)
    left, right = split_into_left_right(codes, WIDTH, HEIGHT)
    output = left + right
    logger.info("Output data length: %d", len(output))
    return output


def _render_frame(source: Image.Image) -> Image.Image:
    frame = source.resize((WIDTH, HEIGHT), Image.Resampling.BILINEAR)
    dither_with_palette(frame, PALETTE)
    return frame


async def _next_picture(request: web.Request) -> web.Response:
    body = await asyncio.to_thread(_load_saved_frame, request.app[OUTPUT_KEY])
    return web.Response(body=body, content_type="application/octet-stream")


async def _upload_picture(request: web.Request) -> web.Response:
    payload = await request.read()
    try:
        with Image.open(io.BytesIO(payload)) as image:
            source = image.convert("RGB")
    except OSError as exc:
        raise web.HTTPBadRequest(text=f"invalid image: {exc}") from exc

    frame = await asyncio.to_thread(_render_frame, source)
    await request.app[APP_DATA_KEY].insert_image(frame.copy())
    await asyncio.to_thread(frame.save, request.app[OUTPUT_KEY])
    return web.Response(text="Image processed")


def create_app(app_data: AppData, output_path) -> web.Application:
    """Build the HTTP application serving uploads and the saved frame."""
    app = web.Application(client_max_size=MAX_UPLOAD_BYTES)
    app[APP_DATA_KEY] = app_data
    app[OUTPUT_KEY] = Path(output_path)
    app.router.add_get("/next-picture", _next_picture)
    app.router.add_post("/picture", _upload_picture)
    return app


async def _serve(args: argparse.Namespace) -> None:
    app_data = AppData()
    frame_server = await start_frame_server(app_data, args.host, args.frame_port)
    runner = web.AppRunner(create_app(app_data, args.output))
    await runner.setup()
    try:
        await web.TCPSite(runner, args.host, args.http_port).start()
        async with frame_server:
            await frame_server.serve_forever()
    finally:
        await runner.cleanup()


def main(argv=None) -> int:
    """Run the HTTP service and the frame feed until interrupted."""
    parser = argparse.ArgumentParser(description="Serve pictures to the e-paper frame.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--http-port", type=int, default=3000)
    parser.add_argument("--frame-port", type=int, default=4000)
    parser.add_argument("--output", default="./output.jpg")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    with suppress(KeyboardInterrupt):
        asyncio.run(_serve(args))
    return 0