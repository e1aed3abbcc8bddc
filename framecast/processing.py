"""Dithering, colour indexing and panel splitting for the six-colour e-paper frame."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from PIL import Image

Rgb = tuple[int, int, int]

logger = logging.getLogger(__name__)

PADDING = 50
UNKNOWN_COLOR = 7
WHITE: Rgb = (255, 255, 255)

_COLOR_INDEX: dict[bytes, int] = {
    b"\x00\x00\x00": 0,
    b"\xff\xff\xff": 1,
    b"\xff\xff\x00": 2,
    b"\xff\x00\x00": 3,
    b"\x00\x00\xff": 5,
    b"\x00\xff\x00": 6,
}


def find_closest_color(r: float, g: float, b: float, palette: Sequence[Rgb]) -> Rgb:
    """Return the palette entry nearest to (r, g, b); the first one wins ties."""
    if not palette:
        raise ValueError("palette must not be empty")
    closest = min(
        palette,
        key=lambda color: (r - color[0]) ** 2 + (g - color[1]) ** 2 + (b - color[2]) ** 2,
    )
    return tuple(closest)  # type: ignore[return-value]


def _spread(target: list[float], error: Sequence[float], weight: float) -> None:
    for channel, value in enumerate(error):
        target[channel] += value * weight


def dither_with_palette(image: Image.Image, palette: Sequence[Rgb]) -> None:
    """Floyd-Steinberg dither an RGB image in place onto the given palette."""
    if image.mode != "RGB":
        raise ValueError(f"expected an RGB image, got mode {image.mode!r}")
    if not palette:
        raise ValueError("palette must not be empty")

    width, height = image.size
    raw = image.tobytes()
    stride = width * 3
    result = bytearray()
    errors = [[0.0, 0.0, 0.0] for _ in range(width)]

    for y in range(height):
        below = [[0.0, 0.0, 0.0] for _ in range(width)]
        has_below = y + 1 < height
        row = raw[y * stride:(y + 1) * stride]
        pixels = zip(row[0::3], row[1::3], row[2::3])
        for x, (pixel, error) in enumerate(zip(pixels, errors)):
            old = [channel + err for channel, err in zip(pixel, error)]
            closest = find_closest_color(old[0], old[1], old[2], palette)
            result.extend(closest)
            diff = [value - target for value, target in zip(old, closest)]

            if x + 1 < width:
                _spread(errors[x + 1], diff, 7.0 / 16.0)
            if has_below:
                if x > 0:
                    _spread(below[x - 1], diff, 3.0 / 16.0)
                _spread(below[x], diff, 5.0 / 16.0)
                if x + 1 < width:
                    _spread(below[x + 1], diff, 1.0 / 16.0)
        errors = below

    image.frombytes(bytes(result))


def color_index(data: bytes, index: int) -> int:
    """Map the RGB triplet starting at ``index`` to the display's colour code."""
    key = bytes(data[index:index + 3])
    if index < 0 or len(key) < 3:
        raise IndexError(f"no complete pixel at index {index}")
    value = _COLOR_INDEX.get(key)
    if value is None:
        logger.error("No matching color for pixel at index %d", index)
        return UNKNOWN_COLOR
    return value


def prepare_image_for_sending(data: bytes, width: int, height: int) -> bytes:
    """Convert packed RGB triplets into one colour code per pixel."""
    view = bytes(data)
    needed = width * height * 3
    if len(view) < needed:
        raise ValueError(f"pixel data holds {len(view)} bytes, {needed} needed")
    return bytes(color_index(view, offset) for offset in range(0, needed, 3))


def split_into_left_right(data: bytes, width: int, height: int) -> tuple[bytes, bytes]:
    """Split row-major pixel codes into the left and right half of every row."""
    if len(data) < width * height:
        raise ValueError(f"data holds {len(data)} values, {width * height} needed")
    half = width // 2
    rows = [bytes(data[y * width:(y + 1) * width]) for y in range(height)]
    left = b"".join(row[:half] for row in rows)
    right = b"".join(row[half:2 * half] for row in rows)
    return left, right


def add_white_padding(image: Image.Image) -> None:
    """Paint a white border of PADDING pixels around the image, in place."""
    width, height = image.size
    if width < PADDING or height < PADDING:
        raise ValueError(f"image must be at least {PADDING}x{PADDING} pixels")
    for box in (
        (0, 0, width, PADDING),
        (0, height - PADDING, width, height),
        (0, 0, PADDING, height),
        (width - PADDING, 0, width, height),
    ):
        image.paste(WHITE, box)