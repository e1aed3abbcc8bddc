# framecast

framecast prepares pictures for a 13.3 inch, six-colour e-paper panel
(1200 × 1600 pixels) and streams them to the frame over the network.

It has two sides:

- **The server** (`framecast.server`) takes an uploaded picture, resizes it
  to 1200 × 1600, dithers it with Floyd–Steinberg error diffusion to the
  panel's palette (black, white, yellow, red, blue, green), turns every
  pixel into a colour code, splits the picture into left and right halves
  and packs two codes into each byte.
- **The client** (`framecast.client`) connects to the server, acknowledges
  every chunk with `OK`, and feeds the bytes to the panel driver: first to
  the left controller, then to the right one, and finally refreshes the
  panel.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Running the server

```
framecast-server [--host 0.0.0.0] [--http-port 3000] [--frame-port 4000] [--output ./output.jpg]
```

The server listens on two ports:

- **HTTP** (`--http-port`, default 3000):
  - `POST /picture` takes the raw bytes of an image in any format Pillow
    can read, resizes and dithers it, makes it the current frame and saves
    the dithered picture to `--output`. It answers `Image processed`, or
    `400 Bad Request` if the body is not a readable image.
  - `GET /next-picture` reads the saved file back, converts it to RGBA
    bytes, maps three-byte groups of that data to colour codes and returns
    the codes, left half first and then right half. Codes are exact only
    for pixels that match a palette colour exactly; with the default JPEG
    output, lossy compression makes many pixels come out as 7.
- **Frame stream** (`--frame-port`, default 4000): once a display has sent
  its first message, the server sends the first half of the packed left
  data, the same number of `0xFF` bytes, the first half of the packed
  right data and again as many `0xFF` bytes. It sends 1024-byte chunks and
  waits for a reply after each, then closes the connection after one
  second. Until a picture has been uploaded there is nothing to send.

Upload a picture with any HTTP client, for example:

```
curl --data-binary @holiday.jpg http://localhost:3000/picture
```

## Running the client

```
framecast-client [--host 192.168.8.8] [--port 4000] [--total 960000] [--timeout SECONDS] [--settle 5]
```

The client initialises the panel, connects to the frame stream, sends `OK`
once before reading and after every chunk, and writes the data into the
panel: the first 480 000 bytes (1200 × 1600 / 4) go to the left
controller, the rest to the right one. It stops after exactly `--total`
bytes, when the server closes, or on a connection error, then refreshes
the panel and waits `--settle` seconds. It exits with status 1 if the
server cannot be reached.

## Using the library

The image processing is available on its own in `framecast.processing`:

```python
from PIL import Image

from framecast.processing import (
    dither_with_palette,
    prepare_image_for_sending,
    split_into_left_right,
)

palette = [
    (0, 0, 0),
    (255, 255, 255),
    (255, 255, 0),
    (255, 0, 0),
    (0, 0, 255),
    (0, 255, 0),
]

image = Image.open("holiday.jpg").convert("RGB").resize((1200, 1600))
dither_with_palette(image, palette)

codes = prepare_image_for_sending(image.tobytes(), 1200, 1600)
left, right = split_into_left_right(codes, 1200, 1600)
```

- Colour codes follow the panel's encoding: black 0, white 1, yellow 2,
  red 3, blue 5, green 6. A pixel that matches no palette colour gets 7.
  `color_index` looks up a single pixel.
- `find_closest_color` returns the nearest palette entry, the first one on
  a tie.
- `add_white_padding` paints a 50-pixel white border around an image in
  place.
- `framecast.server.pack_nibbles` packs two codes into one byte, the first
  in the low four bits; an odd last code is kept as a byte of its own.
  `AppData.insert_image` does the whole conversion for a dithered
  1200 × 1600 picture and keeps the packed halves ready for
  `AppData.get_image`. `create_app` and `start_frame_server` build the
  HTTP application and the frame stream for embedding in your own event
  loop.

The panel driver, `framecast.epd.Epd13in3e`, works on a
`framecast.devconfig.DevConfig` built from `OutputPin` and `InputPin`
objects, so the command sequences it produces can be inspected pin by pin.
`DevConfig` takes an optional `sleep` function for its delays.

`framecast.network` holds `parse_ip` (dotted IPv4 to a tuple of four
octets), `format_mac` (six bytes to `aa:bb:cc:dd:ee:ff` form) and
`connect_wifi`, which configures, starts and connects any controller
object with `set_config`, `start`, `connect` and `is_connected` methods,
then waits until it reports connected.

## What it does not do

- There is no driver for real GPIO lines. `OutputPin` and `InputPin` only
  record and replay levels, and `framecast-client` drives the panel
  through such simulated pins; it exercises the protocol but lights no
  display.
- There is no Wi-Fi controller. `connect_wifi` needs one to be supplied,
  and `framecast-client` uses the host's existing network connection.