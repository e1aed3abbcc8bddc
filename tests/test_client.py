import socket
import threading

import pytest

from framecast.client import (
    ACK,
    FRAME_BYTES,
    PANEL_BYTES,
    ClientSettings,
    fetch_frame,
    main,
    receive_image,
)


class FakeEpd:
    def __init__(self):
        self.panels = {"left": bytearray(), "right": bytearray()}
        self.current = None
        self.events = []

    def cs_all(self, high):
        self.events.append(("cs_all", high))

    def set_left_panel(self):
        self.current = "left"
        self.events.append(("left",))

    def set_right_panel(self):
        self.current = "right"
        self.events.append(("right",))

    def send_data_bytes(self, data):
        self.panels[self.current].extend(data)

    def init(self):
        self.events.append(("init",))

    def turn_on_display(self):
        self.events.append(("turn_on",))


class FakeSocket:
    def __init__(self, data, chunk=1024, fail_after=None):
        self._data = bytes(data)
        self._pos = 0
        self.chunk = chunk
        self.fail_after = fail_after
        self.sent = bytearray()
        self.reads = 0

    def recv(self, size):
        if self.fail_after is not None and self.reads >= self.fail_after:
            raise ConnectionResetError("reset")
        piece = self._data[self._pos:self._pos + min(size, self.chunk)]
        self._pos += len(piece)
        if piece:
            self.reads += 1
        return piece

    def sendall(self, data):
        self.sent.extend(data)


def test_frame_straddling_panel_boundary_is_split():
    data = b"\x11" * PANEL_BYTES + b"\x22" * PANEL_BYTES
    epd = FakeEpd()
    sock = FakeSocket(data, chunk=1024)

    received = receive_image(epd, sock, FRAME_BYTES)

    assert received == 960000
    assert bytes(epd.panels["left"]) == b"\x11" * PANEL_BYTES
    assert bytes(epd.panels["right"]) == b"\x22" * PANEL_BYTES
    assert epd.events.count(("right",)) == 1


def test_exact_fit_switches_once_and_stops_at_total():
    data = b"\x33" * PANEL_BYTES + b"\x44" * PANEL_BYTES + b"\x55" * 500
    epd = FakeEpd()
    sock = FakeSocket(data, chunk=1000)

    received = receive_image(epd, sock, FRAME_BYTES)

    assert received == FRAME_BYTES
    assert bytes(epd.panels["left"]) == b"\x33" * PANEL_BYTES
    assert bytes(epd.panels["right"]) == b"\x44" * PANEL_BYTES
    assert epd.events.count(("right",)) == 1
    assert sock._pos == FRAME_BYTES


def test_every_chunk_is_acknowledged():
    data = b"\x01" * 5000
    epd = FakeEpd()
    sock = FakeSocket(data, chunk=1024)

    receive_image(epd, sock, len(data))

    assert bytes(sock.sent) == ACK * (1 + sock.reads)
    assert sock.sent[:2] == b"OK"


def test_small_total_stays_on_left_panel():
    epd = FakeEpd()
    sock = FakeSocket(b"\x07" * 4096, chunk=1024)

    received = receive_image(epd, sock, 2048)

    assert received == 2048
    assert bytes(epd.panels["left"]) == b"\x07" * 2048
    assert epd.panels["right"] == bytearray()
    assert ("right",) not in epd.events


def test_closed_connection_returns_partial_count():
    epd = FakeEpd()
    sock = FakeSocket(b"\x09" * 3000, chunk=1024)

    received = receive_image(epd, sock, FRAME_BYTES)

    assert received == 3000
    assert bytes(epd.panels["left"]) == b"\x09" * 3000


def test_empty_connection_only_sends_initial_ack():
    epd = FakeEpd()
    sock = FakeSocket(b"")

    received = receive_image(epd, sock, FRAME_BYTES)

    assert received == 0
    assert bytes(sock.sent) == ACK
    assert epd.events[:2] == [("cs_all", True), ("left",)]


def test_read_error_stops_reception():
    epd = FakeEpd()
    sock = FakeSocket(b"\x02" * 10000, chunk=1024, fail_after=2)

    received = receive_image(epd, sock, FRAME_BYTES)

    assert received == 2048
    assert len(epd.panels["left"]) == received


@pytest.mark.parametrize("port", [0, 70000])
def test_settings_reject_bad_port(port):
    with pytest.raises(ValueError):
        ClientSettings(host="127.0.0.1", port=port)


def test_settings_reject_non_positive_total():
    with pytest.raises(ValueError):
        ClientSettings(host="127.0.0.1", total=0)


def test_settings_defaults_match_frame_size():
    settings = ClientSettings()
    assert settings.port == 4000
    assert settings.total == FRAME_BYTES


def _serve_once(payload):
    listener = socket.create_server(("127.0.0.1", 0))
    port = listener.getsockname()[1]
    received = bytearray()

    def run():
        try:
            conn, _ = listener.accept()
            with conn:
                received.extend(conn.recv(2))
                conn.sendall(payload)
                while True:
                    more = conn.recv(4096)
                    if not more:
                        break
                    received.extend(more)
        finally:
            listener.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return port, thread, received


def test_fetch_frame_over_tcp():
    payload = bytes(range(256)) * 12
    port, thread, server_received = _serve_once(payload)
    epd = FakeEpd()

    count = fetch_frame(epd, ClientSettings(host="127.0.0.1", port=port, total=len(payload), timeout=5))
    thread.join(timeout=5)

    assert count == len(payload)
    assert bytes(epd.panels["left"]) == payload
    assert epd.events[0] == ("init",)
    assert epd.events[-1] == ("turn_on",)
    assert bytes(server_received).startswith(ACK)


def test_main_fetches_frame():
    payload = b"\x11" * 2048
    port, thread, server_received = _serve_once(payload)

    code = main(["--host", "127.0.0.1", "--port", str(port), "--total", "2048",
                 "--timeout", "5", "--settle", "0"])
    thread.join(timeout=5)

    assert code == 0
    assert bytes(server_received).startswith(ACK)


def test_main_reports_unreachable_server():
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    code = main(["--host", "127.0.0.1", "--port", str(port), "--timeout", "2", "--settle", "0"])

    assert code == 1