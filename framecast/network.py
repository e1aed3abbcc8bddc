"""Wi-Fi station setup and address helpers for the frame client."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.01

_OCTET = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class ClientConfig:
    """Station credentials for joining a network."""

    ssid: str
    password: str = field(default="", repr=False)


class _WifiController(Protocol):
    def set_config(self, config: ClientConfig) -> None: ...

    def start(self) -> None: ...

    def connect(self) -> None: ...

    def is_connected(self) -> bool: ...


def _connected(controller: _WifiController) -> bool:
    try:
        return bool(controller.is_connected())
    except Exception:
        return False


def connect_wifi(controller: _WifiController, ssid: str, password: str) -> None:
    """Configure, start and connect the controller, then wait until it is connected."""
    logger.info("Setting up Wi-Fi client configuration for SSID: %s", ssid)
    config = ClientConfig(ssid=ssid, password=password)

    logger.info("Applying Wi-Fi configuration")
    controller.set_config(config)
    logger.info("Starting Wi-Fi controller")
    controller.start()
    logger.info("Initiating connection to Wi-Fi network")
    controller.connect()

    logger.info("Waiting for Wi-Fi connection to establish...")
    while not _connected(controller):
        time.sleep(POLL_INTERVAL)
    logger.info("Successfully connected to Wi-Fi network: %s", ssid)


def parse_ip(ip: str) -> tuple[int, int, int, int]:
    """Parse a dotted IPv4 address; missing trailing octets are zero."""
    parts = ip.split(".")
    if len(parts) > 4:
        raise ValueError(f"too many octets in {ip!r}")
    octets = []
    for part in parts:
        if not _OCTET.fullmatch(part):
            raise ValueError(f"invalid octet {part!r} in {ip!r}")
        value = int(part)
        if value > 255:
            raise ValueError(f"octet {value} out of range in {ip!r}")
        octets.append(value)
    octets.extend([0] * (4 - len(octets)))
    logger.info("Parsed IP: %d.%d.%d.%d", *octets)
    return (octets[0], octets[1], octets[2], octets[3])


def format_mac(mac: bytes) -> str:
    """Format a six-byte hardware address as lower-case colon-separated hex."""
    raw = bytes(mac)
    if len(raw) != 6:
        raise ValueError(f"hardware address must be 6 bytes, got {len(raw)}")
    return ":".join(f"{byte:02x}" for byte in raw)