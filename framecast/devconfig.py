"""GPIO lines and the bit-banged SPI bus that drive the e-paper panel."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Iterable

HISTORY_LIMIT = 1 << 16


class OutputPin:
    """An output line holding its level and a bounded record of recent levels."""

    def __init__(self, high: bool = False) -> None:
        self.level = bool(high)
        self.history: deque[bool] = deque(maxlen=HISTORY_LIMIT)

    def _set(self, level: bool) -> None:
        self.level = level
        self.history.append(level)

    def set_high(self) -> None:
        self._set(True)

    def set_low(self) -> None:
        self._set(False)

    def is_high(self) -> bool:
        return self.level


class InputPin:
    """An input line that reads the given levels in turn, then stays high."""

    def __init__(self, levels: Iterable[bool] = ()) -> None:
        self._levels = iter(levels)

    def is_low(self) -> bool:
        return not next(self._levels, True)


class DevConfig:
    """The pin set of the display board, with a software SPI writer."""

    def __init__(
        self,
        sck: OutputPin,
        mosi: OutputPin,
        cs_m: OutputPin,
        cs_s: OutputPin,
        rst: OutputPin,
        dc: OutputPin,
        busy: InputPin,
        pwr: OutputPin,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.sck = sck
        self.mosi = mosi
        self.cs_m = cs_m
        self.cs_s = cs_s
        self.rst = rst
        self.dc = dc
        self.busy = busy
        self.pwr = pwr
        self._sleep = sleep

        cs_m.set_high()
        cs_s.set_high()
        pwr.set_high()

    def delay_ms(self, ms: int) -> None:
        """Block for the given number of milliseconds."""
        if ms < 0:
            raise ValueError(f"delay must not be negative, got {ms}")
        self._sleep(ms / 1000)

    def spi_write_byte(self, data: int) -> None:
        """Clock one byte out on MOSI, most significant bit first."""
        if not 0 <= data <= 0xFF:
            raise ValueError(f"byte value out of range: {data}")
        for bit in range(7, -1, -1):
            if (data >> bit) & 1:
                self.mosi.set_high()
            else:
                self.mosi.set_low()
            self.sck.set_high()
            self.sck.set_low()

    def spi_write_bytes(self, data: bytes) -> None:
        for byte in bytes(data):
            self.spi_write_byte(byte)

    def module_exit(self) -> None:
        """Cut power to the panel and hold it in reset."""
        self.pwr.set_low()
        self.rst.set_low()