"""Driver for the 13.3 inch six-colour e-paper panel with two controllers."""

from __future__ import annotations

import logging
from enum import IntEnum

from framecast.devconfig import DevConfig

logger = logging.getLogger(__name__)

EPD_WIDTH = 1200
EPD_HEIGHT = 1600


class Color(IntEnum):
    BLACK = 0x0
    WHITE = 0x1
    YELLOW = 0x2
    RED = 0x3
    BLUE = 0x5
    GREEN = 0x6


class Command(IntEnum):
    PSR = 0x00
    PWR_EPD = 0x01
    POF = 0x02
    PON = 0x04
    BTST_N = 0x05
    BTST_P = 0x06
    DTM = 0x10
    DRF = 0x12
    CDI = 0x50
    TCON = 0x60
    TRES = 0x61
    AN_TM = 0x74
    AGID = 0x86
    BUCK_BOOST_VDDN = 0xB0
    TFT_VCOM_POWER = 0xB1
    EN_BUF = 0xB6
    BOOST_VDDP_EN = 0xB7
    CCSET = 0xE0
    PWS = 0xE3
    CMD66 = 0xF0


PSR_V = bytes([0xDF, 0x69])
PWR_V = bytes([0x0F, 0x00, 0x28, 0x2C, 0x28, 0x38])
CDI_V = bytes([0xF7])
TCON_V = bytes([0x03, 0x03])
TRES_V = bytes([0x04, 0xB0, 0x03, 0x20])
CMD66_V = bytes([0x49, 0x55, 0x13, 0x5D, 0x05, 0x10])
EN_BUF_V = bytes([0x07])
CCSET_V = bytes([0x01])
PWS_V = bytes([0x22])
AN_TM_V = bytes([0xC0, 0x1C, 0x1C, 0xCC, 0xCC, 0xCC, 0x15, 0x15, 0x55])
AGID_V = bytes([0x10])
BTST_P_V = bytes([0xE8, 0x28])
BOOST_VDDP_EN_V = bytes([0x01])
BTST_N_V = bytes([0xE8, 0x28])
BUCK_BOOST_VDDN_V = bytes([0x01])
TFT_VCOM_POWER_V = bytes([0x02])

_BOTH_CONTROLLERS = (
    (Command.AN_TM, AN_TM_V),
    (Command.CMD66, CMD66_V),
    (Command.PSR, PSR_V),
    (Command.CDI, CDI_V),
    (Command.TCON, TCON_V),
    (Command.AGID, AGID_V),
    (Command.PWS, PWS_V),
    (Command.CCSET, CCSET_V),
    (Command.TRES, TRES_V),
)

_MASTER_ONLY = (
    (Command.PWR_EPD, PWR_V),
    (Command.EN_BUF, EN_BUF_V),
    (Command.BTST_P, BTST_P_V),
    (Command.BOOST_VDDP_EN, BOOST_VDDP_EN_V),
    (Command.BTST_N, BTST_N_V),
    (Command.BUCK_BOOST_VDDN, BUCK_BOOST_VDDN_V),
    (Command.TFT_VCOM_POWER, TFT_VCOM_POWER_V),
)


class Epd13in3e:
    """The panel; the master controller drives the left half, the slave the right."""

    def __init__(self, config: DevConfig) -> None:
        self.config = config

    def cs_all(self, high: bool) -> None:
        if high:
            self.config.cs_m.set_high()
            self.config.cs_s.set_high()
        else:
            self.config.cs_m.set_low()
            self.config.cs_s.set_low()

    def reset(self) -> None:
        rst = self.config.rst
        for step in (rst.set_high, rst.set_low, rst.set_high, rst.set_low, rst.set_high):
            step()
            self.config.delay_ms(30)

    def send_command(self, cmd: Command) -> None:
        self.config.dc.set_low()
        self.config.spi_write_byte(int(Command(cmd)))

    def send_data(self, data: int) -> None:
        self.config.dc.set_high()
        self.config.spi_write_byte(data)

    def send_data_bytes(self, data: bytes) -> None:
        self.config.dc.set_high()
        self.config.spi_write_bytes(data)

    def spi_send(self, cmd: Command, data: bytes) -> None:
        """Send a command with its data to both controllers at once."""
        self.cs_all(False)
        self.send_command(cmd)
        self.send_data_bytes(data)
        self.cs_all(True)

    def _master_send(self, cmd: Command, data: bytes) -> None:
        self.config.cs_m.set_low()
        self.send_command(cmd)
        self.send_data_bytes(data)
        self.cs_all(True)

    def turn_on_display(self) -> None:
        """Power on, refresh, power off and put the panel into deep sleep."""
        self.cs_all(True)
        self.cs_all(False)
        self.send_command(Command.PON)
        self.cs_all(True)
        self.wait_until_idle()

        self.config.delay_ms(50)
        self.spi_send(Command.DRF, b"\x00")
        self.wait_until_idle()
        self.wait_until_idle()

        self.spi_send(Command.POF, b"\x00")
        self.wait_until_idle()

        self.spi_send(Command.EN_BUF, b"\xa5")

    def wait_until_idle(self) -> None:
        """Poll the busy line until it reads high."""
        while self.config.busy.is_low():
            self.config.delay_ms(100)
        self.config.delay_ms(100)

    def init(self) -> None:
        self.reset()
        logger.info("EPD reset complete")
        self.wait_until_idle()
        logger.info("EPD idle")

        for cmd, data in _BOTH_CONTROLLERS:
            self.spi_send(cmd, data)
        for cmd, data in _MASTER_ONLY:
            self._master_send(cmd, data)

    def clear(self, color: Color) -> None:
        """Fill the panel with one colour and refresh it."""
        code = int(Color(color))
        width = EPD_WIDTH // 4
        row = bytes([(code << 4) | code]) * width
        slave_row = row[: width // 2]

        self.config.cs_m.set_low()
        self.send_command(Command.DTM)
        for _ in range(EPD_HEIGHT):
            self.send_data_bytes(row)
            self.config.delay_ms(1)
        self.cs_all(True)

        self.config.cs_s.set_low()
        self.send_command(Command.DTM)
        for _ in range(EPD_HEIGHT):
            self.send_data_bytes(slave_row)
            self.config.delay_ms(1)
        self.cs_all(True)

        self.turn_on_display()

    def set_left_panel(self) -> None:
        self.cs_all(True)
        self.config.cs_m.set_low()
        self.send_command(Command.DTM)

    def set_right_panel(self) -> None:
        self.cs_all(True)
        self.config.cs_s.set_low()
        self.send_command(Command.DTM)

    def display(self, image: bytes) -> None:
        """Send packed rows, left half to the master and right half to the slave; rows past the end of the data are skipped."""
        image = bytes(image)
        width = EPD_WIDTH // 2 if EPD_WIDTH % 2 == 0 else EPD_WIDTH // 2 + 1
        half = width // 2 if width % 2 == 0 else width // 2 + 1

        for select, offset in ((self.config.cs_m, 0), (self.config.cs_s, half)):
            select.set_low()
            self.send_command(Command.DTM)
            for row in range(EPD_HEIGHT):
                start = row * width + offset
                end = start + half
                if end <= len(image):
                    self.send_data_bytes(image[start:end])
                self.config.delay_ms(1)
            self.cs_all(True)

        self.turn_on_display()

    def sleep(self) -> None:
        self.cs_all(False)
        self.send_command(Command.POF)
        self.send_data(0x00)
        self.cs_all(True)
        self.config.delay_ms(2000)

    def module_exit(self) -> None:
        self.config.module_exit()