import pytest

from framecast.devconfig import DevConfig, InputPin, OutputPin


def _bits_to_bytes(pin):
    bits = list(pin.history)
    return bytes(
        int("".join("1" if bit else "0" for bit in bits[start:start + 8]), 2)
        for start in range(0, len(bits), 8)
    )


@pytest.fixture
def board():
    sleeps = []
    config = DevConfig(
        OutputPin(),
        OutputPin(),
        OutputPin(high=True),
        OutputPin(high=True),
        OutputPin(),
        OutputPin(),
        InputPin(),
        OutputPin(high=True),
        sleep=sleeps.append,
    )
    return config, sleeps


def test_output_pin_levels():
    pin = OutputPin(high=True)
    assert pin.is_high() is True
    pin.set_low()
    assert pin.is_high() is False
    pin.set_high()
    assert list(pin.history) == [False, True]


def test_input_pin_reads_levels_then_settles_high():
    pin = InputPin([False, True, False])
    assert [pin.is_low() for _ in range(5)] == [True, False, True, False, False]


def test_init_drives_chip_selects_and_power_high(board):
    config, _ = board
    assert list(config.cs_m.history) == [True]
    assert list(config.cs_s.history) == [True]
    assert list(config.pwr.history) == [True]
    assert list(config.rst.history) == []
    assert list(config.sck.history) == []


def test_spi_write_byte_msb_first(board):
    config, _ = board
    config.spi_write_byte(0xA5)
    assert list(config.mosi.history) == [True, False, True, False, False, True, False, True]
    assert list(config.sck.history) == [True, False] * 8
    assert config.sck.is_high() is False


def test_spi_write_bytes_round_trip(board):
    config, _ = board
    payload = bytes([0x00, 0xFF, 0x12, 0x80, 0x7F])
    config.spi_write_bytes(payload)
    assert _bits_to_bytes(config.mosi) == payload
    assert len(config.sck.history) == len(payload) * 16


@pytest.mark.parametrize("value", [-1, 256])
def test_spi_write_byte_rejects_out_of_range(board, value):
    config, _ = board
    with pytest.raises(ValueError):
        config.spi_write_byte(value)


def test_delay_ms_sleeps_in_seconds(board):
    config, sleeps = board
    config.delay_ms(250)
    config.delay_ms(0)
    assert sleeps == [0.25, 0.0]


def test_delay_ms_rejects_negative(board):
    config, _ = board
    with pytest.raises(ValueError):
        config.delay_ms(-5)


def test_module_exit_powers_down(board):
    config, _ = board
    config.module_exit()
    assert config.pwr.is_high() is False
    assert config.rst.is_high() is False