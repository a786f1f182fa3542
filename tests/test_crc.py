"""Tests for the Modbus CRC-16."""

from rtumonlib import mycrc


def test_crc_empty():
    """CRC of empty data is the initial value."""
    assert mycrc.compute_value(b"") == 0xFFFF


def test_crc_check_value():
    """Standard CRC-16/MODBUS check value for '123456789'."""
    assert mycrc.compute_value(b"123456789") == 0x4B37


def test_crc_known_request():
    """Read 10 registers from slave 1 at address 0 ends in C5 CD."""
    assert mycrc.compute(bytes([0x01, 0x03, 0x00, 0x00, 0x00, 0x0A])) == b"\xC5\xCD"


def test_crc_low_byte_first():
    data = bytes([0x1A, 0x03, 0x00, 0x0A, 0x00, 0x01])
    crc = mycrc.compute_value(data)
    assert mycrc.compute(data) == bytes([crc & 0xFF, crc >> 8])


def test_verify_accepts_own_crc():
    data = bytes([0x1A, 0x03, 0x00, 0x0A, 0x00, 0x01])
    assert mycrc.verify(data + mycrc.compute(data))


def test_verify_detects_single_bit_flip():
    """Flipping any one bit of a valid frame breaks the CRC."""
    data = bytes([0x1A, 0x03, 0x02, 0x12, 0x34])
    frame = bytearray(data + mycrc.compute(data))
    for index in range(len(frame)):
        for bit in range(8):
            corrupt = bytearray(frame)
            corrupt[index] ^= 1 << bit
            assert not mycrc.verify(corrupt), "flip at byte %d bit %d" % (index, bit)


def test_verify_too_short():
    assert not mycrc.verify(b"")
    assert not mycrc.verify(b"\xFF\xFF")
