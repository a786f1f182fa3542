#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: modbusframe.py
# PURPOSE: Modbus RTU frame encoding and recovery
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for building and recovering Modbus RTU frames.

Requests are "read holding register, quantity 1" frames. Responses arrive
from the serial port as an unframed byte stream, so the receive side scans
an accumulating buffer for the first window that is long enough and carries
a valid CRC. The scan is greedy: the earliest start offset wins. At that
offset the lengths given by the header are tried before any other, so a
request echo whose CRC high byte is zero is not cut short, and a response
followed by a zero byte is not stretched unless its value low byte and CRC
low byte read as a request quantity of 1. Noise that happens to form a valid
window is accepted as a frame.
"""

from typing import Any, Optional, Tuple

from rtumonlib import mycrc
from rtumonlib.myexceptions import ConfigurationError, ProtocolError

# Packet offsets
MBUS_OFF_ADDRESS = 0x00
MBUS_OFF_COMMAND = 0x01
MBUS_OFF_RESPONSE_LEN = 0x02
MBUS_OFF_REGISTER_HI = 0x02
MBUS_OFF_REGISTER_LOW = 0x03
MBUS_OFF_READ_REG_RES_DATA = 0x03
MBUS_OFF_QUANTITY = 0x04

# Field sizes
MBUS_ADDRESS_SIZE = 0x01
MBUS_COMMAND_SIZE = 0x01
MBUS_RES_LENGTH_SIZE = 0x01
MBUS_VALUE_SIZE = 0x02
MBUS_CRC_SIZE = mycrc.CRC_SIZE

# commands
MBUS_CMD_READ_HOLDING_REGS = 0x03
MBUS_ERROR_BIT = 0x80

# Packet lengths
MIN_PACKET_RESPONSE_LENGTH = (
    MBUS_ADDRESS_SIZE + MBUS_COMMAND_SIZE + MBUS_RES_LENGTH_SIZE + MBUS_VALUE_SIZE + MBUS_CRC_SIZE
)  # 7 for a single register read
REQUEST_PACKET_LENGTH = 0x08
MAX_MODBUS_PACKET_SIZE = 0x100

# Variable limits
MIN_SLAVE_ADDRESS = 1
MAX_SLAVE_ADDRESS = 247
MAX_REGISTER = 0xFFFF
REGISTER_QUANTITY = 1


def encode_read_request(slave: int, register: int) -> bytes:
    """
    Builds a read holding register request for a single register.

    The slave address is validated by the caller. The register is truncated
    to 16 bits.

    Args:
        slave (int): Modbus slave address.
        register (int): Register address.

    Returns:
        bytes: [slave, 0x03, reg_hi, reg_lo, 0x00, 0x01, crc_lo, crc_hi]
    """
    register = int(register) & MAX_REGISTER
    Packet = bytes(
        [
            slave & 0xFF,
            MBUS_CMD_READ_HOLDING_REGS,
            (register >> 8) & 0xFF,
            register & 0xFF,
            (REGISTER_QUANTITY >> 8) & 0xFF,
            REGISTER_QUANTITY & 0xFF,
        ]
    )
    return Packet + mycrc.compute(Packet)


def header_lengths(buffer: bytes, start: int):
    """
    Frame lengths implied by a read holding register header at start.

    A request echo carries quantity 0x0001 at offsets 4 and 5, and its length
    is tried first when that is present. Otherwise the response length
    (5 + byte count) comes first.
    """
    if len(buffer) - start < MBUS_OFF_RESPONSE_LEN + 1:
        return []
    if buffer[start + MBUS_OFF_COMMAND] != MBUS_CMD_READ_HOLDING_REGS:
        return []
    Response = (
        MBUS_ADDRESS_SIZE
        + MBUS_COMMAND_SIZE
        + MBUS_RES_LENGTH_SIZE
        + buffer[start + MBUS_OFF_RESPONSE_LEN]
        + MBUS_CRC_SIZE
    )
    Quantity = bytes([(REGISTER_QUANTITY >> 8) & 0xFF, REGISTER_QUANTITY & 0xFF])
    if bytes(buffer[start + MBUS_OFF_QUANTITY:start + MBUS_OFF_QUANTITY + 2]) == Quantity:
        return [REQUEST_PACKET_LENGTH, Response]
    return [Response, REQUEST_PACKET_LENGTH]


def find_frame(
    buffer: bytes, min_length: int = MIN_PACKET_RESPONSE_LENGTH
) -> Optional[Tuple[int, int]]:
    """
    Locates the first CRC-valid window in a buffer.

    The earliest start offset wins. At each offset the lengths implied by a
    read holding register header are tried first: the response length
    (5 + byte count) and the request echo length (8), ordered by
    `header_lengths`. Then every length from the shortest up is tried.

    Args:
        buffer (bytes): Accumulated receive bytes.
        min_length (int): Smallest window tested.

    Returns:
        Optional[Tuple[int, int]]: (start, end) slice bounds, or None.
    """
    buffer = bytes(buffer)
    length = len(buffer)
    if length < min_length:
        return None

    for start in range(0, length - min_length + 1):
        last = min(length, start + MAX_MODBUS_PACKET_SIZE)
        for FrameLength in header_lengths(buffer, start):
            end = start + FrameLength
            if FrameLength >= min_length and end <= last and mycrc.verify(buffer[start:end]):
                return start, end
        for end in range(start + min_length, last + 1):
            if mycrc.verify(buffer[start:end]):
                return start, end
    return None


def extract_frame(
    buffer: bytes, min_length: int = MIN_PACKET_RESPONSE_LENGTH
) -> Optional[Tuple[bytes, bytes]]:
    """
    Pulls the first valid frame out of a receive buffer.

    Bytes before the frame are dropped. When None is returned the caller
    appends more incoming bytes and tries again.

    Args:
        buffer (bytes): Accumulated receive bytes.
        min_length (int): Minimum frame length.

    Returns:
        Optional[Tuple[bytes, bytes]]: (frame, remaining buffer) or None.
    """
    bounds = find_frame(buffer, min_length)
    if bounds is None:
        return None
    start, end = bounds
    buffer = bytes(buffer)
    return buffer[start:end], buffer[end:]


def validate_frame(frame: bytes, min_length: int = MIN_PACKET_RESPONSE_LENGTH) -> bool:
    """Returns True if the frame meets the length floor and its CRC matches."""
    if len(frame) < min_length:
        return False
    return mycrc.verify(frame)


def decode_read_response(frame: bytes, signed: bool = False) -> int:
    """
    Decodes the register value of a single register read response.

    Args:
        frame (bytes): Validated response frame.
        signed (bool): Interpret the value as a 16 bit two's complement number.

    Raises:
        ProtocolError: the byte count field is not 2.

    Returns:
        int: The register value.
    """
    if len(frame) < MIN_PACKET_RESPONSE_LENGTH:
        raise ProtocolError("Short frame", frame)
    if frame[MBUS_OFF_RESPONSE_LEN] != MBUS_VALUE_SIZE * REGISTER_QUANTITY:
        raise ProtocolError("Bad byte count", frame)

    value = (frame[MBUS_OFF_READ_REG_RES_DATA] << 8) | frame[MBUS_OFF_READ_REG_RES_DATA + 1]
    if signed and value > 0x7FFF:
        value -= 0x10000
    return value


def validate_slave_address(value: Any) -> int:
    """
    Validates a slave address.

    Raises:
        ConfigurationError: the value is not an integer in 1..247.

    Returns:
        int: The address.
    """
    if isinstance(value, bool):
        raise ConfigurationError("Invalid slave address (1-247): %s" % str(value))
    if isinstance(value, int):
        address = value
    else:
        try:
            address = int(str(value).strip(), 10)
        except ValueError:
            raise ConfigurationError("Invalid slave address (1-247): %s" % str(value))
    if address < MIN_SLAVE_ADDRESS or address > MAX_SLAVE_ADDRESS:
        raise ConfigurationError("Invalid slave address (1-247): %s" % str(value))
    return address


def parse_register_address(value: Any) -> int:
    """
    Converts a configured register entry to an address.

    Decimal text and 0x-prefixed hex text are accepted. Values outside
    16 bits are left for the encoder to truncate.

    Raises:
        ConfigurationError: the entry is blank or not a number.

    Returns:
        int: The register address.
    """
    if isinstance(value, bool):
        raise ConfigurationError("Invalid register: %s" % str(value))
    if isinstance(value, int):
        if value < 0:
            raise ConfigurationError("Invalid register: %d" % value)
        return value
    text = str(value).strip() if value is not None else ""
    try:
        if text.lower().startswith("0x"):
            register = int(text, 16)
        else:
            register = int(text, 10)
    except ValueError:
        raise ConfigurationError("Invalid register: '%s'" % text)
    if register < 0:
        raise ConfigurationError("Invalid register: '%s'" % text)
    return register


def format_hex(data: Optional[bytes]) -> str:
    """Formats bytes as upper case hex pairs separated by spaces."""
    if not data:
        return ""
    return " ".join("%02X" % b for b in bytearray(data))
