#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: mycrc.py
# PURPOSE: Modbus CRC-16 support
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Modbus RTU CRC-16.

Polynomial 0xA001 (reflected 0x8005), initial value 0xFFFF, no final XOR.
The checksum is appended to a frame low byte first. The calculation comes
from the crcmod "modbus" predefined function.
"""

import crcmod.predefined

CRC_SIZE = 2

# CRCMOD library, used for CRC calculations
_ModbusCrc = crcmod.predefined.mkCrcFun("modbus")


def compute_value(data: bytes) -> int:
    """Returns the CRC of `data` as a 16 bit integer."""
    return _ModbusCrc(bytes(data))


def compute(data: bytes) -> bytes:
    """
    Computes the two checksum bytes to append to `data`.

    Args:
        data (bytes): Frame contents without checksum.

    Returns:
        bytes: [crc_lo, crc_hi]
    """
    crc = compute_value(data)
    return bytes([crc & 0xFF, (crc >> 8) & 0xFF])


def verify(frame: bytes) -> bool:
    """
    Checks the trailing checksum of a frame.

    Args:
        frame (bytes): Frame including the two checksum bytes.

    Returns:
        bool: True if the last two bytes match the CRC of the rest.
    """
    if len(frame) <= CRC_SIZE:
        return False
    frame = bytes(frame)
    CRCValue = (frame[-1] << 8) | frame[-2]
    return compute_value(frame[:-CRC_SIZE]) == CRCValue
