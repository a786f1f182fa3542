#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: myexceptions.py
# PURPOSE: exception classes for the modbus master
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Exceptions raised by the Modbus RTU master.

Protocol, timeout and transport errors end a single transaction: the
transaction engine catches them, records them in the transaction log and
moves on. Configuration errors are raised to the caller before any
transaction is created.
"""


class ModbusError(Exception):
    """Base class of every error raised by this package."""


class ProtocolError(ModbusError):
    """A received frame failed its CRC or structural checks."""

    def __init__(self, message: str, frame: bytes = b""):
        super(ProtocolError, self).__init__(message)
        self.frame = bytes(frame)


class ModbusTimeoutError(ModbusError, TimeoutError):
    """No valid response frame arrived within the response timeout."""


class TransportError(ModbusError):
    """The serial link failed to write, failed to read or was closed."""


class ConfigurationError(ModbusError, ValueError):
    """Invalid slave address, register entry or session setup."""
