"""Shared fixtures: a scripted in-memory transport and engine factories."""

import threading
import time

import pytest

from rtumonlib import mycrc
from rtumonlib.myexceptions import TransportError
from rtumonlib.mymodbus import ModbusProtocol


def make_response(slave, value, function=0x03, byte_count=2):
    """Build a CRC-valid single register read response."""
    body = bytes([slave, function, byte_count, (value >> 8) & 0xFF, value & 0xFF])
    return body + mycrc.compute(body)


class FakeTransport:
    """Transport double with the SerialDevice interface.

    Responses are produced by `responder(request) -> list of chunks`; each
    chunk is handed out by one Read call after the matching Write, and not
    before `response_delay` seconds have passed since that Write. Without a
    responder nothing is ever received.
    """

    def __init__(self, responder=None):
        self.IsOpen = False
        self.DeviceName = "fake"
        self.responder = responder
        self.writes = []
        self.write_times = []
        self.first_read_times = []
        self.write_error = None
        self.read_error = None
        self.end_of_stream = False
        self.response_delay = 0.0
        self.opens = 0
        self._pending = []
        self._read_since_write = True
        self._lock = threading.Lock()

    def Open(self):
        self.IsOpen = True
        self.opens += 1

    def Close(self):
        self.IsOpen = False

    def Flush(self):
        with self._lock:
            self._pending = []

    def BitsPerCharacter(self):
        return 10

    def Write(self, data):
        if not self.IsOpen:
            raise TransportError("fake port is not open")
        if self.write_error is not None:
            raise TransportError(self.write_error)
        with self._lock:
            self.writes.append(bytes(data))
            self.write_times.append(time.monotonic())
            self._read_since_write = False
            if self.responder is not None:
                self._pending = list(self.responder(bytes(data)) or [])
            else:
                self._pending = []
        return len(data)

    def Read(self):
        if not self.IsOpen:
            return None
        with self._lock:
            if not self._read_since_write:
                self._read_since_write = True
                self.first_read_times.append(time.monotonic())
            if self.read_error is not None:
                raise TransportError(self.read_error)
            if self.end_of_stream:
                return None
            if self._pending and time.monotonic() >= self.write_times[-1] + self.response_delay:
                return bytes(self._pending.pop(0))
        return b""


def echo_responder(slave=1, offset=100):
    """Responder answering every request with value register + offset."""

    def respond(request):
        register = (request[2] << 8) | request[3]
        return [make_response(slave, (register + offset) & 0xFFFF)]

    return respond


@pytest.fixture
def transport():
    fake = FakeTransport()
    fake.Open()
    return fake


@pytest.fixture
def make_modbus(tmp_path):
    """Factory for an engine on a fake transport, logging under tmp_path."""

    def factory(fake, address=1, response_timeout_ms=200, rate=9600, bits_per_character=10):
        return ModbusProtocol(
            slave=fake,
            address=address,
            rate=rate,
            response_timeout_ms=response_timeout_ms,
            bits_per_character=bits_per_character,
            loglocation=str(tmp_path),
        )

    return factory
