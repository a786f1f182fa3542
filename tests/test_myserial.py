"""Tests for the pyserial transport that do not need a real port."""

import os

import pytest
import serial

from rtumonlib.myconfig import MyConfig
from rtumonlib.myexceptions import TransportError
from rtumonlib.myserial import SerialDevice

MISSING_PORT = "/dev/rtumon-no-such-port"


@pytest.fixture
def device(tmp_path):
    return SerialDevice(MISSING_PORT, loglocation=str(tmp_path))


def test_default_framing(device):
    assert device.SerialDevice.baudrate == 9600
    assert device.SerialDevice.bytesize == serial.EIGHTBITS
    assert device.SerialDevice.parity == serial.PARITY_NONE
    assert device.SerialDevice.stopbits == serial.STOPBITS_ONE
    assert device.BitsPerCharacter() == 10


def test_even_parity_adds_a_bit(tmp_path):
    device = SerialDevice(MISSING_PORT, Parity="even", loglocation=str(tmp_path))
    assert device.SerialDevice.parity == serial.PARITY_EVEN
    assert device.BitsPerCharacter() == 11


def test_open_missing_port(device):
    with pytest.raises(TransportError):
        device.Open()
    assert not device.IsOpen
    assert device.Opens == 0


def test_closed_port(device):
    assert device.Read() is None
    with pytest.raises(TransportError):
        device.Write(b"\x01")
    device.Flush()
    device.Close()


def test_port_precedence(tmp_path):
    filename = os.path.join(str(tmp_path), "rtumon.conf")
    with open(filename, "w") as f:
        f.write("[rtumon]\nport = /dev/ttyS7\nserial_rate = 4800\nstop_bits = 2\n")
    config = MyConfig(filename, section="rtumon")

    from_config = SerialDevice(config=config, loglocation=str(tmp_path))
    assert from_config.DeviceName == "/dev/ttyS7"
    assert from_config.SerialDevice.baudrate == 4800
    assert from_config.BitsPerCharacter() == 11

    explicit = SerialDevice("/dev/ttyS3", config=config, loglocation=str(tmp_path))
    assert explicit.DeviceName == "/dev/ttyS3"
