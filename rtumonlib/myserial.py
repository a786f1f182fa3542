#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: myserial.py
# PURPOSE: Base serial comms for modbus
#
#  AUTHOR: Jason G Yates
#    DATE: 19-Apr-2018
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for serial communication management.

This module defines the `SerialDevice` class, the byte pipe under the Modbus
master. Reads never block: `Read` returns whatever the driver has buffered,
possibly nothing, and returns None once the port has been closed. Writes wait
until the bytes have left the UART so the caller can time the RS-485 bus
turnaround from the end of transmission.
"""

import datetime
import os
import threading
from typing import Optional, Union, Any

import serial

from rtumonlib.myexceptions import TransportError
from rtumonlib.mylog import SetupLogger
from rtumonlib.mysupport import MySupport
from rtumonlib.program_defaults import ProgramDefaults


# ------------ SerialDevice class -----------------------------------------------
class SerialDevice(MySupport):
    """
    A class for managing serial device communication.

    Attributes:
        DeviceName (str): Name of the serial device (e.g., '/dev/ttyUSB0').
        BaudRate (int): Communication speed.
        DataBits (int): Data bits per character.
        StopBits (int): Stop bits per character.
        Parity (Optional[Union[int, str]]): None/0 = none, 1 = odd, 2 = even.
        DiscardedBytes (int): Bytes thrown away by Flush.
        Opens (int): Number of times the port was opened.
        SerialStartTime (datetime.datetime): Time when serial stats were last reset.
        SerialDevice (serial.Serial): The underlying pySerial object.
        IsOpen (bool): Flag indicating if the port is open.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        rate: int = ProgramDefaults.BaudRate,
        log: Any = None,
        Parity: Optional[Union[int, str]] = None,
        databits: int = ProgramDefaults.DataBits,
        stopbits: int = ProgramDefaults.StopBits,
        config: Any = None,
        loglocation: str = ProgramDefaults.LogPath,
    ):
        """
        Initializes the SerialDevice. The port is not opened until `Open`.

        Args:
            name (str, optional): Serial port name. Wins over the config file,
                which wins over the default.
            rate (int, optional): Baud rate. Defaults to 9600.
            log (Any, optional): Logger instance. Defaults to None.
            Parity (Union[int, str], optional): Parity setting (None, 0=None, 1=Odd, 2=Even).
                Can also be string "None", "Odd", "Even". Defaults to None.
            databits (int, optional): 7 or 8 data bits. Defaults to 8.
            stopbits (int, optional): 1 or 2 stop bits. Defaults to 1.
            config (Any, optional): Configuration object. Defaults to None.
            loglocation (str, optional): Path for logs.
        """
        super(SerialDevice, self).__init__()

        self.config = config
        self.DeviceName = name if name is not None else ProgramDefaults.SerialPort
        self.BaudRate = rate
        self.DataBits = databits
        self.StopBits = stopbits
        self.Parity = Parity
        self.DiscardedBytes = 0
        self.Opens = 0
        self.SerialStartTime = datetime.datetime.now()  # used for com metrics
        self.loglocation = loglocation
        self.IsOpen = False
        self.PortLock = threading.Lock()

        # This supports getting this info from rtumon.conf
        if self.config is not None:
            self.loglocation = self.config.ReadValue("loglocation", default=self.loglocation)
            if name is None:
                self.DeviceName = self.config.ReadValue("port", default=self.DeviceName)
            self.BaudRate = self.config.ReadValue("serial_rate", return_type=int, default=self.BaudRate)
            self.DataBits = self.config.ReadValue("data_bits", return_type=int, default=self.DataBits)
            self.StopBits = self.config.ReadValue("stop_bits", return_type=int, default=self.StopBits)
            self.Parity = self.config.ReadValue("serial_parity", default=self.Parity)

        # log errors in this module to a file
        if log is None:
            self.log = SetupLogger(
                "myserial", os.path.join(self.loglocation, "myserial.log")
            )
        else:
            self.log = log

        self.SerialDevice = serial.Serial()
        self.SerialDevice.port = self.DeviceName
        self.SerialDevice.baudrate = self.BaudRate
        # number of bits per bytes
        if self.DataBits == 7:
            self.SerialDevice.bytesize = serial.SEVENBITS
        else:
            self.SerialDevice.bytesize = serial.EIGHTBITS

        Parity = self.Parity
        if isinstance(Parity, str):
            if Parity.lower() == "none":
                Parity = 0
            elif Parity.lower() == "odd":
                Parity = 1
            else:
                Parity = 2

        if Parity is None or Parity == 0:
            self.SerialDevice.parity = serial.PARITY_NONE
        elif Parity == 1:
            self.SerialDevice.parity = serial.PARITY_ODD
            self.LogError("Serial: Setting ODD parity")
        else:
            self.SerialDevice.parity = serial.PARITY_EVEN
            self.LogError("Serial: Setting EVEN parity")

        if self.StopBits == 2:
            self.SerialDevice.stopbits = serial.STOPBITS_TWO
        else:
            self.SerialDevice.stopbits = serial.STOPBITS_ONE

        # non blocking reads, the transaction engine polls
        self.SerialDevice.timeout = 0
        self.SerialDevice.xonxoff = False  # disable software flow control
        self.SerialDevice.rtscts = False  # disable hardware (RTS/CTS) flow control
        self.SerialDevice.dsrdtr = False  # disable hardware (DSR/DTR) flow control
        self.SerialDevice.write_timeout = None

    def BitsPerCharacter(self) -> int:
        """Returns the bits on the wire per character: start + data + parity + stop."""
        parity_bits = 0 if self.SerialDevice.parity == serial.PARITY_NONE else 1
        return 1 + self.DataBits + parity_bits + self.StopBits

    def Open(self) -> None:
        """
        Opens the serial port.

        Raises:
            TransportError: the port could not be opened.
        """
        with self.PortLock:
            if self.IsOpen:
                return
            try:
                self.SerialDevice.open()
            except (serial.SerialException, OSError, ValueError) as e1:
                self.LogErrorLine(
                    "Error on open serial port %s: " % self.DeviceName + str(e1)
                )
                raise TransportError(
                    "Error on open serial port %s: %s" % (self.DeviceName, str(e1))
                )
            self.IsOpen = True
            self.Opens += 1
        self.Flush()

    def ResetSerialStats(self) -> None:
        """Resets serial statistics."""
        self.DiscardedBytes = 0
        self.SerialStartTime = datetime.datetime.now()  # used for com metrics

    def Close(self) -> None:
        """Closes the serial port. Pending reads return end-of-stream afterwards."""
        with self.PortLock:
            if not self.IsOpen:
                return
            self.IsOpen = False
            try:
                self.SerialDevice.close()
            except (serial.SerialException, OSError) as e1:
                self.LogErrorLine("Error in Close: " + str(e1))

    def Flush(self) -> None:
        """Discards anything waiting in the input and output buffers."""
        if not self.IsOpen:
            return
        try:
            self.DiscardedBytes += self.SerialDevice.in_waiting
            self.SerialDevice.reset_input_buffer()
            self.SerialDevice.reset_output_buffer()
        except (serial.SerialException, OSError) as e1:
            self.LogErrorLine(
                "Error in SerialDevice:Flush : " + self.DeviceName + ":" + str(e1)
            )

    def Read(self) -> Optional[bytes]:
        """
        Reads the bytes currently available without blocking.

        Returns:
            Optional[bytes]: Data read (possibly empty), None if the port is closed.

        Raises:
            TransportError: the driver reported a read failure.
        """
        if not self.IsOpen:
            return None
        try:
            waiting = self.SerialDevice.in_waiting
            if not waiting:
                return b""
            return self.SerialDevice.read(waiting)
        except (serial.SerialException, OSError) as e1:
            if not self.IsOpen:
                # closed underneath us by Disconnect
                return None
            self.LogErrorLine(
                "Error in SerialDevice:Read : " + self.DeviceName + ":" + str(e1)
            )
            raise TransportError("Read error on %s: %s" % (self.DeviceName, str(e1)))

    def Write(self, data: bytes) -> int:
        """
        Writes data and waits until it has been transmitted.

        Args:
            data (bytes): Data to write.

        Returns:
            int: Number of bytes written.

        Raises:
            TransportError: the port is closed or the write failed.
        """
        if not self.IsOpen:
            raise TransportError("Serial port %s is not open" % self.DeviceName)
        try:
            count = self.SerialDevice.write(data)
            self.SerialDevice.flush()
            return count
        except (serial.SerialException, OSError) as e1:
            self.LogErrorLine(
                "Error in SerialDevice:Write : " + self.DeviceName + ":" + str(e1)
            )
            raise TransportError("Write error on %s: %s" % (self.DeviceName, str(e1)))
