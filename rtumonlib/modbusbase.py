#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: modbusbase.py
# PURPOSE: Base modbus class support
#
#  AUTHOR: Jason G Yates
#    DATE: 19-Apr-2018
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for base Modbus functionality.

This module defines the `ModbusBase` class, which holds the link parameters
(slave address, baud rate, timing) and the communication statistics shared by
the transaction engine.
"""

import datetime
import os
import threading
from typing import Any, Dict, List

from rtumonlib import modbusframe
from rtumonlib.mylog import SetupLogger
from rtumonlib.mysupport import MySupport
from rtumonlib.program_defaults import ProgramDefaults


# ------------ ModbusBase class -------------------------------------------------
class ModbusBase(MySupport):
    """
    Base class for Modbus communication.

    Attributes:
        Address (int): Modbus slave address.
        Rate (int): Serial baud rate.
        BitsPerCharacter (int): Bits per transmitted character (10 for 8N1).
        ResponseTimeoutMS (float): Time allowed for a response after the request.
        config (Any): Configuration object.
        IsStopping (bool): Set on disconnect, ends any await in progress.
        RxPacketCount (int): Received packet count.
        TxPacketCount (int): Transmitted packet count.
        ComTimoutError (int): Communication timeout error count.
        CrcError (int): CRC error count.
        ComValidationError (int): Validation error count.
        TransportErrors (int): Read/write failure count.
        TotalElapsedPacketeTime (float): Total seconds spent waiting for responses.
        CommAccessLock (threading.RLock): Serializes access to the link.
    """

    MIN_PACKET_RESPONSE_LENGTH = modbusframe.MIN_PACKET_RESPONSE_LENGTH

    def __init__(
        self,
        address: int = ProgramDefaults.SlaveAddress,
        rate: int = ProgramDefaults.BaudRate,
        config: Any = None,
        response_timeout_ms: float = ProgramDefaults.ResponseTimeoutMS,
        bits_per_character: int = ProgramDefaults.BitsPerCharacter,
        loglocation: str = ProgramDefaults.LogPath,
        log: Any = None,
    ):
        """
        Initializes the ModbusBase instance.

        Args:
            address (int, optional): Modbus slave address. Defaults to 1.
            rate (int, optional): Serial baud rate. Defaults to 9600.
            config (Any, optional): Configuration object, overrides the arguments.
            response_timeout_ms (float, optional): Response timeout. Defaults to 1000.
            bits_per_character (int, optional): Bits per character. Defaults to 10.
            loglocation (str, optional): Directory of the log files.
            log (Any, optional): Logger instance.
        """
        super(ModbusBase, self).__init__()
        self.Address = address
        self.Rate = rate
        self.BitsPerCharacter = bits_per_character
        self.ResponseTimeoutMS = float(response_timeout_ms)
        self.config = config
        self.loglocation = loglocation
        self.IsStopping = False
        self.RxPacketCount = 0
        self.TxPacketCount = 0
        self.ComTimoutError = 0
        self.TotalElapsedPacketeTime = 0.0
        self.CrcError = 0
        self.ComValidationError = 0
        self.TransportErrors = 0
        self.debug = False

        if self.config is not None:
            self.debug = self.config.ReadValue("debug", return_type=bool, default=False)
            self.loglocation = self.config.ReadValue(
                "loglocation", default=self.loglocation
            )
            self.Rate = self.config.ReadValue(
                "serial_rate", return_type=int, default=self.Rate
            )
            self.Address = self.config.ReadValue(
                "address", return_type=int, default=self.Address
            )
            self.ResponseTimeoutMS = self.config.ReadValue(
                "response_timeout_ms", return_type=float, default=self.ResponseTimeoutMS
            )
            self.BitsPerCharacter = self.config.ReadValue(
                "bits_per_character", return_type=int, default=self.BitsPerCharacter
            )

        self.CommAccessLock = threading.RLock()  # lock to synchronize access to the serial port comms
        self.ModbusStartTime = datetime.datetime.now()  # used for com metrics

        # log errors in this module to a file
        if log is None:
            self.log = SetupLogger("rtumon", os.path.join(self.loglocation, "rtumon.log"))
        else:
            self.log = log
        self.console = SetupLogger("rtumon_console", log_file="", stream=True)

    def CharacterTime(self) -> float:
        """Returns the time in seconds to transmit one character."""
        return float(self.BitsPerCharacter) / float(self.Rate)

    def TurnaroundDelay(self) -> float:
        """Returns the RS-485 bus release delay after a request, 3.5 character times."""
        return 3.5 * self.CharacterTime()

    def GetCommStats(self) -> List[Dict[str, Any]]:
        """
        Retrieves communication statistics.

        Returns:
            List[Dict[str, Any]]: A list of dictionaries containing stats.
        """
        SerialStats = []

        SerialStats.append(
            {"Packet Count": "M: %d, S: %d" % (self.TxPacketCount, self.RxPacketCount)}
        )

        if self.CrcError == 0 or self.TxPacketCount == 0:
            PercentErrors = 0.0
        else:
            PercentErrors = float(self.CrcError) / float(self.TxPacketCount)

        if self.ComTimoutError == 0 or self.TxPacketCount == 0:
            PercentTimeoutErrors = 0.0
        else:
            PercentTimeoutErrors = float(self.ComTimoutError) / float(
                self.TxPacketCount
            )

        SerialStats.append({"CRC Errors": "%d " % self.CrcError})
        SerialStats.append(
            {"CRC Percent Errors": ("%.2f" % (PercentErrors * 100)) + "%"}
        )
        SerialStats.append({"Timeout Errors": "%d" % self.ComTimoutError})
        SerialStats.append(
            {"Timeout Percent Errors": ("%.2f" % (PercentTimeoutErrors * 100)) + "%"}
        )
        SerialStats.append({"Validation Errors": self.ComValidationError})
        SerialStats.append({"Transport Errors": self.TransportErrors})

        Delta = datetime.datetime.now() - self.ModbusStartTime
        if Delta.total_seconds() > 0:
            PacketsPerSecond = float(self.TxPacketCount + self.RxPacketCount) / float(
                Delta.total_seconds()
            )
            SerialStats.append({"Packets Per Second": "%.2f" % (PacketsPerSecond)})

        if self.RxPacketCount:
            AvgTransactionTime = float(
                self.TotalElapsedPacketeTime / self.RxPacketCount
            )
            SerialStats.append(
                {"Average Transaction Time": "%.4f sec" % (AvgTransactionTime)}
            )

        return SerialStats

    def ResetCommStats(self) -> None:
        """Resets communication statistics."""
        self.RxPacketCount = 0
        self.TxPacketCount = 0
        self.CrcError = 0
        self.ComTimoutError = 0
        self.ComValidationError = 0
        self.TransportErrors = 0
        self.TotalElapsedPacketeTime = 0.0
        self.ModbusStartTime = datetime.datetime.now()  # used for com metrics
