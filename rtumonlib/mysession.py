#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: mysession.py
# PURPOSE: connection and polling session for the modbus master
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for the master session.

`ModbusSession` owns all mutable state of a running master: the transport,
the transaction engine (and with it the transaction counter), the poll
scheduler and the transaction log. Programs create one session and drive it
with Connect, StartPolling, StopPolling and Disconnect.
"""

import os
from typing import Any, Callable, List, Optional

from rtumonlib import modbusframe
from rtumonlib.myconfig import MyConfig
from rtumonlib.myexceptions import ConfigurationError
from rtumonlib.mylog import SetupLogger
from rtumonlib.mymodbus import ModbusProtocol
from rtumonlib.mypoll import PollScheduler
from rtumonlib.myserial import SerialDevice
from rtumonlib.mysupport import MySupport
from rtumonlib.program_defaults import ProgramDefaults
from rtumonlib.translog import TransactionLog


# ------------ ModbusSession class ----------------------------------------------
class ModbusSession(MySupport):
    """
    A Modbus RTU master session on one serial link.

    Attributes:
        Transport (Any): The byte pipe (SerialDevice unless one is supplied).
        ModBus (ModbusProtocol): Transaction engine.
        TransactionLog (TransactionLog): Transaction events.
        Scheduler (Optional[PollScheduler]): Active scheduler while polling.
        IntervalMS (float): Poll interval handed to schedulers.
    """

    def __init__(
        self,
        transport: Any = None,
        address: Any = ProgramDefaults.SlaveAddress,
        port: Optional[str] = None,
        rate: int = ProgramDefaults.BaudRate,
        response_timeout_ms: float = ProgramDefaults.ResponseTimeoutMS,
        interval_ms: float = ProgramDefaults.PollIntervalMS,
        config: Optional[MyConfig] = None,
        loglocation: str = ProgramDefaults.LogPath,
        log: Any = None,
    ):
        """
        Initializes the session. Settings in `config` override the arguments.

        Args:
            transport (Any, optional): Transport to use instead of a SerialDevice.
            address (Any, optional): Slave address, validated when polling starts.
            port (str, optional): Serial device name, overrides the config file.
            rate (int, optional): Baud rate.
            response_timeout_ms (float, optional): Response timeout.
            interval_ms (float, optional): Delay between poll cycles.
            config (MyConfig, optional): Configuration object.
            loglocation (str, optional): Directory of the log files.
            log (Any, optional): Logger instance.
        """
        super(ModbusSession, self).__init__()
        self.config = config
        self.loglocation = loglocation
        self.IntervalMS = float(interval_ms)
        self.Scheduler: Optional[PollScheduler] = None
        self.ConfiguredAddress = address

        if self.config is not None:
            self.loglocation = self.config.ReadValue("loglocation", default=self.loglocation)
            self.IntervalMS = self.config.ReadValue(
                "poll_interval_ms", return_type=float, default=self.IntervalMS
            )
            self.ConfiguredAddress = self.config.ReadValue("address", default=address)
            self.debug = self.config.ReadValue("debug", return_type=bool, default=False)

        # log errors in this module to a file
        if log is None:
            self.log = SetupLogger("rtumon", os.path.join(self.loglocation, "rtumon.log"))
        else:
            self.log = log

        if transport is None:
            transport = SerialDevice(
                name=port, rate=rate, config=self.config, loglocation=self.loglocation
            )
        self.Transport = transport

        self.TransactionLog = TransactionLog(loglocation=self.loglocation, log=self.log)
        self.ModBus = ModbusProtocol(
            slave=self.Transport,
            address=ProgramDefaults.SlaveAddress,
            rate=rate,
            config=self.config,
            response_timeout_ms=response_timeout_ms,
            bits_per_character=self.GetBitsPerCharacter(),
            transaction_log=self.TransactionLog,
            loglocation=self.loglocation,
            log=self.log,
        )
        # the address is validated when polling starts, never coerced
        try:
            self.ModBus.Address = modbusframe.validate_slave_address(self.ConfiguredAddress)
        except ConfigurationError as e1:
            self.LogError(str(e1))

    def GetBitsPerCharacter(self) -> int:
        if self.config is not None and self.config.HasOption("bits_per_character"):
            return self.config.ReadValue(
                "bits_per_character", return_type=int, default=ProgramDefaults.BitsPerCharacter
            )
        if hasattr(self.Transport, "BitsPerCharacter"):
            return self.Transport.BitsPerCharacter()
        return ProgramDefaults.BitsPerCharacter

    def SetSlaveAddress(self, address: Any) -> int:
        """
        Sets the slave address.

        Raises:
            ConfigurationError: the address is not in 1..247.
        """
        self.ConfiguredAddress = address
        self.ModBus.Address = modbusframe.validate_slave_address(address)
        return self.ModBus.Address

    def IsConnected(self) -> bool:
        return bool(getattr(self.Transport, "IsOpen", False))

    def IsPolling(self) -> bool:
        return self.Scheduler is not None and self.Scheduler.IsPolling()

    def Connect(self) -> None:
        """
        Opens the transport.

        Raises:
            TransportError: the port could not be opened.
        """
        if self.IsConnected():
            return
        self.ModBus.ClearStopping()
        self.Transport.Open()
        self.LogInfo("Connected to %s" % str(getattr(self.Transport, "DeviceName", "transport")))

    def Disconnect(self) -> None:
        """
        Stops polling, abandons any await in progress and releases the transport.
        """
        if self.Scheduler is not None:
            self.Scheduler.Stop()
        self.ModBus.Close()
        if self.Scheduler is not None:
            self.Scheduler.WaitForStop(timeout=self.ModBus.ResponseTimeoutMS / 1000.0 + 1.0)
        self.LogInfo("Disconnected")

    def CreateScheduler(
        self,
        register_source: Callable[[], List[Any]],
        result_sink: Optional[Callable] = None,
        cycle_callback: Optional[Callable] = None,
    ) -> PollScheduler:
        """
        Validates the session settings and builds a scheduler.

        Raises:
            ConfigurationError: invalid slave address or no open connection.
        """
        self.SetSlaveAddress(self.ConfiguredAddress)
        if not self.IsConnected():
            raise ConfigurationError("Not connected")
        return PollScheduler(
            self.ModBus,
            register_source,
            result_sink=result_sink,
            cycle_callback=cycle_callback,
            interval_ms=self.IntervalMS,
            loglocation=self.loglocation,
            log=self.log,
        )

    def StartPolling(
        self,
        register_source: Callable[[], List[Any]],
        result_sink: Optional[Callable] = None,
        cycle_callback: Optional[Callable] = None,
    ) -> PollScheduler:
        """
        Starts the poll loop on a background thread.

        Raises:
            ConfigurationError: invalid slave address or no open connection.
        """
        if self.IsPolling():
            self.StopPolling(wait=True)
        self.Scheduler = self.CreateScheduler(register_source, result_sink, cycle_callback)
        self.Scheduler.Start()
        return self.Scheduler

    def PollOnce(
        self,
        register_source: Callable[[], List[Any]],
        result_sink: Optional[Callable] = None,
    ) -> List[Any]:
        """Runs a single poll cycle on the calling thread and returns its values."""
        Scheduler = self.CreateScheduler(register_source, result_sink)
        return Scheduler.RunCycle()

    def StopPolling(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """
        Stops the poll loop after the transaction in progress.

        Args:
            wait (bool): Wait for the poll thread to end.
            timeout (float, optional): Maximum wait in seconds.
        """
        if self.Scheduler is None:
            return
        self.Scheduler.Stop()
        if wait:
            self.Scheduler.WaitForStop(timeout)

    def GetCommStats(self) -> List[dict]:
        return self.ModBus.GetCommStats()
