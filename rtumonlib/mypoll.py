#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: mypoll.py
# PURPOSE: poll cycle scheduling for the modbus master
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for the poll scheduler.

Each cycle reads every configured register once, in configured order, one
transaction at a time: a transaction runs to a terminal state before the
next one is created. The link is half-duplex and responses carry no
transaction id, so two exchanges can never overlap.

A stop request is honoured before the next register's transaction is
started and prevents further cycles. It never cuts short a transaction
already on the wire.
"""

import datetime
import os
from typing import Any, Callable, List, Optional

from rtumonlib.myexceptions import ConfigurationError
from rtumonlib.mylog import SetupLogger
from rtumonlib.mymodbus import ModbusProtocol
from rtumonlib.mysupport import MySupport
from rtumonlib.mythread import MyThread
from rtumonlib.program_defaults import ProgramDefaults
from rtumonlib.registers import ParseEntry


# ------------ PollScheduler class ----------------------------------------------
class PollScheduler(MySupport):
    """
    Runs poll cycles over a register list.

    Attributes:
        ModBus (ModbusProtocol): Transaction engine.
        RegisterSource (Callable): Returns the register list, called each cycle.
        ResultSink (Callable): Called as ResultSink(register, value_or_None).
        CycleCallback (Callable): Called as CycleCallback(timestamp, values)
            after each complete cycle.
        IntervalMS (float): Pause between the end of a cycle and the next start.
        IsStopping (bool): Stop flag checked between registers and cycles.
        CycleCount (int): Number of cycles finished.
        LastCycleTransactions (List): Transactions of the most recent cycle.
    """

    THREAD_NAME = "PollThread"

    def __init__(
        self,
        modbus: ModbusProtocol,
        register_source: Callable[[], List[Any]],
        result_sink: Optional[Callable[[int, Optional[int]], Any]] = None,
        cycle_callback: Optional[Callable[[datetime.datetime, List[Any]], Any]] = None,
        interval_ms: float = ProgramDefaults.PollIntervalMS,
        loglocation: str = ProgramDefaults.LogPath,
        log: Any = None,
    ):
        super(PollScheduler, self).__init__()
        self.ModBus = modbus
        self.RegisterSource = register_source
        self.ResultSink = result_sink
        self.CycleCallback = cycle_callback
        self.IntervalMS = float(interval_ms)
        self.IsStopping = False
        self.CycleCount = 0
        self.LastCycleTransactions: List[Any] = []

        # log errors in this module to a file
        if log is None:
            self.log = SetupLogger("mypoll", os.path.join(loglocation, "mypoll.log"))
        else:
            self.log = log

    def Start(self) -> MyThread:
        """
        Starts polling on a background thread.

        Returns:
            MyThread: The poll thread.
        """
        if self.IsPolling():
            return self.Threads[self.THREAD_NAME]
        self.IsStopping = False
        # registered before it runs, the loop looks itself up by name
        self.Threads[self.THREAD_NAME] = MyThread(
            self.PollThread, Name=self.THREAD_NAME, start=False
        )
        self.Threads[self.THREAD_NAME].Start()
        return self.Threads[self.THREAD_NAME]

    def Stop(self) -> None:
        """
        Requests the poll loop to stop.

        Returns immediately; a transaction in progress completes first. Use
        `WaitForStop` to wait for the thread to end.
        """
        self.IsStopping = True
        Thread = self.Threads.get(self.THREAD_NAME, None)
        if Thread is not None:
            Thread.Stop()

    def WaitForStop(self, timeout: Optional[float] = None) -> bool:
        """
        Waits for the poll thread to end.

        Returns:
            bool: True if the thread is no longer running.
        """
        Thread = self.Threads.get(self.THREAD_NAME, None)
        if Thread is None:
            return True
        Thread.WaitForThreadToEnd(timeout)
        return not Thread.IsAlive()

    def IsPolling(self) -> bool:
        Thread = self.Threads.get(self.THREAD_NAME, None)
        return Thread is not None and Thread.IsAlive()

    def PollThread(self) -> None:
        """Poll loop: run a cycle, then wait the interval unless stopped."""
        while not self.IsStopping:
            try:
                self.RunCycle()
            except Exception as e1:
                self.LogErrorLine("Error in PollThread, continue: " + str(e1))
            if self.IsStopping:
                break
            if self.WaitForExit(self.THREAD_NAME, self.IntervalMS / 1000.0):
                break

    def GetRegisterList(self) -> List[Any]:
        try:
            Entries = self.RegisterSource()
        except Exception as e1:
            self.LogErrorLine("Error reading register list: " + str(e1))
            return []
        if Entries is None:
            return []
        return list(Entries)

    def RunCycle(self) -> List[Any]:
        """
        Reads every configured register once.

        Entries that are not numbers are skipped without a transaction or a
        transaction log entry.

        Returns:
            List[Any]: One value per entry in configured order: the register
                value, None if the read failed, "" if the entry was skipped.
                Entries not reached because of a stop request are left out.
        """
        CycleTime = datetime.datetime.now()
        Values: List[Any] = []
        Transactions = []

        for Entry in self.GetRegisterList():
            if self.IsStopping:
                break
            try:
                Register, Signed = ParseEntry(Entry)
            except ConfigurationError as e1:
                self.LogDebug("Skipping register entry: " + str(e1))
                Values.append("")
                continue

            Transaction = self.ModBus.ProcessTransaction(Register, signed=Signed)
            Transactions.append(Transaction)
            Values.append(Transaction.value)
            self.DeliverResult(Register, Transaction.value)

        self.LastCycleTransactions = Transactions
        if self.IsStopping:
            return Values

        self.CycleCount += 1
        if self.CycleCallback is not None:
            try:
                self.CycleCallback(CycleTime, Values)
            except Exception as e1:
                self.LogErrorLine("Error in poll cycle callback: " + str(e1))
        return Values

    def DeliverResult(self, Register: int, Value: Optional[int]) -> None:
        if self.ResultSink is None:
            return
        try:
            self.ResultSink(Register, Value)
        except Exception as e1:
            self.LogErrorLine("Error in poll result sink: " + str(e1))
