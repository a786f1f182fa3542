#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: rtumon.py
# PURPOSE: command line modbus RTU register monitor
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Command line register monitor.

Polls the registers listed in the [registers] section of rtumon.conf and
prints each value and each transaction log event to the console until
interrupted.

    rtumon -c /etc/rtumon/ [-p /dev/ttyUSB1] [-a 26] [-o]
"""

import signal
import sys
import threading
from typing import Any, List, Optional

from rtumonlib.myexceptions import ModbusError
from rtumonlib.mysession import ModbusSession
from rtumonlib.mysupport import MySupport
from rtumonlib.registers import ConfigRegisterSource
from rtumonlib.translog import LogEntry


def main(argv: Optional[List[str]] = None) -> int:
    console, config, overrides, log = MySupport.SetupProgram("rtumon", argv)

    try:
        session = ModbusSession(port=overrides.get("port"), config=config, log=log)
        if "address" in overrides:
            session.SetSlaveAddress(overrides["address"])
        session.console = console
    except ModbusError as e1:
        console.error("Error : " + str(e1))
        log.error("Error : " + str(e1) + ": " + MySupport.GetErrorLine())
        return 1

    def ShowEntry(entry: LogEntry) -> None:
        console.info(entry.timestamp.isoformat() + " " + entry.Format())

    def ShowValue(register: int, value: Any) -> None:
        console.info("Register %d: %s" % (register, "-" if value is None else str(value)))

    session.TransactionLog.AddListener(ShowEntry)
    registers = ConfigRegisterSource(config, log=log)

    try:
        session.Connect()
        if overrides.get("once", False):
            session.PollOnce(registers, result_sink=ShowValue)
        else:
            StopEvent = threading.Event()

            def SignalClose(signum: int, frame: Any) -> None:
                StopEvent.set()

            signal.signal(signal.SIGTERM, SignalClose)
            signal.signal(signal.SIGINT, SignalClose)

            session.StartPolling(registers, result_sink=ShowValue)
            while not StopEvent.wait(0.5):
                if not session.IsPolling():
                    break
            session.StopPolling(wait=True)
    except ModbusError as e1:
        console.error("Error : " + str(e1))
        log.error("Error : " + str(e1) + ": " + MySupport.GetErrorLine())
        return 1
    finally:
        session.Disconnect()

    for Stat in session.GetCommStats():
        for Key, Value in Stat.items():
            log.error("%s: %s" % (Key, str(Value)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
