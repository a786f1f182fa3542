#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: translog.py
# PURPOSE: in memory record of modbus transactions
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for the transaction log.

Every frame sent, frame received, timeout, invalid frame and transport error
is recorded once, in the order it happened, with the id of the transaction it
belongs to. Display programs subscribe with `AddListener`. Entries are also
written to a rotating log file so field problems can be diagnosed after the
fact.
"""

import datetime
import os
import threading
from typing import Any, Callable, List, Optional

from rtumonlib.modbusframe import format_hex
from rtumonlib.mycommon import MyCommon
from rtumonlib.mylog import SetupLogger
from rtumonlib.program_defaults import ProgramDefaults

SENT = "SENT"
RECEIVED = "RECEIVED"
TIMEOUT = "TIMEOUT"
INVALID = "INVALID"
ERROR = "ERROR"

DIRECTIONS = (SENT, RECEIVED, TIMEOUT, INVALID, ERROR)


class LogEntry(object):
    """One transaction log event. Entries are never modified once recorded."""

    __slots__ = ("timestamp", "direction", "raw_bytes", "transaction_id", "message")

    def __init__(
        self,
        direction: str,
        raw_bytes: Optional[bytes] = None,
        transaction_id: Optional[int] = None,
        message: str = "",
        timestamp: Optional[datetime.datetime] = None,
    ):
        self.timestamp = timestamp if timestamp is not None else datetime.datetime.now()
        self.direction = direction
        self.raw_bytes = bytes(raw_bytes) if raw_bytes is not None else None
        self.transaction_id = transaction_id
        self.message = message

    def Format(self) -> str:
        """Returns the entry as a single display line (without timestamp)."""
        if self.transaction_id:
            tid = "[TID:%04d]" % self.transaction_id
        else:
            tid = ""
        parts = [tid, self.direction.ljust(9), format_hex(self.raw_bytes), self.message]
        return " ".join(part for part in parts if len(part)).rstrip()

    def __repr__(self) -> str:
        return "LogEntry(%s %s)" % (self.timestamp.isoformat(), self.Format())


# ------------ TransactionLog class ---------------------------------------------
class TransactionLog(MyCommon):
    """
    Append-only sink of transaction events.

    Attributes:
        Entries (List[LogEntry]): Recorded events, oldest first.
        Listeners (List[Callable]): Called with each new entry.
        EntryLock (threading.Lock): Guards Entries against concurrent readers.
    """

    def __init__(self, loglocation: str = ProgramDefaults.LogPath, log: Any = None):
        super(TransactionLog, self).__init__()
        self.Entries: List[LogEntry] = []
        self.Listeners: List[Callable[[LogEntry], Any]] = []
        self.EntryLock = threading.Lock()

        # log errors in this module to a file
        if log is None:
            self.log = SetupLogger("translog", os.path.join(loglocation, "translog.log"))
        else:
            self.log = log
        self.TransactionFileLog = SetupLogger(
            "rtumon_transactions", os.path.join(loglocation, "rtumon_transactions.log")
        )

    def Record(
        self,
        direction: str,
        raw_bytes: Optional[bytes] = None,
        transaction_id: Optional[int] = None,
        message: str = "",
    ) -> LogEntry:
        """
        Appends an event to the log.

        Args:
            direction (str): One of SENT, RECEIVED, TIMEOUT, INVALID, ERROR.
            raw_bytes (bytes, optional): Frame or buffer contents.
            transaction_id (int, optional): Originating transaction.
            message (str, optional): Reason or detail text.

        Returns:
            LogEntry: The recorded entry.
        """
        if direction not in DIRECTIONS:
            raise ValueError("Invalid transaction log direction: " + str(direction))

        entry = LogEntry(direction, raw_bytes, transaction_id, message)
        with self.EntryLock:
            self.Entries.append(entry)
            listeners = list(self.Listeners)

        self.TransactionFileLog.info(entry.Format())

        for listener in listeners:
            try:
                listener(entry)
            except Exception as e1:
                self.LogErrorLine("Error in TransactionLog listener: " + str(e1))
        return entry

    def GetEntries(
        self, transaction_id: Optional[int] = None, direction: Optional[str] = None
    ) -> List[LogEntry]:
        """Returns a copy of the entries, optionally for one transaction or direction."""
        with self.EntryLock:
            entries = list(self.Entries)
        if transaction_id is not None:
            entries = [e for e in entries if e.transaction_id == transaction_id]
        if direction is not None:
            entries = [e for e in entries if e.direction == direction]
        return entries

    def Clear(self) -> None:
        with self.EntryLock:
            del self.Entries[:]

    def AddListener(self, callback: Callable[[LogEntry], Any]) -> None:
        with self.EntryLock:
            self.Listeners.append(callback)

    def RemoveListener(self, callback: Callable[[LogEntry], Any]) -> None:
        with self.EntryLock:
            if callback in self.Listeners:
                self.Listeners.remove(callback)

    def __len__(self) -> int:
        with self.EntryLock:
            return len(self.Entries)
