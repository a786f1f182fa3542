#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: transaction.py
# PURPOSE: state of one modbus request/response exchange
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module defining the `Transaction` record.

A transaction moves forward only:

    Pending -> Sent -> Completed | TimedOut | Invalid | Errored
    Pending -> Errored                       (write failed)

Once terminal it is handed back to the poll scheduler and never touched
again. A register that failed is read again next cycle by a new transaction.
"""

import datetime
from typing import Optional


class TransactionState(object):
    PENDING = "Pending"
    SENT = "Sent"
    COMPLETED = "Completed"
    TIMEDOUT = "TimedOut"
    INVALID = "Invalid"
    ERRORED = "Errored"

    TERMINAL = (COMPLETED, TIMEDOUT, INVALID, ERRORED)

    # allowed transitions
    NEXT = {
        PENDING: (SENT, ERRORED),
        SENT: (COMPLETED, TIMEDOUT, INVALID, ERRORED),
    }


class Transaction(object):
    """
    One read of one register.

    Attributes:
        id (int): Transaction id, unique and increasing within an engine.
        register (int): Register address read.
        signed (bool): Interpret the result as a signed 16 bit value.
        request (bytes): Request frame, set when built.
        response (bytes): Response frame, if one was recovered.
        state (str): One of the TransactionState values.
        created (datetime.datetime): Creation time.
        sent_time (float): Monotonic time the request finished transmitting.
        finished_time (float): Monotonic time the transaction became terminal.
        value (Optional[int]): Decoded value, None unless Completed.
        message (str): Reason for a non completed outcome.
    """

    def __init__(self, transaction_id: int, register: int, signed: bool = False):
        self.id = transaction_id
        self.register = register
        self.signed = signed
        self.request: Optional[bytes] = None
        self.response: Optional[bytes] = None
        self.state = TransactionState.PENDING
        self.created = datetime.datetime.now()
        self.sent_time: Optional[float] = None
        self.finished_time: Optional[float] = None
        self.value: Optional[int] = None
        self.message = ""

    def SetState(self, state: str) -> None:
        """
        Moves the transaction to a new state.

        Raises:
            ValueError: the transition would go backwards or skip Sent.
        """
        if state not in TransactionState.NEXT.get(self.state, ()):
            raise ValueError(
                "Invalid transaction state change %s -> %s" % (self.state, state)
            )
        self.state = state

    def IsTerminal(self) -> bool:
        return self.state in TransactionState.TERMINAL

    def __repr__(self) -> str:
        return "Transaction(id=%d, register=%d, state=%s, value=%s)" % (
            self.id,
            self.register,
            self.state,
            str(self.value),
        )
