#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: mymodbus.py
# PURPOSE: Base modbus protocol support
#
#  AUTHOR: Jason G Yates
#    DATE: 19-Apr-2018
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for Modbus protocol handling.

This module defines the `ModbusProtocol` class, the transaction engine of the
master. One call to `ProcessOneTransaction` runs a complete exchange:

    build request -> write -> turnaround delay -> await response -> decode

Only one exchange is on the wire at a time: the whole exchange runs while
holding `CommAccessLock`. Every failure ends the transaction, is recorded in
the transaction log and leaves the value unset. No failure escapes to the
caller and nothing is retried.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

from rtumonlib import modbusframe
from rtumonlib.modbusbase import ModbusBase
from rtumonlib.myexceptions import ModbusTimeoutError, ProtocolError, TransportError
from rtumonlib.myserial import SerialDevice
from rtumonlib.program_defaults import ProgramDefaults
from rtumonlib.transaction import Transaction, TransactionState
from rtumonlib import translog


# ------------ ModbusProtocol class ---------------------------------------------
class ModbusProtocol(ModbusBase):
    """
    Implements the Modbus RTU master transaction engine.

    Attributes:
        Slave (SerialDevice): The transport. Anything providing Write, Read,
            Flush and Close with SerialDevice semantics can be used.
        TransactionID (int): Id of the last transaction created.
        TransactionLog (translog.TransactionLog): Event sink.
        PollDelay (float): Sleep between empty reads while awaiting a response.
    """

    def __init__(
        self,
        slave: Any = None,
        address: int = ProgramDefaults.SlaveAddress,
        name: Optional[str] = None,
        rate: int = ProgramDefaults.BaudRate,
        config: Any = None,
        response_timeout_ms: float = ProgramDefaults.ResponseTimeoutMS,
        bits_per_character: Optional[int] = None,
        transaction_log: Optional[translog.TransactionLog] = None,
        loglocation: str = ProgramDefaults.LogPath,
        log: Any = None,
    ):
        """
        Initializes the ModbusProtocol instance.

        Args:
            slave (Any, optional): Transport to use. A SerialDevice is created if None.
            address (int, optional): Modbus slave address. Defaults to 1.
            name (str, optional): Serial port name for the created SerialDevice,
                overrides the config file.
            rate (int, optional): Baud rate. Defaults to 9600.
            config (Any, optional): Configuration object.
            response_timeout_ms (float, optional): Response timeout. Defaults to 1000.
            bits_per_character (int, optional): Bits per character, taken from the
                transport framing if None.
            transaction_log (TransactionLog, optional): Event sink, created if None.
            loglocation (str, optional): Directory of the log files.
            log (Any, optional): Logger instance.
        """
        super(ModbusProtocol, self).__init__(
            address=address,
            rate=rate,
            config=config,
            response_timeout_ms=response_timeout_ms,
            bits_per_character=(
                bits_per_character
                if bits_per_character is not None
                else ProgramDefaults.BitsPerCharacter
            ),
            loglocation=loglocation,
            log=log,
        )

        self.TransactionID = 0
        self.PollDelay = 0.01

        if slave is None:
            self.Slave = SerialDevice(
                name=name,
                rate=self.Rate,
                config=self.config,
                loglocation=self.loglocation,
            )
            if bits_per_character is None and (
                self.config is None or not self.config.HasOption("bits_per_character")
            ):
                self.BitsPerCharacter = self.Slave.BitsPerCharacter()
        else:
            self.Slave = slave

        if transaction_log is None:
            self.TransactionLog = translog.TransactionLog(
                loglocation=self.loglocation, log=self.log
            )
        else:
            self.TransactionLog = transaction_log

    def GetTransactionID(self) -> int:
        """Returns the next transaction id, starting at 1."""
        self.TransactionID += 1
        return self.TransactionID

    def CreateTransaction(self, register: int, signed: bool = False) -> Transaction:
        """Creates a Pending transaction for one register read."""
        return Transaction(self.GetTransactionID(), register, signed=signed)

    def ProcessTransaction(self, register: int, signed: bool = False) -> Transaction:
        """
        Reads one register.

        Args:
            register (int): Register address.
            signed (bool): Decode the value as signed 16 bit.

        Returns:
            Transaction: The terminal transaction. `value` is None unless Completed.
        """
        return self.ProcessOneTransaction(self.CreateTransaction(register, signed=signed))

    def ProcessOneTransaction(self, transaction: Transaction) -> Transaction:
        """
        Executes a single Modbus transaction (Send/Receive).

        Args:
            transaction (Transaction): A Pending transaction.

        Returns:
            Transaction: The same transaction in a terminal state.
        """
        with self.CommAccessLock:
            try:
                transaction.request = modbusframe.encode_read_request(
                    self.Address, transaction.register
                )

                try:
                    self.SendPacketAsMaster(transaction)
                except TransportError as e1:
                    self.TransportErrors += 1
                    self.TransactionLog.Record(
                        translog.ERROR, transaction.request, transaction.id,
                        "Transaction %d failed: %s" % (transaction.id, str(e1)),
                    )
                    return self.FinishTransaction(transaction, TransactionState.ERRORED, str(e1))

                # bus release time before the slave may answer, not skippable
                time.sleep(self.TurnaroundDelay())

                try:
                    SlavePacket, Trailing = self.GetPacketFromSlave(transaction)
                except ModbusTimeoutError as e1:
                    self.TransactionLog.Record(
                        translog.TIMEOUT, transaction.request, transaction.id, "No response"
                    )
                    return self.FinishTransaction(transaction, TransactionState.TIMEDOUT, str(e1))
                except TransportError as e1:
                    self.TransportErrors += 1
                    self.TransactionLog.Record(
                        translog.ERROR, None, transaction.id, str(e1)
                    )
                    return self.FinishTransaction(transaction, TransactionState.ERRORED, str(e1))

                transaction.response = SlavePacket
                self.TransactionLog.Record(translog.RECEIVED, SlavePacket, transaction.id)
                if len(Trailing):
                    self.TransactionLog.Record(
                        translog.INVALID, Trailing, transaction.id,
                        "Discarded %d bytes after frame" % len(Trailing),
                    )

                try:
                    transaction.value = self.UpdateRegisterFromPacket(transaction, SlavePacket)
                except ProtocolError as e1:
                    self.ComValidationError += 1
                    self.LogHexList(transaction.request, prefix="Master")
                    self.LogHexList(SlavePacket, prefix="Slave")
                    # the frame itself is already in the RECEIVED entry
                    self.TransactionLog.Record(
                        translog.INVALID, None, transaction.id, str(e1)
                    )
                    return self.FinishTransaction(transaction, TransactionState.INVALID, str(e1))

                return self.FinishTransaction(transaction, TransactionState.COMPLETED)

            except Exception as e1:
                self.LogErrorLine("Error in ProcessOneTransaction: " + str(e1))
                if not transaction.IsTerminal():
                    self.TransactionLog.Record(
                        translog.ERROR, None, transaction.id,
                        "Transaction %d failed: %s" % (transaction.id, str(e1)),
                    )
                    self.FinishTransaction(transaction, TransactionState.ERRORED, str(e1))
                return transaction

    def FinishTransaction(
        self, transaction: Transaction, state: str, message: str = ""
    ) -> Transaction:
        """Moves a transaction to its terminal state."""
        transaction.SetState(state)
        transaction.message = message
        transaction.finished_time = time.monotonic()
        if state != TransactionState.COMPLETED:
            transaction.value = None
        self.LogDebug(repr(transaction))
        return transaction

    def SendPacketAsMaster(self, transaction: Transaction) -> None:
        """
        Writes the request frame and marks the transaction Sent.

        Raises:
            TransportError: the write failed.
        """
        self.TxPacketCount += 1
        self.Slave.Write(transaction.request)
        transaction.sent_time = time.monotonic()
        transaction.SetState(TransactionState.SENT)
        self.TransactionLog.Record(translog.SENT, transaction.request, transaction.id)

    def GetPacketFromSlave(self, transaction: Transaction) -> Tuple[bytes, bytes]:
        """
        Accumulates received bytes until a CRC valid frame is recovered.

        The receive buffer lives only for this call. The timeout runs from
        the end of transmission and is not extended by incoming noise.
        Bytes that are thrown away are recorded as INVALID exactly once:
        the prefix before a recovered frame when the frame is found, or the
        whole unmatched buffer when the wait ends without a frame.

        Args:
            transaction (Transaction): The Sent transaction.

        Returns:
            Tuple[bytes, bytes]: The recovered frame and any bytes received
                after it in the same read.

        Raises:
            ModbusTimeoutError: no frame within the response timeout.
            TransportError: read failure, closed stream or disconnect.
        """
        Buffer = bytearray()
        MinLength = self.MIN_PACKET_RESPONSE_LENGTH
        CrcCounted = False

        try:
            while True:
                if self.IsStopping:
                    raise TransportError("Disconnected while waiting for response")

                msElapsed = self.MillisecondsElapsed(transaction.sent_time)
                if msElapsed >= self.ResponseTimeoutMS:
                    self.ComTimoutError += 1
                    self.LogError(
                        "Error: timeout receiving slave packet for register %04x Buffer: %d, sequence %d"
                        % (transaction.register, len(Buffer), transaction.id)
                    )
                    raise ModbusTimeoutError(
                        "No response for register %d after %d ms"
                        % (transaction.register, int(msElapsed))
                    )

                Data = self.Slave.Read()
                if Data is None:
                    raise TransportError("Serial stream closed")
                if not len(Data):
                    # be kind to other processes
                    time.sleep(self.PollDelay)
                    continue

                Buffer.extend(Data)
                if len(Buffer) < MinLength:
                    continue

                bounds = modbusframe.find_frame(Buffer, MinLength)
                if bounds is None:
                    # counted once per transaction, logged when discarded
                    if not CrcCounted:
                        self.CrcError += 1
                        CrcCounted = True
                    continue

                start, end = bounds
                if start > 0:
                    self.TransactionLog.Record(
                        translog.INVALID, Buffer[:start], transaction.id,
                        "CRC mismatch, discarded %d bytes" % start,
                    )
                if end < len(Buffer):
                    self.LogHexList(Buffer[end:], prefix="Trailing bytes")

                self.RxPacketCount += 1
                self.TotalElapsedPacketeTime += self.MillisecondsElapsed(transaction.sent_time) / 1000
                return bytes(Buffer[start:end]), bytes(Buffer[end:])

        except (ModbusTimeoutError, TransportError):
            if len(Buffer):
                self.LogHexList(Buffer, prefix="Buffer")
                if len(Buffer) >= MinLength:
                    Reason = "CRC mismatch"
                else:
                    Reason = "Short frame"
                self.TransactionLog.Record(
                    translog.INVALID, Buffer, transaction.id,
                    "%s, discarded %d bytes" % (Reason, len(Buffer)),
                )
            raise

    def UpdateRegisterFromPacket(self, transaction: Transaction, SlavePacket: bytes) -> int:
        """
        Validates a response against its request and decodes the value.

        Raises:
            ProtocolError: address, function code or byte count mismatch.
        """
        if SlavePacket[modbusframe.MBUS_OFF_ADDRESS] != self.Address:
            raise ProtocolError(
                "Unexpected slave address %02x" % SlavePacket[modbusframe.MBUS_OFF_ADDRESS],
                SlavePacket,
            )
        Command = SlavePacket[modbusframe.MBUS_OFF_COMMAND]
        if Command != modbusframe.MBUS_CMD_READ_HOLDING_REGS:
            if Command & modbusframe.MBUS_ERROR_BIT:
                raise ProtocolError("Modbus exception response %02x" % Command, SlavePacket)
            raise ProtocolError("Unexpected function code %02x" % Command, SlavePacket)

        return modbusframe.decode_read_response(SlavePacket, signed=transaction.signed)

    def MillisecondsElapsed(self, ReferenceTime: float) -> float:
        """
        Calculates milliseconds elapsed since ReferenceTime.

        Args:
            ReferenceTime (float): A `time.monotonic()` value.

        Returns:
            float: Elapsed milliseconds.
        """
        return (time.monotonic() - ReferenceTime) * 1000.0

    def GetCommStats(self) -> List[Dict[str, Any]]:
        """Returns the protocol statistics followed by the transport statistics."""
        SerialStats = super(ModbusProtocol, self).GetCommStats()
        try:
            SerialStats.append({"Discarded Bytes": "%d" % self.Slave.DiscardedBytes})
            SerialStats.append({"Serial Data Rate": "%d" % (self.Slave.BaudRate)})
        except AttributeError:
            # transport without serial statistics
            pass
        return SerialStats

    def ResetCommStats(self) -> None:
        super(ModbusProtocol, self).ResetCommStats()
        if hasattr(self.Slave, "ResetSerialStats"):
            self.Slave.ResetSerialStats()

    def Close(self) -> None:
        """
        Closes the transport.

        The lock is not taken: closing must be able to end an await that is
        holding it. The await sees IsStopping and finishes as Errored.
        """
        self.IsStopping = True
        self.Slave.Close()

    def ClearStopping(self) -> None:
        """Clears the stopping flag after a Close so the engine can be reused."""
        self.IsStopping = False
