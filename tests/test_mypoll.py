"""Tests for the poll scheduler."""

import time

import pytest

from rtumonlib import translog
from rtumonlib.mypoll import PollScheduler
from rtumonlib.registers import StaticRegisterSource
from rtumonlib.transaction import TransactionState

from conftest import echo_responder


@pytest.fixture
def modbus(transport, make_modbus):
    transport.responder = echo_responder()
    return make_modbus(transport)


def make_scheduler(modbus, tmp_path, entries, **kwargs):
    return PollScheduler(
        modbus, StaticRegisterSource(entries), loglocation=str(tmp_path), **kwargs
    )


def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_cycle_reads_in_configured_order(modbus, transport, tmp_path):
    results = []
    scheduler = make_scheduler(
        modbus, tmp_path, [12, 10, 11], result_sink=lambda r, v: results.append((r, v))
    )

    values = scheduler.RunCycle()

    assert values == [112, 110, 111]
    assert results == [(12, 112), (10, 110), (11, 111)]
    assert [request[3] for request in transport.writes] == [12, 10, 11]
    assert scheduler.CycleCount == 1


def test_one_transaction_at_a_time(modbus, tmp_path):
    """Each transaction is finished before the next one is sent."""
    scheduler = make_scheduler(modbus, tmp_path, [1, 2, 3])
    scheduler.RunCycle()

    logged = [(e.transaction_id, e.direction) for e in modbus.TransactionLog.GetEntries()]
    assert logged == [
        (1, translog.SENT),
        (1, translog.RECEIVED),
        (2, translog.SENT),
        (2, translog.RECEIVED),
        (3, translog.SENT),
        (3, translog.RECEIVED),
    ]


def test_signed_entries(modbus, tmp_path):
    modbus.Slave.responder = echo_responder(offset=0xFFF0)
    scheduler = make_scheduler(
        modbus, tmp_path, [{"register": 1, "signed": True}, (1, False)]
    )
    assert scheduler.RunCycle() == [-15, 0xFFF1]


def test_invalid_entries_are_skipped(modbus, transport, tmp_path):
    results = []
    scheduler = make_scheduler(
        modbus,
        tmp_path,
        [10, "abc", "", {"register": "  "}, 12],
        result_sink=lambda r, v: results.append(r),
    )

    values = scheduler.RunCycle()

    assert values == [110, "", "", "", 112]
    assert results == [10, 12]
    assert len(transport.writes) == 2
    assert len(modbus.TransactionLog) == 4


def test_only_invalid_entries(modbus, transport, tmp_path):
    scheduler = make_scheduler(modbus, tmp_path, ["x", None])
    assert scheduler.RunCycle() == ["", ""]
    assert transport.writes == []
    assert len(modbus.TransactionLog) == 0


def test_failed_read_yields_none(transport, make_modbus, tmp_path):
    modbus = make_modbus(transport, response_timeout_ms=50)
    results = []
    scheduler = make_scheduler(
        modbus, tmp_path, [5], result_sink=lambda r, v: results.append((r, v))
    )
    assert scheduler.RunCycle() == [None]
    assert results == [(5, None)]


def test_stop_between_registers(modbus, transport, tmp_path):
    callbacks = []
    scheduler = make_scheduler(
        modbus,
        tmp_path,
        [1, 2, 3],
        result_sink=lambda r, v: scheduler.Stop(),
        cycle_callback=lambda t, v: callbacks.append(v),
    )

    values = scheduler.RunCycle()

    assert values == [101]
    assert len(transport.writes) == 1
    assert scheduler.CycleCount == 0
    assert callbacks == []


def test_failing_sink_does_not_stop_cycle(modbus, tmp_path):
    def broken(register, value):
        raise RuntimeError("sink failure")

    scheduler = make_scheduler(modbus, tmp_path, [1, 2], result_sink=broken)
    assert scheduler.RunCycle() == [101, 102]


def test_register_list_read_every_cycle(modbus, transport, tmp_path):
    source = StaticRegisterSource([1])
    scheduler = PollScheduler(modbus, source, loglocation=str(tmp_path))
    scheduler.RunCycle()
    source.Entries.append(2)
    assert scheduler.RunCycle() == [101, 102]


def test_cycle_callback(modbus, tmp_path):
    cycles = []
    scheduler = make_scheduler(
        modbus, tmp_path, [1, "bad"], cycle_callback=lambda t, v: cycles.append((t, v))
    )
    scheduler.RunCycle()
    assert len(cycles) == 1
    assert cycles[0][1] == [101, ""]


def test_thread_start_and_stop(modbus, tmp_path):
    scheduler = make_scheduler(modbus, tmp_path, [1, 2], interval_ms=10)

    scheduler.Start()
    assert scheduler.IsPolling()
    assert wait_until(lambda: scheduler.CycleCount >= 3)

    scheduler.Stop()
    assert scheduler.WaitForStop(2.0)
    assert not scheduler.IsPolling()


def test_interval_between_cycles(modbus, tmp_path):
    starts = []
    scheduler = make_scheduler(
        modbus, tmp_path, [1], interval_ms=200,
        cycle_callback=lambda t, v: starts.append(time.monotonic()),
    )

    scheduler.Start()
    assert wait_until(lambda: len(starts) >= 2)
    scheduler.Stop()
    scheduler.WaitForStop(2.0)

    assert starts[1] - starts[0] >= 0.2


def test_stop_interrupts_interval_wait(modbus, tmp_path):
    scheduler = make_scheduler(modbus, tmp_path, [1], interval_ms=10000)

    scheduler.Start()
    assert wait_until(lambda: scheduler.CycleCount == 1)
    start = time.monotonic()
    scheduler.Stop()

    assert scheduler.WaitForStop(2.0)
    assert time.monotonic() - start < 2.0
    assert scheduler.CycleCount == 1


def test_stop_does_not_cut_a_sent_transaction_short(modbus, transport, tmp_path):
    """A stop request while awaiting a response lets the response arrive."""
    transport.response_delay = 0.3
    modbus.ResponseTimeoutMS = 1000
    scheduler = make_scheduler(modbus, tmp_path, [1, 2], interval_ms=10000)

    scheduler.Start()
    assert wait_until(lambda: len(transport.writes) == 1)
    scheduler.Stop()
    assert scheduler.WaitForStop(3.0)

    assert len(transport.writes) == 1
    transactions = scheduler.LastCycleTransactions
    assert len(transactions) == 1
    assert transactions[0].state == TransactionState.COMPLETED
    assert transactions[0].value == 101
    assert transactions[0].finished_time - transactions[0].sent_time >= 0.25
    assert scheduler.CycleCount == 0


def test_stop_waits_out_a_silent_transaction(transport, make_modbus, tmp_path):
    modbus = make_modbus(transport, response_timeout_ms=300)
    scheduler = make_scheduler(modbus, tmp_path, [1, 2], interval_ms=10000)

    scheduler.Start()
    assert wait_until(lambda: len(transport.writes) == 1)
    scheduler.Stop()
    assert scheduler.WaitForStop(3.0)

    assert len(transport.writes) == 1
    transaction = scheduler.LastCycleTransactions[0]
    assert transaction.state == TransactionState.TIMEDOUT
    assert transaction.finished_time - transaction.sent_time >= 0.3


def test_silent_cycle_takes_one_timeout_per_register(transport, make_modbus, tmp_path):
    modbus = make_modbus(transport, response_timeout_ms=100)
    scheduler = make_scheduler(modbus, tmp_path, [1, 2, 3])

    start = time.monotonic()
    values = scheduler.RunCycle()
    elapsed = time.monotonic() - start

    assert values == [None, None, None]
    transactions = scheduler.LastCycleTransactions
    assert [t.state for t in transactions] == [TransactionState.TIMEDOUT] * 3
    for transaction in transactions:
        waited = transaction.finished_time - transaction.sent_time
        assert 0.1 <= waited < 0.2
    assert 0.3 <= elapsed < 3 * (0.2 + modbus.TurnaroundDelay())
    assert [t.sent_time for t in transactions] == sorted(t.sent_time for t in transactions)
