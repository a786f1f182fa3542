"""Tests for register list entries and the config file register source."""

import os

import pytest

from rtumonlib.myconfig import MyConfig
from rtumonlib.myexceptions import ConfigurationError
from rtumonlib.registers import ConfigRegisterSource, ParseEntry, StaticRegisterSource


@pytest.mark.parametrize(
    "entry, expected",
    [
        (10, (10, False)),
        ("0x20", (32, False)),
        ((11, True), (11, True)),
        ([12], (12, False)),
        ({"register": "13", "signed": True}, (13, True)),
        ({"register": 14}, (14, False)),
    ],
)
def test_parse_entry(entry, expected):
    assert ParseEntry(entry) == expected


@pytest.mark.parametrize("entry", ["", "temp", None, (), {"signed": True}, ("x", True)])
def test_parse_entry_rejects(entry):
    with pytest.raises(ConfigurationError):
        ParseEntry(entry)


def test_static_source_returns_copy():
    source = StaticRegisterSource([1, 2])
    entries = source()
    entries.append(3)
    assert source() == [1, 2]


def write_config(filename, registers):
    with open(filename, "w") as f:
        f.write("[rtumon]\naddress = 1\n\n[registers]\n")
        for line in registers:
            f.write(line + "\n")


def test_config_source_keeps_file_order(tmp_path):
    filename = os.path.join(str(tmp_path), "rtumon.conf")
    write_config(filename, ["pressure = 11", "Temperature = 10, signed", "spare =", "alpha = 0x0A"])
    source = ConfigRegisterSource(MyConfig(filename, section="rtumon"))

    entries = source()

    assert [e["name"] for e in entries] == ["pressure", "Temperature", "spare", "alpha"]
    assert [e["register"] for e in entries] == ["11", "10", "", "0x0A"]
    assert [e["signed"] for e in entries] == [False, True, False, False]


def test_config_source_rereads_file(tmp_path):
    filename = os.path.join(str(tmp_path), "rtumon.conf")
    write_config(filename, ["a = 1"])
    source = ConfigRegisterSource(MyConfig(filename, section="rtumon"))
    assert [e["register"] for e in source()] == ["1"]

    write_config(filename, ["a = 1", "b = 2"])
    assert [e["register"] for e in source()] == ["1", "2"]


def test_config_source_missing_section(tmp_path):
    filename = os.path.join(str(tmp_path), "rtumon.conf")
    with open(filename, "w") as f:
        f.write("[rtumon]\naddress = 1\n")
    source = ConfigRegisterSource(MyConfig(filename, section="rtumon"))
    assert source() == []
