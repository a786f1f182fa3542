#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: registers.py
# PURPOSE: register list sources for the poll scheduler
#
#    DATE: 14-Oct-2026
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Register list sources.

The poll scheduler asks its source for the register list at the start of
every cycle. A source is any callable returning an ordered list of entries;
each entry is a dict with "register" and "signed" keys, a
(register, signed) tuple, or a bare register. The register part may be
anything the operator typed; entries that are not numbers are skipped by the
scheduler for that cycle.

`ConfigRegisterSource` reads the list from the [registers] section of the
configuration file, re-reading the file each time so edits take effect on
the next cycle:

    [registers]
    temperature = 10, signed
    pressure = 11
    spare =
"""

from typing import Any, List, Optional, Tuple

from rtumonlib import modbusframe
from rtumonlib.mycommon import MyCommon
from rtumonlib.myconfig import MyConfig
from rtumonlib.program_defaults import ProgramDefaults


def GetEntryFields(entry: Any) -> Tuple[Any, bool]:
    """
    Splits a register list entry into its raw register and signed flag.

    Returns:
        Tuple[Any, bool]: (register as configured, signed)
    """
    if isinstance(entry, dict):
        return entry.get("register"), bool(entry.get("signed", False))
    if isinstance(entry, (tuple, list)):
        if len(entry) >= 2:
            return entry[0], bool(entry[1])
        if len(entry) == 1:
            return entry[0], False
        return None, False
    return entry, False


def ParseEntry(entry: Any) -> Tuple[int, bool]:
    """
    Converts a register list entry to a register address and signed flag.

    Raises:
        ConfigurationError: the register is blank or not numeric.
    """
    register, signed = GetEntryFields(entry)
    return modbusframe.parse_register_address(register), signed


class StaticRegisterSource(object):
    """A fixed register list, e.g. from the command line."""

    def __init__(self, entries: Optional[List[Any]] = None):
        self.Entries = list(entries) if entries is not None else []

    def __call__(self) -> List[Any]:
        return list(self.Entries)


# ------------ ConfigRegisterSource class ---------------------------------------
class ConfigRegisterSource(MyCommon):
    """
    Register list read from the configuration file.

    Attributes:
        config (MyConfig): Configuration holding the register section.
        Section (str): Name of the register section.
    """

    def __init__(
        self,
        config: MyConfig,
        section: str = ProgramDefaults.RegisterSection,
        log: Any = None,
    ):
        super(ConfigRegisterSource, self).__init__()
        self.config = config
        self.Section = section
        self.log = log if log is not None else config.log

    def __call__(self) -> List[dict]:
        """Re-reads the configuration file and returns the register entries in file order."""
        try:
            self.config.Reload()
        except Exception as e1:
            self.LogErrorLine("Error reloading register list: " + str(e1))

        Entries = []
        Items = self.config.GetList(section=self.Section)
        if Items is None:
            return Entries

        for Name, Value in Items:
            Fields = [field.strip() for field in Value.split(",")]
            signed = any(field.lower() == "signed" for field in Fields[1:])
            Entries.append({"name": Name, "register": Fields[0], "signed": signed})
        return Entries
