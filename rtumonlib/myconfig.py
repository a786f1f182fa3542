#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: myconfig.py
# PURPOSE: Configuration file Abstraction
#
#  AUTHOR: Jason G Yates
#    DATE: 22-May-2018
#
# MODIFICATIONS:
#
# -------------------------------------------------------------------------------

"""
Module for configuration file abstraction.

This module provides the `MyConfig` class to read configuration values from
standard INI files. It wraps `configparser`. The register list is kept in its
own section and re-read between poll cycles, so `Reload` re-parses the file
from disk.
"""

import threading
from configparser import ConfigParser
from typing import Optional, Any, List, Tuple, Type

from rtumonlib.mycommon import MyCommon


class MyConfig(MyCommon):
    """
    INI file access for the settings section and the register list.

    Attributes:
        FileName (str): Path to the configuration file.
        Section (str): The default section to read.
        CriticalLock (threading.Lock): Lock held while the file is parsed.
        InitComplete (bool): False if the file could not be parsed.
        config (ConfigParser): Parser holding the last read of the file.
    """

    def __init__(
        self,
        filename: Optional[str] = None,
        section: Optional[str] = None,
        log: Any = None
    ):
        """
        Args:
            filename (str, optional): INI file to read.
            section (str, optional): Section used by ReadValue, the first one
                in the file if None.
            log (Any, optional): Logger for parse errors.
        """
        super(MyConfig, self).__init__()
        self.log = log
        self.FileName = filename
        self.Section = section
        self.CriticalLock = threading.Lock()
        self.InitComplete = False
        try:
            self.Reload()
            if self.Section is None:
                SectionList = self.GetSections()
                if len(SectionList):
                    self.Section = SectionList[0]
        except Exception as e1:
            self.LogErrorLine("Error in MyConfig:init: " + str(e1))
            return
        self.InitComplete = True

    def Reload(self) -> None:
        """Re-reads the configuration file from disk."""
        with self.CriticalLock:
            # optionxform keeps register names in the order and case they were written
            config = ConfigParser(interpolation=None)
            config.optionxform = str
            if self.FileName:
                config.read(self.FileName)
            self.config = config

    def HasOption(self, Entry: str) -> bool:
        """True if Entry is set in the current section."""
        return self.config.has_option(self.Section, Entry)

    def GetList(self, section: Optional[str] = None) -> Optional[List[Tuple[str, str]]]:
        """
        Returns the (name, value) pairs of a section in file order.

        Args:
            section (str, optional): Section to list, defaults to the current one.

        Returns:
            Optional[List[Tuple[str, str]]]: List of pairs or None on error.
        """
        if section is None:
            section = self.Section
        try:
            return self.config.items(section)
        except Exception as e1:
            self.LogErrorLine(
                "Error in MyConfig:GetList: " + str(section) + ": " + str(e1)
            )
            return None

    def GetSections(self) -> List[str]:
        """Returns a list of sections in the configuration file."""
        return self.config.sections()

    def SetSection(self, section: str) -> bool:
        """Switches the section used by ReadValue and HasOption."""
        if not isinstance(section, str) or not len(section):
            self.LogError(
                "Error in MyConfig:SetSection: invalid section: " + str(section)
            )
            return False
        self.Section = section
        return True

    def ReadValue(
        self,
        Entry: str,
        return_type: Type = str,
        default: Any = None,
        section: Optional[str] = None,
        NoLog: bool = False
    ) -> Any:
        """
        Reads one setting, falling back to a default.

        Args:
            Entry (str): The option name.
            return_type (Type, optional): str, bool, float or int.
            default (Any, optional): Returned when the option is missing or does
                not convert.
            section (str, optional): Switches the current section first.
            NoLog (bool, optional): Do not log conversion errors.

        Returns:
            Any: The converted value or `default`.
        """
        try:
            if section is not None:
                self.SetSection(section)

            if self.config.has_option(self.Section, Entry):
                if return_type == str:
                    return self.config.get(self.Section, Entry)
                elif return_type == bool:
                    return self.config.getboolean(self.Section, Entry)
                elif return_type == float:
                    return self.config.getfloat(self.Section, Entry)
                elif return_type == int:
                    return self.config.getint(self.Section, Entry)
                else:
                    self.LogErrorLine(
                        "Warning in MyConfig:ReadValue: invalid type, using default :"
                        + str(return_type)
                    )
                    return default
            else:
                return default
        except Exception as e1:
            if not NoLog:
                self.LogErrorLine(
                    "Error in MyConfig:ReadValue: "
                    + str(self.Section)
                    + ": "
                    + Entry
                    + ": "
                    + str(e1)
                )
            return default
