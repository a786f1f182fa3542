#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: mycommon.py
# PURPOSE: common functions in all classes
#
#  AUTHOR: Jason G Yates
#    DATE: 21-Apr-2018
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module containing common functions used across all classes in the application.

This module defines the `MyCommon` class, which serves as a base class providing
logging helpers and hex formatting used by the protocol,
transport and scheduling classes.
"""

import os
import sys
from typing import Optional, Any, Dict, List

from rtumonlib.program_defaults import ProgramDefaults


# ------------ MyCommon class -----------------------------------------------------
class MyCommon(object):
    """
    Logging helpers shared by every class of the package.

    Attributes:
        DefaultConfPath (str): Default path for configuration files.
        log (logging.Logger): Logger instance.
        console (logging.Logger): Console logger instance.
        Threads (Dict): MyThread objects by name.
        debug (bool): Enables LogDebug output.
    """
    DefaultConfPath: str = ProgramDefaults.ConfPath

    def __init__(self):
        self.log: Optional[Any] = None
        self.console: Optional[Any] = None
        self.Threads: Dict[str, Any] = {}  # Dict of mythread objects
        self.debug: bool = False

    def LogHexList(
        self, listname: List[int], prefix: Optional[str] = None, nolog: bool = False
    ) -> str:
        """
        Formats a list of integers as a hex string list and optionally logs it.

        Args:
            listname (List[int]): The list of integers (or bytes).
            prefix (Optional[str], optional): Prefix for the log message.
            nolog (bool, optional): If True, does not log the message. Defaults to False.

        Returns:
            str: The formatted hex string.
        """
        try:
            outstr = "[" + ",".join("0x{:02x}".format(num) for num in listname) + "]"
            if prefix is not None:
                outstr = prefix + " = " + outstr

            if nolog is False:
                self.LogError(outstr)
            return outstr
        except Exception as e1:
            self.LogErrorLine("Error in LogHexList: " + str(e1))
            return ""

    def LogInfo(self, message: str, LogLine: bool = False) -> None:
        """Operator message: goes to the log file and the console."""
        if not LogLine:
            self.LogError(message)
        else:
            self.LogErrorLine(message)
        self.LogConsole(message)

    def LogConsole(self, Message: str) -> None:
        """Logs a message to the console."""
        if self.console is not None:
            self.console.error(Message)

    def LogError(self, Message: str, Error: Optional[Exception] = None) -> None:
        """Writes Message, and Error if given, to the module log file."""
        if self.log is not None:
            if Error is not None:
                Message = Message + " : " + self.GetErrorString(Error)
            self.log.error(Message)

    def LogErrorLine(self, Message: str, Error: Optional[Exception] = None) -> None:
        """Like LogError, with file:line of the exception being handled."""
        if self.log is not None:
            if Error is not None:
                Message = Message + " : " + self.GetErrorString(Error)
            self.log.error(Message + " : " + self.GetErrorLine())

    def LogDebug(self, Message: str, Error: Optional[Exception] = None) -> None:
        """Logs a message only when debug mode is enabled."""
        if self.debug:
            self.LogError(Message, Error)

    def GetErrorLine(self) -> str:
        # "file.py:123" of the exception being handled, "" outside a handler
        exc_type, exc_obj, exc_tb = sys.exc_info()
        if exc_tb is None:
            return ""
        fname = os.path.split(exc_tb.tb_frame.f_code.co_filename)[1]
        return fname + ":" + str(exc_tb.tb_lineno)

    def GetErrorString(self, Error: Any) -> str:
        return str(Error)

