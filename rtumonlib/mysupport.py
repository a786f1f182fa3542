#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: mysupport.py
# PURPOSE: support functions in major classes
#
#  AUTHOR: Jason G Yates
#    DATE: 21-Apr-2018
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module containing the `MySupport` class which provides thread bookkeeping for
the classes that own worker threads, plus the command line setup shared by
the programs of this package.
"""

import getopt
import os
import sys
from typing import Optional, Any, Dict, Tuple

from rtumonlib.mycommon import MyCommon
from rtumonlib.myconfig import MyConfig
from rtumonlib.mylog import SetupLogger
from rtumonlib.program_defaults import ProgramDefaults


class MySupport(MyCommon):
    """
    A support class providing thread management helpers.

    Threads are kept in `self.Threads` keyed by name, so stop and join can be
    requested by name from any method of the owning class.
    """

    def __init__(self):
        super(MySupport, self).__init__()

    def WaitForExit(self, Name: str, timeout: Optional[float] = None) -> bool:
        """
        Waits for a thread's stop event.

        Args:
            Name (str): The name of the thread.
            timeout (float, optional): Wait timeout in seconds.

        Returns:
            bool: True if stop signal received, False if timed out.
        """
        Thread = self.Threads.get(Name, None)
        if Thread is None:
            self.LogError("Error getting thread name in WaitForExit: " + Name)
            return False

        return Thread.Wait(timeout)

    @staticmethod
    def GetErrorLine() -> str:
        """
        Static wrapper for fetching exception line info.

        Returns:
            str: "filename:lineno" or empty string.
        """
        exc_type, exc_obj, exc_tb = sys.exc_info()
        if exc_tb is None:
            return ""
        fname = os.path.split(exc_tb.tb_frame.f_code.co_filename)[1]
        return fname + ":" + str(exc_tb.tb_lineno)

    @staticmethod
    def SetupProgram(
        prog_name: str, argv: Optional[list] = None
    ) -> Tuple[Any, MyConfig, Dict[str, Any], Any]:
        """
        Performs standard setup for a program of this package (logging, args, config).

        Recognized options:
            -h                 help
            -c <path>          directory holding rtumon.conf
            -p <device>        serial port, overrides the config file
            -a <address>       slave address, overrides the config file
            -o                 poll once and exit

        Args:
            prog_name (str): The name of the program.
            argv (list, optional): Arguments, defaults to sys.argv[1:].

        Returns:
            Tuple: (console_logger, config, overrides, file_logger)
        """
        console = SetupLogger(prog_name + "_console", log_file="", stream=True)

        HelpStr = (
            "\npython "
            + prog_name
            + ".py -c <path to "
            + prog_name
            + " config directory> [-p <serial port>] [-a <slave address>] [-o]\n"
        )

        if argv is None:
            argv = sys.argv[1:]

        ConfigFilePath = ProgramDefaults.ConfPath
        overrides: Dict[str, Any] = {"once": False}

        try:
            opts, args = getopt.getopt(
                argv, "hc:p:a:o", ["help", "configpath=", "port=", "address=", "once"]
            )
        except getopt.GetoptError:
            console.error("Invalid command line argument.")
            sys.exit(2)

        for opt, arg in opts:
            if opt in ("-h", "--help"):
                console.error(HelpStr)
                sys.exit()
            elif opt in ("-c", "--configpath"):
                ConfigFilePath = arg.strip()
            elif opt in ("-p", "--port"):
                overrides["port"] = arg.strip()
            elif opt in ("-a", "--address"):
                overrides["address"] = arg.strip()
            elif opt in ("-o", "--once"):
                overrides["once"] = True

        config = MyConfig(
            os.path.join(ConfigFilePath, ProgramDefaults.ConfFile),
            section=ProgramDefaults.ConfSection,
            log=console,
        )
        loglocation = config.ReadValue("loglocation", default=ProgramDefaults.LogPath)
        log = SetupLogger(prog_name, os.path.join(loglocation, prog_name + ".log"))
        config.log = log

        return console, config, overrides, log
