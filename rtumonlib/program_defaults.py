#!/usr/bin/env python
# -------------------------------------------------------------------------------
#    FILE: program_defaults.py
# PURPOSE: default values
#
#  AUTHOR: Jason G Yates
#    DATE: 10-May-2019
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for storing default program configuration values.

This module defines the `ProgramDefaults` class which holds static constants
used throughout the application for configuration paths, logging paths,
serial link settings and polling timing.
"""


class ProgramDefaults(object):
    """
    A container for application-wide default constants.

    Attributes:
        ConfPath (str): The default directory path for configuration files.
        ConfFile (str): The default configuration file name.
        ConfSection (str): The main section of the configuration file.
        RegisterSection (str): The configuration section listing registers.
        LogPath (str): The default directory path for log files.
        SerialPort (str): The default serial device.
        BaudRate (int): The default serial baud rate.
        DataBits (int): Default number of data bits per character.
        StopBits (int): Default number of stop bits per character.
        BitsPerCharacter (int): Bits on the wire per character (start + 8 data + stop).
        SlaveAddress (int): The default Modbus slave address.
        ResponseTimeoutMS (int): Time to wait for a response after a request.
        PollIntervalMS (int): Delay between the end of one poll cycle and the next.
        RTUMON_VERSION (str): The current version of the software.
    """
    ConfPath: str = "/etc/rtumon/"
    ConfFile: str = "rtumon.conf"
    ConfSection: str = "rtumon"
    RegisterSection: str = "registers"
    LogPath: str = "/var/log/"
    SerialPort: str = "/dev/ttyUSB0"
    BaudRate: int = 9600
    DataBits: int = 8
    StopBits: int = 1
    BitsPerCharacter: int = 10
    SlaveAddress: int = 1
    ResponseTimeoutMS: int = 1000
    PollIntervalMS: int = 1000
    RTUMON_VERSION: str = "V1.0.0"
