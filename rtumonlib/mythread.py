# -------------------------------------------------------------------------------
# PURPOSE: manage threads
#
#  AUTHOR: Jason G Yates
#    DATE: 04-Mar-2017
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for managing threads with stop capabilities.

The poll loop runs on a `MyThread`. Stopping is cooperative: the owner sets its
own stop flag, which the thread function checks at safe points, and `Stop()`
wakes the thread from `Wait()`, the interruptible sleep between poll cycles.
"""

import threading
from typing import Optional, Callable, Any


class MyThread:
    """
    Daemon thread paired with a stop event.

    Attributes:
        StopEvent (threading.Event): Event used to signal the thread to stop.
        ThreadObj (threading.Thread): The underlying thread object.
    """

    def __init__(
        self,
        ThreadFunction: Callable[..., Any],
        Name: Optional[str] = None,
        start: bool = True
    ):
        """
        Args:
            ThreadFunction (Callable): The function to run in the thread.
            Name (str, optional): The name of the thread.
            start (bool, optional): Start the thread immediately. Defaults to True.
        """
        self.StopEvent = threading.Event()
        self.ThreadObj = threading.Thread(target=ThreadFunction, name=Name)
        self.ThreadObj.daemon = True
        if start:
            self.Start()

    def Start(self) -> None:
        self.ThreadObj.start()

    def Wait(self, timeout: Optional[float] = None) -> bool:
        """
        Sleeps until the stop signal or the timeout, whichever comes first.

        Returns:
            bool: True if the stop event was set, False if the timeout occurred.
        """
        return self.StopEvent.wait(timeout)

    def Stop(self) -> None:
        """Signals the thread to stop."""
        self.StopEvent.set()

    def IsAlive(self) -> bool:
        return self.ThreadObj.is_alive()

    def WaitForThreadToEnd(self, Timeout: Optional[float] = None) -> None:
        """
        Joins the thread.

        Args:
            Timeout (float, optional): The maximum time to wait in seconds.
        """
        # a thread cannot join itself, e.g. Stop called from a result callback
        if threading.current_thread() is self.ThreadObj:
            return
        self.ThreadObj.join(Timeout)
