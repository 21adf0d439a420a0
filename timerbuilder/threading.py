#  Copyright 2024 Cognite AS
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

import logging
import signal
from datetime import timedelta
from threading import Condition
from time import monotonic
from typing import Any, Optional, Union


class StopSignal:
    """
    One-shot signal used to stop a timer stream while it is waiting for its next trigger.

    A signal can be cancelled at any time, also when nothing is waiting on it: a later ``wait`` returns immediately.
    Cancelling more than once has no effect. Signals can be arranged in hierarchies with ``create_child_signal``, so
    that one owner can stop many streams at once while each stream can still be stopped alone.
    """

    def __init__(self, condition: Optional[Condition] = None) -> None:
        self._cv: Condition = condition or Condition()
        self._is_cancelled_int: bool = False
        self._parent: Optional["StopSignal"] = None

    def __repr__(self) -> str:
        cls = self.__class__
        status = "cancelled" if self.is_cancelled else "not cancelled"
        return f"<{cls.__module__}.{cls.__qualname__} at {id(self):#x}: {status}>"

    @property
    def is_cancelled(self) -> bool:
        """
        ``True`` if the signal has been cancelled, or if some parent signal has been cancelled.
        """
        return self._is_cancelled_int or self._parent is not None and self._parent.is_cancelled

    def cancel(self) -> None:
        """
        Cancel the signal, waking up any waiting threads.
        """
        if self.is_cancelled:
            return

        with self._cv:
            self._is_cancelled_int = True
            self._cv.notify_all()

    def wait(self, timeout: Union[float, timedelta, None] = None) -> bool:
        """
        Wait until the signal is cancelled or the timeout elapses, whichever comes first.

        Args:
            timeout: Longest time to wait, in seconds or as a timedelta. Wait forever if ``None``.

        Returns:
            ``True`` if the signal was cancelled, ``False`` if the timeout elapsed first.
        """
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()

        endtime = None
        if timeout is not None:
            endtime = monotonic() + timeout

        with self._cv:
            while not self.is_cancelled:
                if endtime is None:
                    self._cv.wait()
                    continue

                remaining_time = endtime - monotonic()
                if remaining_time <= 0.0:
                    return False
                self._cv.wait(remaining_time)
        return True

    def create_child_signal(self) -> "StopSignal":
        child = StopSignal(self._cv)
        child._parent = self
        return child

    def cancel_on_interrupt(self) -> None:
        """
        Register an interrupt handler to capture SIGINT (Ctrl-C) and cancel this signal, instead of throwing a
        KeyboardInterrupt exception.
        """

        def sigint_handler(sig_num: int, frame: Any) -> None:
            logger = logging.getLogger(__name__)
            logger.warning("Interrupt signal received, stopping timers gracefully")
            self.cancel()
            logger.info("Waiting for timers to stop. Send another interrupt to force quit.")
            signal.signal(signal.SIGINT, signal.default_int_handler)

        try:
            signal.signal(signal.SIGINT, sigint_handler)
        except ValueError as e:
            logging.getLogger(__name__).warning(f"Could not register handler for interrupt signals: {str(e)}")
