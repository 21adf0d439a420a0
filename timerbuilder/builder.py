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

"""
Module containing ``TimerBuilder``, which calls a rebuild function every time a timer fires.

``TimerBuilder`` follows the lifecycle of the component it refreshes: ``start`` when it is created, ``reconfigure``
whenever its timer configuration changes and ``dispose`` once at the end of its life.

.. code-block:: python

    def rebuild(trigger: Optional[datetime]) -> None:
        label.text = datetime.now().strftime("%H:%M:%S")

    timer = TimerBuilder(rebuild, periodic=timedelta(seconds=1))
    timer.start()
    ...
    timer.reconfigure(periodic=timedelta(minutes=1))
    ...
    timer.dispose()
"""

import logging
from datetime import datetime, timedelta
from threading import RLock, Thread, current_thread
from typing import Callable, List, Optional, Sequence

from humps import pascalize

from timerbuilder.alignment import ZERO
from timerbuilder.generators import MergedGenerator, PeriodicGenerator, ScheduledGenerator, TimeEventGenerator
from timerbuilder.stream import TimerStream
from timerbuilder.threading import StopSignal
from timerbuilder.util import isoformat

_logger = logging.getLogger(__name__)

BuildFunction = Callable[[Optional[datetime]], None]


def _create_generator(
    specific: Sequence[Optional[datetime]],
    periodic: Optional[timedelta],
    align: bool,
    generator: Optional[TimeEventGenerator],
) -> TimeEventGenerator:
    generators: List[TimeEventGenerator] = []
    if generator is not None:
        generators.append(generator)
    if specific:
        generators.append(ScheduledGenerator(specific))
    if periodic is not None:
        generators.append(PeriodicGenerator(periodic, None if align else ZERO))

    if len(generators) == 1:
        return generators[0]
    return MergedGenerator(*generators)


class TimerBuilder:
    """
    Calls a build function once on start, once per reconfiguration and once for every timer trigger.

    The timer runs on its own daemon thread. The build function is called with the trigger that fired, or ``None`` for
    the builds caused by ``start`` and ``reconfigure``. If the build function raises, the error is logged and the
    timer stops until the next ``reconfigure``.

    Args:
        builder: Build function.
        specific: Specific instants to fire at.
        periodic: Interval for periodic triggers.
        align: Align the periodic triggers to ``get_alignment_unit(periodic)``.
        generator: A custom time event generator, merged with ``specific`` and ``periodic``. Generators are single
            use, so pass a new one to ``reconfigure`` if the timer should continue with a custom generator.
        emit_overdue: Fire overdue triggers immediately instead of skipping them.
        name: Name of the timer, used for the thread name and in log messages.
        stop_signal: Parent signal. Cancelling it stops this timer, along with any other timer using the same parent.
    """

    def __init__(
        self,
        builder: BuildFunction,
        *,
        specific: Sequence[Optional[datetime]] = (),
        periodic: Optional[timedelta] = None,
        align: bool = True,
        generator: Optional[TimeEventGenerator] = None,
        emit_overdue: bool = False,
        name: str = "timer",
        stop_signal: Optional[StopSignal] = None,
    ) -> None:
        self._builder = builder
        self._generator = _create_generator(specific, periodic, align, generator)
        self._emit_overdue = emit_overdue
        self.name = name
        self._parent_signal = stop_signal

        self._lock = RLock()
        self._stream: Optional[TimerStream] = None
        self._thread: Optional[Thread] = None
        self._started = False
        self._disposed = False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._disposed:
                raise RuntimeError(f"Timer {self.name} is disposed")
            if self._started:
                raise RuntimeError(f"Timer {self.name} is already started")

            self._started = True
            self._builder(None)
            self._launch()

    def reconfigure(
        self,
        *,
        specific: Sequence[Optional[datetime]] = (),
        periodic: Optional[timedelta] = None,
        align: bool = True,
        generator: Optional[TimeEventGenerator] = None,
        emit_overdue: bool = False,
    ) -> None:
        """
        Replace the timer configuration. The running timer is stopped before the new one is started, so triggers from
        the old and the new configuration never interleave. An invalid configuration raises before the running timer
        is touched.
        """
        new_generator = _create_generator(specific, periodic, align, generator)

        with self._lock:
            if self._disposed:
                raise RuntimeError(f"Timer {self.name} is disposed")

        # Threads are joined outside the lock. Another reconfigure may launch a stream while this one waits, so detach
        # until nothing is running.
        while True:
            with self._lock:
                if self._disposed:
                    return
                previous = self._detach()
                if previous is None:
                    self._generator = new_generator
                    self._emit_overdue = emit_overdue
                    _logger.debug(f"Timer {self.name} reconfigured")

                    if self._started:
                        self._builder(None)
                        self._launch()
                    return

            previous.join()

    def dispose(self) -> None:
        """
        Stop the timer for good. Calling ``dispose`` more than once has no effect.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            previous = self._detach()
            _logger.debug(f"Timer {self.name} disposed")

        if previous is not None:
            previous.join()

    def _launch(self) -> None:
        signal = self._parent_signal.create_child_signal() if self._parent_signal else StopSignal()
        stream = TimerStream(self._generator, signal, emit_overdue=self._emit_overdue)
        thread = Thread(target=self._run, args=(stream,), name=f"{pascalize(self.name)}Timer", daemon=True)

        self._stream = stream
        self._thread = thread
        thread.start()

    def _run(self, stream: TimerStream) -> None:
        try:
            for trigger in stream:
                _logger.debug(f"Timer {self.name} fired at {isoformat(trigger)}")
                self._builder(trigger)
        except Exception:
            _logger.exception(f"Build function of timer {self.name} failed, stopping timer")
        finally:
            stream.close()

    def _detach(self) -> Optional[Thread]:
        """
        Stop the current stream and forget it. Must be called with the lock held.

        Returns:
            The thread running the stream, which the caller must join after releasing the lock. ``None`` if nothing is
            running, or if called from the timer thread itself.
        """
        if self._stream is None:
            return None

        self._stream.stop()
        thread = self._thread
        self._stream = None
        self._thread = None

        # The build function may reconfigure or dispose the timer from the timer thread itself
        if thread is None or thread is current_thread():
            return None
        return thread
