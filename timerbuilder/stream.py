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
Module containing the timer stream, which drives a time event generator and yields each trigger when its time comes.

A timer stream is a plain Python iterator. Iterating it blocks until the next trigger is due, so it is normally
consumed from a dedicated thread, and stopped from another thread through its stop signal:

.. code-block:: python

    stop = StopSignal()
    for trigger in create_timer_stream(periodic_generator(timedelta(seconds=1)), stop):
        print("Tick", trigger)

When the stop signal is cancelled the stream ends immediately, without yielding the trigger it was waiting for.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Iterator, List, Optional

from timerbuilder._metrics import (
    TIMER_STREAM_STOPPED,
    TIMER_STREAM_TRIGGERS_EMITTED,
    TIMER_STREAM_TRIGGERS_SKIPPED,
    TIMER_STREAMS_RUNNING,
)
from timerbuilder.alignment import ZERO
from timerbuilder.generators import MergedGenerator, PeriodicGenerator, ScheduledGenerator, TimeEventGenerator
from timerbuilder.threading import StopSignal
from timerbuilder.util import Clock, isoformat, utc_now

_logger = logging.getLogger(__name__)


def create_timer_stream(
    generator: TimeEventGenerator,
    stop_signal: StopSignal,
    *,
    emit_overdue: bool = False,
    clock: Clock = utc_now,
) -> Iterator[datetime]:
    """
    Drive a time event generator, yielding each trigger once the clock has reached it.

    The generator is queried with the current time. If it returns ``None`` the stream ends. A trigger that is already
    due is skipped and the generator is queried again right away. Otherwise the stream waits until the trigger is due
    and yields it, unless the stop signal is cancelled first, in which case the stream ends without yielding it.

    A generator that keeps returning the same past instant makes the stream query it in a tight loop until the stop
    signal is cancelled.

    Args:
        generator: Generator deciding when to fire.
        stop_signal: Signal that ends the stream when cancelled.
        emit_overdue: Yield triggers that are already due immediately instead of skipping them.
        clock: Source of the current time.

    Returns:
        An iterator over the triggers, in the order they fire.
    """
    TIMER_STREAMS_RUNNING.inc()
    reason = "closed"
    try:
        while not stop_signal.is_cancelled:
            now = clock()
            trigger = generator(now)

            if trigger is None:
                _logger.debug("Time event generator has no more triggers")
                reason = "exhausted"
                return

            if trigger <= now:
                if not emit_overdue:
                    _logger.debug(f"Skipping overdue trigger {isoformat(trigger)}")
                    TIMER_STREAM_TRIGGERS_SKIPPED.inc()
                    continue

            else:
                wait_time = trigger - now
                _logger.debug(f"Waiting {wait_time.total_seconds():.3f} s until {isoformat(trigger)}")
                if stop_signal.wait(wait_time):
                    break

            TIMER_STREAM_TRIGGERS_EMITTED.inc()
            yield trigger

        _logger.debug("Timer stream stopped")
        reason = "stopped"

    finally:
        TIMER_STREAMS_RUNNING.dec()
        TIMER_STREAM_STOPPED.labels(reason=reason).inc()


class TimerStream:
    """
    A timer stream together with the stop signal that ends it.

    ``stop`` can be called from any thread, also while another thread is blocked waiting for the next trigger.
    ``close`` (or leaving a ``with`` block) must be called from the thread consuming the stream.

    Args:
        generator: Generator deciding when to fire.
        stop_signal: Signal that ends the stream when cancelled. A new signal is created if not given.
        emit_overdue: Yield triggers that are already due immediately instead of skipping them.
        clock: Source of the current time.
    """

    def __init__(
        self,
        generator: TimeEventGenerator,
        stop_signal: Optional[StopSignal] = None,
        *,
        emit_overdue: bool = False,
        clock: Clock = utc_now,
    ) -> None:
        self._stop_signal = stop_signal or StopSignal()
        self._iterator = create_timer_stream(generator, self._stop_signal, emit_overdue=emit_overdue, clock=clock)

    @property
    def stop_signal(self) -> StopSignal:
        return self._stop_signal

    def __iter__(self) -> "TimerStream":
        return self

    def __next__(self) -> datetime:
        return next(self._iterator)

    def stop(self) -> None:
        self._stop_signal.cancel()

    def close(self) -> None:
        self.stop()
        self._iterator.close()

    def __enter__(self) -> "TimerStream":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


def timer_stream(
    specific: Iterable[Optional[datetime]] = (),
    periodic: Optional[timedelta] = None,
    align: bool = True,
    stop_signal: Optional[StopSignal] = None,
    emit_overdue: bool = False,
) -> TimerStream:
    """
    Create a timer stream firing at a set of specific instants and/or periodically.

    Args:
        specific: Specific instants to fire at. Instants that are in the past when they come up are skipped.
        periodic: Interval for periodic triggers.
        align: Align the periodic triggers to ``get_alignment_unit(periodic)``.
        stop_signal: Signal that ends the stream when cancelled. A new signal is created if not given.
        emit_overdue: Yield triggers that are already due immediately instead of skipping them.

    Returns:
        A timer stream. It ends right away if neither ``specific`` nor ``periodic`` is given.
    """
    generators: List[TimeEventGenerator] = []
    if specific:
        generators.append(ScheduledGenerator(specific))
    if periodic is not None:
        generators.append(PeriodicGenerator(periodic, None if align else ZERO))

    return TimerStream(MergedGenerator(*generators), stop_signal, emit_overdue=emit_overdue)
