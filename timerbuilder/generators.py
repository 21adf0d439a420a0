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
Module containing time event generators.

A time event generator is a stateful callable that is given the current time and returns the next time a timer should
fire, or ``None`` when there are no more events. Generators are driven by a timer stream (see ``timerbuilder.stream``),
which takes care of waiting until each returned instant and of skipping instants that are already in the past.

Generators are single use: create a new one whenever the configuration it was made from changes.

.. code-block:: python

    generator = periodic_generator(timedelta(minutes=15))
    generator(datetime(2024, 5, 1, 10, 7, 31, tzinfo=timezone.utc))  # 10:22:00
    generator(datetime(2024, 5, 1, 10, 22, 0, tzinfo=timezone.utc))  # 10:37:00
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sized
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set

from croniter import croniter

from timerbuilder.alignment import ZERO, align_datetime, get_alignment_unit
from timerbuilder.exceptions import InvalidArgumentError, MalformedInputError

_logger = logging.getLogger(__name__)


class TimeEventGenerator(ABC):
    @abstractmethod
    def __call__(self, now: datetime) -> Optional[datetime]:
        """
        Get the next trigger.

        Args:
            now: The current time.

        Returns:
            The next trigger, or ``None`` if the sequence has ended.
        """
        pass


class PeriodicGenerator(TimeEventGenerator):
    """
    Fires every ``interval``, with every trigger aligned to ``alignment``.

    If the generator is queried long after the trigger it last returned (for example after the process was suspended),
    it catches up by continuing from the current time instead of returning every missed trigger.

    Args:
        interval: Time between triggers. Must be positive.
        alignment: Alignment unit for the triggers. Defaults to ``get_alignment_unit(interval)``, a zero timedelta
            disables alignment.
    """

    def __init__(self, interval: timedelta, alignment: Optional[timedelta] = None) -> None:
        if interval <= ZERO:
            raise InvalidArgumentError(f"Interval must be positive, got {interval}")
        if alignment is None:
            alignment = get_alignment_unit(interval)
        elif alignment < ZERO:
            raise InvalidArgumentError(f"Alignment must be non-negative, got {alignment}")

        self._interval = interval
        self._alignment = alignment
        self._next: Optional[datetime] = None

    @property
    def interval(self) -> timedelta:
        return self._interval

    @property
    def alignment(self) -> timedelta:
        return self._alignment

    def __call__(self, now: datetime) -> Optional[datetime]:
        previous = self._next if self._next is not None else now
        candidate = align_datetime(previous + self._interval, self._alignment)

        if candidate <= now:
            candidate = align_datetime(now + self._interval, self._alignment)
            if candidate <= now:
                # Only possible when the alignment is coarser than the interval
                candidate = align_datetime(now + self._interval, self._alignment, round_up=True)
            if self._next is not None:
                _logger.debug(f"Periodic trigger {self._next} is overdue, catching up to {candidate}")

        self._next = candidate
        return candidate


class ScheduledGenerator(TimeEventGenerator):
    """
    Fires once at each of a fixed set of instants, in ascending order. The ``now`` argument is not used, overdue
    instants are skipped by the timer stream.

    Args:
        instants: A finite collection of datetimes. ``None`` entries are ignored. The collection is copied and sorted,
            so it must be fully materializable: lazy iterators are rejected, use ``IterableGenerator`` for those.

    Raises:
        MalformedInputError: If ``instants`` is a lazy iterator, or contains something that isn't a timezone aware
            datetime.
    """

    def __init__(self, instants: Iterable[Optional[datetime]]) -> None:
        if isinstance(instants, Iterator) or not isinstance(instants, Sized):
            raise MalformedInputError(
                f"Scheduled instants must be a finite collection, got {type(instants).__name__}. "
                "Use an iterable generator for lazy sequences."
            )

        materialized: List[datetime] = []
        for instant in instants:
            if instant is None:
                continue
            if not isinstance(instant, datetime):
                raise MalformedInputError(f"Scheduled instants must be datetimes, got {instant!r}")
            if instant.utcoffset() is None:
                raise MalformedInputError(f"Scheduled instants must be timezone aware, got {instant.isoformat()}")
            materialized.append(instant)

        materialized.sort()
        self._instants = materialized
        self._cursor = 0

    @property
    def remaining(self) -> int:
        return len(self._instants) - self._cursor

    def __call__(self, now: datetime) -> Optional[datetime]:
        if self._cursor >= len(self._instants):
            return None

        instant = self._instants[self._cursor]
        self._cursor += 1
        return instant


class IterableGenerator(TimeEventGenerator):
    """
    Fires at each instant of an arbitrary, possibly infinite, iterable. The iterable is expected to be in
    non-decreasing order; it is not sorted or validated. The sequence ends when the iterable is exhausted or yields
    ``None``.
    """

    def __init__(self, sequence: Iterable[Optional[datetime]]) -> None:
        self._iterator: Iterator[Optional[datetime]] = iter(sequence)
        self._exhausted = False

    def __call__(self, now: datetime) -> Optional[datetime]:
        if self._exhausted:
            return None

        instant = next(self._iterator, None)
        if instant is None:
            self._exhausted = True
        return instant


class CronGenerator(TimeEventGenerator):
    """
    Fires at the instants described by a cron expression, such as ``*/5 * * * *`` for every fifth minute. The
    expression is evaluated in the timezone of the ``now`` passed to the generator.

    Raises:
        InvalidArgumentError: If the expression is not a valid cron expression.
    """

    def __init__(self, expression: str) -> None:
        if not croniter.is_valid(expression):
            raise InvalidArgumentError(f"Invalid cron expression: '{expression}'")
        self._expression = expression
        self._last: Optional[datetime] = None

    @property
    def expression(self) -> str:
        return self._expression

    def __call__(self, now: datetime) -> Optional[datetime]:
        start = now if self._last is None or now > self._last else self._last
        self._last = croniter(self._expression, start).get_next(datetime)
        return self._last


class MergedGenerator(TimeEventGenerator):
    """
    Combines several generators into one, returning the earliest pending trigger of all of them on every call.
    Triggers that more than one generator returns for the same instant are only returned once. The sequence ends when
    every generator has ended.
    """

    def __init__(self, *generators: TimeEventGenerator) -> None:
        self._generators = list(generators)
        self._pending: Dict[int, datetime] = {}
        self._exhausted: Set[int] = set()

    def __call__(self, now: datetime) -> Optional[datetime]:
        for index, generator in enumerate(self._generators):
            if index in self._exhausted or index in self._pending:
                continue

            instant = generator(now)
            if instant is None:
                self._exhausted.add(index)
            else:
                self._pending[index] = instant

        if not self._pending:
            return None

        earliest = min(self._pending.values())
        for index in [i for i, instant in self._pending.items() if instant == earliest]:
            del self._pending[index]
        return earliest


def periodic_generator(interval: timedelta, alignment: Optional[timedelta] = None) -> TimeEventGenerator:
    return PeriodicGenerator(interval, alignment)


def scheduled_generator(instants: Iterable[Optional[datetime]]) -> TimeEventGenerator:
    return ScheduledGenerator(instants)


def iterable_generator(sequence: Iterable[Optional[datetime]]) -> TimeEventGenerator:
    return IterableGenerator(sequence)


def cron_generator(expression: str) -> TimeEventGenerator:
    return CronGenerator(expression)


def merged_generator(*generators: TimeEventGenerator) -> TimeEventGenerator:
    return MergedGenerator(*generators)
