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
Module containing functions for snapping datetimes to calendar boundaries, such as whole seconds, minutes or quarters
of an hour.

Alignment works on the wall clock fields of the datetime (hour, minute, second, millisecond and microsecond), so a
datetime in a non-UTC timezone is aligned to the boundaries of its own timezone:

.. code-block:: python

    >>> align_datetime(datetime(2024, 5, 1, 10, 7, 31), timedelta(minutes=15))
    datetime.datetime(2024, 5, 1, 10, 0)
    >>> align_datetime(datetime(2024, 5, 1, 10, 7, 31), timedelta(minutes=15), round_up=True)
    datetime.datetime(2024, 5, 1, 10, 15)
"""

from datetime import datetime, timedelta
from typing import List, Tuple

from timerbuilder.exceptions import InvalidArgumentError

ZERO = timedelta(0)

_DAY = timedelta(days=1)
_HOUR = timedelta(hours=1)
_MINUTE = timedelta(minutes=1)
_SECOND = timedelta(seconds=1)
_MILLISECOND = timedelta(milliseconds=1)
_MICROSECOND = timedelta(microseconds=1)

# Coarsest first
_UNITS = [_DAY, _HOUR, _MINUTE, _SECOND, _MILLISECOND, _MICROSECOND]


def _fields(dt: datetime) -> List[Tuple[int, timedelta, timedelta]]:
    # (value of the field, unit of the next coarser field, unit of the field)
    return [
        (dt.hour, _DAY, _HOUR),
        (dt.minute, _HOUR, _MINUTE),
        (dt.second, _MINUTE, _SECOND),
        (dt.microsecond // 1000, _SECOND, _MILLISECOND),
        (dt.microsecond % 1000, _MILLISECOND, _MICROSECOND),
    ]


def _correction(dt: datetime, alignment: timedelta) -> timedelta:
    correction = ZERO
    for value, coarser_unit, unit in _fields(dt):
        if alignment >= coarser_unit:
            correction += value * unit
        elif alignment >= unit:
            correction += (value % (alignment // unit)) * unit
    return correction


def align_datetime(dt: datetime, alignment: timedelta, round_up: bool = False) -> datetime:
    """
    Round a datetime down (or up) to the closest boundary given by an alignment unit.

    Args:
        dt: Datetime to align.
        alignment: Alignment unit. A zero alignment disables alignment and returns ``dt`` unchanged.
        round_up: Round up to the next boundary instead of down, unless ``dt`` is already on a boundary.

    Returns:
        The aligned datetime, with the same timezone as ``dt``.

    Raises:
        InvalidArgumentError: If the alignment is negative.
    """
    if alignment < ZERO:
        raise InvalidArgumentError(f"Alignment must be non-negative, got {alignment}")
    if alignment == ZERO:
        return dt

    correction = _correction(dt, alignment)
    if correction == ZERO:
        return dt

    aligned = dt - correction
    if round_up:
        aligned += alignment
    return aligned


def get_alignment_unit(interval: timedelta) -> timedelta:
    """
    Derive a natural alignment unit from an interval: one unit of the coarsest calendar field the interval is a whole
    number of. An interval of 15 minutes gives an alignment of 1 minute, 2 hours gives 1 hour, and 1.5 seconds gives 1
    millisecond.

    Note that this is not always the coarsest non-zero field: 90 minutes gives 1 minute, not 1 hour. With an hourly
    alignment, a periodic timer of 90 minutes would fire at uneven intervals.

    Args:
        interval: Interval to derive an alignment for.

    Returns:
        The alignment unit, or a zero timedelta for a zero interval.

    Raises:
        InvalidArgumentError: If the interval is negative.
    """
    if interval < ZERO:
        raise InvalidArgumentError(f"Interval must be non-negative, got {interval}")
    if interval == ZERO:
        return ZERO

    for unit in _UNITS:
        if interval % unit == ZERO:
            return unit
    return _MICROSECOND
