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
Cancellable, wall-clock synchronized timer streams, firing periodically, at specific instants or on any custom
sequence of instants.
"""

__version__ = "1.0.0"

from .alignment import align_datetime, get_alignment_unit
from .builder import TimerBuilder
from .exceptions import InvalidArgumentError, InvalidConfigError, MalformedInputError
from .generators import (
    TimeEventGenerator,
    cron_generator,
    iterable_generator,
    merged_generator,
    periodic_generator,
    scheduled_generator,
)
from .stream import TimerStream, create_timer_stream, timer_stream
from .threading import StopSignal
