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
Small time helpers shared by the generators and the stream driver.
"""

from datetime import datetime, timezone
from typing import Callable

import arrow

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Current time as a timezone aware datetime in UTC. This is the default clock of the timer streams.
    """
    return datetime.now(tz=timezone.utc)


def datetime_to_timestamp(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def timestamp_to_datetime(ts: int) -> datetime:
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc)


def isoformat(dt: datetime) -> str:
    return arrow.get(dt).isoformat()
