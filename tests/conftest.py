from datetime import datetime, timedelta, timezone
from threading import RLock
from time import time
from typing import List, Optional

import pytest

T = datetime(2024, 5, 1, 10, 7, 31, 123456, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T) -> None:
        self.now = start

    def advance(self, delta: timedelta) -> None:
        self.now += delta

    def __call__(self) -> datetime:
        return self.now


class RecordingBuilder:
    def __init__(self, fail_on_trigger: bool = False) -> None:
        self.triggers: List[Optional[datetime]] = []
        self.called_times: List[float] = []
        self.fail_on_trigger = fail_on_trigger
        self.lock = RLock()

    def __call__(self, trigger: Optional[datetime]) -> None:
        with self.lock:
            self.triggers.append(trigger)
            self.called_times.append(time())
        if trigger is not None and self.fail_on_trigger:
            raise ValueError("Build failed")

    @property
    def fired(self) -> List[datetime]:
        with self.lock:
            return [t for t in self.triggers if t is not None]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
