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
from datetime import datetime, timedelta
from threading import Event, Thread
from time import sleep
from typing import Optional

import pytest

from timerbuilder.builder import TimerBuilder
from timerbuilder.exceptions import InvalidArgumentError, MalformedInputError
from timerbuilder.generators import iterable_generator
from timerbuilder.threading import StopSignal
from timerbuilder.util import utc_now

from ..conftest import RecordingBuilder


def test_start_builds_and_fires() -> None:
    builder = RecordingBuilder()
    timer = TimerBuilder(builder, periodic=timedelta(milliseconds=100), name="test-timer")

    timer.start()
    assert builder.triggers[0] is None
    assert timer.is_running

    sleep(0.45)
    timer.dispose()

    fired = builder.fired
    assert 3 <= len(fired) <= 5
    for previous, current in zip(fired, fired[1:]):
        assert current - previous == timedelta(milliseconds=100)
    assert not timer.is_running


def test_no_builds_after_dispose() -> None:
    builder = RecordingBuilder()
    timer = TimerBuilder(builder, periodic=timedelta(milliseconds=50))
    timer.start()
    sleep(0.2)

    timer.dispose()
    count = len(builder.triggers)
    sleep(0.2)

    assert len(builder.triggers) == count
    timer.dispose()  # Does nothing


def test_specific_instants() -> None:
    builder = RecordingBuilder()
    now = utc_now()
    instants = [now + timedelta(seconds=0.2), now - timedelta(seconds=1), now + timedelta(seconds=0.1)]

    timer = TimerBuilder(builder, specific=instants)
    timer.start()
    sleep(0.4)

    assert builder.fired == [now + timedelta(seconds=0.1), now + timedelta(seconds=0.2)]
    assert not timer.is_running
    timer.dispose()


def test_reconfigure() -> None:
    builder = RecordingBuilder()
    timer = TimerBuilder(builder, periodic=timedelta(seconds=10))
    timer.start()

    timer.reconfigure(periodic=timedelta(milliseconds=100), align=False)
    assert builder.triggers == [None, None]

    sleep(0.35)
    timer.dispose()

    fired = builder.fired
    assert len(fired) >= 2
    for previous, current in zip(fired, fired[1:]):
        assert current - previous == timedelta(milliseconds=100)


def test_reconfigure_with_generator() -> None:
    builder = RecordingBuilder()
    now = utc_now()

    timer = TimerBuilder(builder)
    timer.start()
    timer.reconfigure(generator=iterable_generator([now + timedelta(seconds=0.1)]))
    sleep(0.3)
    timer.dispose()

    assert builder.fired == [now + timedelta(seconds=0.1)]


def test_invalid_reconfigure_keeps_timer() -> None:
    builder = RecordingBuilder()
    timer = TimerBuilder(builder, periodic=timedelta(milliseconds=50))
    timer.start()

    with pytest.raises(InvalidArgumentError):
        timer.reconfigure(periodic=timedelta(0))
    with pytest.raises(MalformedInputError):
        timer.reconfigure(specific=(utc_now() for _ in range(3)))  # type: ignore[arg-type]

    assert timer.is_running
    timer.dispose()


def test_lifecycle_errors() -> None:
    timer = TimerBuilder(RecordingBuilder(), periodic=timedelta(seconds=1))
    timer.start()
    with pytest.raises(RuntimeError):
        timer.start()

    timer.dispose()
    with pytest.raises(RuntimeError):
        timer.reconfigure(periodic=timedelta(seconds=1))
    with pytest.raises(RuntimeError):
        timer.start()


def test_failing_build_stops_timer(caplog: pytest.LogCaptureFixture) -> None:
    builder = RecordingBuilder(fail_on_trigger=True)
    timer = TimerBuilder(builder, periodic=timedelta(milliseconds=50), name="failing")

    with caplog.at_level(logging.ERROR):
        timer.start()
        sleep(0.3)

    assert len(builder.fired) == 1
    assert not timer.is_running
    assert "Build function of timer failing failed" in caplog.text
    timer.dispose()


def test_parent_signal_stops_timers() -> None:
    parent = StopSignal()
    builders = [RecordingBuilder(), RecordingBuilder()]
    timers = [TimerBuilder(b, periodic=timedelta(milliseconds=50), stop_signal=parent) for b in builders]
    for timer in timers:
        timer.start()

    sleep(0.2)
    parent.cancel()
    sleep(0.1)

    assert not any(timer.is_running for timer in timers)
    assert all(len(b.fired) >= 2 for b in builders)
    for timer in timers:
        timer.dispose()


def test_dispose_from_build_function() -> None:
    builder = RecordingBuilder()

    def build_once(trigger: Optional[datetime]) -> None:
        builder(trigger)
        if trigger is not None:
            timer.dispose()

    timer = TimerBuilder(build_once, periodic=timedelta(milliseconds=50))
    timer.start()
    sleep(0.3)

    assert len(builder.fired) == 1
    assert not timer.is_running


def test_dispose_from_build_function_during_reconfigure() -> None:
    entered = Event()
    release = Event()
    builder = RecordingBuilder()

    def build_blocking(trigger: Optional[datetime]) -> None:
        builder(trigger)
        if trigger is not None and not entered.is_set():
            entered.set()
            release.wait(5)
            timer.dispose()

    timer = TimerBuilder(build_blocking, periodic=timedelta(milliseconds=50))
    timer.start()
    assert entered.wait(2)

    reconfigure_thread = Thread(target=timer.reconfigure, kwargs={"periodic": timedelta(milliseconds=50)})
    reconfigure_thread.start()
    sleep(0.1)
    release.set()

    reconfigure_thread.join(3)
    assert not reconfigure_thread.is_alive()
    assert not timer.is_running
    assert builder.triggers.count(None) == 1


def test_concurrent_reconfigures_leave_one_timer() -> None:
    builder = RecordingBuilder()
    timer = TimerBuilder(builder, periodic=timedelta(milliseconds=20))
    timer.start()

    threads = [Thread(target=timer.reconfigure, kwargs={"periodic": timedelta(milliseconds=20)}) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(3)

    assert not any(thread.is_alive() for thread in threads)
    assert timer.is_running
    assert builder.triggers.count(None) == 5
    timer.dispose()
    assert not timer.is_running


def test_naive_specific_instants_fail_fast() -> None:
    with pytest.raises(MalformedInputError):
        TimerBuilder(RecordingBuilder(), specific=[datetime.now() + timedelta(milliseconds=50)])
