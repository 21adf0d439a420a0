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

import threading
from datetime import timedelta
from time import time

from pytest import approx

from timerbuilder.threading import StopSignal


def test_cancel() -> None:
    signal = StopSignal()
    assert not signal.is_cancelled
    signal.cancel()
    assert signal.is_cancelled
    signal.cancel()  # Does nothing
    assert signal.is_cancelled
    assert signal.wait(1)  # Returns immediately.


def test_wait_timeout() -> None:
    signal = StopSignal()

    start = time()
    assert not signal.wait(0.2)
    assert time() - start == approx(0.2, abs=0.1)

    start = time()
    assert not signal.wait(timedelta(milliseconds=200))
    assert time() - start == approx(0.2, abs=0.1)

    assert not signal.wait(0)
    assert not signal.wait(-1)


def test_wait() -> None:
    signal = StopSignal()

    def wait() -> None:
        signal.wait()

    t1 = threading.Thread(target=wait)
    t2 = threading.Thread(target=wait)
    t1.start()
    t2.start()
    # Wait a bit
    signal.wait(0.5)
    assert t1.is_alive()
    assert t2.is_alive()

    signal.cancel()
    t1.join(1)
    t2.join(1)
    assert not t1.is_alive()
    assert not t2.is_alive()


def test_cancel_wakes_timed_wait() -> None:
    signal = StopSignal()
    threading.Timer(0.1, signal.cancel).start()

    start = time()
    assert signal.wait(10)
    assert time() - start < 1


def test_child_signal() -> None:
    signal = StopSignal()
    child_a = signal.create_child_signal()
    child_b = signal.create_child_signal()

    def wait_a() -> None:
        child_a.wait()

    def wait_b() -> None:
        child_b.wait()

    t1 = threading.Thread(target=wait_a)
    t2 = threading.Thread(target=wait_b)
    t1.start()
    t2.start()

    signal.wait(0.5)
    assert t1.is_alive()
    assert t2.is_alive()

    child_b.cancel()
    t2.join(1)
    assert not t2.is_alive()
    assert t1.is_alive()
    assert not signal.is_cancelled

    signal.cancel()
    t1.join(1)
    assert not t1.is_alive()
    assert child_a.is_cancelled


def test_repr() -> None:
    signal = StopSignal()
    assert "not cancelled" in repr(signal)
    signal.cancel()
    assert repr(signal).endswith(": cancelled>")
