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

from prometheus_client import Counter, Gauge

TIMER_STREAM_TRIGGERS_EMITTED = Counter(
    "timerbuilder_stream_triggers_emitted", "Total number of triggers emitted by timer streams"
)
TIMER_STREAM_TRIGGERS_SKIPPED = Counter(
    "timerbuilder_stream_triggers_skipped", "Total number of overdue triggers skipped by timer streams"
)
TIMER_STREAM_STOPPED = Counter(
    "timerbuilder_stream_stopped", "Total number of timer streams ended", labelnames=["reason"]
)
TIMER_STREAMS_RUNNING = Gauge("timerbuilder_streams_running", "Number of timer streams currently running")
