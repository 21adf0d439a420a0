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
Run a timer from a config file and log every trigger, until interrupted or until the timer has no more triggers:

.. code-block:: bash

    python -m timerbuilder config.yaml
"""

import logging
from typing import List, Optional

from timerbuilder import __version__
from timerbuilder.configtools import BaseConfig, load_config_from_cli
from timerbuilder.threading import StopSignal
from timerbuilder.util import isoformat


def main(argv: Optional[List[str]] = None) -> None:
    config = load_config_from_cli(
        "timerbuilder", "Log the triggers of a configured timer", __version__, BaseConfig, argv
    )
    config.logger.setup_logging()
    config.metrics.start_server()

    logger = logging.getLogger(__name__)

    stop_signal = StopSignal()
    stop_signal.cancel_on_interrupt()

    logger.info("Timer started")
    for trigger in config.timer.create_stream(stop_signal):
        logger.info(f"Timer fired at {isoformat(trigger)}")
    logger.info("Timer stopped")


if __name__ == "__main__":
    main()
