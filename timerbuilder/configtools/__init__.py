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
Module containing tools for loading timer configurations from YAML files.

Configs are described as ``dataclass``\\es, and use the ``BaseConfig`` class as a superclass to get a few things
built-in: config version, the timer itself, logging and metrics. A config file may look like the following:

.. code-block:: yaml

    version: 1

    timer:
        periodic: 15m
        specific:
            - 2024-05-01T12:00:00Z
        cron: "0 6 * * MON"

    logger:
        console:
            level: ${LOG_LEVEL}

You can then load a YAML file into this dataclass with the `load_yaml` function:

.. code-block:: python

    with open("config.yaml") as infile:
        config: BaseConfig = load_yaml(infile, BaseConfig)

    config.logger.setup_logging()
    for trigger in config.timer.create_stream():
        ...
"""

from timerbuilder.exceptions import InvalidConfigError

from .elements import BaseConfig, LoggingConfig, MetricsConfig, TimeIntervalConfig, TimerConfig
from .loaders import load_config_from_cli, load_yaml, load_yaml_dict
