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
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from logging.handlers import TimedRotatingFileHandler
from typing import List, Optional, Tuple, Union

import yaml
from prometheus_client import REGISTRY, start_http_server

from timerbuilder.alignment import ZERO
from timerbuilder.exceptions import InvalidArgumentError, InvalidConfigError, MalformedInputError
from timerbuilder.generators import (
    CronGenerator,
    MergedGenerator,
    PeriodicGenerator,
    ScheduledGenerator,
    TimeEventGenerator,
)
from timerbuilder.stream import TimerStream
from timerbuilder.threading import StopSignal

_logger = logging.getLogger(__name__)


class TimeIntervalConfig(yaml.YAMLObject):
    """
    Configuration parameter for setting a time interval
    """

    def __init__(self, expression: Union[str, int]) -> None:
        self._interval, self._expression = TimeIntervalConfig._parse_expression(expression)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeIntervalConfig):
            return NotImplemented
        return self._interval == other._interval

    def __hash__(self) -> int:
        return hash(self._interval)

    @classmethod
    def _parse_expression(cls, expression: Union[str, int]) -> Tuple[timedelta, str]:
        # First, try to parse pure number and assume seconds
        try:
            return timedelta(seconds=int(expression)), f"{expression}s"
        except ValueError:
            pass

        match = re.fullmatch(r"(\d+)[ \t]*(ms|s|m|h|d)", str(expression).strip())
        if not match:
            raise InvalidConfigError(f"Invalid interval pattern: {expression}")

        number, unit = match.groups()
        unit_length = {
            "ms": timedelta(milliseconds=1),
            "s": timedelta(seconds=1),
            "m": timedelta(minutes=1),
            "h": timedelta(hours=1),
            "d": timedelta(days=1),
        }[unit]

        return int(number) * unit_length, str(expression)

    @property
    def seconds(self) -> float:
        return self._interval.total_seconds()

    @property
    def minutes(self) -> float:
        return self.seconds / 60

    @property
    def hours(self) -> float:
        return self.seconds / (60 * 60)

    @property
    def timedelta(self) -> timedelta:
        return self._interval

    def __float__(self) -> float:
        return self.seconds

    def __str__(self) -> str:
        return self._expression

    def __repr__(self) -> str:
        return self._expression


@dataclass
class TimerConfig:
    """
    Configuration of when a timer fires. Any combination of ``periodic``, ``specific`` and ``cron`` can be given, the
    timer then fires whenever any of them does.
    """

    periodic: Optional[TimeIntervalConfig] = None
    align: bool = True
    alignment: Optional[TimeIntervalConfig] = None
    specific: List[datetime] = field(default_factory=list)
    cron: Optional[str] = None
    emit_overdue: bool = False

    def create_generator(self) -> TimeEventGenerator:
        """
        Create a time event generator as configured.

        Raises:
            InvalidConfigError: If no timer is configured, or if the configured values are not accepted by the
                generators.
        """
        generators: List[TimeEventGenerator] = []
        try:
            if self.specific:
                generators.append(ScheduledGenerator(self.specific))

            if self.periodic is not None:
                alignment: Optional[timedelta] = None
                if not self.align:
                    alignment = ZERO
                elif self.alignment is not None:
                    alignment = self.alignment.timedelta
                generators.append(PeriodicGenerator(self.periodic.timedelta, alignment))

            if self.cron is not None:
                generators.append(CronGenerator(self.cron))

        except (InvalidArgumentError, MalformedInputError) as e:
            raise InvalidConfigError(e.message) from e

        if not generators:
            raise InvalidConfigError("Timer needs at least one of periodic, specific or cron")
        if len(generators) == 1:
            return generators[0]
        return MergedGenerator(*generators)

    def create_stream(self, stop_signal: Optional[StopSignal] = None) -> TimerStream:
        return TimerStream(self.create_generator(), stop_signal, emit_overdue=self.emit_overdue)


@dataclass
class _ConsoleLoggingConfig:
    level: str = "INFO"


@dataclass
class _FileLoggingConfig:
    path: str
    level: str = "INFO"
    retention: int = 7


@dataclass
class LoggingConfig:
    """
    Logging settings, such as log levels and path to log file
    """

    console: Optional[_ConsoleLoggingConfig] = field(default_factory=_ConsoleLoggingConfig)
    file: Optional[_FileLoggingConfig] = None

    def setup_logging(self, suppress_console: bool = False) -> None:
        """
        Sets up the default logger in the logging package to be configured as defined in this config object

        Args:
            suppress_console: Don't log to console regardless of config.
        """
        fmt = logging.Formatter(
            "%(asctime)s.%(msecs)03d UTC [%(levelname)-8s] %(threadName)s - %(message)s",
            "%Y-%m-%d %H:%M:%S",
        )
        # Set logging to UTC
        fmt.converter = time.gmtime

        root = logging.getLogger()

        if self.console and not suppress_console and not root.hasHandlers():
            console_handler = logging.StreamHandler()
            console_handler.setLevel(self.console.level)
            console_handler.setFormatter(fmt)

            root.addHandler(console_handler)

            if root.getEffectiveLevel() > console_handler.level:
                root.setLevel(console_handler.level)

        if self.file:
            file_handler = TimedRotatingFileHandler(
                filename=self.file.path,
                when="midnight",
                utc=True,
                backupCount=self.file.retention,
            )
            file_handler.setLevel(self.file.level)
            file_handler.setFormatter(fmt)

            for handler in root.handlers:
                if hasattr(handler, "baseFilename") and handler.baseFilename == file_handler.baseFilename:
                    return

            root.addHandler(file_handler)

            if root.getEffectiveLevel() > file_handler.level:
                root.setLevel(file_handler.level)


@dataclass
class _PromServerConfig:
    port: int = 9000
    host: str = "0.0.0.0"


@dataclass
class MetricsConfig:
    """
    Where to expose the timer metrics. Currently only a Prometheus HTTP endpoint is supported.
    """

    server: Optional[_PromServerConfig] = None

    def start_server(self) -> None:
        if self.server:
            _logger.info(f"Serving metrics on {self.server.host}:{self.server.port}")
            start_http_server(self.server.port, self.server.host, registry=REGISTRY)


@dataclass
class BaseConfig:
    """
    Basis for a timer config file, containing config version, ``TimerConfig``, ``LoggingConfig`` and
    ``MetricsConfig``
    """

    timer: TimerConfig
    version: Optional[Union[str, int]] = None
    logger: LoggingConfig = field(default_factory=LoggingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
