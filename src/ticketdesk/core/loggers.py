# Copyright 2025 Emcie Co Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
import contextvars
from enum import Enum, auto
import logging
import sys
from typing import Any, Iterator, MutableMapping
from typing_extensions import override

import structlog

from ticketdesk.core.common import generate_id
from ticketdesk.core.tracer import Tracer


class LogLevel(Enum):
    TRACE = auto()
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()

    @staticmethod
    def from_string(value: str) -> LogLevel:
        try:
            return LogLevel[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: '{value}'")

    def to_logging_level(self) -> int:
        return {
            LogLevel.TRACE: logging.DEBUG,
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.CRITICAL: logging.CRITICAL,
        }[self]


class Logger(ABC):
    @abstractmethod
    def set_level(self, log_level: LogLevel) -> None: ...

    @abstractmethod
    def trace(self, message: str) -> None: ...

    @abstractmethod
    def debug(self, message: str) -> None: ...

    @abstractmethod
    def info(self, message: str) -> None: ...

    @abstractmethod
    def warning(self, message: str) -> None: ...

    @abstractmethod
    def error(self, message: str) -> None: ...

    @abstractmethod
    def critical(self, message: str) -> None: ...

    @contextmanager
    @abstractmethod
    def scope(self, scope_id: str) -> Iterator[None]: ...


class TracingLogger(Logger):
    """Structured logger that prefixes every line with the trace id and the active scopes."""

    def __init__(
        self,
        tracer: Tracer,
        log_level: LogLevel = LogLevel.DEBUG,
        logger_id: str | None = None,
    ) -> None:
        self._tracer = tracer
        self.log_level = log_level

        self.raw_logger = logging.getLogger(logger_id or "ticketdesk")
        self.raw_logger.setLevel(log_level.to_logging_level())

        self._instance_id = generate_id()
        self._scopes = contextvars.ContextVar[str](
            f"logger_{self._instance_id}_scopes",
            default="",
        )

        self._logger = structlog.wrap_logger(
            self.raw_logger,
            processors=[
                self._add_trace_prefix,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.render_to_log_kwargs,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(0),
        )

    @property
    def current_scope(self) -> str:
        return self._scopes.get()

    def _add_trace_prefix(
        self,
        _: Any,
        __: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        prefix = f"[{self._tracer.trace_id}]"

        if scope := self.current_scope:
            prefix += scope

        event = f"{prefix} {event_dict.get('event', '')}"

        if attributes := self._tracer.attributes:
            event += " (" + ", ".join(f"{k}={v}" for k, v in attributes.items()) + ")"

        event_dict["event"] = event
        return event_dict

    @override
    def set_level(self, log_level: LogLevel) -> None:
        self.log_level = log_level
        self.raw_logger.setLevel(log_level.to_logging_level())

    @override
    def trace(self, message: str) -> None:
        if self.log_level != LogLevel.TRACE:
            return

        self._logger.debug(message)

    @override
    def debug(self, message: str) -> None:
        self._logger.debug(message)

    @override
    def info(self, message: str) -> None:
        self._logger.info(message)

    @override
    def warning(self, message: str) -> None:
        self._logger.warning(message)

    @override
    def error(self, message: str) -> None:
        self._logger.error(message)

    @override
    def critical(self, message: str) -> None:
        self._logger.critical(message)

    @contextmanager
    @override
    def scope(self, scope_id: str) -> Iterator[None]:
        reset_token = self._scopes.set(self._scopes.get() + f"[{scope_id}]")

        try:
            yield
        finally:
            self._scopes.reset(reset_token)


class StdoutLogger(TracingLogger):
    def __init__(
        self,
        tracer: Tracer,
        log_level: LogLevel = LogLevel.DEBUG,
        logger_id: str | None = None,
    ) -> None:
        super().__init__(tracer=tracer, log_level=log_level, logger_id=logger_id)

        if not self.raw_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            self.raw_logger.addHandler(handler)
