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

from abc import ABC, abstractmethod
from contextlib import contextmanager
import contextvars
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping
from typing_extensions import override

from ticketdesk.core.common import generate_id


class Tracer(ABC):
    """Names the unit of work (e.g. one CLI command) that log lines belong to."""

    @contextmanager
    @abstractmethod
    def scope(self, scope_id: str, **attributes: Any) -> Iterator[None]: ...

    @property
    @abstractmethod
    def trace_id(self) -> str: ...

    @property
    @abstractmethod
    def attributes(self) -> Mapping[str, Any]: ...


@dataclass(frozen=True)
class _TraceFrame:
    scopes: tuple[str, ...] = ()
    attributes: Mapping[str, Any] = field(default_factory=dict)


class LocalTracer(Tracer):
    def __init__(self) -> None:
        self._frame = contextvars.ContextVar[_TraceFrame](
            f"tracer_{generate_id()}_frame",
            default=_TraceFrame(),
        )

    @contextmanager
    @override
    def scope(self, scope_id: str, **attributes: Any) -> Iterator[None]:
        outer = self._frame.get()

        reset_token = self._frame.set(
            _TraceFrame(
                scopes=(*outer.scopes, scope_id),
                attributes={**outer.attributes, **attributes},
            )
        )

        try:
            yield
        finally:
            self._frame.reset(reset_token)

    @property
    @override
    def trace_id(self) -> str:
        return "::".join(self._frame.get().scopes) or "<main>"

    @property
    @override
    def attributes(self) -> Mapping[str, Any]:
        return self._frame.get().attributes
