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

from typing import Any, NewType
import uuid

UniqueId = NewType("UniqueId", str)


def generate_id() -> UniqueId:
    return UniqueId(uuid.uuid4().hex[:10])


class ServiceError(Exception):
    """Raised by adapters when the remote data, storage or auth service fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceError":
        return cls(describe_error(exc))


class ProviderNotFoundError(Exception):
    pass


class ConfigurationError(Exception):
    pass


def describe_error(exc: BaseException) -> str:
    # PostgREST's APIError and storage3's errors carry the server text in .message
    message: Any = getattr(exc, "message", None)

    if isinstance(message, str) and message:
        return message

    if exc.args and isinstance(exc.args[0], dict):
        payload = exc.args[0]
        if text := payload.get("message") or payload.get("error"):
            return str(text)

    return str(exc)
