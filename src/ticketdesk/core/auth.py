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
from dataclasses import dataclass
from typing import Callable, Optional
from typing_extensions import override

from ticketdesk.core.tickets import UserId


@dataclass(frozen=True)
class AuthSnapshot:
    user_id: Optional[UserId]
    is_authenticated: bool
    is_loading: bool


AuthListener = Callable[[AuthSnapshot, AuthSnapshot], None]
Unsubscribe = Callable[[], None]

LOADING = AuthSnapshot(user_id=None, is_authenticated=False, is_loading=True)


class AuthProvider(ABC):
    @property
    @abstractmethod
    def snapshot(self) -> AuthSnapshot: ...

    @abstractmethod
    def subscribe(self, listener: AuthListener) -> Unsubscribe:
        """Registers a listener called with (previous, current) on every change."""
        ...

    @property
    def current_user_id(self) -> Optional[UserId]:
        return self.snapshot.user_id

    @property
    def is_authenticated(self) -> bool:
        return self.snapshot.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self.snapshot.is_loading


class ObservableAuthProvider(AuthProvider):
    def __init__(self, initial: AuthSnapshot = LOADING) -> None:
        self._snapshot = initial
        self._listeners: list[AuthListener] = []

    @property
    @override
    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    @override
    def subscribe(self, listener: AuthListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: AuthSnapshot) -> None:
        previous, self._snapshot = self._snapshot, snapshot

        if previous == snapshot:
            return

        for listener in list(self._listeners):
            listener(previous, snapshot)
