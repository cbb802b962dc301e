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

from typing import Optional

from ticketdesk.core.auth import LOADING, AuthSnapshot, ObservableAuthProvider
from ticketdesk.core.tickets import UserId


class StaticAuthProvider(ObservableAuthProvider):
    """Auth state driven directly by the process, e.g. service-role tooling and tests."""

    def __init__(
        self,
        user_id: Optional[UserId] = None,
        is_loading: bool = False,
    ) -> None:
        if is_loading:
            initial = LOADING
        else:
            initial = AuthSnapshot(
                user_id=user_id,
                is_authenticated=user_id is not None,
                is_loading=False,
            )

        super().__init__(initial)
        self._pending_user_id = user_id

    def settle(self) -> None:
        self._publish(
            AuthSnapshot(
                user_id=self._pending_user_id,
                is_authenticated=self._pending_user_id is not None,
                is_loading=False,
            )
        )

    def sign_in(self, user_id: UserId) -> None:
        self._pending_user_id = user_id
        self._publish(AuthSnapshot(user_id=user_id, is_authenticated=True, is_loading=False))

    def sign_out(self) -> None:
        self._pending_user_id = None
        self._publish(AuthSnapshot(user_id=None, is_authenticated=False, is_loading=False))
