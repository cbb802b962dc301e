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

import asyncio
from typing import Any, Callable, TypeVar

import httpx
from supabase import AuthError

from ticketdesk.adapters.supabase_client import SupabaseConnection
from ticketdesk.core.auth import AuthSnapshot, ObservableAuthProvider
from ticketdesk.core.common import ServiceError
from ticketdesk.core.loggers import Logger
from ticketdesk.core.tickets import UserId

T = TypeVar("T")

SIGNED_OUT = AuthSnapshot(user_id=None, is_authenticated=False, is_loading=False)


def _snapshot_from_session(session: Any) -> AuthSnapshot:
    user = getattr(session, "user", None) if session is not None else None

    if user is None:
        return SIGNED_OUT

    return AuthSnapshot(user_id=UserId(str(user.id)), is_authenticated=True, is_loading=False)


class SupabaseAuthProvider(ObservableAuthProvider):
    """Tracks the Supabase Auth session. Starts loading until `initialize()` completes."""

    def __init__(
        self,
        logger: Logger,
        connection: SupabaseConnection,
    ) -> None:
        super().__init__()
        self._logger = logger
        self._connection = connection

    async def _call(self, operation: Callable[[Any], T]) -> T:
        try:
            client = await self._connection.client()

            return await asyncio.to_thread(operation, client.auth)
        except (AuthError, httpx.HTTPError) as exc:
            raise ServiceError.from_exception(exc) from exc

    async def initialize(self) -> None:
        try:
            session = await self._call(lambda auth: auth.get_session())
        except ServiceError as exc:
            self._logger.warning(f"Could not restore auth session: {exc.message}")
            session = None

        self._publish(_snapshot_from_session(session))

    async def sign_in_with_password(self, email: str, password: str) -> None:
        response = await self._call(
            lambda auth: auth.sign_in_with_password({"email": email, "password": password})
        )

        snapshot = _snapshot_from_session(response.session)
        self._logger.info(f"Signed in as {snapshot.user_id}")
        self._publish(snapshot)

    async def sign_out(self) -> None:
        await self._call(lambda auth: auth.sign_out())
        self._publish(SIGNED_OUT)
