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
from contextvars import ContextVar, Token
from pathlib import Path
from types import TracebackType
from typing import Optional

from ticketdesk.core.auth import AuthProvider, AuthSnapshot, Unsubscribe
from ticketdesk.core.common import ProviderNotFoundError
from ticketdesk.core.files import FileStorage
from ticketdesk.core.loggers import Logger
from ticketdesk.core.notifications import Notifier
from ticketdesk.core.ticket_store import TicketStore
from ticketdesk.core.tickets import TicketDatabase

_current_store: ContextVar[Optional[TicketStore]] = ContextVar("ticket_store", default=None)


class TicketProvider:
    """Owns a TicketStore for the duration of an `async with` block.

    Inside the block (and in tasks spawned from it) the store is reachable
    through `use_tickets()`. The store is refetched whenever authentication
    settles or the authenticated flag changes.
    """

    def __init__(
        self,
        logger: Logger,
        auth: AuthProvider,
        database: TicketDatabase,
        storage: FileStorage,
        notifier: Notifier,
        download_dir: Path = Path("downloads"),
    ) -> None:
        self._logger = logger
        self._auth = auth
        self._database = database
        self._storage = storage
        self._notifier = notifier
        self._download_dir = download_dir

        self._store: Optional[TicketStore] = None
        self._token: Optional[Token[Optional[TicketStore]]] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def store(self) -> TicketStore:
        if self._store is None:
            raise ProviderNotFoundError("TicketProvider has not been entered")
        return self._store

    async def __aenter__(self) -> TicketStore:
        self._store = TicketStore(
            logger=self._logger,
            auth=self._auth,
            database=self._database,
            storage=self._storage,
            notifier=self._notifier,
            download_dir=self._download_dir,
        )

        self._token = _current_store.set(self._store)
        self._unsubscribe = self._auth.subscribe(self._on_auth_changed)

        if not self._auth.is_loading:
            self._schedule_fetch()

        return self._store

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> bool:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        for task in self._pending:
            task.cancel()

        await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

        if self._token is not None:
            _current_store.reset(self._token)
            self._token = None

        self._store = None

        return False

    async def wait_for_pending_fetches(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_auth_changed(self, previous: AuthSnapshot, current: AuthSnapshot) -> None:
        if current.is_loading:
            return

        if previous.is_loading or previous.is_authenticated != current.is_authenticated:
            self._logger.debug(
                f"Auth settled (authenticated={current.is_authenticated}), refetching tickets"
            )
            self._schedule_fetch()

    def _schedule_fetch(self) -> None:
        task = asyncio.get_running_loop().create_task(self.store.fetch_tickets())
        self._pending.add(task)
        task.add_done_callback(self._on_fetch_done)

    def _on_fetch_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)

        if task.cancelled():
            return

        if exc := task.exception():
            self._logger.error(f"Background ticket fetch failed: {exc!r}")


def use_tickets() -> TicketStore:
    if store := _current_store.get():
        return store

    raise ProviderNotFoundError("use_tickets must be used within a TicketProvider")
