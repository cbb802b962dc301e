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

import asyncio
from pathlib import Path

import pytest
from pytest import raises

from ticketdesk.adapters.auth.static import StaticAuthProvider
from ticketdesk.adapters.db.transient import TransientTicketDatabase
from ticketdesk.adapters.storage.transient import TransientFileStorage
from ticketdesk.core.common import ProviderNotFoundError
from ticketdesk.core.loggers import LogLevel
from ticketdesk.core.notifications import NotificationBuffer
from ticketdesk.core.provider import TicketProvider, use_tickets
from ticketdesk.core.ticket_store import TicketStore
from ticketdesk.core.tickets import UserId
from tests.test_utilities import _TestLogger, record_calls


def _provider(
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> TicketProvider:
    return TicketProvider(
        logger=logger,
        auth=auth,
        database=database,
        storage=storage,
        notifier=notifier,
        download_dir=tmp_path,
    )


def test_that_use_tickets_outside_a_provider_raises() -> None:
    with raises(ProviderNotFoundError, match="must be used within a TicketProvider"):
        use_tickets()


async def test_that_use_tickets_returns_the_provided_store(
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    async with _provider(logger, auth, database, storage, notifier, tmp_path) as store:
        assert use_tickets() is store

    with raises(ProviderNotFoundError):
        use_tickets()


async def test_that_tasks_spawned_inside_the_provider_see_the_store(
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    async def consumer() -> object:
        return use_tickets()

    async with _provider(logger, auth, database, storage, notifier, tmp_path) as store:
        assert await asyncio.create_task(consumer()) is store


async def test_that_entering_with_settled_auth_fetches_once(
    monkeypatch: pytest.MonkeyPatch,
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    fetches = record_calls(monkeypatch, database, "list_tickets")
    provider = _provider(logger, auth, database, storage, notifier, tmp_path)

    async with provider as store:
        await provider.wait_for_pending_fetches()

        assert len(fetches) == 1
        assert [t.id for t in store.tickets] == ["t2", "t1"]
        assert not store.is_loading_tickets


async def test_that_fetching_waits_for_auth_to_settle(
    monkeypatch: pytest.MonkeyPatch,
    logger: _TestLogger,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    auth = StaticAuthProvider(user_id=UserId("user-1"), is_loading=True)
    fetches = record_calls(monkeypatch, database, "list_tickets")
    provider = _provider(logger, auth, database, storage, notifier, tmp_path)

    async with provider as store:
        await provider.wait_for_pending_fetches()

        assert fetches == []
        assert store.is_loading_tickets

        auth.settle()
        await provider.wait_for_pending_fetches()

        assert len(fetches) == 1
        assert len(store.tickets) == 2


async def test_that_signing_out_and_in_refetches(
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    provider = _provider(logger, auth, database, storage, notifier, tmp_path)

    async with provider as store:
        await provider.wait_for_pending_fetches()
        assert store.tickets

        auth.sign_out()
        await provider.wait_for_pending_fetches()
        assert store.tickets == ()

        auth.sign_in(UserId("user-2"))
        await provider.wait_for_pending_fetches()
        assert len(store.tickets) == 2


async def test_that_auth_changes_after_exit_are_ignored(
    monkeypatch: pytest.MonkeyPatch,
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    provider = _provider(logger, auth, database, storage, notifier, tmp_path)

    async with provider:
        await provider.wait_for_pending_fetches()

    fetches = record_calls(monkeypatch, database, "list_tickets")
    auth.sign_out()
    auth.sign_in(UserId("user-1"))
    await asyncio.sleep(0)

    assert fetches == []


def test_that_the_store_is_unavailable_before_entering(
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    provider = _provider(logger, auth, database, storage, notifier, tmp_path)

    with raises(ProviderNotFoundError):
        provider.store


async def test_that_a_failing_background_fetch_is_logged(
    monkeypatch: pytest.MonkeyPatch,
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> None:
    async def broken_fetch(self: TicketStore) -> None:
        raise RuntimeError("event loop shutting down")

    monkeypatch.setattr(TicketStore, "fetch_tickets", broken_fetch)
    provider = _provider(logger, auth, database, storage, notifier, tmp_path)

    async with provider:
        await provider.wait_for_pending_fetches()

    assert any(
        "Background ticket fetch failed" in message and "event loop shutting down" in message
        for message in logger.messages_at(LogLevel.ERROR)
    )
