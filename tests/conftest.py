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

from datetime import datetime, timezone
from pathlib import Path

from pytest import fixture

from ticketdesk.adapters.auth.static import StaticAuthProvider
from ticketdesk.adapters.db.transient import TransientTicketDatabase
from ticketdesk.adapters.storage.transient import TransientFileStorage
from ticketdesk.core.notifications import NotificationBuffer
from ticketdesk.core.ticket_store import TicketStore
from ticketdesk.core.tickets import Ticket, UserId
from tests.test_utilities import _TestLogger, make_ticket


@fixture
def logger() -> _TestLogger:
    return _TestLogger()


@fixture
def notifier() -> NotificationBuffer:
    return NotificationBuffer()


@fixture
def auth() -> StaticAuthProvider:
    return StaticAuthProvider(user_id=UserId("user-1"))


@fixture
def existing_tickets() -> list[Ticket]:
    return [
        make_ticket("t1", datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)),
        make_ticket("t2", datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc), status="Em Andamento"),
    ]


@fixture
def database(existing_tickets: list[Ticket]) -> TransientTicketDatabase:
    return TransientTicketDatabase(existing_tickets)


@fixture
def storage() -> TransientFileStorage:
    return TransientFileStorage()


@fixture
def store(
    logger: _TestLogger,
    auth: StaticAuthProvider,
    database: TransientTicketDatabase,
    storage: TransientFileStorage,
    notifier: NotificationBuffer,
    tmp_path: Path,
) -> TicketStore:
    return TicketStore(
        logger=logger,
        auth=auth,
        database=database,
        storage=storage,
        notifier=notifier,
        download_dir=tmp_path / "downloads",
    )
