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

from dataclasses import replace
from datetime import datetime
from typing import Sequence
from typing_extensions import override

from ticketdesk.core.common import ServiceError, generate_id
from ticketdesk.core.tickets import (
    Ticket,
    TicketDatabase,
    TicketId,
    TicketRecord,
    TicketUpdateParams,
)


class TransientTicketDatabase(TicketDatabase):
    """In-memory ticket collection that orders and assigns ids like the remote service."""

    def __init__(self, tickets: Sequence[Ticket] = ()) -> None:
        self._tickets: dict[TicketId, Ticket] = {t.id: t for t in tickets}

    @override
    async def list_tickets(self) -> Sequence[Ticket]:
        return sorted(
            self._tickets.values(),
            key=lambda t: t.submission_date,
            reverse=True,
        )

    @override
    async def insert_ticket(
        self,
        record: TicketRecord,
    ) -> None:
        ticket_id = TicketId(generate_id())

        self._tickets[ticket_id] = Ticket(
            id=ticket_id,
            name=record["name"],
            phone=record["phone"],
            reason=record["reason"],
            estimated_response_time=record["estimated_response_time"],
            submission_date=datetime.fromisoformat(record["submission_date"]),
            status=record["status"],
            observations=record["observations"],
            file_path=record["file_path"],
            file_name=record["file_name"],
            user_id=record["user_id"],
        )

    @override
    async def update_ticket(
        self,
        ticket_id: TicketId,
        params: TicketUpdateParams,
    ) -> None:
        if ticket_id not in self._tickets:
            raise ServiceError(f"Ticket '{ticket_id}' not found")

        self._tickets[ticket_id] = replace(self._tickets[ticket_id], **params)
