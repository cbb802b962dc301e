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
from datetime import datetime
from typing import Any, Optional, Sequence, Union, cast

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ConfigDict, ValidationError
from typing_extensions import override

from ticketdesk.adapters.supabase_client import SupabaseConnection
from ticketdesk.core.common import ServiceError
from ticketdesk.core.loggers import Logger
from ticketdesk.core.tickets import (
    TICKETS_TABLE,
    Ticket,
    TicketDatabase,
    TicketId,
    TicketRecord,
    TicketStatus,
    TicketUpdateParams,
    UserId,
)


class _TicketRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[str, int]
    name: str
    phone: str
    reason: str
    estimated_response_time: str
    submission_date: datetime
    status: str
    observations: Optional[str] = None
    responsible: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    user_id: Optional[str] = None

    def to_ticket(self) -> Ticket:
        return Ticket(
            id=TicketId(str(self.id)),
            name=self.name,
            phone=self.phone,
            reason=self.reason,
            estimated_response_time=self.estimated_response_time,
            submission_date=self.submission_date,
            status=cast(TicketStatus, self.status),
            observations=self.observations,
            responsible=self.responsible,
            file_path=self.file_path,
            file_name=self.file_name,
            user_id=UserId(self.user_id) if self.user_id else None,
        )


class SupabaseTicketDatabase(TicketDatabase):
    def __init__(
        self,
        logger: Logger,
        connection: SupabaseConnection,
        table: str = TICKETS_TABLE,
    ) -> None:
        self._logger = logger
        self._connection = connection
        self._table = table

    async def _execute(self, build_query: Any) -> Any:
        try:
            client = await self._connection.client()

            return await asyncio.to_thread(lambda: build_query(client.table(self._table)).execute())
        except (APIError, httpx.HTTPError, ValidationError) as exc:
            raise ServiceError.from_exception(exc) from exc

    @override
    async def list_tickets(self) -> Sequence[Ticket]:
        response = await self._execute(
            lambda table: table.select("*").order("submission_date", desc=True)
        )

        try:
            return [_TicketRow.model_validate(row).to_ticket() for row in response.data or []]
        except ValidationError as exc:
            self._logger.error(f"Malformed row in '{self._table}': {exc}")
            raise ServiceError(f"Registro inválido na tabela '{self._table}'") from exc

    @override
    async def insert_ticket(
        self,
        record: TicketRecord,
    ) -> None:
        await self._execute(lambda table: table.insert([dict(record)]))

    @override
    async def update_ticket(
        self,
        ticket_id: TicketId,
        params: TicketUpdateParams,
    ) -> None:
        await self._execute(lambda table: table.update(dict(params)).eq("id", ticket_id))
