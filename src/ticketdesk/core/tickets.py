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
from datetime import datetime
from typing import Literal, NewType, Optional, Sequence
from typing_extensions import TypedDict, NotRequired

from ticketdesk.core.files import TicketFile

TICKETS_TABLE = "tickets"

TicketId = NewType("TicketId", str)
UserId = NewType("UserId", str)

TicketStatus = Literal[
    "Novo",
    "Em Andamento",
    "Aguardando Cliente",
    "Resolvido",
    "Fechado",
]

TICKET_STATUSES: Sequence[TicketStatus] = (
    "Novo",
    "Em Andamento",
    "Aguardando Cliente",
    "Resolvido",
    "Fechado",
)

INITIAL_STATUS: TicketStatus = "Novo"


@dataclass(frozen=True)
class Ticket:
    id: TicketId
    name: str
    phone: str
    reason: str
    estimated_response_time: str
    submission_date: datetime
    status: TicketStatus
    observations: Optional[str] = None
    responsible: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    user_id: Optional[UserId] = None


class NewTicketParams(TypedDict):
    name: str
    phone: str
    reason: str
    estimated_response_time: str
    observations: NotRequired[Optional[str]]
    file: NotRequired[Optional[TicketFile]]


class TicketRecord(TypedDict):
    name: str
    phone: str
    reason: str
    estimated_response_time: str
    observations: Optional[str]
    submission_date: str
    status: TicketStatus
    user_id: Optional[UserId]
    file_path: Optional[str]
    file_name: Optional[str]


class TicketUpdateParams(TypedDict, total=False):
    status: TicketStatus
    responsible: str


class TicketDatabase(ABC):
    """Remote collection of tickets.

    Every method raises `ServiceError` when the service reports a failure.
    """

    @abstractmethod
    async def list_tickets(self) -> Sequence[Ticket]:
        """Returns every ticket, newest submission first."""
        ...

    @abstractmethod
    async def insert_ticket(
        self,
        record: TicketRecord,
    ) -> None: ...

    @abstractmethod
    async def update_ticket(
        self,
        ticket_id: TicketId,
        params: TicketUpdateParams,
    ) -> None: ...
