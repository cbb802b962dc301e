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
from datetime import datetime, timezone
import os
from pathlib import Path
import tempfile
from typing import Optional, Sequence

from ticketdesk.core.auth import AuthProvider
from ticketdesk.core.common import ServiceError, describe_error
from ticketdesk.core.files import SIGNED_URL_TTL_SECONDS, FileStorage, make_storage_path
from ticketdesk.core.loggers import Logger
from ticketdesk.core.notifications import Notification, NotificationSeverity, Notifier
from ticketdesk.core.tickets import (
    INITIAL_STATUS,
    NewTicketParams,
    Ticket,
    TicketDatabase,
    TicketId,
    TicketRecord,
    TicketStatus,
)

UNKNOWN_FETCH_ERROR = "Ocorreu um erro desconhecido ao buscar os tickets."
UNKNOWN_ERROR = "Erro desconhecido."


class TicketStore:
    """In-memory snapshot of the remote ticket collection.

    Writes never touch the local list: each successful write is followed by a
    full refetch, so the snapshot is eventually consistent with the service.
    Operations report their outcome through the notifier and never raise.
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

        self._tickets: tuple[Ticket, ...] = ()
        self._is_loading_tickets = True
        self._error: Optional[str] = None

    @property
    def tickets(self) -> Sequence[Ticket]:
        return self._tickets

    @property
    def is_loading_tickets(self) -> bool:
        return self._is_loading_tickets

    @property
    def error(self) -> Optional[str]:
        return self._error

    def _notify(
        self,
        title: str,
        description: str,
        severity: NotificationSeverity = NotificationSeverity.DEFAULT,
    ) -> None:
        self._notifier.notify(
            Notification(
                title=title,
                description=description,
                severity=severity,
            )
        )

    async def fetch_tickets(self) -> None:
        if not self._auth.is_authenticated:
            self._is_loading_tickets = False
            self._tickets = ()
            return

        self._is_loading_tickets = True
        self._error = None

        with self._logger.scope("fetch_tickets"):
            try:
                tickets = await self._database.list_tickets()
                self._tickets = tuple(tickets)
                self._logger.debug(f"Fetched {len(self._tickets)} ticket(s)")
            except Exception as exc:
                message = describe_error(exc) or UNKNOWN_FETCH_ERROR
                self._error = message
                self._notify("Erro ao Carregar Tickets", message, NotificationSeverity.DESTRUCTIVE)
                self._logger.error(f"Error fetching tickets: {message}")
            finally:
                self._is_loading_tickets = False

    async def add_ticket(self, params: NewTicketParams) -> None:
        file = params.get("file")
        file_path: Optional[str] = None
        file_name: Optional[str] = None

        with self._logger.scope("add_ticket"):
            try:
                if file is not None:
                    file_name = file.name
                    file_path = make_storage_path(file.name)

                    try:
                        await self._storage.upload(file_path, file)
                    except Exception as exc:
                        raise ServiceError(
                            f"Erro no upload do arquivo: {describe_error(exc)}"
                        ) from exc

                    self._logger.debug(f"Uploaded attachment to '{file_path}'")

                record = TicketRecord(
                    name=params["name"],
                    phone=params["phone"],
                    reason=params["reason"],
                    estimated_response_time=params["estimated_response_time"],
                    observations=params.get("observations"),
                    submission_date=datetime.now(timezone.utc).isoformat(),
                    status=INITIAL_STATUS,
                    user_id=self._auth.current_user_id,
                    file_path=file_path,
                    file_name=file_name,
                )

                try:
                    await self._database.insert_ticket(record)
                except Exception as exc:
                    if file_path is not None:
                        # Known gap: the uploaded object is not removed
                        self._logger.warning(f"Attachment '{file_path}' left without a ticket")
                    raise ServiceError(f"Erro ao salvar ticket: {describe_error(exc)}") from exc

            except Exception as exc:
                message = describe_error(exc) or "Ocorreu um erro."
                self._notify("Erro ao Criar Ticket", message, NotificationSeverity.DESTRUCTIVE)
                self._logger.error(f"Error adding ticket: {message}")
                return

            self._logger.info("Ticket created")

            if self._auth.is_authenticated:
                await self.fetch_tickets()

            self._notify("Ticket Criado", "Seu ticket foi registrado com sucesso.")

    async def update_ticket_status(
        self,
        ticket_id: TicketId,
        status: TicketStatus,
    ) -> None:
        with self._logger.scope("update_ticket_status"):
            try:
                await self._database.update_ticket(ticket_id, {"status": status})
            except Exception as exc:
                message = describe_error(exc)
                self._notify("Erro ao Atualizar", message, NotificationSeverity.DESTRUCTIVE)
                self._logger.error(f"Error updating status of ticket '{ticket_id}': {message}")
                return

            await self.fetch_tickets()
            self._notify("Status Atualizado", f"Status do ticket alterado para {status}.")

    async def update_ticket_responsible(
        self,
        ticket_id: TicketId,
        responsible: str,
    ) -> None:
        with self._logger.scope("update_ticket_responsible"):
            try:
                await self._database.update_ticket(ticket_id, {"responsible": responsible})
            except Exception as exc:
                message = describe_error(exc)
                self._notify("Erro ao Atualizar", message, NotificationSeverity.DESTRUCTIVE)
                self._logger.error(
                    f"Error updating responsible of ticket '{ticket_id}': {message}"
                )
                return

            await self.fetch_tickets()
            self._notify(
                "Responsável Atualizado",
                f"Responsável pelo ticket alterado para {responsible}.",
            )

    def get_ticket_by_id(self, ticket_id: TicketId) -> Optional[Ticket]:
        return next((t for t in self._tickets if t.id == ticket_id), None)

    async def download_file(self, file_path: str, file_name: str) -> None:
        with self._logger.scope("download_file"):
            try:
                content = await self._storage.download(file_path)
                target = await asyncio.to_thread(self._save_download, content, file_name)
            except Exception as exc:
                message = describe_error(exc) or UNKNOWN_ERROR
                self._notify(
                    "Erro no Download",
                    f"Não foi possível baixar o arquivo: {message}",
                    NotificationSeverity.DESTRUCTIVE,
                )
                self._logger.error(f"Error downloading file '{file_path}': {message}")
                return

            self._logger.info(f"Saved '{file_path}' to '{target}'")
            self._notify("Download Iniciado", f"Baixando {file_name}...")

    def _save_download(self, content: bytes, file_name: str) -> Path:
        self._download_dir.mkdir(parents=True, exist_ok=True)
        target = self._download_dir / Path(file_name).name

        fd, temp_path = tempfile.mkstemp(dir=self._download_dir, prefix=".download-")

        try:
            with os.fdopen(fd, "wb") as temp_file:
                temp_file.write(content)

            os.replace(temp_path, target)
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)

        return target

    async def create_preview_url(self, file_path: str) -> Optional[str]:
        with self._logger.scope("create_preview_url"):
            try:
                return await self._storage.create_signed_url(file_path, SIGNED_URL_TTL_SECONDS)
            except Exception as exc:
                message = describe_error(exc)
                self._logger.error(f"Error creating signed URL for '{file_path}': {message}")
                self._notify(
                    "Erro ao Gerar Link",
                    f"Não foi possível criar o link de visualização: {message}",
                    NotificationSeverity.DESTRUCTIVE,
                )
                return None
