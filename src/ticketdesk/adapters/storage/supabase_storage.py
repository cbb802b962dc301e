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
from pydantic import ValidationError
from storage3.utils import StorageException
from typing_extensions import override

from ticketdesk.adapters.supabase_client import SupabaseConnection
from ticketdesk.core.common import ServiceError
from ticketdesk.core.files import (
    SIGNED_URL_TTL_SECONDS,
    TICKET_FILES_BUCKET,
    FileStorage,
    TicketFile,
)
from ticketdesk.core.loggers import Logger

T = TypeVar("T")


class SupabaseFileStorage(FileStorage):
    def __init__(
        self,
        logger: Logger,
        connection: SupabaseConnection,
        bucket_name: str = TICKET_FILES_BUCKET,
    ) -> None:
        self._logger = logger
        self._connection = connection
        self.bucket_name = bucket_name

    async def _call(self, operation: Callable[[Any], T]) -> T:
        # storage3 parses response bodies with pydantic; a malformed 2xx reply
        # raises ValidationError
        try:
            client = await self._connection.client()
            bucket = client.storage.from_(self.bucket_name)

            return await asyncio.to_thread(operation, bucket)
        except (StorageException, httpx.HTTPError, ValidationError) as exc:
            raise ServiceError.from_exception(exc) from exc

    @override
    async def upload(
        self,
        path: str,
        file: TicketFile,
    ) -> None:
        file_options = {"content-type": file.content_type} if file.content_type else None

        await self._call(
            lambda bucket: bucket.upload(path=path, file=file.content, file_options=file_options)
        )

    @override
    async def download(
        self,
        path: str,
    ) -> bytes:
        content = await self._call(lambda bucket: bucket.download(path))
        return bytes(content)

    @override
    async def create_signed_url(
        self,
        path: str,
        expires_in: int = SIGNED_URL_TTL_SECONDS,
    ) -> str:
        response = await self._call(lambda bucket: bucket.create_signed_url(path, expires_in))

        # Older storage3 releases only return "signedURL"
        signed_url = response.get("signedUrl") or response.get("signedURL")
        if not signed_url:
            raise ServiceError(f"No signed URL returned for '{path}'")

        return str(signed_url)
