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
from urllib.parse import quote
from typing_extensions import override

from ticketdesk.core.common import ServiceError
from ticketdesk.core.files import (
    SIGNED_URL_TTL_SECONDS,
    TICKET_FILES_BUCKET,
    FileStorage,
    TicketFile,
)


class TransientFileStorage(FileStorage):
    def __init__(self, bucket_name: str = TICKET_FILES_BUCKET) -> None:
        self.bucket_name = bucket_name
        self.objects: dict[str, TicketFile] = {}

    @override
    async def upload(
        self,
        path: str,
        file: TicketFile,
    ) -> None:
        if path in self.objects:
            raise ServiceError("The resource already exists")

        self.objects[path] = file

    @override
    async def download(
        self,
        path: str,
    ) -> bytes:
        if file := self._find(path):
            return file.content

        raise ServiceError("Object not found")

    @override
    async def create_signed_url(
        self,
        path: str,
        expires_in: int = SIGNED_URL_TTL_SECONDS,
    ) -> str:
        if not self._find(path):
            raise ServiceError("Object not found")

        return f"memory://{self.bucket_name}/{quote(path)}?expires_in={expires_in}"

    def _find(self, path: str) -> Optional[TicketFile]:
        return self.objects.get(path)
