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
import mimetypes
from pathlib import Path
from typing import Optional
import uuid

TICKET_FILES_BUCKET = "ticket-files"
UPLOAD_PREFIX = "public"
SIGNED_URL_TTL_SECONDS = 60


@dataclass(frozen=True)
class TicketFile:
    name: str
    content: bytes
    content_type: Optional[str] = None

    @staticmethod
    def from_path(path: Path) -> "TicketFile":
        content_type, _ = mimetypes.guess_type(path.name)

        return TicketFile(
            name=path.name,
            content=path.read_bytes(),
            content_type=content_type,
        )


def make_storage_path(file_name: str) -> str:
    """Builds a collision-resistant key: `public/<uuid4>-<file_name>`."""
    return f"{UPLOAD_PREFIX}/{uuid.uuid4()}-{file_name}"


class FileStorage(ABC):
    """Object storage scoped to the ticket attachments bucket.

    Every method raises `ServiceError` when the service reports a failure.
    """

    @abstractmethod
    async def upload(
        self,
        path: str,
        file: TicketFile,
    ) -> None: ...

    @abstractmethod
    async def download(
        self,
        path: str,
    ) -> bytes: ...

    @abstractmethod
    async def create_signed_url(
        self,
        path: str,
        expires_in: int = SIGNED_URL_TTL_SECONDS,
    ) -> str: ...
