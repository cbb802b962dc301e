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

from pathlib import Path

from ticketdesk.core.common import ServiceError, describe_error
from ticketdesk.core.files import TicketFile, make_storage_path


def test_that_storage_paths_are_public_and_unique() -> None:
    first = make_storage_path("contrato final.pdf")
    second = make_storage_path("contrato final.pdf")

    assert first.startswith("public/")
    assert first.endswith("-contrato final.pdf")
    assert first != second


def test_that_ticket_files_can_be_read_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello")

    file = TicketFile.from_path(path)

    assert file.name == "notes.txt"
    assert file.content == b"hello"
    assert file.content_type == "text/plain"


def test_that_error_descriptions_prefer_the_service_message() -> None:
    class FakeApiError(Exception):
        def __init__(self) -> None:
            super().__init__("raw")
            self.message = "duplicate key value"

    assert describe_error(FakeApiError()) == "duplicate key value"
    assert describe_error(Exception({"message": "Bucket not found", "statusCode": 404})) == (
        "Bucket not found"
    )
    assert describe_error(OSError("disk full")) == "disk full"


def test_that_service_errors_keep_their_message() -> None:
    error = ServiceError.from_exception(RuntimeError("connection reset"))

    assert error.message == "connection reset"
    assert str(error) == "connection reset"
