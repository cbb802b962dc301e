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
from typing import Any, Callable, Optional, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from typing_extensions import Self, override

from ticketdesk.core.common import ServiceError
from ticketdesk.core.files import (
    SIGNED_URL_TTL_SECONDS,
    TICKET_FILES_BUCKET,
    FileStorage,
    TicketFile,
)
from ticketdesk.core.loggers import Logger

T = TypeVar("T")


def _describe_client_error(exc: ClientError | BotoCoreError) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return str(error.get("Message") or error.get("Code") or exc)
    return str(exc)


class S3FileStorage(FileStorage):
    """Stores ticket attachments in an S3 (or S3-compatible) bucket."""

    def __init__(
        self,
        logger: Logger,
        bucket_name: str = TICKET_FILES_BUCKET,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> None:
        self.bucket_name = bucket_name
        self._logger = logger
        self._region_name = region_name

        self._s3_client = boto3.client(
            "s3",
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            region_name=region_name,
            endpoint_url=endpoint_url,
            # SigV4 so presigned URLs carry a relative X-Amz-Expires
            config=Config(signature_version="s3v4"),
        )

    async def _ensure_bucket_exists(self) -> None:
        def check_and_create() -> None:
            try:
                self._s3_client.head_bucket(Bucket=self.bucket_name)
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code")
                if error_code in ("404", "NoSuchBucket"):
                    self._logger.info(f"Creating bucket '{self.bucket_name}'")
                    if self._region_name and self._region_name != "us-east-1":
                        self._s3_client.create_bucket(
                            Bucket=self.bucket_name,
                            CreateBucketConfiguration={"LocationConstraint": self._region_name},
                        )
                    else:
                        self._s3_client.create_bucket(Bucket=self.bucket_name)
                else:
                    raise

        await asyncio.to_thread(check_and_create)

    async def __aenter__(self) -> Self:
        await self._ensure_bucket_exists()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[object],
    ) -> bool:
        return False

    async def _call(self, operation: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(operation)
        except (ClientError, BotoCoreError) as exc:
            raise ServiceError(_describe_client_error(exc)) from exc

    @override
    async def upload(
        self,
        path: str,
        file: TicketFile,
    ) -> None:
        extra: dict[str, Any] = {}
        if file.content_type:
            extra["ContentType"] = file.content_type

        await self._call(
            lambda: self._s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=file.content,
                **extra,
            )
        )

    @override
    async def download(
        self,
        path: str,
    ) -> bytes:
        def fetch() -> bytes:
            response = self._s3_client.get_object(Bucket=self.bucket_name, Key=path)
            return bytes(response["Body"].read())

        return await self._call(fetch)

    @override
    async def create_signed_url(
        self,
        path: str,
        expires_in: int = SIGNED_URL_TTL_SECONDS,
    ) -> str:
        def check_and_sign() -> str:
            # Presigning never contacts S3, so missing objects are checked explicitly
            self._s3_client.head_object(Bucket=self.bucket_name, Key=path)

            return str(
                self._s3_client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.bucket_name, "Key": path},
                    ExpiresIn=expires_in,
                )
            )

        return await self._call(check_and_sign)
