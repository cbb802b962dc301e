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
import importlib
import os
from typing import Any, Callable, Mapping, Optional

from typing_extensions import Self

from ticketdesk.core.common import ConfigurationError, describe_error
from ticketdesk.core.loggers import Logger


def load_connection_params_from_env() -> dict[str, Any]:
    env = os.environ
    required = [
        "SUPABASE_URL",
        "SUPABASE_KEY",
    ]

    missing = [key for key in required if not env.get(key)]
    if missing:
        raise ConfigurationError(
            "Missing Supabase configuration. Set the following environment variables: "
            + ", ".join(missing)
        )

    return {
        "url": env["SUPABASE_URL"],
        "key": env["SUPABASE_KEY"],
        "schema": env.get("SUPABASE_SCHEMA") or "public",
    }


class SupabaseConnection:
    """Lazily creates the one Supabase client shared by the data, storage and auth adapters."""

    def __init__(
        self,
        logger: Logger,
        connection_params: Mapping[str, Any] | None = None,
        *,
        client_factory: Callable[[Mapping[str, Any]], Any] | None = None,
    ) -> None:
        self._logger = logger
        self._connection_params = (
            dict(connection_params)
            if connection_params is not None
            else load_connection_params_from_env()
        )
        self._client_factory = client_factory

        self._supabase_module: Any | None = None
        self._client: Any | None = None

        self._connection_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self.client()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> bool:
        self._client = None
        return False

    async def client(self) -> Any:
        if self._client is not None:
            return self._client

        async with self._connection_lock:
            if self._client is not None:
                return self._client

            if self._client_factory is not None:
                self._client = self._client_factory(self._connection_params)
            else:
                self._import_client()
                assert self._supabase_module is not None

                try:
                    self._client = await asyncio.to_thread(self._create_client)
                except self._supabase_module.SupabaseException as exc:
                    raise ConfigurationError(
                        f"Invalid Supabase settings: {describe_error(exc)}"
                    ) from exc

            self._logger.debug(f"Connected to Supabase at {self._connection_params['url']}")

        return self._client

    def _create_client(self) -> Any:
        assert self._supabase_module is not None

        # create_client expects SyncClientOptions; the base ClientOptions lacks `storage`
        from supabase.lib.client_options import SyncClientOptions

        options = SyncClientOptions(
            schema=self._connection_params.get("schema", "public"),
            auto_refresh_token=True,
            persist_session=False,
        )

        return self._supabase_module.create_client(
            self._connection_params["url"],
            self._connection_params["key"],
            options=options,
        )

    def _import_client(self) -> None:
        if self._supabase_module is not None:
            return

        try:
            self._supabase_module = importlib.import_module("supabase")
        except ImportError as exc:
            raise ConfigurationError(
                "The Supabase adapters require supabase-py. Install it with `pip install supabase`."
            ) from exc
