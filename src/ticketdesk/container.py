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

from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Optional

from lagom import Container

from ticketdesk.adapters.auth.supabase_auth import SupabaseAuthProvider
from ticketdesk.adapters.db.supabase_db import SupabaseTicketDatabase
from ticketdesk.adapters.notifiers.rich_console import RichToastNotifier
from ticketdesk.adapters.storage.s3 import S3FileStorage
from ticketdesk.adapters.storage.supabase_storage import SupabaseFileStorage
from ticketdesk.adapters.supabase_client import SupabaseConnection
from ticketdesk.config import TicketDeskConfig
from ticketdesk.core.auth import AuthProvider
from ticketdesk.core.files import FileStorage
from ticketdesk.core.loggers import Logger, StdoutLogger
from ticketdesk.core.notifications import Notifier
from ticketdesk.core.provider import TicketProvider
from ticketdesk.core.tickets import TicketDatabase
from ticketdesk.core.tracer import LocalTracer, Tracer


def register_ticket_provider(container: Container) -> Container:
    container[TicketProvider] = lambda c: TicketProvider(
        logger=c[Logger],
        auth=c[AuthProvider],
        database=c[TicketDatabase],
        storage=c[FileStorage],
        notifier=c[Notifier],
        download_dir=c[TicketDeskConfig].download_dir,
    )

    return container


@asynccontextmanager
async def setup_container(
    config: TicketDeskConfig,
    notifier: Optional[Notifier] = None,
) -> AsyncIterator[Container]:
    """Wires the Supabase-backed services into a container.

    Adapters that hold connections are entered here and exited when the
    context closes.
    """
    config.validate()

    container = Container()

    tracer = LocalTracer()
    logger = StdoutLogger(tracer=tracer, log_level=config.log_level)

    container[TicketDeskConfig] = config
    container[Tracer] = tracer
    container[Logger] = logger
    container[Notifier] = notifier or RichToastNotifier()

    async with AsyncExitStack() as stack:
        connection = await stack.enter_async_context(
            SupabaseConnection(logger, config.connection_params)
        )
        container[SupabaseConnection] = connection

        auth = SupabaseAuthProvider(logger, connection)
        container[SupabaseAuthProvider] = auth
        container[AuthProvider] = auth

        container[TicketDatabase] = SupabaseTicketDatabase(logger, connection)

        if config.storage_backend == "s3":
            container[FileStorage] = await stack.enter_async_context(
                S3FileStorage(
                    logger,
                    region_name=config.s3_region,
                    endpoint_url=config.s3_endpoint_url,
                )
            )
        else:
            container[FileStorage] = SupabaseFileStorage(logger, connection)

        register_ticket_provider(container)

        yield container
