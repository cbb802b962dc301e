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
from dataclasses import dataclass
from pathlib import Path
import sys
from typing import Any, Awaitable, Callable, Mapping, Optional

import click
from rich.console import Console
from rich.table import Table
from typing_extensions import override

from ticketdesk.adapters.auth.supabase_auth import SupabaseAuthProvider
from ticketdesk.adapters.notifiers.rich_console import RichToastNotifier
from ticketdesk.config import TicketDeskConfig, load_env_file
from ticketdesk.container import setup_container
from ticketdesk.core.auth import AuthProvider
from ticketdesk.core.common import ConfigurationError, ServiceError
from ticketdesk.core.files import TicketFile
from ticketdesk.core.loggers import Logger
from ticketdesk.core.notifications import Notification, NotificationSeverity, Notifier
from ticketdesk.core.provider import TicketProvider
from ticketdesk.core.ticket_store import TicketStore
from ticketdesk.core.tickets import TICKET_STATUSES, NewTicketParams, Ticket, TicketId, TicketStatus
from ticketdesk.core.tracer import Tracer

Action = Callable[[TicketStore, Console], Awaitable[int]]


@dataclass(frozen=True)
class CliSettings:
    email: Optional[str]
    password: Optional[str]
    env_file: Optional[Path]


class _OutcomeTracker(Notifier):
    """Forwards notifications and remembers whether any of them reported a failure."""

    def __init__(self, inner: Notifier) -> None:
        self._inner = inner
        self.failed = False

    @override
    def notify(self, notification: Notification) -> None:
        if notification.severity == NotificationSeverity.DESTRUCTIVE:
            self.failed = True

        self._inner.notify(notification)


async def _run_session(
    settings: CliSettings,
    name: str,
    action: Action,
    console: Console,
    attributes: Mapping[str, Any],
) -> int:
    config = TicketDeskConfig.from_env()
    outcome = _OutcomeTracker(RichToastNotifier())

    async with setup_container(config, notifier=outcome) as container:
        auth = container[AuthProvider]
        password_session: Optional[SupabaseAuthProvider] = None

        if isinstance(auth, SupabaseAuthProvider):
            if settings.email and settings.password:
                await auth.sign_in_with_password(settings.email, settings.password)
                password_session = auth
            else:
                await auth.initialize()

        provider = container[TicketProvider]

        try:
            async with provider as store:
                await provider.wait_for_pending_fetches()

                if not auth.is_authenticated:
                    console.print("[yellow]Not signed in; no tickets are visible.[/yellow]")

                # Only failures raised by the command itself decide the exit code
                outcome.failed = False

                with container[Tracer].scope(f"cli.{name}", **attributes):
                    exit_code = await action(store, console)
        finally:
            if password_session is not None:
                await _end_session(password_session, container[Logger])

    if exit_code == 0 and outcome.failed:
        return 1

    return exit_code


async def _end_session(auth: SupabaseAuthProvider, logger: Logger) -> None:
    try:
        await auth.sign_out()
    except ServiceError as exc:
        logger.warning(f"Could not end the session: {exc.message}")


def _run(ctx: click.Context, name: str, action: Action, **attributes: Any) -> None:
    settings: CliSettings = ctx.obj
    console = Console()

    if settings.env_file is not None:
        load_env_file(settings.env_file.name, [settings.env_file.parent])
    else:
        load_env_file()

    try:
        exit_code = asyncio.run(_run_session(settings, name, action, console, attributes))
    except (ConfigurationError, ServiceError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        exit_code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        exit_code = 130

    sys.exit(exit_code)


def _render_tickets(console: Console, tickets: list[Ticket]) -> None:
    table = Table(title="Tickets")

    for column in ("ID", "Submitted", "Name", "Reason", "Status", "Responsible", "File"):
        table.add_column(column)

    for t in tickets:
        table.add_row(
            t.id,
            t.submission_date.strftime("%Y-%m-%d %H:%M"),
            t.name,
            t.reason,
            t.status,
            t.responsible or "-",
            t.file_name or "-",
        )

    console.print(table)


def _find_ticket(store: TicketStore, console: Console, ticket_id: str) -> Optional[Ticket]:
    ticket = store.get_ticket_by_id(TicketId(ticket_id))

    if ticket is None:
        console.print(f"[red]Ticket '{ticket_id}' not found[/red]")

    return ticket


@click.group()
@click.option("--email", envvar="TICKETDESK_EMAIL", default=None, help="Account e-mail")
@click.option("--password", envvar="TICKETDESK_PASSWORD", default=None, help="Account password")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Load settings from this .env file",
)
@click.pass_context
def cli(
    ctx: click.Context,
    email: Optional[str],
    password: Optional[str],
    env_file: Optional[Path],
) -> None:
    """Manage support tickets stored in Supabase."""
    ctx.obj = CliSettings(email=email, password=password, env_file=env_file)


@cli.command("list")
@click.option("--status", type=click.Choice(TICKET_STATUSES), default=None)
@click.pass_context
def list_tickets(ctx: click.Context, status: Optional[str]) -> None:
    """List tickets, newest first."""

    async def action(store: TicketStore, console: Console) -> int:
        if store.error:
            return 1

        tickets = [t for t in store.tickets if status is None or t.status == status]
        _render_tickets(console, tickets)
        return 0

    _run(ctx, "list", action)


@cli.command()
@click.argument("ticket_id")
@click.pass_context
def show(ctx: click.Context, ticket_id: str) -> None:
    """Show one ticket."""

    async def action(store: TicketStore, console: Console) -> int:
        if not (ticket := _find_ticket(store, console, ticket_id)):
            return 1

        for label, value in (
            ("ID", ticket.id),
            ("Name", ticket.name),
            ("Phone", ticket.phone),
            ("Reason", ticket.reason),
            ("Estimated response", ticket.estimated_response_time),
            ("Observations", ticket.observations or "-"),
            ("Submitted", ticket.submission_date.isoformat()),
            ("Status", ticket.status),
            ("Responsible", ticket.responsible or "-"),
            ("File", ticket.file_name or "-"),
        ):
            console.print(f"[bold]{label}:[/bold] {value}")

        return 0

    _run(ctx, "show", action, ticket_id=ticket_id)


@cli.command()
@click.option("--name", required=True)
@click.option("--phone", required=True)
@click.option("--reason", required=True)
@click.option("--eta", "estimated_response_time", required=True, help="Estimated response time")
@click.option("--observations", default=None)
@click.option(
    "--file",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Attachment to upload",
)
@click.pass_context
def add(
    ctx: click.Context,
    name: str,
    phone: str,
    reason: str,
    estimated_response_time: str,
    observations: Optional[str],
    file_path: Optional[Path],
) -> None:
    """Open a new ticket."""

    async def action(store: TicketStore, console: Console) -> int:
        params = NewTicketParams(
            name=name,
            phone=phone,
            reason=reason,
            estimated_response_time=estimated_response_time,
            observations=observations,
            file=TicketFile.from_path(file_path) if file_path else None,
        )

        await store.add_ticket(params)
        return 0

    _run(ctx, "add", action)


@cli.command("set-status")
@click.argument("ticket_id")
@click.argument("status", type=click.Choice(TICKET_STATUSES))
@click.pass_context
def set_status(ctx: click.Context, ticket_id: str, status: TicketStatus) -> None:
    """Move a ticket to another workflow status."""

    async def action(store: TicketStore, console: Console) -> int:
        await store.update_ticket_status(TicketId(ticket_id), status)
        return 0

    _run(ctx, "set-status", action, ticket_id=ticket_id)


@cli.command()
@click.argument("ticket_id")
@click.argument("responsible")
@click.pass_context
def assign(ctx: click.Context, ticket_id: str, responsible: str) -> None:
    """Assign a ticket to someone."""

    async def action(store: TicketStore, console: Console) -> int:
        await store.update_ticket_responsible(TicketId(ticket_id), responsible)
        return 0

    _run(ctx, "assign", action, ticket_id=ticket_id)


@cli.command()
@click.argument("ticket_id")
@click.pass_context
def download(ctx: click.Context, ticket_id: str) -> None:
    """Save a ticket's attachment to the download directory."""

    async def action(store: TicketStore, console: Console) -> int:
        if not (ticket := _find_ticket(store, console, ticket_id)):
            return 1

        if not ticket.file_path:
            console.print(f"[yellow]Ticket '{ticket_id}' has no attachment[/yellow]")
            return 1

        await store.download_file(ticket.file_path, ticket.file_name or Path(ticket.file_path).name)
        return 0

    _run(ctx, "download", action, ticket_id=ticket_id)


@cli.command()
@click.argument("ticket_id")
@click.pass_context
def preview(ctx: click.Context, ticket_id: str) -> None:
    """Print a short-lived link to a ticket's attachment."""

    async def action(store: TicketStore, console: Console) -> int:
        if not (ticket := _find_ticket(store, console, ticket_id)):
            return 1

        if not ticket.file_path:
            console.print(f"[yellow]Ticket '{ticket_id}' has no attachment[/yellow]")
            return 1

        if url := await store.create_preview_url(ticket.file_path):
            console.print(url, soft_wrap=True)
            return 0

        return 1

    _run(ctx, "preview", action, ticket_id=ticket_id)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
