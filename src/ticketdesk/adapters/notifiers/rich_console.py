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
from typing_extensions import override

from rich.console import Console
from rich.panel import Panel

from ticketdesk.core.notifications import Notification, NotificationSeverity, Notifier


class RichToastNotifier(Notifier):
    """Renders notifications as toast-like panels on the terminal."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console(stderr=True)

    @override
    def notify(self, notification: Notification) -> None:
        destructive = notification.severity == NotificationSeverity.DESTRUCTIVE

        self._console.print(
            Panel(
                notification.description,
                title=f"[bold]{notification.title}[/bold]",
                title_align="left",
                border_style="red" if destructive else "green",
                expand=False,
            )
        )
