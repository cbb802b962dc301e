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
from enum import Enum
from typing_extensions import override


class NotificationSeverity(Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    severity: NotificationSeverity = NotificationSeverity.DEFAULT


class Notifier(ABC):
    @abstractmethod
    def notify(self, notification: Notification) -> None: ...


class NotificationBuffer(Notifier):
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    @override
    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
