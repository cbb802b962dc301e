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

"""Runtime configuration, read from the environment (optionally seeded from a `.env` file)."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Literal, Optional, Sequence, cast

from dotenv import load_dotenv

from ticketdesk.core.common import ConfigurationError
from ticketdesk.core.loggers import LogLevel

StorageBackend = Literal["supabase", "s3"]
STORAGE_BACKENDS: Sequence[StorageBackend] = ("supabase", "s3")


def load_env_file(
    env_file_name: str = ".env",
    search_paths: Optional[Sequence[Path]] = None,
) -> Optional[Path]:
    """Loads the first `env_file_name` found in `search_paths` (default: the working directory).

    Variables already present in the environment are left untouched.
    Returns the path that was loaded, if any.
    """
    for search_path in search_paths or [Path.cwd()]:
        env_file = search_path / env_file_name
        if env_file.exists():
            load_dotenv(env_file, override=False)
            return env_file

    return None


@dataclass
class TicketDeskConfig:
    """Settings for the ticket client.

    Attributes:
        supabase_url: Project URL of the Supabase backend
        supabase_key: API key (anon or service role)
        supabase_schema: Postgres schema holding the tickets table
        storage_backend: Where attachments live, "supabase" or "s3"
        s3_region: Region of the S3 bucket (s3 backend only)
        s3_endpoint_url: Custom endpoint for S3-compatible services
        download_dir: Directory downloaded attachments are saved to
        log_level: Minimum level written by the logger
    """

    supabase_url: str = ""
    supabase_key: str = ""
    supabase_schema: str = "public"
    storage_backend: StorageBackend = "supabase"
    s3_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    download_dir: Path = field(default_factory=lambda: Path("downloads"))
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_env(cls) -> TicketDeskConfig:
        """Builds a configuration from these variables:

        - SUPABASE_URL, SUPABASE_KEY (required)
        - SUPABASE_SCHEMA (default: public)
        - TICKETDESK_STORAGE_BACKEND (default: supabase)
        - TICKETDESK_S3_REGION, TICKETDESK_S3_ENDPOINT_URL
        - TICKETDESK_DOWNLOAD_DIR (default: downloads)
        - TICKETDESK_LOG_LEVEL (default: INFO)
        """
        env = os.environ

        try:
            log_level = LogLevel.from_string(env.get("TICKETDESK_LOG_LEVEL", "INFO"))
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        return cls(
            supabase_url=env.get("SUPABASE_URL", ""),
            supabase_key=env.get("SUPABASE_KEY", ""),
            supabase_schema=env.get("SUPABASE_SCHEMA") or "public",
            storage_backend=cast(
                StorageBackend,
                env.get("TICKETDESK_STORAGE_BACKEND", "supabase").strip().lower(),
            ),
            s3_region=env.get("TICKETDESK_S3_REGION") or None,
            s3_endpoint_url=env.get("TICKETDESK_S3_ENDPOINT_URL") or None,
            download_dir=Path(env.get("TICKETDESK_DOWNLOAD_DIR") or "downloads"),
            log_level=log_level,
        )

    def validate(self) -> None:
        """Raises ConfigurationError describing every invalid setting."""
        problems = []

        if not self.supabase_url:
            problems.append("SUPABASE_URL must be set")
        elif not self.supabase_url.startswith(("http://", "https://")):
            problems.append("SUPABASE_URL must be an http(s) URL")

        if not self.supabase_key:
            problems.append("SUPABASE_KEY must be set")

        if self.storage_backend not in STORAGE_BACKENDS:
            problems.append(
                f"Unknown storage backend '{self.storage_backend}' "
                f"(expected one of: {', '.join(STORAGE_BACKENDS)})"
            )

        if problems:
            raise ConfigurationError("; ".join(problems))

    @property
    def connection_params(self) -> dict[str, str]:
        return {
            "url": self.supabase_url,
            "key": self.supabase_key,
            "schema": self.supabase_schema,
        }
