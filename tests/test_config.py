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

import os
from pathlib import Path

import pytest
from pytest import raises

from ticketdesk.config import TicketDeskConfig, load_env_file
from ticketdesk.core.common import ConfigurationError
from ticketdesk.core.loggers import LogLevel

_VARIABLES = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_SCHEMA",
    "TICKETDESK_STORAGE_BACKEND",
    "TICKETDESK_S3_REGION",
    "TICKETDESK_S3_ENDPOINT_URL",
    "TICKETDESK_DOWNLOAD_DIR",
    "TICKETDESK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARIABLES:
        # set first so that values loaded from .env files are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_that_config_defaults_apply_when_only_credentials_are_set(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")

    config = TicketDeskConfig.from_env()
    config.validate()

    assert config.supabase_schema == "public"
    assert config.storage_backend == "supabase"
    assert config.download_dir == Path("downloads")
    assert config.log_level == LogLevel.INFO
    assert config.connection_params == {
        "url": "https://project.supabase.co",
        "key": "anon-key",
        "schema": "public",
    }


def test_that_config_reads_every_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")
    monkeypatch.setenv("SUPABASE_SCHEMA", "support")
    monkeypatch.setenv("TICKETDESK_STORAGE_BACKEND", " S3 ")
    monkeypatch.setenv("TICKETDESK_S3_REGION", "sa-east-1")
    monkeypatch.setenv("TICKETDESK_S3_ENDPOINT_URL", "http://localhost:9000")
    monkeypatch.setenv("TICKETDESK_DOWNLOAD_DIR", "/tmp/attachments")
    monkeypatch.setenv("TICKETDESK_LOG_LEVEL", "trace")

    config = TicketDeskConfig.from_env()

    assert config.supabase_schema == "support"
    assert config.storage_backend == "s3"
    assert config.s3_region == "sa-east-1"
    assert config.s3_endpoint_url == "http://localhost:9000"
    assert config.download_dir == Path("/tmp/attachments")
    assert config.log_level == LogLevel.TRACE


def test_that_validation_reports_every_problem(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TICKETDESK_STORAGE_BACKEND", "ftp")

    config = TicketDeskConfig.from_env()

    with raises(ConfigurationError) as exc_info:
        config.validate()

    message = str(exc_info.value)
    assert "SUPABASE_URL must be set" in message
    assert "SUPABASE_KEY must be set" in message
    assert "Unknown storage backend 'ftp'" in message


def test_that_validation_rejects_non_http_urls() -> None:
    config = TicketDeskConfig(supabase_url="project.supabase.co", supabase_key="k")

    with raises(ConfigurationError, match="http"):
        config.validate()


def test_that_an_unknown_log_level_is_a_configuration_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("TICKETDESK_LOG_LEVEL", "chatty")

    with raises(ConfigurationError, match="chatty"):
        TicketDeskConfig.from_env()


def test_that_env_files_do_not_override_the_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    (tmp_path / ".env").write_text(
        "SUPABASE_URL=https://from-file.supabase.co\nSUPABASE_KEY=file-key\n"
    )
    monkeypatch.setenv("SUPABASE_KEY", "env-key")

    loaded = load_env_file(search_paths=[tmp_path])

    assert loaded == tmp_path / ".env"
    assert os.environ["SUPABASE_URL"] == "https://from-file.supabase.co"
    assert os.environ["SUPABASE_KEY"] == "env-key"


def test_that_a_missing_env_file_loads_nothing(tmp_path: Path) -> None:
    assert load_env_file(search_paths=[tmp_path]) is None
