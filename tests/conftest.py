# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
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

"""Shared pytest fixtures and configuration."""

import os

# Must be set before atelier.config.settings is imported
os.environ.setdefault("ATELIER_SKIP_ENV_FILE", "1")

import pytest

from atelier.config.api_keys import reset_api_key_manager
from atelier.config.settings import reset_settings
from atelier.project.schema import create_project

from tests.factories import ProjectStore


@pytest.fixture(autouse=True)
def isolate_environment_variables(monkeypatch, tmp_path):
    """Isolate tests from real credentials.

    Clears provider keys from the environment, skips .env files and points
    the default keys file at an empty temporary location.
    """
    monkeypatch.setenv("ATELIER_SKIP_ENV_FILE", "1")
    for var in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "BUNNYCDN_API_KEY",
        "BUNNYCDN_STORAGE_ZONE",
        "BUNNYCDN_PULL_ZONE_HOSTNAME",
        "DEFAULT_PROVIDER",
        "ACTION_BUDGET",
        "API_KEYS_FILE",
    ):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setattr("atelier.config.api_keys.DEFAULT_KEYS_FILE", tmp_path / "api_keys.yaml")
    reset_settings()
    reset_api_key_manager()
    yield
    reset_settings()
    reset_api_key_manager()


@pytest.fixture
def project():
    return create_project("Test Project", "A project used in tests")


@pytest.fixture
def store(project):
    return ProjectStore(project)
