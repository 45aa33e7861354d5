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

"""Tests for the command-line interface."""

import json
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from atelier import __version__
from atelier.agent.orchestrator import AgentOrchestrator
from atelier.ui import cli

from tests.factories import ScriptedProvider, reply, tool_call

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from reconfiguring the package logger during tests."""
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def scripted(monkeypatch):
    """Route the CLI to an orchestrator backed by a scripted provider."""
    provider = ScriptedProvider(
        script=[reply(tool_call("create_scene", name="Home", description="Landing"))],
        synthesis="Created the Home scene.",
    )
    orchestrator = AgentOrchestrator({provider.id: provider})
    monkeypatch.setattr(
        cli,
        "AgentOrchestrator",
        SimpleNamespace(from_settings=lambda settings=None, collaborators=None: orchestrator),
    )
    return provider


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert f"atelier v{__version__}" in result.output


class TestProvidersCommand:
    """Tests for `atelier providers`."""

    def test_no_providers(self):
        result = runner.invoke(cli.app, ["providers"])

        assert result.exit_code == 1
        assert "No providers available" in result.output

    def test_lists_configured_providers(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        result = runner.invoke(cli.app, ["providers"])

        assert result.exit_code == 0
        assert "openai" in result.output
        assert "claude-sonnet-4" not in result.output


class TestChatCommand:
    """Tests for `atelier chat`."""

    def test_chat_saves_project(self, scripted, tmp_path):
        """A successful request renders the reply and writes the project."""
        project_file = tmp_path / "site.json"

        result = runner.invoke(cli.app, ["chat", "Set up a home scene", "--project", str(project_file)])

        assert result.exit_code == 0, result.output
        assert "Created the Home scene." in result.output
        assert "create_scene" in result.output
        saved = json.loads(project_file.read_text())
        assert [scene["name"] for scene in saved["scenes"]] == ["Home"]
        assert scripted.turns[0].message == "Set up a home scene"

    def test_no_save(self, scripted, tmp_path):
        project_file = tmp_path / "site.json"

        result = runner.invoke(cli.app, ["chat", "Set up a home scene", "--project", str(project_file), "--no-save"])

        assert result.exit_code == 0
        assert not project_file.exists()

    def test_zero_budget_fails(self, scripted):
        """An exhausted budget exits non-zero without calling the provider."""
        result = runner.invoke(cli.app, ["chat", "Set up a home scene", "--budget", "0"])

        assert result.exit_code == 1
        assert "Action budget exhausted" in result.output
        assert scripted.chat_calls == 0

    def test_unknown_provider_fails(self, scripted):
        result = runner.invoke(cli.app, ["chat", "hello", "--provider", "openai"])

        assert result.exit_code == 1
        assert "not available" in result.output

    def test_invalid_project_file(self, scripted, tmp_path):
        project_file = tmp_path / "broken.json"
        project_file.write_text("{not json")

        result = runner.invoke(cli.app, ["chat", "hello", "--project", str(project_file)])

        assert result.exit_code == 1
        assert "Could not load project" in result.output
