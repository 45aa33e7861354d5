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

"""Command-line interface for atelier."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from atelier import __version__
from atelier.agent.debug_logger import configure_logging
from atelier.agent.messages import ChatResponse, Turn
from atelier.agent.orchestrator import AgentOrchestrator
from atelier.config.settings import Settings, load_settings
from atelier.integrations.factory import build_collaborators
from atelier.project.schema import Project, create_project

app = typer.Typer(
    name="atelier",
    help="Conversational building agent for UI projects",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"atelier v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """atelier - build UI components, images and plans by conversation."""


class ProjectStore:
    """Holds the current project and applies updaters to it."""

    def __init__(self, project: Project):
        self.project = project

    def update(self, updater) -> None:
        self.project = updater(self.project)


def load_project(path: Optional[Path]) -> Project:
    if path is not None and path.exists():
        return Project.model_validate_json(path.read_text(encoding="utf-8"))
    return create_project()


def save_project(project: Project, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(project.model_dump_json(indent=2), encoding="utf-8")


def render_response(response: ChatResponse) -> None:
    if response.success:
        console.print(Markdown(response.message or "_(no reply)_"))
    else:
        console.print(f"[bold red]Error:[/] {response.message}")

    if response.tool_calls:
        table = Table(title="Tool calls")
        table.add_column("Tool", style="cyan")
        table.add_column("Status")
        table.add_column("Summary")
        for call in response.tool_calls:
            status = "[green]ok[/]" if call.result.success else "[red]failed[/]"
            table.add_row(call.function, status, call.result.summary)
        console.print(table)


@app.command()
def providers() -> None:
    """List providers with a configured credential."""
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_file, console=console)
    orchestrator = AgentOrchestrator.from_settings(settings)

    if not orchestrator.is_any_provider_available():
        console.print("[yellow]No providers available.[/] Set ANTHROPIC_API_KEY or OPENAI_API_KEY.")
        raise typer.Exit(1)

    current = orchestrator.get_current_provider()
    table = Table(title="Available providers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Model")
    table.add_column("Default")
    for info in orchestrator.get_available_providers():
        table.add_row(info.id, info.display_name, info.model, "*" if info.id == current else "")
    console.print(table)


async def run_chat(
    message: str,
    settings: Settings,
    store: ProjectStore,
    provider: Optional[str],
    budget: Optional[int],
) -> ChatResponse:
    """Run one orchestrated request against the store's project."""
    orchestrator = AgentOrchestrator.from_settings(settings, collaborators=build_collaborators(settings))
    if budget is not None:
        orchestrator.set_action_budget(budget)
    try:
        return await orchestrator.chat(
            Turn(message=message, project=store.project, provider=provider),
            update_project=store.update,
        )
    finally:
        await orchestrator.close()


@app.command()
def chat(
    message: str = typer.Argument(..., help="Request for the building agent"),
    provider: Optional[str] = typer.Option(
        None,
        "--provider",
        "-p",
        help="Provider id (default: settings.default_provider)",
    ),
    project_path: Optional[Path] = typer.Option(
        None,
        "--project",
        help="Project JSON file to load and update",
    ),
    budget: Optional[int] = typer.Option(
        None,
        "--budget",
        min=0,
        help="Action budget for this request",
    ),
    save: bool = typer.Option(
        True,
        "--save/--no-save",
        help="Write the updated project back to --project",
    ),
) -> None:
    """Send one request to the building agent.

    Examples:
        atelier chat "Create a hero banner with a sunset image" --project site.json

        atelier chat "Plan the full onboarding flow" --provider openai --budget 3
    """
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_file, console=console)

    try:
        store = ProjectStore(load_project(project_path))
    except ValueError as e:
        console.print(f"[bold red]Error:[/] Could not load project: {e}")
        raise typer.Exit(1)

    response = asyncio.run(run_chat(message, settings, store, provider, budget))
    render_response(response)

    if save and project_path is not None:
        save_project(store.project, project_path)
        console.print(f"[dim]Project saved to {project_path}[/]")

    if not response.success:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
