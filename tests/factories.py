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

"""Test factories for providers, registries and collaborators.

This module provides:
- ScriptedProvider: a BaseProvider whose backend replies are scripted
- tool_call / reply: builders for scripted responses
- ProjectStore: an in-memory owner of the project document
- make_collaborators: collaborators backed by AsyncMock
- chain_registry: small registries for continuation tests

Usage:
    from tests.factories import ScriptedProvider, reply, tool_call

    provider = ScriptedProvider(script=[reply(tool_call("analyze_project_state"))])
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, List, Optional, Sequence
from unittest.mock import AsyncMock

from atelier.agent.messages import Turn
from atelier.project.schema import Project, ProjectPlan, ProjectPhase, PlanTask
from atelier.providers.base import BaseProvider, ParsedResponse, ParsedToolCall, ProviderInfo
from atelier.tools.base import (
    ContinuationCondition,
    ContinuationRule,
    ToolCallRecord,
    ToolDefinition,
    ToolResult,
)
from atelier.tools.collaborators import (
    Collaborators,
    GeneratedComponent,
    GeneratedImage,
    ReflectionOutcome,
    UploadedFile,
    CapturedScreenshot,
)
from atelier.tools.registry import ToolRegistry

_ids = itertools.count(1)

# 1x1 transparent PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def tool_call(name: str, /, **arguments: Any) -> ParsedToolCall:
    return ParsedToolCall(id=f"call-{next(_ids)}", name=name, arguments=arguments)


def reply(*calls: ParsedToolCall, text: str = "") -> ParsedResponse:
    return ParsedResponse(text=text, tool_calls=list(calls))


class ScriptedProvider(BaseProvider):
    """Provider whose first-round replies come from a script.

    Follow-up (synthesis) requests always answer with ``synthesis``. When
    the script is exhausted and a tool is forced, the provider calls the
    forced tool with no arguments of its own, as a real backend would.

    Attributes:
        requests: Every (tool_choice, messages) pair sent to the "backend"
        turns: Every turn passed to chat(), in order
    """

    def __init__(
        self,
        script: Optional[Sequence[ParsedResponse]] = None,
        provider_id: str = "claude-sonnet-4",
        registry: Optional[ToolRegistry] = None,
        synthesis: str = "Done.",
        fail_with: Optional[Exception] = None,
    ):
        super().__init__(
            ProviderInfo(
                id=provider_id,
                display_name=f"Scripted {provider_id}",
                description="Scripted test provider",
                model="scripted-model",
            ),
            registry=registry,
        )
        self.script: List[ParsedResponse] = list(script or [])
        self.synthesis = synthesis
        self.fail_with = fail_with
        self.requests: List[Dict[str, Any]] = []
        self.turns: List[Turn] = []

    @property
    def chat_calls(self) -> int:
        return len(self.turns)

    def _convert_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        return [{"name": tool.name} for tool in tools]

    def _tool_choice(self, mode: str, tool_name: Optional[str] = None) -> Any:
        return {"mode": mode, "name": tool_name}

    def _build_messages(self, turn: Turn) -> List[Dict[str, Any]]:
        self.turns.append(turn)
        return [{"role": "user", "content": turn.message}]

    async def _send(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        tool_choice: Any,
    ) -> Any:
        self.requests.append({"system": system, "messages": messages, "tool_choice": tool_choice})
        if self.fail_with is not None:
            raise self.fail_with
        if tool_choice["mode"] == "none":
            return ParsedResponse(text=self.synthesis)
        if self.script:
            return self.script.pop(0)
        if tool_choice["mode"] == "forced":
            return reply(tool_call(tool_choice["name"]))
        return ParsedResponse(text="Nothing to do.")

    def _parse_response(self, raw: Any) -> ParsedResponse:
        return raw

    def _append_tool_round(
        self,
        messages: List[Dict[str, Any]],
        parsed: ParsedResponse,
        records: List[ToolCallRecord],
    ) -> List[Dict[str, Any]]:
        return [*messages, *({"role": "tool", "name": r.function} for r in records)]


class ProjectStore:
    """Caller-side owner of the project document."""

    def __init__(self, project: Project):
        self.project = project
        self.updates = 0

    def update(self, updater: Callable[[Project], Project]) -> None:
        self.project = updater(self.project)
        self.updates += 1


def sample_plan(title: str = "Launch Plan") -> ProjectPlan:
    return ProjectPlan(
        title=title,
        overview="Ship the landing page",
        phases=[
            ProjectPhase(
                name="Foundation",
                order=1,
                tasks=[
                    PlanTask(title="Build header", estimated_hours=4),
                    PlanTask(title="Build hero", estimated_hours=6),
                ],
            ),
            ProjectPhase(name="Polish", order=2, tasks=[PlanTask(title="Accessibility pass", estimated_hours=3)]),
        ],
    )


def make_collaborators(cdn_url: str = "https://cdn.example.com/agent_generated/hero.png") -> Collaborators:
    """Collaborators whose methods are AsyncMocks with realistic return values."""
    component_generator = AsyncMock()
    component_generator.generate.side_effect = lambda name, description, project, image_url=None: (
        GeneratedComponent(name=name, code=f"export const {name} = () => <div className='p-4'>{name}</div>")
    )
    component_generator.edit.return_value = GeneratedComponent(name="Edited", code="export const Edited = () => null")

    image_generator = AsyncMock()
    image_generator.generate.return_value = GeneratedImage(base64=PNG_BASE64)
    image_generator.edit.return_value = GeneratedImage(base64=PNG_BASE64)

    cdn_uploader = AsyncMock()
    cdn_uploader.upload.return_value = UploadedFile(public_url=cdn_url, file_id="agent_generated/hero.png")

    screenshot_capturer = AsyncMock()
    screenshot_capturer.capture.return_value = CapturedScreenshot(
        url="https://cdn.example.com/shot.png", analysis={"width": 1200}
    )

    reflector = AsyncMock()
    reflector.reflect.return_value = ReflectionOutcome(
        score=8.0, strengths=["Clear"], improvements=["More contrast"], alignment="Matches the request"
    )

    plan_generator = AsyncMock()
    plan_generator.generate.return_value = sample_plan()

    return Collaborators(
        component_generator=component_generator,
        image_generator=image_generator,
        cdn_uploader=cdn_uploader,
        screenshot_capturer=screenshot_capturer,
        reflector=reflector,
        plan_generator=plan_generator,
    )


# =============================================================================
# Minimal registries for continuation tests
# =============================================================================


def definition(
    name: str,
    next_tool: Optional[str] = None,
    condition: ContinuationCondition = ContinuationCondition.ALWAYS,
    max_chain_length: int = 1,
) -> ToolDefinition:
    rule = ContinuationRule(next_tool, condition, max_chain_length) if next_tool else None
    return ToolDefinition(name=name, description=f"{name} tool", continuation=rule)


def succeeding(data: Optional[Dict[str, Any]] = None):
    async def handler(executor, args):
        return ToolResult.ok("ok", dict(data or {}))

    return handler


def failing(error: str = "generation failed"):
    async def handler(executor, args):
        raise RuntimeError(error)

    return handler


def image_reflect_registry(max_chain_length: int = 2) -> ToolRegistry:
    """``generate_image`` -> ``reflect`` (always)."""
    return ToolRegistry(
        [
            definition("generate_image", "reflect", max_chain_length=max_chain_length),
            definition("reflect"),
        ]
    )
