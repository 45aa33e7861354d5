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

"""LLM-backed component and plan generation.

Both generators use OpenAI Chat Completions. Component code is extracted
from the reply, stripping markdown fences and leading prose. Plans are
requested as a JSON object and validated into ``ProjectPlan``.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, get_args

from openai import AsyncOpenAI
from pydantic import ValidationError

from atelier.core.errors import ToolExecutionError
from atelier.project.schema import ComponentSchema, PlanTask, Project, ProjectPlan
from atelier.tools.collaborators import GeneratedComponent

logger = logging.getLogger(__name__)

COMPONENT_SYSTEM_PROMPT = """You are an expert React developer generating UI components.
Generate a single, complete React component based on the user's request.
Use modern React with TypeScript, functional components and hooks, and Tailwind CSS.
Make the component self-contained and production-ready.
Return only the component code, starting with the component definition. No markdown."""

PLAN_SYSTEM_PROMPT = """You are an expert software architect and project manager.
Create a focused, actionable plan for a web application with 3-4 development
phases (no more), realistic task estimates and clear deliverables.
Respond with a single JSON object using this structure:
{
  "title": "Plan title",
  "overview": "Project overview",
  "target_users": ["..."],
  "core_features": ["..."],
  "phases": [
    {
      "name": "Phase name",
      "description": "Phase description",
      "order": 1,
      "tasks": [
        {"title": "...", "description": "...", "type": "component",
         "priority": "high", "estimated_hours": 8}
      ],
      "deliverables": ["..."]
    }
  ]
}"""

_FENCE = re.compile(r"```(?:[a-zA-Z]+)?\n(.*?)```", re.DOTALL)
_THINKING = re.compile(r"<Thinking>.*?</Thinking>", re.DOTALL | re.IGNORECASE)
_CODE_START = re.compile(r"^\s*(import |export |const |function |interface |type |'use client'|\"use client\")")

_TASK_TYPES = set(get_args(PlanTask.model_fields["type"].annotation))
_PRIORITIES = set(get_args(PlanTask.model_fields["priority"].annotation))


def extract_code(text: str) -> str:
    """Pull component source out of a model reply.

    Prefers the last fenced block; otherwise drops any prose before the
    first line that looks like code.
    """
    text = _THINKING.sub("", text).strip()
    blocks = _FENCE.findall(text)
    if blocks:
        return blocks[-1].strip()

    lines = text.splitlines()
    for index, line in enumerate(lines):
        if _CODE_START.match(line):
            return "\n".join(lines[index:]).strip()
    return text


def _project_context(project: Project) -> str:
    names = ", ".join(c.name for c in project.components) or "none"
    deps = ", ".join(project.dependencies) or "none"
    return f"Framework: {project.framework}\nExisting components: {names}\nDependencies: {deps}"


class LLMComponentGenerator:
    """ComponentGenerator that writes React components with a chat model."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        temperature: float = 0.4,
        timeout: int = 120,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def _complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": COMPONENT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
        )
        code = extract_code(response.choices[0].message.content or "")
        if not code:
            raise ToolExecutionError("Component generation returned no code")
        return code

    async def generate(
        self,
        name: str,
        description: str,
        project: Project,
        image_url: Optional[str] = None,
    ) -> GeneratedComponent:
        prompt = f"Component name: {name}\n\n{description}\n\nProject context:\n{_project_context(project)}"
        if image_url:
            prompt += f"\n\nUse this image in the component: {image_url}"
        logger.info("Generating component %s with %s", name, self.model)
        code = await self._complete(prompt)
        return GeneratedComponent(name=name, code=code, description=description, method="llm")

    async def edit(self, component: ComponentSchema, instructions: str, project: Project) -> GeneratedComponent:
        prompt = (
            f"Modify the {component.name} component according to these instructions:\n"
            f"{instructions}\n\nCurrent code:\n{component.generated_code or ''}\n\n"
            f"Project context:\n{_project_context(project)}\n\n"
            "Return the complete updated component."
        )
        logger.info("Editing component %s with %s", component.name, self.model)
        code = await self._complete(prompt)
        return GeneratedComponent(
            name=component.name,
            code=code,
            description=component.description,
            method="llm",
        )

    async def close(self) -> None:
        await self.client.close()


def _normalize_task(task: Dict[str, Any]) -> Dict[str, Any]:
    hours = task.get("estimated_hours", task.get("estimatedHours", 0))
    return {
        "title": str(task.get("title") or "Untitled task"),
        "description": str(task.get("description") or ""),
        "type": task.get("type") if task.get("type") in _TASK_TYPES else "feature",
        "priority": task.get("priority") if task.get("priority") in _PRIORITIES else "medium",
        "estimated_hours": hours if isinstance(hours, (int, float)) else 0,
    }


def plan_from_json(data: Dict[str, Any], project_id: str, generated_by: str) -> ProjectPlan:
    """Validate a model's plan object into a ProjectPlan.

    Unknown task types and priorities fall back to defaults instead of
    rejecting the whole plan.
    """
    phases: List[Dict[str, Any]] = []
    for index, phase in enumerate(data.get("phases") or [], start=1):
        phases.append(
            {
                "name": str(phase.get("name") or f"Phase {index}"),
                "description": str(phase.get("description") or ""),
                "order": phase.get("order") if isinstance(phase.get("order"), int) else index,
                "tasks": [_normalize_task(t) for t in phase.get("tasks") or [] if isinstance(t, dict)],
                "deliverables": [str(d) for d in phase.get("deliverables") or []],
            }
        )
    try:
        return ProjectPlan.model_validate(
            {
                "project_id": project_id,
                "title": str(data.get("title") or "Project Plan"),
                "overview": str(data.get("overview") or ""),
                "target_users": list(data.get("target_users") or data.get("targetUsers") or []),
                "core_features": list(data.get("core_features") or data.get("coreFeatures") or []),
                "phases": phases,
                "generated_by": generated_by,
            }
        )
    except ValidationError as e:
        raise ToolExecutionError(f"Invalid project plan: {e.error_count()} validation error(s)") from e


class LLMPlanGenerator:
    """PlanGenerator that asks a chat model for a JSON plan."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        timeout: int = 120,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def generate(self, goal: str, project: Project, title: Optional[str] = None) -> ProjectPlan:
        prompt = (
            f"Create a project plan for: {goal}\n\n"
            f"Project: {project.name}\n{project.description}\n\n{_project_context(project)}"
        )
        if title:
            prompt += f"\n\nUse this plan title: {title}"

        logger.info("Generating project plan with %s", self.model)
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": PLAN_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0.3,
        )
        content = response.choices[0].message.content or ""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ToolExecutionError(f"Plan generation returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ToolExecutionError("Plan generation returned a non-object response")

        plan = plan_from_json(data, project_id=project.id, generated_by=self.model)
        if title:
            plan = plan.model_copy(update={"title": title})
        return plan

    async def close(self) -> None:
        await self.client.close()
