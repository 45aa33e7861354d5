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

"""System prompt construction shared by all provider adapters."""

from typing import Iterable, Optional

from atelier.project.schema import Project
from atelier.tools.base import ToolDefinition

_ROLE = """You are an expert UI/UX agent specializing in frontend development. You help users \
build and improve React applications by analyzing their current project and taking action \
through the available tools."""

_WORKFLOW = """DEVELOPMENT WORKFLOW:
1. Start with analyze_project_state when you need to understand what exists
2. Execute tools one at a time and explain each step
3. After each tool, summarize what happened and suggest the next logical action

REFLECTION WORKFLOW:
After an artifact is created, reflect_on_artifact may run automatically. Always share the \
reflection with the user: strengths, areas for improvement, project alignment, then state \
your decision and the rationale for it.

IMAGE -> COMPONENT WORKFLOW:
generate_image_asset -> reflect_on_artifact -> upload_image_to_cdn -> generate_component \
(with the hosted image URL) -> reflect_on_artifact"""

_STYLE = """RESPONSE STYLE:
- Be conversational and helpful
- Explain your reasoning before taking action
- Summarize what you accomplished after using tools
- Acknowledge failed tools plainly and propose a way forward
- Ask clarifying questions if the user's intent is unclear"""


def describe_tools(tools: Iterable[ToolDefinition]) -> str:
    lines = []
    for index, tool in enumerate(tools, start=1):
        lines.append(f"{index}. {tool.name} - {tool.description}")
        if tool.continuation is not None:
            rule = tool.continuation
            lines.append(
                f"   (automatically continues with {rule.next_tool} when {rule.condition.value})"
            )
    return "\n".join(lines)


def build_system_prompt(
    project: Project,
    tools: Iterable[ToolDefinition],
    budget_remaining: Optional[int] = None,
    assistant_name: Optional[str] = None,
) -> str:
    """Build the system prompt for one provider request.

    Args:
        project: Current project snapshot
        tools: Tools advertised to the model
        budget_remaining: Tool calls still allowed in this request (None = unlimited)
        assistant_name: Display name of the backing model

    Returns:
        System prompt text
    """
    if budget_remaining is None:
        budget = "Action budget: not limited for this request."
    else:
        budget = (
            f"Action budget: {budget_remaining} tool call(s) remain for this request. "
            "You are authorized to execute multi-step workflows without asking permission, "
            "within this budget."
        )

    sections = [
        _ROLE,
        f"CURRENT PROJECT CONTEXT:\n{project.summary()}",
        f"YOUR CAPABILITIES:\n{describe_tools(tools)}",
        _WORKFLOW,
        f"AUTONOMOUS EXECUTION:\n{budget}",
        _STYLE,
    ]
    if assistant_name:
        sections.append(f"You are running on {assistant_name}.")
    return "\n\n".join(sections)
