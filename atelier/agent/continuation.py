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

"""Continuation strategy for automatic tool chaining.

Decides whether the tool calls of one step should be followed by a forced
call to another tool, based on the registry's continuation rules:
- Only the last tool call of a step is eligible
- A failed call never continues
- The rule's condition is checked against the original request
- A per-request counter bounds how often each tool may trigger a chain
- A tool-pair argument mapping must produce arguments for the next tool

Design Pattern: Strategy
Argument mappings are pluggable per (tool, next_tool) pair.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from atelier.project.schema import Project
from atelier.tools.base import BuiltinTool, ContinuationCondition, ToolCallRecord
from atelier.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Case-insensitive substrings that make the matching condition true
COMPONENT_TRIGGERS: Tuple[str, ...] = (
    "component",
    "button",
    "card",
    "header",
    "footer",
    "navbar",
    "widget",
    "hero",
    "banner",
    "modal",
    "landing page",
)

INTENT_COMPLETE_TRIGGERS: Tuple[str, ...] = (
    "complete",
    "full",
    "entire",
    "end-to-end",
    "whole",
    "finish",
    "workflow",
)

ArgumentMapper = Callable[[ToolCallRecord, str, Project], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class ContinuationDecision:
    """A continuation to issue after the current step."""

    triggered_by: str
    next_tool: str
    args: Dict[str, Any] = field(default_factory=dict)
    reason: str = ""


def condition_met(condition: ContinuationCondition, request: str) -> bool:
    """Evaluate a continuation condition against the user's request."""
    if condition == ContinuationCondition.ALWAYS:
        return True
    lowered = request.lower()
    if condition == ContinuationCondition.IF_COMPONENT_REQUESTED:
        return any(word in lowered for word in COMPONENT_TRIGGERS)
    if condition == ContinuationCondition.IF_USER_INTENT_COMPLETE:
        return any(word in lowered for word in INTENT_COMPLETE_TRIGGERS)
    return False


# =============================================================================
# Tool-pair argument mappings
# =============================================================================


def _reflect_on(artifact_type: str, id_key: str) -> ArgumentMapper:
    def mapper(record: ToolCallRecord, request: str, project: Project) -> Optional[Dict[str, Any]]:
        artifact_id = (record.result.data or {}).get(id_key)
        if not artifact_id:
            return None
        return {"artifact_type": artifact_type, "artifact_id": artifact_id}

    return mapper


def _upload_reflected_image(record: ToolCallRecord, request: str, project: Project) -> Optional[Dict[str, Any]]:
    data = record.result.data or {}
    if data.get("artifact_type") != "image" or not data.get("artifact_id"):
        return None
    return {"asset_id": data["artifact_id"]}


def _pascal_case(text: str) -> str:
    return "".join(word.capitalize() for word in re.findall(r"[A-Za-z0-9]+", text)) or "Generated"


def _component_from_upload(record: ToolCallRecord, request: str, project: Project) -> Optional[Dict[str, Any]]:
    data = record.result.data or {}
    url = data.get("cdn_url")
    if not url:
        return None
    image_name = data.get("name") or "image"
    description = f"{request.strip()}\n\nUse the hosted image at {url}"
    if data.get("description"):
        description += f" ({data['description']})"
    return {
        "name": f"{_pascal_case(image_name)}Component",
        "description": description,
        "image_url": url,
    }


REFLECT = BuiltinTool.REFLECT_ON_ARTIFACT.value

DEFAULT_MAPPINGS: Dict[Tuple[str, str], ArgumentMapper] = {
    (BuiltinTool.GENERATE_IMAGE_ASSET.value, REFLECT): _reflect_on("image", "asset_id"),
    (BuiltinTool.GENERATE_COMPONENT.value, REFLECT): _reflect_on("component", "component_id"),
    (BuiltinTool.EDIT_COMPONENT.value, REFLECT): _reflect_on("component", "component_id"),
    (BuiltinTool.CREATE_PROJECT_PLAN.value, REFLECT): _reflect_on("plan", "plan_id"),
    (BuiltinTool.CAPTURE_PREVIEW_SCREENSHOT.value, REFLECT): _reflect_on("screenshot", "screenshot_id"),
    (REFLECT, BuiltinTool.UPLOAD_IMAGE_TO_CDN.value): _upload_reflected_image,
    (BuiltinTool.UPLOAD_IMAGE_TO_CDN.value, BuiltinTool.GENERATE_COMPONENT.value): _component_from_upload,
}


class ContinuationStrategy:
    """Decides the next forced tool call for a request."""

    def __init__(
        self,
        registry: ToolRegistry,
        mappings: Optional[Mapping[Tuple[str, str], ArgumentMapper]] = None,
    ):
        """Initialize continuation strategy.

        Args:
            registry: Registry holding the continuation rules
            mappings: Argument mappers keyed by (tool, next_tool). Pairs with
                no mapper continue with empty arguments.
        """
        self.registry = registry
        self.mappings = dict(DEFAULT_MAPPINGS if mappings is None else mappings)

    def decide(
        self,
        tool_calls: Sequence[ToolCallRecord],
        request: str,
        chain_counts: Mapping[str, int],
        project: Project,
    ) -> Optional[ContinuationDecision]:
        """Decide whether to continue after a step.

        Args:
            tool_calls: Tool calls of the step just completed, in order
            request: The original user request of this chain
            chain_counts: Continuations already triggered per tool in this request
            project: Working project snapshot

        Returns:
            ContinuationDecision, or None to stop
        """
        if not tool_calls:
            return None

        last = tool_calls[-1]
        if not last.result.success:
            logger.info("No continuation: %s failed", last.function)
            return None

        definition = self.registry.get(last.function)
        rule = definition.continuation if definition else None
        if rule is None:
            return None

        if not condition_met(rule.condition, request):
            logger.debug("No continuation from %s: condition %s not met", last.function, rule.condition.value)
            return None

        triggered = chain_counts.get(last.function, 0)
        if triggered >= rule.max_chain_length:
            logger.info(
                "No continuation from %s: chain limit %d reached", last.function, rule.max_chain_length
            )
            return None

        mapper = self.mappings.get((last.function, rule.next_tool))
        args: Optional[Dict[str, Any]] = {}
        if mapper is not None:
            args = mapper(last, request, project)
            if args is None:
                logger.debug("No continuation from %s: no arguments for %s", last.function, rule.next_tool)
                return None

        logger.info("Continuing %s -> %s (%s)", last.function, rule.next_tool, rule.condition.value)
        return ContinuationDecision(
            triggered_by=last.function,
            next_tool=rule.next_tool,
            args=args,
            reason=rule.condition.value,
        )
