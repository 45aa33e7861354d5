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

"""Core tool types shared by the registry, the executor and the providers.

A tool is described once by a ToolDefinition (name, JSON schema, optional
continuation rule). Providers translate definitions into their native
tool format; the executor validates arguments against the same schema and
dispatches to a handler keyed by the tool's name.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from jsonschema import Draft202012Validator


class BuiltinTool(str, Enum):
    """Names of the built-in tools.

    The catalog and the handler table are both keyed by these members, so a
    registered definition always has a matching handler.
    """

    ANALYZE_PROJECT_STATE = "analyze_project_state"
    GENERATE_COMPONENT = "generate_component"
    EDIT_COMPONENT = "edit_component"
    GENERATE_IMAGE_ASSET = "generate_image_asset"
    EDIT_IMAGE_ASSET = "edit_image_asset"
    UPLOAD_IMAGE_TO_CDN = "upload_image_to_cdn"
    REFLECT_ON_ARTIFACT = "reflect_on_artifact"
    CAPTURE_PREVIEW_SCREENSHOT = "capture_preview_screenshot"
    GET_EMBEDDED_PREVIEW = "get_embedded_preview"
    SWITCH_UI_TAB = "switch_ui_tab"
    SHOW_COMPONENT_CODE = "show_component_code"
    FOCUS_PREVIEW_COMPONENT = "focus_preview_component"
    CREATE_SCENE = "create_scene"
    ADD_COMPONENT_TO_SCENE = "add_component_to_scene"
    CREATE_PROJECT_PLAN = "create_project_plan"
    UPDATE_PLAN_TASK = "update_plan_task"


class ContinuationCondition(str, Enum):
    """When a continuation rule fires, evaluated against the original request."""

    ALWAYS = "always"
    IF_COMPONENT_REQUESTED = "if_component_requested"
    IF_USER_INTENT_COMPLETE = "if_user_intent_complete"


@dataclass(frozen=True)
class ContinuationRule:
    """Declarative hint that another tool should run after this one succeeds."""

    next_tool: str
    condition: ContinuationCondition = ContinuationCondition.ALWAYS
    max_chain_length: int = 1

    def __post_init__(self) -> None:
        if self.max_chain_length < 1:
            raise ValueError("max_chain_length must be >= 1")


@dataclass(frozen=True)
class ToolDefinition:
    """Immutable description of one tool.

    Attributes:
        name: Unique tool name
        description: Text shown to the model
        parameters: JSON schema object with ``properties`` and ``required``
        continuation: Optional rule for automatic follow-up
    """

    name: str
    description: str
    parameters: Mapping[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )
    continuation: Optional[ContinuationRule] = None

    @property
    def properties(self) -> Mapping[str, Any]:
        return self.parameters.get("properties", {})

    @property
    def required(self) -> List[str]:
        return list(self.parameters.get("required", []))

    def json_schema(self) -> Dict[str, Any]:
        """Plain-dict copy of the parameter schema for provider payloads."""
        return {
            "type": "object",
            "properties": json.loads(json.dumps(dict(self.properties))),
            "required": self.required,
        }


@dataclass(frozen=True)
class ToolResult:
    """Uniform outcome of one tool execution."""

    success: bool
    summary: str
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, summary: str, data: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(success=True, summary=summary, data=data)

    @classmethod
    def fail(cls, error: str, summary: Optional[str] = None) -> "ToolResult":
        return cls(success=False, summary=summary or error, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for provider payloads and logging."""
        result: Dict[str, Any] = {"success": self.success, "summary": self.summary}
        if self.data is not None:
            result["data"] = self.data
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class ToolCallRecord:
    """One executed tool call, as reported back to the caller."""

    id: str
    function: str
    args: Dict[str, Any]
    result: ToolResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "function": self.function,
            "args": self.args,
            "result": self.result.to_dict(),
        }


# =============================================================================
# Argument validation
# =============================================================================


@dataclass
class ValidationResult:
    """Outcome of validating arguments against a tool schema."""

    valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=False, errors=errors)


def _format_path(parts: Iterable[Any]) -> str:
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _drop_nulls(value: Any) -> Any:
    # Models send null for optional fields they leave unset.
    if isinstance(value, Mapping):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_drop_nulls(item) for item in value]
    return value


def validate_arguments(definition: ToolDefinition, arguments: Mapping[str, Any]) -> ValidationResult:
    """Validate arguments against a tool's JSON schema (Draft 2020-12).

    Null values count as absent. Errors are ordered by the argument path they
    point at, e.g. ``components[0].y: 'y' is a required property``.
    """
    if not isinstance(arguments, Mapping):
        return ValidationResult.failure([f"arguments must be an object, got {type(arguments).__name__}"])

    validator = Draft202012Validator(definition.parameters)
    found = []
    for error in validator.iter_errors(_drop_nulls(arguments)):
        path = _format_path(error.absolute_path)
        found.append((path, f"{path}: {error.message}" if path else error.message))
    errors = [message for _, message in sorted(found)]
    return ValidationResult(valid=not errors, errors=errors)
