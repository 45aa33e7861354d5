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

"""Built-in tool catalog.

Definitions are declared once at import time and wrapped by
:func:`atelier.tools.registry.default_registry`. Continuation rules here
drive the automatic workflow chains:

    generate_image_asset -> reflect_on_artifact -> upload_image_to_cdn -> generate_component
    generate_component   -> reflect_on_artifact
    create_project_plan  -> reflect_on_artifact   (only for "complete"/"full" requests)
"""

from typing import List

from atelier.tools.base import (
    BuiltinTool,
    ContinuationCondition,
    ContinuationRule,
    ToolDefinition,
)


def _schema(properties: dict, required: List[str]) -> dict:
    return {"type": "object", "properties": properties, "required": required}


_COMPONENT_ID = {"type": "string", "description": "ID of the component"}

BUILTIN_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name=BuiltinTool.ANALYZE_PROJECT_STATE.value,
        description=(
            "Analyze the current project to understand components, assets, scenes, "
            "plan progress and overall structure"
        ),
        parameters=_schema({}, []),
    ),
    ToolDefinition(
        name=BuiltinTool.GENERATE_COMPONENT.value,
        description="Generate a new React component and add it to the project",
        parameters=_schema(
            {
                "name": {"type": "string", "description": "Name for the component"},
                "description": {
                    "type": "string",
                    "description": "Description of what the component should do and look like",
                },
                "image_url": {
                    "type": "string",
                    "description": "Optional hosted image URL the component should embed",
                },
            },
            ["name", "description"],
        ),
        continuation=ContinuationRule(
            next_tool=BuiltinTool.REFLECT_ON_ARTIFACT.value,
            condition=ContinuationCondition.ALWAYS,
            max_chain_length=2,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.EDIT_COMPONENT.value,
        description="Modify an existing component based on feedback",
        parameters=_schema(
            {
                "component_id": _COMPONENT_ID,
                "instructions": {
                    "type": "string",
                    "description": "What to change in the component",
                },
            },
            ["component_id", "instructions"],
        ),
        continuation=ContinuationRule(
            next_tool=BuiltinTool.REFLECT_ON_ARTIFACT.value,
            condition=ContinuationCondition.ALWAYS,
            max_chain_length=1,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.GENERATE_IMAGE_ASSET.value,
        description="Generate an image asset using OpenAI's gpt-image-1 model",
        parameters=_schema(
            {
                "name": {"type": "string", "description": "Name for the image asset"},
                "prompt": {"type": "string", "description": "Detailed prompt for image generation"},
                "background": {
                    "type": "string",
                    "enum": ["transparent", "opaque", "auto"],
                    "description": "Background type for the image",
                },
                "size": {
                    "type": "string",
                    "enum": ["1024x1024", "1536x1024", "1024x1536", "auto"],
                    "description": "Size of the generated image",
                },
            },
            ["name", "prompt"],
        ),
        continuation=ContinuationRule(
            next_tool=BuiltinTool.REFLECT_ON_ARTIFACT.value,
            condition=ContinuationCondition.ALWAYS,
            max_chain_length=2,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.EDIT_IMAGE_ASSET.value,
        description="Edit an existing image asset using AI",
        parameters=_schema(
            {
                "asset_id": {"type": "string", "description": "ID of the image asset to edit"},
                "edit_prompt": {
                    "type": "string",
                    "description": "Instructions for how to edit the image",
                },
            },
            ["asset_id", "edit_prompt"],
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.UPLOAD_IMAGE_TO_CDN.value,
        description="Upload a generated image to the CDN and return its public URL",
        parameters=_schema(
            {
                "asset_id": {"type": "string", "description": "ID of the image asset to upload"},
                "file_name": {"type": "string", "description": "File name to store the image under"},
                "description": {"type": "string", "description": "Short description of the image"},
            },
            ["asset_id"],
        ),
        continuation=ContinuationRule(
            next_tool=BuiltinTool.GENERATE_COMPONENT.value,
            condition=ContinuationCondition.IF_COMPONENT_REQUESTED,
            max_chain_length=1,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.REFLECT_ON_ARTIFACT.value,
        description=(
            "Critically evaluate a created artifact (component, image, plan or screenshot) "
            "for quality and alignment with the project"
        ),
        parameters=_schema(
            {
                "artifact_type": {
                    "type": "string",
                    "enum": ["component", "image", "plan", "screenshot"],
                    "description": "Kind of artifact to evaluate",
                },
                "artifact_id": {"type": "string", "description": "ID of the artifact"},
                "focus": {
                    "type": "string",
                    "description": "Optional aspect to focus the evaluation on",
                },
            },
            ["artifact_type", "artifact_id"],
        ),
        # Only image reflections produce upload arguments; others end the chain.
        continuation=ContinuationRule(
            next_tool=BuiltinTool.UPLOAD_IMAGE_TO_CDN.value,
            condition=ContinuationCondition.IF_COMPONENT_REQUESTED,
            max_chain_length=1,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.CAPTURE_PREVIEW_SCREENSHOT.value,
        description="Capture a screenshot of a component in the live preview for visual validation",
        parameters=_schema({"component_id": _COMPONENT_ID}, ["component_id"]),
        continuation=ContinuationRule(
            next_tool=BuiltinTool.REFLECT_ON_ARTIFACT.value,
            condition=ContinuationCondition.ALWAYS,
            max_chain_length=1,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.GET_EMBEDDED_PREVIEW.value,
        description="Get information about the current embedded preview state",
        parameters=_schema({}, []),
    ),
    ToolDefinition(
        name=BuiltinTool.SWITCH_UI_TAB.value,
        description="Switch the UI to a specific tab (build, project, or preview)",
        parameters=_schema(
            {
                "tab": {
                    "type": "string",
                    "enum": ["build", "project", "preview"],
                    "description": "'build' for Build Tools, 'project' for Project view, 'preview' for Live Preview",
                }
            },
            ["tab"],
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.SHOW_COMPONENT_CODE.value,
        description="Expand and show the code for a specific component in the Project view",
        parameters=_schema({"component_id": _COMPONENT_ID}, ["component_id"]),
    ),
    ToolDefinition(
        name=BuiltinTool.FOCUS_PREVIEW_COMPONENT.value,
        description="Switch to live preview and focus on a specific component",
        parameters=_schema({"component_id": _COMPONENT_ID}, ["component_id"]),
    ),
    ToolDefinition(
        name=BuiltinTool.CREATE_SCENE.value,
        description="Create a new scene layout with specified components and layout",
        parameters=_schema(
            {
                "name": {"type": "string", "description": "Name for the scene"},
                "description": {
                    "type": "string",
                    "description": "Description of the scene layout and purpose",
                },
                "layout_type": {
                    "type": "string",
                    "enum": ["freeform", "grid", "flex"],
                    "description": "Type of layout for the scene",
                },
                "width": {
                    "type": "number",
                    "description": "Width of the scene canvas in pixels (default: 1200)",
                },
                "height": {
                    "type": "number",
                    "description": "Height of the scene canvas in pixels (default: 800)",
                },
                "components": {
                    "type": "array",
                    "description": "Component instances to place in the scene",
                    "items": {
                        "type": "object",
                        "properties": {
                            "component_id": {"type": "string", "description": "ID of the component to add"},
                            "x": {"type": "number", "description": "X position in pixels"},
                            "y": {"type": "number", "description": "Y position in pixels"},
                            "props": {"type": "object", "description": "Props for the instance"},
                        },
                        "required": ["component_id", "x", "y"],
                    },
                },
            },
            ["name", "description"],
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.ADD_COMPONENT_TO_SCENE.value,
        description="Add a component instance to an existing scene",
        parameters=_schema(
            {
                "scene_id": {"type": "string", "description": "ID of the scene"},
                "component_id": _COMPONENT_ID,
                "x": {"type": "number", "description": "X position in pixels"},
                "y": {"type": "number", "description": "Y position in pixels"},
                "props": {"type": "object", "description": "Props for the instance"},
            },
            ["scene_id", "component_id", "x", "y"],
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.CREATE_PROJECT_PLAN.value,
        description="Create a phased development plan for the project from a goal description",
        parameters=_schema(
            {
                "goal": {"type": "string", "description": "What the user wants to build"},
                "title": {"type": "string", "description": "Optional plan title"},
            },
            ["goal"],
        ),
        continuation=ContinuationRule(
            next_tool=BuiltinTool.REFLECT_ON_ARTIFACT.value,
            condition=ContinuationCondition.IF_USER_INTENT_COMPLETE,
            max_chain_length=1,
        ),
    ),
    ToolDefinition(
        name=BuiltinTool.UPDATE_PLAN_TASK.value,
        description="Update the status or notes of a task in the project plan",
        parameters=_schema(
            {
                "task_id": {"type": "string", "description": "ID of the plan task"},
                "status": {
                    "type": "string",
                    "enum": ["todo", "in-progress", "review", "done"],
                    "description": "New task status",
                },
                "notes": {"type": "string", "description": "Notes to record on the task"},
            },
            ["task_id"],
        ),
    ),
]
