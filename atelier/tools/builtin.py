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

"""Handlers for the built-in tools.

Each handler receives the executor (for the working project snapshot, the
updater, UI hooks and collaborators) plus validated arguments, and returns a
ToolResult. Handlers raise freely; the executor turns exceptions into
failed results.
"""

from __future__ import annotations

import base64
import logging
import re
from typing import TYPE_CHECKING, Any, Dict

from atelier.core.errors import ToolExecutionError
from atelier.project import scenes
from atelier.project.schema import (
    ComponentSchema,
    ImageAsset,
    Project,
    Reflection,
    Screenshot,
    utc_now,
)
from atelier.tools.base import BuiltinTool, ToolResult
from atelier.tools.ui_actions import HookFailed, HookUnavailable, fire

if TYPE_CHECKING:
    from atelier.tools.executor import ToolExecutor, ToolHandler

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:image/[a-zA-Z]*;base64,")


def _require(executor: "ToolExecutor", attr: str, label: str) -> Any:
    collaborator = getattr(executor.collaborators, attr)
    if collaborator is None:
        raise ToolExecutionError(f"No {label} configured")
    return collaborator


def _touch(project: Project, **update: Any) -> Project:
    return project.model_copy(update={**update, "updated_at": utc_now()})


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "image"


# =============================================================================
# Project inspection
# =============================================================================


async def analyze_project_state(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    project = executor.project
    analysis = {
        "project_name": project.name,
        "framework": project.framework,
        "total_components": len(project.components),
        "components": [
            {
                "id": c.id,
                "name": c.name,
                "has_generated_code": bool(c.generated_code),
                "generation_method": c.generation_method,
                "source": c.source,
            }
            for c in project.components
        ],
        "total_assets": len(project.assets),
        "assets": [
            {
                "id": a.id,
                "name": a.name,
                "format": a.format,
                "prompt": a.prompt,
                "uploaded": bool(a.cdn_url),
                "created_at": a.created_at,
            }
            for a in project.assets
        ],
        "scenes": [{"id": s.id, "name": s.name, "instances": len(s.instances)} for s in project.scenes],
        "active_scene_id": project.active_scene_id,
        "has_plan": project.plan is not None,
        "dependencies": list(project.dependencies),
        "last_updated": project.updated_at,
    }
    return ToolResult.ok(
        f'Project "{project.name}" has {len(project.components)} components and '
        f"{len(project.assets)} assets. Built with {project.framework}.",
        analysis,
    )


async def get_embedded_preview(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    project = executor.project
    return ToolResult.ok(
        f"Embedded preview is ready with {len(project.components)} components.",
        {
            "status": "ready",
            "preview_type": "embedded",
            "components_count": len(project.components),
            "has_assets": bool(project.assets),
            "active_scene_id": project.active_scene_id,
            "framework": project.framework,
            "last_updated": project.updated_at,
        },
    )


# =============================================================================
# Components
# =============================================================================


async def generate_component(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    generator = _require(executor, "component_generator", "component generator")
    generated = await generator.generate(
        args["name"], args["description"], executor.project, image_url=args.get("image_url")
    )
    component = ComponentSchema(
        name=generated.name or args["name"],
        description=args["description"],
        generated_code=generated.code,
        generation_method=generated.method,
    )
    executor.apply(lambda p: _touch(p, components=[*p.components, component]))
    return ToolResult.ok(
        f'Generated component "{component.name}". Added to project.',
        {"component_id": component.id, "name": component.name, "image_url": args.get("image_url")},
    )


async def edit_component(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    component_id = args["component_id"]
    component = executor.project.find_component(component_id)
    if component is None:
        return ToolResult.fail(
            f"Component with ID {component_id} not found",
            summary=f"Component {component_id} does not exist",
        )
    generator = _require(executor, "component_generator", "component generator")
    generated = await generator.edit(component, args["instructions"], executor.project)

    def update(project: Project) -> Project:
        components = [
            c.model_copy(update={"generated_code": generated.code, "updated_at": utc_now()})
            if c.id == component_id
            else c
            for c in project.components
        ]
        return _touch(project, components=components)

    executor.apply(update)
    return ToolResult.ok(
        f'Edited component "{component.name}": {args["instructions"]}',
        {"component_id": component_id, "name": component.name},
    )


async def show_component_code(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    return _component_hook(
        executor,
        args["component_id"],
        "show_component_code",
        "Component code display",
        'Showing code for component "{name}"',
    )


async def focus_preview_component(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    return _component_hook(
        executor,
        args["component_id"],
        "focus_preview_component",
        "Preview component focus",
        'Switched to live preview and focused on component "{name}"',
    )


def _component_hook(
    executor: "ToolExecutor", component_id: str, hook: str, feature: str, message: str
) -> ToolResult:
    component = executor.project.find_component(component_id)
    if component is None:
        return ToolResult.fail(
            f"Component with ID {component_id} not found",
            summary=f"Component {component_id} does not exist",
        )
    try:
        fire(executor.ui_actions, hook, component_id)
    except HookUnavailable:
        return ToolResult.fail(
            f"{feature} not available", summary=f"{feature} is not currently supported"
        )
    except HookFailed as e:
        return ToolResult.fail(f"{feature} failed: {e}")
    return ToolResult.ok(
        message.format(name=component.name),
        {"component_id": component_id, "component_name": component.name},
    )


async def switch_ui_tab(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    tab = args["tab"]
    try:
        fire(executor.ui_actions, "switch_tab", tab)
    except HookUnavailable:
        return ToolResult.fail(
            "UI tab switching not available", summary="Tab switching is not currently supported"
        )
    except HookFailed as e:
        return ToolResult.fail(f"UI tab switching failed: {e}")
    return ToolResult.ok(f"Switched to {tab} tab", {"tab": tab})


# =============================================================================
# Images
# =============================================================================


async def generate_image_asset(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    generator = _require(executor, "image_generator", "image generator")
    size = args.get("size", "1024x1024")
    background = args.get("background", "transparent")
    image = await generator.generate(args["prompt"], size, background)
    asset = ImageAsset(
        name=args["name"],
        prompt=args["prompt"],
        base64=image.base64,
        format=image.format,
        size=size,
        background=background,
    )
    executor.apply(lambda p: _touch(p, assets=[*p.assets, asset]))
    return ToolResult.ok(
        f'Generated image "{asset.name}" with prompt "{asset.prompt}". Added to project assets.',
        {"asset_id": asset.id, "name": asset.name, "prompt": asset.prompt},
    )


async def edit_image_asset(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    asset_id = args["asset_id"]
    asset = executor.project.find_asset(asset_id)
    if asset is None:
        raise ToolExecutionError(f"Asset with ID {asset_id} not found")
    if not asset.base64:
        raise ToolExecutionError(f'Asset "{asset.name}" has no local image data to edit')

    generator = _require(executor, "image_generator", "image generator")
    image = await generator.edit(asset.base64, args["edit_prompt"], asset.size, asset.background)

    def update(project: Project) -> Project:
        assets = [
            a.model_copy(
                update={
                    "base64": image.base64,
                    "prompt": f"{a.prompt} | Edited: {args['edit_prompt']}",
                    "updated_at": utc_now(),
                }
            )
            if a.id == asset_id
            else a
            for a in project.assets
        ]
        return _touch(project, assets=assets)

    executor.apply(update)
    return ToolResult.ok(
        f'Edited image "{asset.name}" with prompt "{args["edit_prompt"]}". Asset updated.',
        {"asset_id": asset_id, "edit_prompt": args["edit_prompt"]},
    )


async def upload_image_to_cdn(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    asset_id = args["asset_id"]
    asset = executor.project.find_asset(asset_id)
    if asset is None:
        raise ToolExecutionError(f"Asset with ID {asset_id} not found")
    if asset.cdn_url:
        return ToolResult.ok(
            f'Image "{asset.name}" is already hosted at {asset.cdn_url}',
            {"asset_id": asset_id, "name": asset.name, "cdn_url": asset.cdn_url, "description": asset.prompt},
        )
    if not asset.base64:
        raise ToolExecutionError(f'Asset "{asset.name}" has no image data to upload')

    uploader = _require(executor, "cdn_uploader", "CDN uploader")
    payload = base64.b64decode(_DATA_URI.sub("", asset.base64))
    file_name = args.get("file_name") or f"{_slug(asset.name)}.{asset.format}"
    description = args.get("description") or asset.prompt
    uploaded = await uploader.upload(payload, file_name, description)

    def update(project: Project) -> Project:
        assets = [
            a.model_copy(
                update={
                    "cdn_url": uploaded.public_url,
                    "url": uploaded.public_url,
                    "base64": None,
                    "updated_at": utc_now(),
                }
            )
            if a.id == asset_id
            else a
            for a in project.assets
        ]
        return _touch(project, assets=assets)

    executor.apply(update)
    return ToolResult.ok(
        f'Uploaded "{asset.name}" to CDN: {uploaded.public_url}',
        {
            "asset_id": asset_id,
            "name": asset.name,
            "cdn_url": uploaded.public_url,
            "file_id": uploaded.file_id,
            "description": description,
        },
    )


# =============================================================================
# Reflection and screenshots
# =============================================================================


def _resolve_artifact(project: Project, artifact_type: str, artifact_id: str) -> Any:
    if artifact_type == "component":
        return project.find_component(artifact_id)
    if artifact_type == "image":
        return project.find_asset(artifact_id)
    if artifact_type == "plan":
        return project.plan if project.plan and project.plan.id == artifact_id else None
    if artifact_type == "screenshot":
        return next((s for s in project.screenshots if s.id == artifact_id), None)
    return None


async def reflect_on_artifact(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    artifact_type = args["artifact_type"]
    artifact_id = args["artifact_id"]
    artifact = _resolve_artifact(executor.project, artifact_type, artifact_id)
    if artifact is None:
        raise ToolExecutionError(f"{artifact_type.capitalize()} with ID {artifact_id} not found")

    reflector = _require(executor, "reflector", "reflector")
    outcome = await reflector.reflect(
        artifact_type,
        artifact,
        executor.project,
        executor.original_message,
        focus=args.get("focus"),
    )
    reflection = Reflection(
        artifact_type=artifact_type,
        artifact_id=artifact_id,
        score=outcome.score,
        strengths=outcome.strengths,
        improvements=outcome.improvements,
        alignment=outcome.alignment,
    )
    executor.apply(lambda p: _touch(p, reflections=[*p.reflections, reflection]))
    return ToolResult.ok(
        f"Reflected on {artifact_type} {artifact_id}: score {reflection.score:.1f}/10, "
        f"{len(reflection.improvements)} improvement(s) suggested",
        {
            "reflection_id": reflection.id,
            "artifact_type": artifact_type,
            "artifact_id": artifact_id,
            "score": reflection.score,
            "strengths": reflection.strengths,
            "improvements": reflection.improvements,
            "alignment": reflection.alignment,
        },
    )


async def capture_preview_screenshot(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    component_id = args["component_id"]
    component = executor.project.find_component(component_id)
    if component is None:
        raise ToolExecutionError(f"Component with ID {component_id} not found")

    capturer = _require(executor, "screenshot_capturer", "screenshot capturer")
    captured = await capturer.capture(component, executor.project)
    screenshot = Screenshot(component_id=component_id, cdn_url=captured.url, analysis=captured.analysis)
    executor.apply(lambda p: _touch(p, screenshots=[*p.screenshots, screenshot]))
    return ToolResult.ok(
        f'Captured preview screenshot of "{component.name}"',
        {
            "screenshot_id": screenshot.id,
            "component_id": component_id,
            "url": captured.url,
            "analysis": captured.analysis,
        },
    )


# =============================================================================
# Scenes
# =============================================================================


def _notify(executor: "ToolExecutor", hook: str, *hook_args: Any) -> None:
    # Scene notifications are secondary to the mutation itself
    try:
        fire(executor.ui_actions, hook, *hook_args)
    except HookUnavailable:
        logger.debug("No %s hook registered", hook)
    except HookFailed:
        pass  # logged by fire()


async def create_scene(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    scene = scenes.build_scene(
        executor.project,
        args["name"],
        description=args["description"],
        layout_type=args.get("layout_type", "freeform"),
        width=args.get("width", 1200),
        height=args.get("height", 800),
        components=args.get("components"),
    )
    executor.apply(lambda p: scenes.add_scene(p, scene, activate=True))
    _notify(executor, "scene_created", scene.id, scene.name)
    return ToolResult.ok(
        f'Created scene "{scene.name}" with {len(scene.instances)} components. Set as active scene.',
        {
            "scene_id": scene.id,
            "name": scene.name,
            "description": scene.description,
            "components_added": len(scene.instances),
        },
    )


async def add_component_to_scene(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    scene_id = args["scene_id"]
    component_id = args["component_id"]
    instance = scenes.build_instance(
        executor.project,
        scene_id,
        component_id,
        x=args["x"],
        y=args["y"],
        props=args.get("props"),
    )
    executor.apply(lambda p: scenes.place_component(p, scene_id, instance))

    project = executor.project
    component = project.find_component(component_id)
    scene = project.find_scene(scene_id)
    _notify(executor, "component_added_to_scene", scene_id, component_id, args["x"], args["y"], instance.props)
    return ToolResult.ok(
        f'Added component "{component.name}" to scene "{scene.name}" at position ({args["x"]}, {args["y"]})',
        {
            "instance_id": instance.id,
            "scene_id": scene_id,
            "component_name": component.name,
            "scene_name": scene.name,
            "position": {"x": args["x"], "y": args["y"]},
        },
    )


# =============================================================================
# Planning
# =============================================================================


async def create_project_plan(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    planner = _require(executor, "plan_generator", "plan generator")
    plan = await planner.generate(args["goal"], executor.project, title=args.get("title"))
    plan = plan.model_copy(update={"project_id": executor.project.id})
    executor.apply(lambda p: _touch(p, plan=plan))

    task_count = sum(1 for _ in plan.iter_tasks())
    return ToolResult.ok(
        f'Created project plan "{plan.title}" with {len(plan.phases)} phases and {task_count} tasks',
        {
            "plan_id": plan.id,
            "title": plan.title,
            "phases": [{"name": ph.name, "tasks": [t.id for t in ph.tasks]} for ph in plan.phases],
            "task_count": task_count,
        },
    )


async def update_plan_task(executor: "ToolExecutor", args: Dict[str, Any]) -> ToolResult:
    plan = executor.project.plan
    if plan is None:
        raise ToolExecutionError("Project has no plan")
    task_id = args["task_id"]
    task = next((t for t in plan.iter_tasks() if t.id == task_id), None)
    if task is None:
        raise ToolExecutionError(f"Task with ID {task_id} not found")

    changes: Dict[str, Any] = {}
    if args.get("status"):
        changes["status"] = args["status"]
        changes["completed_at"] = utc_now() if args["status"] == "done" else None
    if args.get("notes"):
        changes["agent_notes"] = args["notes"]

    def update(project: Project) -> Project:
        if project.plan is None:
            raise ToolExecutionError("Project has no plan")
        phases = [
            phase.model_copy(
                update={
                    "tasks": [
                        t.model_copy(update=changes) if t.id == task_id else t for t in phase.tasks
                    ]
                }
            )
            for phase in project.plan.phases
        ]
        return _touch(project, plan=project.plan.model_copy(update={"phases": phases, "updated_at": utc_now()}))

    executor.apply(update)
    return ToolResult.ok(
        f'Updated task "{task.title}"' + (f" to {changes['status']}" if "status" in changes else ""),
        {"task_id": task_id, "status": changes.get("status", task.status)},
    )


BUILTIN_HANDLERS: Dict[str, "ToolHandler"] = {
    BuiltinTool.ANALYZE_PROJECT_STATE.value: analyze_project_state,
    BuiltinTool.GENERATE_COMPONENT.value: generate_component,
    BuiltinTool.EDIT_COMPONENT.value: edit_component,
    BuiltinTool.GENERATE_IMAGE_ASSET.value: generate_image_asset,
    BuiltinTool.EDIT_IMAGE_ASSET.value: edit_image_asset,
    BuiltinTool.UPLOAD_IMAGE_TO_CDN.value: upload_image_to_cdn,
    BuiltinTool.REFLECT_ON_ARTIFACT.value: reflect_on_artifact,
    BuiltinTool.CAPTURE_PREVIEW_SCREENSHOT.value: capture_preview_screenshot,
    BuiltinTool.GET_EMBEDDED_PREVIEW.value: get_embedded_preview,
    BuiltinTool.SWITCH_UI_TAB.value: switch_ui_tab,
    BuiltinTool.SHOW_COMPONENT_CODE.value: show_component_code,
    BuiltinTool.FOCUS_PREVIEW_COMPONENT.value: focus_preview_component,
    BuiltinTool.CREATE_SCENE.value: create_scene,
    BuiltinTool.ADD_COMPONENT_TO_SCENE.value: add_component_to_scene,
    BuiltinTool.CREATE_PROJECT_PLAN.value: create_project_plan,
    BuiltinTool.UPDATE_PLAN_TASK.value: update_plan_task,
}
