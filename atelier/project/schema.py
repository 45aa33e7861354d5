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

"""Pydantic models for the project document.

The project document is owned by the caller. The orchestration core never
stores it; it reads snapshots handed in with each turn and proposes changes
as pure updater functions:

    def add_component(project: Project) -> Project:
        return project.model_copy(
            update={"components": [*project.components, component], "updated_at": utc_now()}
        )

    update_project(add_component)

Models are plain value objects. Every updater returns a new model instead of
mutating the one it received.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str) -> str:
    """Generate a short unique id such as ``comp-1a2b3c4d5e6f``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class PropDefinition(BaseModel):
    """A component prop declaration."""

    type: Literal["string", "number", "boolean", "object", "array", "function"] = "string"
    required: bool = False
    default_value: Any = None
    description: Optional[str] = None


class ComponentSchema(BaseModel):
    """A generated or imported UI component."""

    id: str = Field(default_factory=lambda: new_id("comp"))
    name: str
    type: Literal["component"] = "component"
    framework: str = "react"
    props: Dict[str, PropDefinition] = Field(default_factory=dict)
    source: Literal["local", "shadcn", "custom"] = "custom"
    description: Optional[str] = None
    file_path: Optional[str] = None
    generated_code: Optional[str] = None
    generation_method: Optional[str] = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class ImageAsset(BaseModel):
    """A generated image asset.

    ``base64`` holds the raw image until it is uploaded; after upload the
    asset keeps only ``cdn_url``.
    """

    id: str = Field(default_factory=lambda: new_id("img"))
    name: str
    prompt: str
    url: Optional[str] = None
    base64: Optional[str] = None
    cdn_url: Optional[str] = None
    format: Literal["png", "jpeg", "webp"] = "png"
    size: str = "1024x1024"
    background: Literal["transparent", "opaque", "auto"] = "transparent"
    model: str = "gpt-image-1"
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class Position(BaseModel):
    x: float = 0
    y: float = 0
    z: Optional[float] = None


class SceneComponent(BaseModel):
    """A placed instance of a component inside a scene."""

    id: str = Field(default_factory=lambda: new_id("inst"))
    component_id: str
    props: Dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)
    visible: bool = True
    locked: bool = False


class SceneLayout(BaseModel):
    type: Literal["freeform", "grid", "flex"] = "freeform"
    width: int = 1200
    height: int = 800
    background: str = "#ffffff"


class Scene(BaseModel):
    """A composition of component instances on a canvas."""

    id: str = Field(default_factory=lambda: new_id("scene"))
    name: str
    description: str = ""
    layout: SceneLayout = Field(default_factory=SceneLayout)
    instances: List[SceneComponent] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


TaskStatus = Literal["todo", "in-progress", "review", "done"]


class PlanTask(BaseModel):
    id: str = Field(default_factory=lambda: new_id("task"))
    title: str
    description: str = ""
    type: Literal["component", "feature", "integration", "design", "testing", "deployment"] = (
        "component"
    )
    priority: Literal["low", "medium", "high", "critical"] = "medium"
    estimated_hours: float = 0
    status: TaskStatus = "todo"
    agent_notes: Optional[str] = None
    completed_at: Optional[str] = None


class ProjectPhase(BaseModel):
    id: str = Field(default_factory=lambda: new_id("phase"))
    name: str
    description: str = ""
    order: int = 0
    tasks: List[PlanTask] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    status: Literal["not-started", "in-progress", "completed", "blocked"] = "not-started"


class ProjectPlan(BaseModel):
    """A multi-phase development plan for the project."""

    id: str = Field(default_factory=lambda: new_id("plan"))
    project_id: str = ""
    title: str
    overview: str = ""
    target_users: List[str] = Field(default_factory=list)
    core_features: List[str] = Field(default_factory=list)
    phases: List[ProjectPhase] = Field(default_factory=list)
    status: Literal["draft", "active", "completed", "on-hold"] = "draft"
    generated_by: Optional[str] = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    def iter_tasks(self):
        for phase in self.phases:
            yield from phase.tasks


class Screenshot(BaseModel):
    id: str = Field(default_factory=lambda: new_id("shot"))
    component_id: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now)
    cdn_url: Optional[str] = None
    analysis: Dict[str, Any] = Field(default_factory=dict)


ArtifactType = Literal["component", "image", "plan", "screenshot"]


class Reflection(BaseModel):
    """A critique of one artifact produced by the reflector collaborator."""

    id: str = Field(default_factory=lambda: new_id("refl"))
    artifact_type: ArtifactType
    artifact_id: str
    score: float = Field(0.0, ge=0.0, le=10.0)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    alignment: str = ""
    created_at: str = Field(default_factory=utc_now)


class Project(BaseModel):
    """The caller-owned project document."""

    id: str = Field(default_factory=lambda: new_id("proj"))
    name: str = "Untitled Project"
    description: str = ""
    framework: str = "react"
    components: List[ComponentSchema] = Field(default_factory=list)
    assets: List[ImageAsset] = Field(default_factory=list)
    scenes: List[Scene] = Field(default_factory=list)
    active_scene_id: Optional[str] = None
    dependencies: Dict[str, str] = Field(default_factory=dict)
    plan: Optional[ProjectPlan] = None
    screenshots: List[Screenshot] = Field(default_factory=list)
    reflections: List[Reflection] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    def find_component(self, component_id: str) -> Optional[ComponentSchema]:
        return next((c for c in self.components if c.id == component_id), None)

    def find_asset(self, asset_id: str) -> Optional[ImageAsset]:
        return next((a for a in self.assets if a.id == asset_id), None)

    def find_scene(self, scene_id: str) -> Optional[Scene]:
        return next((s for s in self.scenes if s.id == scene_id), None)

    def summary(self) -> str:
        """One-paragraph description used in system prompts."""
        components = ", ".join(c.name for c in self.components) or "none"
        assets = ", ".join(a.name for a in self.assets) or "none"
        deps = ", ".join(self.dependencies) or "standard React"
        lines = [
            f'- Project: "{self.name}"',
            f"- Framework: {self.framework}",
            f"- Components: {len(self.components)} ({components})",
            f"- Assets: {len(self.assets)} ({assets})",
            f"- Scenes: {len(self.scenes)}",
            f"- Dependencies: {deps}",
        ]
        if self.plan:
            done = sum(1 for t in self.plan.iter_tasks() if t.status == "done")
            total = sum(1 for _ in self.plan.iter_tasks())
            lines.append(f'- Plan: "{self.plan.title}" ({done}/{total} tasks done)')
        return "\n".join(lines)


ProjectUpdater = Callable[[Callable[[Project], Project]], None]


def create_project(name: str = "Untitled Project", description: str = "") -> Project:
    """Create an empty project document."""
    return Project(name=name, description=description)
